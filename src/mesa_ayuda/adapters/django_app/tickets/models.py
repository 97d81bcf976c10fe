"""
Django Models de la mesa de ayuda.

Estos models son ADAPTERS: persisten las entidades de dominio
definidas en mesa_ayuda/core.

IMPORTANTE:
- Los models NO contienen lógica de negocio
- La lógica vive en las Entities y Use Cases del Core
- Se traducen hacia/desde Entities con los Mappers

Tablas:
- departamentos, prioridades, estados: datos maestros (migración de datos)
- usuarios: identidad y rol de quienes usan la API
- tickets: tabla principal
- derivaciones_ticket: auditoría de derivaciones (sin FK al ticket)
- eventos_dominio: Event Store
"""

from django.db import models
from django.utils import timezone


class DepartamentoModel(models.Model):
    """Departamento que atiende tickets."""

    id_departamento = models.AutoField(primary_key=True)

    nombre_departamento = models.CharField(
        max_length=100,
        unique=True,
        help_text="Nombre del departamento"
    )

    descripcion = models.TextField(
        null=True,
        blank=True,
        help_text="Descripción de las funciones del departamento"
    )

    activo = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Sólo los departamentos activos reciben tickets"
    )

    class Meta:
        db_table = 'departamentos'
        verbose_name = 'Departamento'
        verbose_name_plural = 'Departamentos'
        ordering = ['nombre_departamento']

    def __str__(self):
        return self.nombre_departamento


class PrioridadModel(models.Model):
    """Prioridad; el nivel define el plazo de respuesta."""

    id_prioridad = models.AutoField(primary_key=True)

    nombre_prioridad = models.CharField(
        max_length=50,
        unique=True,
        help_text="Nombre de la prioridad"
    )

    nivel = models.PositiveSmallIntegerField(
        db_index=True,
        help_text="1 = más urgente"
    )

    color_hex = models.CharField(
        max_length=7,
        null=True,
        blank=True,
        help_text="Color para la interfaz (#RRGGBB)"
    )

    class Meta:
        db_table = 'prioridades'
        verbose_name = 'Prioridad'
        verbose_name_plural = 'Prioridades'
        ordering = ['nivel']

    def __str__(self):
        return f"{self.nombre_prioridad} (nivel {self.nivel})"


class EstadoModel(models.Model):
    """Estado del ciclo de vida de un ticket."""

    id_estado = models.AutoField(primary_key=True)

    nombre_estado = models.CharField(
        max_length=50,
        unique=True,
        help_text="Nombre del estado"
    )

    descripcion = models.TextField(
        null=True,
        blank=True,
    )

    color_hex = models.CharField(
        max_length=7,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = 'estados'
        verbose_name = 'Estado'
        verbose_name_plural = 'Estados'
        ordering = ['id_estado']

    def __str__(self):
        return self.nombre_estado


class UsuarioModel(models.Model):
    """
    Usuario de la mesa de ayuda.

    El rol se guarda como entero (ver mesa_ayuda.core.acceso.Rol).
    """

    id_usuario = models.AutoField(primary_key=True)

    nombre = models.CharField(max_length=100)

    apellido = models.CharField(max_length=100)

    correo = models.EmailField(
        max_length=150,
        unique=True,
        help_text="Correo electrónico (único)"
    )

    rut = models.CharField(
        max_length=12,
        unique=True,
        help_text="RUT chileno (único)"
    )

    rol = models.PositiveSmallIntegerField(
        default=2,
        db_index=True,
        help_text="1 = administrador, 2 = cliente, 3 = responsable"
    )

    departamento = models.ForeignKey(
        DepartamentoModel,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        db_column='id_departamento',
        related_name='usuarios',
        help_text="Departamento del agente"
    )

    activo = models.BooleanField(default=True)

    fecha_creacion = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="Alta del usuario"
    )

    class Meta:
        db_table = 'usuarios'
        verbose_name = 'Usuario'
        verbose_name_plural = 'Usuarios'
        ordering = ['apellido', 'nombre']

    def __str__(self):
        return f"{self.nombre} {self.apellido} <{self.correo}>"


class TicketModel(models.Model):
    """
    Model Django para la persistencia de Tickets.

    Es un ADAPTER que persiste los datos de TicketEntity, sin lógica
    de negocio. La restricción única de numero_ticket es la que cierra
    la carrera entre creaciones concurrentes.
    """

    id_ticket = models.BigAutoField(primary_key=True)

    numero_ticket = models.CharField(
        max_length=20,
        unique=True,
        help_text="Código legible TK<año><mes><secuencia>"
    )

    asunto = models.CharField(
        max_length=150,
        help_text="Asunto del ticket"
    )

    descripcion = models.TextField(
        help_text="Descripción detallada del problema"
    )

    departamento = models.ForeignKey(
        DepartamentoModel,
        on_delete=models.PROTECT,
        db_column='id_departamento',
        related_name='tickets',
    )

    prioridad = models.ForeignKey(
        PrioridadModel,
        on_delete=models.PROTECT,
        db_column='id_prioridad',
        related_name='tickets',
    )

    estado = models.ForeignKey(
        EstadoModel,
        on_delete=models.PROTECT,
        db_column='id_estado',
        related_name='tickets',
        default=1,
    )

    solicitante = models.ForeignKey(
        UsuarioModel,
        on_delete=models.PROTECT,
        db_column='id_solicitante',
        related_name='tickets_solicitados',
    )

    asignado_a = models.ForeignKey(
        UsuarioModel,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        db_column='asignado_a',
        related_name='tickets_asignados',
        help_text="Responsable del ticket"
    )

    fecha_creacion = models.DateTimeField(
        default=timezone.now,
        db_index=True,
    )

    fecha_vencimiento = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Plazo de respuesta según la prioridad"
    )

    fecha_resolucion = models.DateTimeField(null=True, blank=True)

    fecha_cierre = models.DateTimeField(null=True, blank=True)

    fecha_actualizacion = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'tickets'
        verbose_name = 'Ticket'
        verbose_name_plural = 'Tickets'
        ordering = ['-fecha_creacion']
        indexes = [
            models.Index(fields=['estado', 'fecha_vencimiento'], name='tickets_estado_venc_idx'),
            models.Index(fields=['departamento', 'estado'], name='tickets_depto_estado_idx'),
            models.Index(fields=['asignado_a', 'estado'], name='tickets_asignado_estado_idx'),
            models.Index(fields=['solicitante', 'fecha_creacion'], name='tickets_solic_creacion_idx'),
        ]

    def __str__(self):
        return f"[{self.numero_ticket}] {self.asunto}"

    def __repr__(self):
        return f"<TicketModel id={self.id_ticket} numero={self.numero_ticket} estado={self.estado_id}>"


class DerivacionTicketModel(models.Model):
    """
    Auditoría de derivaciones.

    Guarda el ID del ticket como entero plano para que el historial
    sobreviva al borrado físico del ticket.
    """

    id = models.BigAutoField(primary_key=True)

    id_ticket = models.BigIntegerField(db_index=True)

    id_departamento_origen = models.IntegerField()

    id_departamento_destino = models.IntegerField()

    motivo = models.TextField(blank=True, default='')

    id_agente = models.IntegerField()

    fecha = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'derivaciones_ticket'
        verbose_name = 'Derivación de Ticket'
        verbose_name_plural = 'Derivaciones de Tickets'
        ordering = ['fecha', 'id']

    def __str__(self):
        return f"Ticket {self.id_ticket}: {self.id_departamento_origen} -> {self.id_departamento_destino}"


class DomainEventModel(models.Model):
    """
    Event Store de Domain Events.

    Persiste cada evento de dominio para auditoría y replay.
    """

    event_id = models.CharField(
        max_length=36,
        primary_key=True,
        help_text="UUID del evento"
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Tipo del evento (ej: TicketCreadoEvent)"
    )

    aggregate_type = models.CharField(
        max_length=100,
        db_index=True,
    )

    aggregate_id = models.CharField(
        max_length=36,
        db_index=True,
    )

    event_data = models.JSONField(
        default=dict,
        help_text="Datos serializados del evento"
    )

    version = models.IntegerField(default=1)

    sequence = models.BigIntegerField(
        default=0,
        help_text="Secuencia del evento dentro del agregado"
    )

    occurred_at = models.DateTimeField()

    recorded_at = models.DateTimeField(auto_now_add=True)

    user_id = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        db_index=True,
    )

    class Meta:
        db_table = 'eventos_dominio'
        verbose_name = 'Evento de Dominio'
        verbose_name_plural = 'Eventos de Dominio'
        ordering = ['recorded_at']
        indexes = [
            models.Index(fields=['aggregate_id', 'sequence'], name='eventos_aggregate_seq_idx'),
            models.Index(fields=['event_type', 'recorded_at'], name='eventos_tipo_recorded_idx'),
        ]

    def __str__(self):
        return f"{self.event_type} - {self.aggregate_id} @ {self.occurred_at}"
