"""
Migración inicial de la mesa de ayuda.

Crea las tablas:
- departamentos, prioridades, estados: datos maestros
- usuarios
- tickets: tabla principal
- derivaciones_ticket: auditoría de derivaciones
- eventos_dominio: Event Store
"""

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    """Migración inicial."""

    initial = True

    dependencies = [
    ]

    operations = [
        # =================================================================
        # Datos maestros
        # =================================================================
        migrations.CreateModel(
            name='DepartamentoModel',
            fields=[
                ('id_departamento', models.AutoField(primary_key=True, serialize=False)),
                ('nombre_departamento', models.CharField(
                    max_length=100,
                    unique=True,
                    help_text='Nombre del departamento'
                )),
                ('descripcion', models.TextField(
                    null=True,
                    blank=True,
                    help_text='Descripción de las funciones del departamento'
                )),
                ('activo', models.BooleanField(
                    default=True,
                    db_index=True,
                    help_text='Sólo los departamentos activos reciben tickets'
                )),
            ],
            options={
                'db_table': 'departamentos',
                'verbose_name': 'Departamento',
                'verbose_name_plural': 'Departamentos',
                'ordering': ['nombre_departamento'],
            },
        ),
        migrations.CreateModel(
            name='PrioridadModel',
            fields=[
                ('id_prioridad', models.AutoField(primary_key=True, serialize=False)),
                ('nombre_prioridad', models.CharField(
                    max_length=50,
                    unique=True,
                    help_text='Nombre de la prioridad'
                )),
                ('nivel', models.PositiveSmallIntegerField(
                    db_index=True,
                    help_text='1 = más urgente'
                )),
                ('color_hex', models.CharField(
                    max_length=7,
                    null=True,
                    blank=True,
                    help_text='Color para la interfaz (#RRGGBB)'
                )),
            ],
            options={
                'db_table': 'prioridades',
                'verbose_name': 'Prioridad',
                'verbose_name_plural': 'Prioridades',
                'ordering': ['nivel'],
            },
        ),
        migrations.CreateModel(
            name='EstadoModel',
            fields=[
                ('id_estado', models.AutoField(primary_key=True, serialize=False)),
                ('nombre_estado', models.CharField(
                    max_length=50,
                    unique=True,
                    help_text='Nombre del estado'
                )),
                ('descripcion', models.TextField(null=True, blank=True)),
                ('color_hex', models.CharField(max_length=7, null=True, blank=True)),
            ],
            options={
                'db_table': 'estados',
                'verbose_name': 'Estado',
                'verbose_name_plural': 'Estados',
                'ordering': ['id_estado'],
            },
        ),

        # =================================================================
        # Tabla: usuarios
        # =================================================================
        migrations.CreateModel(
            name='UsuarioModel',
            fields=[
                ('id_usuario', models.AutoField(primary_key=True, serialize=False)),
                ('nombre', models.CharField(max_length=100)),
                ('apellido', models.CharField(max_length=100)),
                ('correo', models.EmailField(
                    max_length=150,
                    unique=True,
                    help_text='Correo electrónico (único)'
                )),
                ('rut', models.CharField(
                    max_length=12,
                    unique=True,
                    help_text='RUT chileno (único)'
                )),
                ('rol', models.PositiveSmallIntegerField(
                    default=2,
                    db_index=True,
                    help_text='1 = administrador, 2 = cliente, 3 = responsable'
                )),
                ('activo', models.BooleanField(default=True)),
                ('departamento', models.ForeignKey(
                    null=True,
                    blank=True,
                    db_column='id_departamento',
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='usuarios',
                    to='tickets.departamentomodel',
                    help_text='Departamento del agente'
                )),
            ],
            options={
                'db_table': 'usuarios',
                'verbose_name': 'Usuario',
                'verbose_name_plural': 'Usuarios',
                'ordering': ['apellido', 'nombre'],
            },
        ),

        # =================================================================
        # Tabla: tickets
        # =================================================================
        migrations.CreateModel(
            name='TicketModel',
            fields=[
                ('id_ticket', models.BigAutoField(primary_key=True, serialize=False)),
                ('numero_ticket', models.CharField(
                    max_length=20,
                    unique=True,
                    help_text='Código legible TK<año><mes><secuencia>'
                )),
                ('asunto', models.CharField(
                    max_length=150,
                    help_text='Asunto del ticket'
                )),
                ('descripcion', models.TextField(
                    help_text='Descripción detallada del problema'
                )),
                ('fecha_creacion', models.DateTimeField(
                    default=django.utils.timezone.now,
                    db_index=True
                )),
                ('fecha_vencimiento', models.DateTimeField(
                    null=True,
                    blank=True,
                    db_index=True,
                    help_text='Plazo de respuesta según la prioridad'
                )),
                ('fecha_resolucion', models.DateTimeField(null=True, blank=True)),
                ('fecha_cierre', models.DateTimeField(null=True, blank=True)),
                ('fecha_actualizacion', models.DateTimeField(null=True, blank=True)),
                ('departamento', models.ForeignKey(
                    db_column='id_departamento',
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='tickets',
                    to='tickets.departamentomodel'
                )),
                ('prioridad', models.ForeignKey(
                    db_column='id_prioridad',
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='tickets',
                    to='tickets.prioridadmodel'
                )),
                ('estado', models.ForeignKey(
                    default=1,
                    db_column='id_estado',
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='tickets',
                    to='tickets.estadomodel'
                )),
                ('solicitante', models.ForeignKey(
                    db_column='id_solicitante',
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='tickets_solicitados',
                    to='tickets.usuariomodel'
                )),
                ('asignado_a', models.ForeignKey(
                    null=True,
                    blank=True,
                    db_column='asignado_a',
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='tickets_asignados',
                    to='tickets.usuariomodel',
                    help_text='Responsable del ticket'
                )),
            ],
            options={
                'db_table': 'tickets',
                'verbose_name': 'Ticket',
                'verbose_name_plural': 'Tickets',
                'ordering': ['-fecha_creacion'],
                'indexes': [
                    models.Index(fields=['estado', 'fecha_vencimiento'], name='tickets_estado_venc_idx'),
                    models.Index(fields=['departamento', 'estado'], name='tickets_depto_estado_idx'),
                    models.Index(fields=['asignado_a', 'estado'], name='tickets_asignado_estado_idx'),
                    models.Index(fields=['solicitante', 'fecha_creacion'], name='tickets_solic_creacion_idx'),
                ],
            },
        ),

        # =================================================================
        # Tabla: derivaciones_ticket
        # =================================================================
        migrations.CreateModel(
            name='DerivacionTicketModel',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('id_ticket', models.BigIntegerField(db_index=True)),
                ('id_departamento_origen', models.IntegerField()),
                ('id_departamento_destino', models.IntegerField()),
                ('motivo', models.TextField(blank=True, default='')),
                ('id_agente', models.IntegerField()),
                ('fecha', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'derivaciones_ticket',
                'verbose_name': 'Derivación de Ticket',
                'verbose_name_plural': 'Derivaciones de Tickets',
                'ordering': ['fecha', 'id'],
            },
        ),

        # =================================================================
        # Tabla: eventos_dominio (Event Store)
        # =================================================================
        migrations.CreateModel(
            name='DomainEventModel',
            fields=[
                ('event_id', models.CharField(
                    max_length=36,
                    primary_key=True,
                    serialize=False,
                    help_text='UUID del evento'
                )),
                ('event_type', models.CharField(
                    max_length=100,
                    db_index=True,
                    help_text='Tipo del evento (ej: TicketCreadoEvent)'
                )),
                ('aggregate_type', models.CharField(max_length=100, db_index=True)),
                ('aggregate_id', models.CharField(max_length=36, db_index=True)),
                ('event_data', models.JSONField(
                    default=dict,
                    help_text='Datos serializados del evento'
                )),
                ('version', models.IntegerField(default=1)),
                ('sequence', models.BigIntegerField(
                    default=0,
                    help_text='Secuencia del evento dentro del agregado'
                )),
                ('occurred_at', models.DateTimeField()),
                ('recorded_at', models.DateTimeField(auto_now_add=True)),
                ('user_id', models.CharField(
                    max_length=100,
                    null=True,
                    blank=True,
                    db_index=True
                )),
            ],
            options={
                'db_table': 'eventos_dominio',
                'verbose_name': 'Evento de Dominio',
                'verbose_name_plural': 'Eventos de Dominio',
                'ordering': ['recorded_at'],
                'indexes': [
                    models.Index(fields=['aggregate_id', 'sequence'], name='eventos_aggregate_seq_idx'),
                    models.Index(fields=['event_type', 'recorded_at'], name='eventos_tipo_recorded_idx'),
                ],
            },
        ),
    ]
