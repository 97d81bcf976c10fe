"""
Django Admin de la mesa de ayuda.
"""

from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from .models import (
    TicketModel,
    DerivacionTicketModel,
    DepartamentoModel,
    PrioridadModel,
    EstadoModel,
    UsuarioModel,
    DomainEventModel,
)


@admin.register(TicketModel)
class TicketAdmin(admin.ModelAdmin):

    list_display = [
        'numero_ticket',
        'asunto',
        'estado_badge',
        'prioridad_badge',
        'departamento',
        'solicitante',
        'asignado_a',
        'fecha_creacion',
        'sla_status',
    ]

    list_filter = [
        'estado',
        'prioridad',
        'departamento',
        'fecha_creacion',
    ]

    search_fields = [
        'numero_ticket',
        'asunto',
        'descripcion',
    ]

    readonly_fields = [
        'numero_ticket',
        'fecha_creacion',
        'fecha_vencimiento',
        'fecha_actualizacion',
    ]

    fieldsets = [
        ('Identificación', {
            'fields': ['numero_ticket', 'asunto', 'descripcion'],
        }),
        ('Clasificación', {
            'fields': ['departamento', 'prioridad', 'estado'],
        }),
        ('Responsables', {
            'fields': ['solicitante', 'asignado_a'],
        }),
        ('Fechas', {
            'fields': [
                'fecha_creacion',
                'fecha_vencimiento',
                'fecha_resolucion',
                'fecha_cierre',
                'fecha_actualizacion',
            ],
            'classes': ['collapse'],
        }),
    ]

    list_select_related = ['estado', 'prioridad', 'departamento', 'solicitante', 'asignado_a']

    ordering = ['-fecha_creacion']

    date_hierarchy = 'fecha_creacion'

    @staticmethod
    def _badge(color, texto):
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; '
            'border-radius: 3px; font-size: 11px;">{}</span>',
            color or '#6c757d',
            texto
        )

    @admin.display(description='Estado')
    def estado_badge(self, obj):
        return self._badge(obj.estado.color_hex, obj.estado.nombre_estado)

    @admin.display(description='Prioridad')
    def prioridad_badge(self, obj):
        return self._badge(obj.prioridad.color_hex, obj.prioridad.nombre_prioridad)

    @admin.display(description='SLA')
    def sla_status(self, obj):
        if not obj.fecha_vencimiento:
            return '-'

        if obj.estado_id in (4, 5):
            return format_html('<span style="color: #28a745;">✓ {}</span>', obj.estado.nombre_estado)

        if timezone.now() > obj.fecha_vencimiento:
            return format_html('<span style="color: #dc3545; font-weight: bold;">⚠ Vencido</span>')

        return format_html('<span style="color: #28a745;">✓ En plazo</span>')


@admin.register(DerivacionTicketModel)
class DerivacionTicketAdmin(admin.ModelAdmin):

    list_display = ['id', 'id_ticket', 'id_departamento_origen', 'id_departamento_destino', 'id_agente', 'fecha']
    list_filter = ['fecha']
    search_fields = ['id_ticket', 'motivo']
    readonly_fields = [
        'id_ticket',
        'id_departamento_origen',
        'id_departamento_destino',
        'motivo',
        'id_agente',
        'fecha',
    ]


@admin.register(DepartamentoModel)
class DepartamentoAdmin(admin.ModelAdmin):
    list_display = ['id_departamento', 'nombre_departamento', 'activo']
    list_filter = ['activo']


@admin.register(PrioridadModel)
class PrioridadAdmin(admin.ModelAdmin):
    list_display = ['id_prioridad', 'nombre_prioridad', 'nivel', 'color_hex']


@admin.register(EstadoModel)
class EstadoAdmin(admin.ModelAdmin):
    list_display = ['id_estado', 'nombre_estado', 'color_hex']


@admin.register(UsuarioModel)
class UsuarioAdmin(admin.ModelAdmin):
    list_display = ['id_usuario', 'nombre', 'apellido', 'correo', 'rut', 'rol', 'departamento', 'activo', 'fecha_creacion']
    list_filter = ['rol', 'departamento', 'activo']
    search_fields = ['nombre', 'apellido', 'correo', 'rut']


@admin.register(DomainEventModel)
class DomainEventAdmin(admin.ModelAdmin):

    list_display = [
        'event_id',
        'event_type',
        'aggregate_type',
        'aggregate_id',
        'sequence',
        'occurred_at',
    ]

    list_filter = [
        'event_type',
        'aggregate_type',
        'occurred_at',
    ]

    search_fields = [
        'event_id',
        'aggregate_id',
        'event_type',
        'user_id',
    ]

    readonly_fields = [
        'event_id',
        'event_type',
        'aggregate_type',
        'aggregate_id',
        'event_data',
        'version',
        'sequence',
        'occurred_at',
        'recorded_at',
        'user_id',
    ]
