"""
Datos iniciales: departamentos, prioridades y estados.

Los IDs son fijos: el motor de tickets usa los estados 1..5 y los
niveles de prioridad 1..3 directamente.
"""

from django.core.management.color import no_style
from django.db import migrations


DEPARTAMENTOS = [
    (1, 'Administración', 'Gestión administrativa y recursos humanos'),
    (2, 'Comercial', 'Ventas y atención a clientes'),
    (3, 'Informática', 'Soporte técnico y sistemas'),
    (4, 'Operaciones', 'Logística y operaciones'),
]

PRIORIDADES = [
    (1, 'Alta', 1, '#dc3545'),
    (2, 'Media', 2, '#ffc107'),
    (3, 'Baja', 3, '#28a745'),
]

ESTADOS = [
    (1, 'Nuevo', 'Ticket recién creado', '#17a2b8'),
    (2, 'En Proceso', 'Ticket en atención', '#ffc107'),
    (3, 'Escalado', 'Ticket escalado', '#fd7e14'),
    (4, 'Resuelto', 'Ticket resuelto', '#28a745'),
    (5, 'Cerrado', 'Ticket cerrado', '#6c757d'),
]


def cargar_datos(apps, schema_editor):
    Departamento = apps.get_model('tickets', 'DepartamentoModel')
    Prioridad = apps.get_model('tickets', 'PrioridadModel')
    Estado = apps.get_model('tickets', 'EstadoModel')

    for id_departamento, nombre, descripcion in DEPARTAMENTOS:
        Departamento.objects.update_or_create(
            id_departamento=id_departamento,
            defaults={'nombre_departamento': nombre, 'descripcion': descripcion, 'activo': True},
        )

    for id_prioridad, nombre, nivel, color in PRIORIDADES:
        Prioridad.objects.update_or_create(
            id_prioridad=id_prioridad,
            defaults={'nombre_prioridad': nombre, 'nivel': nivel, 'color_hex': color},
        )

    for id_estado, nombre, descripcion, color in ESTADOS:
        Estado.objects.update_or_create(
            id_estado=id_estado,
            defaults={'nombre_estado': nombre, 'descripcion': descripcion, 'color_hex': color},
        )

    # IDs explícitos: las secuencias de PostgreSQL quedan atrás
    connection = schema_editor.connection
    with connection.cursor() as cursor:
        for sql in connection.ops.sequence_reset_sql(no_style(), [Departamento, Prioridad, Estado]):
            cursor.execute(sql)


def borrar_datos(apps, schema_editor):
    apps.get_model('tickets', 'EstadoModel').objects.filter(id_estado__in=[e[0] for e in ESTADOS]).delete()
    apps.get_model('tickets', 'PrioridadModel').objects.filter(id_prioridad__in=[p[0] for p in PRIORIDADES]).delete()
    apps.get_model('tickets', 'DepartamentoModel').objects.filter(
        id_departamento__in=[d[0] for d in DEPARTAMENTOS]
    ).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('tickets', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(cargar_datos, borrar_datos),
    ]
