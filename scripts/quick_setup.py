#!/usr/bin/env python
"""
Setup rápido para desarrollo local.

Este script:
1. Configura los settings de Django
2. Crea la base SQLite
3. Ejecuta las migrations (incluye los datos maestros)
4. Crea usuarios y tickets de ejemplo (opcional)

Uso:
    python scripts/quick_setup.py
    python scripts/quick_setup.py --with-sample-data
"""

import os
import sys
import argparse

# Agregar src al path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))


def setup_django():
    """Configura Django para uso standalone."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'mesa_ayuda.config.settings')

    # Sin DATABASE_URL ni DATABASE_HOST los settings usan SQLite
    os.environ.pop('DATABASE_URL', None)
    os.environ.pop('DATABASE_HOST', None)

    import django
    django.setup()


def run_migrations():
    """Ejecuta migrations."""
    from django.core.management import call_command

    print("📦 Ejecutando migrations...")
    call_command('migrate', verbosity=1)
    print("✅ Migrations terminadas!")


def create_sample_users():
    """Crea un administrador, dos responsables y dos clientes."""
    from mesa_ayuda.adapters.django_app.tickets.models import UsuarioModel
    from mesa_ayuda.core.acceso import Rol

    sample_users = [
        ('Ana', 'Rojas', 'ana.rojas@empresa.cl', '11111111-1', Rol.ADMINISTRADOR, None),
        ('Pedro', 'Soto', 'pedro.soto@empresa.cl', '22222222-2', Rol.RESPONSABLE, 3),
        ('Luis', 'Mena', 'luis.mena@empresa.cl', '33333333-3', Rol.RESPONSABLE, 2),
        ('Carla', 'Díaz', 'carla.diaz@cliente.cl', '44444444-4', Rol.CLIENTE, None),
        ('Jorge', 'Vera', 'jorge.vera@cliente.cl', '55555555-5', Rol.CLIENTE, None),
    ]

    print("👤 Creando usuarios de ejemplo...")

    usuarios = []
    for nombre, apellido, correo, rut, rol, id_departamento in sample_users:
        usuario, creado = UsuarioModel.objects.get_or_create(
            correo=correo,
            defaults={
                'nombre': nombre,
                'apellido': apellido,
                'rut': rut,
                'rol': int(rol),
                'departamento_id': id_departamento,
            },
        )
        usuarios.append(usuario)
        print(f"   {'✓' if creado else '='} {usuario} ({rol.nombre})")

    return usuarios


def create_sample_tickets(usuarios):
    """Crea tickets a través del Use Case, como lo haría la API."""
    from mesa_ayuda.config.container import get_container
    from mesa_ayuda.core.tickets.dtos import CrearTicketInputDTO

    clientes = [u for u in usuarios if u.rol == 2]
    services = get_container().services

    sample_tickets = [
        ('Servidor de correo caído', 'El relay SMTP no envía correos desde las 9:00.', 3, 1),
        ('No puedo ingresar al portal', 'El inicio de sesión devuelve error 500 al enviar el formulario.', 3, 2),
        ('Consulta por cotización', 'Necesito una cotización para 20 licencias adicionales.', 2, 3),
        ('Factura con monto incorrecto', 'La factura de junio suma dos veces el mismo servicio.', 4, 2),
        ('Sugerencia de mejora', 'Sería útil poder adjuntar capturas de pantalla al ticket.', 1, 3),
    ]

    print("📝 Creando tickets de ejemplo...")

    for i, (asunto, descripcion, id_departamento, id_prioridad) in enumerate(sample_tickets):
        output = services.crear_ticket_service().execute(CrearTicketInputDTO(
            asunto=asunto,
            descripcion=descripcion,
            id_departamento=id_departamento,
            id_prioridad=id_prioridad,
            id_solicitante=clientes[i % len(clientes)].id_usuario,
        ))
        print(f"   ✓ {output.numero_ticket} {output.asunto}")

    print(f"✅ {len(sample_tickets)} tickets creados!")


def check_connection():
    """Verifica la conexión con la base."""
    from django.db import connection
    from django.db.utils import OperationalError

    print("🔍 Verificando conexión con la base...")

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        print("✅ Conexión OK!")
        return True
    except OperationalError as e:
        print(f"❌ Error de conexión: {e}")
        return False


def show_info():
    """Muestra información del setup."""
    from django.conf import settings

    print("\n" + "=" * 60)
    print("📊 Información del Setup")
    print("=" * 60)
    print(f"  Database Engine: {settings.DATABASES['default']['ENGINE']}")
    print(f"  Database Name: {settings.DATABASES['default']['NAME']}")
    print(f"  Debug Mode: {settings.DEBUG}")
    print(f"  Event Publisher: {settings.EVENT_PUBLISHER_MODE}")
    print("=" * 60)
    print("\n🚀 Próximos pasos:")
    print("   1. django-admin runserver --settings=mesa_ayuda.config.settings")
    print("   2. Admin: http://localhost:8000/admin/")
    print("   3. API:   http://localhost:8000/api/tickets/  (header X-Usuario-Id)")
    print("\n")


def main():
    parser = argparse.ArgumentParser(description='Setup rápido para desarrollo')
    parser.add_argument(
        '--with-sample-data',
        action='store_true',
        help='Crear usuarios y tickets de ejemplo'
    )
    parser.add_argument(
        '--check-only',
        action='store_true',
        help='Sólo verificar la conexión'
    )

    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("🔧 Mesa de Ayuda - Quick Setup")
    print("=" * 60 + "\n")

    setup_django()

    if args.check_only:
        check_connection()
        return

    if not check_connection():
        print("\n⚠️  Revise la configuración de la base de datos.")
        return

    run_migrations()

    if args.with_sample_data:
        create_sample_tickets(create_sample_users())

    show_info()


if __name__ == '__main__':
    main()
