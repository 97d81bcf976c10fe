"""
Fixtures de los tests de adapters Django.

Los datos maestros (departamentos, prioridades, estados) los carga
la migración 0002; aquí sólo se crean usuarios y tickets.
"""

import pytest
from django.test import Client, RequestFactory


@pytest.fixture
def rf():
    """Request Factory para construir requests."""
    return RequestFactory()


@pytest.fixture
def client():
    return Client()


@pytest.fixture
def usuario_factory(db):
    """Factory de UsuarioModel con datos únicos por llamada."""
    from mesa_ayuda.adapters.django_app.tickets.models import UsuarioModel

    def crear(id_usuario, rol=2, id_departamento=None, **kwargs):
        defaults = {
            'id_usuario': id_usuario,
            'nombre': f'Usuario{id_usuario}',
            'apellido': 'Prueba',
            'correo': f'usuario{id_usuario}@empresa.cl',
            'rut': f'{10000000 + id_usuario}-{id_usuario % 10}',
            'rol': rol,
            'departamento_id': id_departamento,
        }
        defaults.update(kwargs)
        return UsuarioModel.objects.create(**defaults)

    return crear


@pytest.fixture
def usuarios(usuario_factory):
    """
    Usuarios de ejemplo:
    - 1: administrador
    - 7: responsable de Informática (3)
    - 8: responsable de Comercial (2)
    - 42, 43: clientes
    """
    return {
        'admin': usuario_factory(1, rol=1),
        'agente': usuario_factory(7, rol=3, id_departamento=3),
        'otro_agente': usuario_factory(8, rol=3, id_departamento=2),
        'cliente': usuario_factory(42),
        'otro_cliente': usuario_factory(43),
    }


@pytest.fixture
def ticket_factory(usuarios):
    """Factory de TicketEntity persistidos con DjangoTicketRepository."""
    from mesa_ayuda.adapters.django_app.tickets.repositories import DjangoTicketRepository
    from mesa_ayuda.core.tickets.entities import TicketEntity

    repo = DjangoTicketRepository()
    contador = {'n': 0}

    def crear(**kwargs):
        contador['n'] += 1
        defaults = {
            'numero_ticket': f"TK209912{contador['n']:03d}",
            'asunto': 'Servidor de correo caído',
            'descripcion': 'El relay SMTP falla desde las 9am',
            'id_departamento': 3,
            'id_prioridad': 2,
            'nivel_prioridad': 2,
            'id_solicitante': 42,
        }
        defaults.update(kwargs)
        return repo.save(TicketEntity.crear(**defaults))

    return crear
