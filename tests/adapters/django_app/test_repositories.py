"""
Tests de los adapters de persistencia Django.

Prueban contra SQLite en memoria:
- Mappers Entity ↔ Model
- DjangoTicketRepository (alta, código duplicado, filtros y orden)
- Auditoría de derivaciones
- Repositorios de datos maestros y usuarios (alta, filtros, orden, borrado)
- DjangoEventStore
- DjangoGeneradorCodigo
"""

import pytest
from datetime import timedelta

from django.utils import timezone

from mesa_ayuda.adapters.django_app.tickets.mappers import TicketMapper
from mesa_ayuda.adapters.django_app.tickets.models import TicketModel
from mesa_ayuda.adapters.django_app.tickets.repositories import (
    DjangoTicketRepository,
    DjangoDatosMaestrosRepository,
    DjangoUsuarioRepository,
    DjangoEventStore,
)
from mesa_ayuda.adapters.django_app.tickets.generador_codigo import DjangoGeneradorCodigo
from mesa_ayuda.core.acceso import Rol
from mesa_ayuda.core.shared.exceptions import CodigoDuplicadoError, ConflictError
from mesa_ayuda.core.tickets.codigos import prefijo_mensual
from mesa_ayuda.core.tickets.dtos import FiltroTickets, OrdenTickets, AmbitoAgente
from mesa_ayuda.core.tickets.entities import TicketEntity, EstadoTicket, DerivacionTicket
from mesa_ayuda.core.tickets.events import TicketCreadoEvent
from mesa_ayuda.core.usuarios import FiltroUsuarios, OrdenUsuarios, UsuarioEntity


pytestmark = pytest.mark.django_db


# =============================================================================
# Mapper
# =============================================================================

class TestTicketMapper:

    def test_to_model_y_vuelta(self):
        """Debe conservar todos los campos en el viaje Entity → Model → Entity."""
        entity = TicketEntity.crear(
            numero_ticket="TK202507001",
            asunto="Impresora sin tóner",
            descripcion="No imprime en el piso 3",
            id_departamento=3,
            id_prioridad=1,
            nivel_prioridad=1,
            id_solicitante=42,
        )
        entity.tomar(7)

        back = TicketMapper.to_entity(TicketMapper.to_model(entity))

        assert back.numero_ticket == entity.numero_ticket
        assert back.asignado_a == 7
        assert back.id_estado == EstadoTicket.EN_PROCESO
        assert back.fecha_vencimiento == entity.fecha_vencimiento


# =============================================================================
# DjangoTicketRepository
# =============================================================================

class TestDjangoTicketRepository:

    def test_save_asigna_id(self, ticket_factory):
        ticket = ticket_factory()

        assert ticket.id is not None
        assert TicketModel.objects.filter(id_ticket=ticket.id).exists()

    def test_get_by_id(self, ticket_factory):
        ticket = ticket_factory(asunto="Correo caído en sucursal")

        persistido = DjangoTicketRepository().get_by_id(ticket.id)

        assert persistido.asunto == "Correo caído en sucursal"
        assert persistido.id_estado == EstadoTicket.NUEVO
        assert persistido.asignado_a is None

    def test_get_by_id_inexistente(self, db):
        assert DjangoTicketRepository().get_by_id(999999) is None

    def test_codigo_duplicado(self, ticket_factory):
        """Debe traducir la violación de unicidad a CodigoDuplicadoError."""
        ticket_factory(numero_ticket="TK209912500")

        with pytest.raises(CodigoDuplicadoError) as exc_info:
            ticket_factory(numero_ticket="TK209912500")

        assert exc_info.value.numero_ticket == "TK209912500"
        assert TicketModel.objects.filter(numero_ticket="TK209912500").count() == 1

    def test_save_actualiza(self, ticket_factory):
        repo = DjangoTicketRepository()
        ticket = ticket_factory()

        ticket.actualizar(id_estado=EstadoTicket.RESUELTO)
        repo.save(ticket)

        persistido = repo.get_by_id(ticket.id)
        assert persistido.id_estado == EstadoTicket.RESUELTO
        assert persistido.fecha_resolucion is not None

    def test_delete(self, ticket_factory):
        repo = DjangoTicketRepository()
        ticket = ticket_factory()

        repo.delete(ticket.id)

        assert repo.get_by_id(ticket.id) is None

    def test_filtro_por_solicitante_recientes_primero(self, ticket_factory):
        primero = ticket_factory(id_solicitante=42)
        ticket_factory(id_solicitante=43)
        segundo = ticket_factory(id_solicitante=42)

        resultado = DjangoTicketRepository().list_by_filtro(FiltroTickets(id_solicitante=42))

        assert [t.id for t in resultado] == [segundo.id, primero.id]

    def test_filtro_por_ambito_de_agente(self, ticket_factory):
        """Debe incluir el departamento del agente o lo asignado a él."""
        repo = DjangoTicketRepository()
        propio = ticket_factory(id_departamento=3)
        asignado = ticket_factory(id_departamento=2)
        asignado.tomar(7)
        repo.save(asignado)
        ticket_factory(id_departamento=2)

        resultado = repo.list_by_filtro(FiltroTickets(ambito=AmbitoAgente(id_usuario=7, id_departamento=3)))

        assert {t.id for t in resultado} == {propio.id, asignado.id}

    def test_orden_prioridad_vencimiento(self, ticket_factory):
        """Debe ordenar por nivel de prioridad y luego por vencimiento."""
        baja = ticket_factory(id_prioridad=3, nivel_prioridad=3)
        media = ticket_factory(id_prioridad=2, nivel_prioridad=2)
        alta = ticket_factory(id_prioridad=1, nivel_prioridad=1)

        resultado = DjangoTicketRepository().list_by_filtro(
            FiltroTickets(orden=OrdenTickets.PRIORIDAD_VENCIMIENTO)
        )

        assert [t.id for t in resultado] == [alta.id, media.id, baja.id]

    def test_filtro_estados_y_vencimiento(self, ticket_factory):
        repo = DjangoTicketRepository()
        hace_un_dia = timezone.now() - timedelta(days=1)
        vencido = ticket_factory(id_prioridad=1, nivel_prioridad=1, momento=hace_un_dia)
        cerrado = ticket_factory(id_prioridad=1, nivel_prioridad=1, momento=hace_un_dia)
        cerrado.actualizar(id_estado=EstadoTicket.CERRADO)
        repo.save(cerrado)
        ticket_factory(id_prioridad=3, nivel_prioridad=3)

        filtro = FiltroTickets(
            ids_estado=(1, 2, 3),
            vencimiento_antes_de=timezone.now(),
        )

        assert [t.id for t in repo.list_by_filtro(filtro)] == [vencido.id]
        assert repo.count_by_filtro(filtro) == 1

    def test_derivaciones_sobreviven_al_borrado(self, ticket_factory):
        """Debe conservar la auditoría aunque el ticket se elimine."""
        repo = DjangoTicketRepository()
        ticket = ticket_factory()
        repo.save_derivacion(DerivacionTicket(
            id_ticket=ticket.id,
            id_departamento_origen=3,
            id_departamento_destino=2,
            motivo="Corresponde a ventas",
            id_agente=7,
            fecha=timezone.now(),
        ))

        repo.delete(ticket.id)

        historial = repo.list_derivaciones(ticket.id)
        assert len(historial) == 1
        assert historial[0].id is not None
        assert historial[0].motivo == "Corresponde a ventas"


# =============================================================================
# Datos maestros y usuarios
# =============================================================================

class TestDjangoDatosMaestrosRepository:

    def test_datos_iniciales_de_la_migracion(self, db):
        repo = DjangoDatosMaestrosRepository()

        assert [d.nombre for d in repo.list_departamentos()] == [
            "Administración", "Comercial", "Informática", "Operaciones",
        ]
        assert [p.nivel for p in repo.list_prioridades()] == [1, 2, 3]
        assert [e.id for e in repo.list_estados()] == [1, 2, 3, 4, 5]

    def test_inexistentes_devuelven_none(self, db):
        repo = DjangoDatosMaestrosRepository()

        assert repo.get_departamento(99) is None
        assert repo.get_prioridad(99) is None
        assert repo.get_estado(99) is None

    def test_departamento_inactivo_fuera_de_la_lista(self, db):
        from mesa_ayuda.adapters.django_app.tickets.models import DepartamentoModel

        DepartamentoModel.objects.filter(id_departamento=4).update(activo=False)
        repo = DjangoDatosMaestrosRepository()

        assert len(repo.list_departamentos()) == 3
        assert len(repo.list_departamentos(solo_activos=False)) == 4
        assert repo.get_departamento(4).activo is False


class TestDjangoUsuarioRepository:

    def test_get_by_id_con_rol(self, usuarios):
        usuario = DjangoUsuarioRepository().get_by_id(7)

        assert usuario.rol == Rol.RESPONSABLE
        assert usuario.id_departamento == 3

    def test_exists_correo_insensible_a_mayusculas(self, usuarios):
        repo = DjangoUsuarioRepository()

        assert repo.exists_correo("USUARIO42@empresa.cl") is True
        assert repo.exists_correo("usuario42@empresa.cl", excluir_id=42) is False
        assert repo.exists_correo("nadie@empresa.cl") is False

    def test_exists_rut(self, usuarios):
        repo = DjangoUsuarioRepository()
        rut = usuarios['cliente'].rut

        assert repo.exists_rut(rut) is True
        assert repo.exists_rut(rut, excluir_id=42) is False

    def test_save_inserta(self, db):
        usuario = UsuarioEntity.crear("Marta", "Fuentes", "marta@empresa.cl", "12345678-5", Rol.RESPONSABLE, 3)

        DjangoUsuarioRepository().save(usuario)

        assert usuario.id is not None
        guardado = DjangoUsuarioRepository().get_by_id(usuario.id)
        assert guardado.rut == "12345678-5"
        assert guardado.id_departamento == 3
        assert guardado.fecha_creacion is not None

    def test_save_actualiza(self, usuarios):
        repo = DjangoUsuarioRepository()
        usuario = repo.get_by_id(42)
        usuario.actualizar(apellido="Díaz", activo=False)

        repo.save(usuario)

        guardado = repo.get_by_id(42)
        assert guardado.apellido == "Díaz"
        assert guardado.activo is False

    def test_save_correo_duplicado(self, usuarios):
        """Debe traducir el choque de unicidad de la base a ConflictError."""
        usuario = UsuarioEntity.crear("Marta", "Fuentes", "usuario42@empresa.cl", "12345678-5")

        with pytest.raises(ConflictError) as exc_info:
            DjangoUsuarioRepository().save(usuario)

        assert exc_info.value.code == "USUARIO_DUPLICADO"

    def test_list_by_filtro(self, usuarios):
        repo = DjangoUsuarioRepository()

        assert [u.id for u in repo.list_by_filtro(FiltroUsuarios(rol=Rol.RESPONSABLE, id_departamento=3))] == [7]
        assert [u.id for u in repo.list_by_filtro(FiltroUsuarios(texto="USUARIO4"))] == [43, 42]

    def test_list_by_filtro_activo(self, usuarios):
        usuarios['otro_cliente'].activo = False
        usuarios['otro_cliente'].save()

        ids = [u.id for u in DjangoUsuarioRepository().list_by_filtro(FiltroUsuarios(activo=False))]

        assert ids == [43]

    def test_list_ordenado(self, usuario_factory):
        ahora = timezone.now()
        usuario_factory(1, nombre='Zoe', fecha_creacion=ahora - timedelta(days=2))
        usuario_factory(2, nombre='Ana', fecha_creacion=ahora)
        usuario_factory(3, nombre='Luis', fecha_creacion=ahora - timedelta(days=1))
        repo = DjangoUsuarioRepository()

        recientes = repo.list_by_filtro(FiltroUsuarios())
        por_nombre = repo.list_by_filtro(FiltroUsuarios(orden=OrdenUsuarios.NOMBRE, descendente=False))

        assert [u.id for u in recientes] == [2, 3, 1]
        assert [u.nombre for u in por_nombre] == ['Ana', 'Luis', 'Zoe']

    def test_delete(self, usuarios):
        repo = DjangoUsuarioRepository()

        repo.delete(43)

        assert repo.get_by_id(43) is None


# =============================================================================
# Event Store
# =============================================================================

class TestDjangoEventStore:

    def test_append_y_secuencia(self, db):
        store = DjangoEventStore()

        assert store.get_last_sequence("10") == 0

        store.append(TicketCreadoEvent(aggregate_id=10, numero_ticket="TK202507001"), sequence=1)
        store.append(TicketCreadoEvent(aggregate_id=10, numero_ticket="TK202507001"), sequence=2)

        eventos = store.get_events_for_aggregate("10")
        assert store.get_last_sequence("10") == 2
        assert [e['sequence'] for e in eventos] == [1, 2]
        assert eventos[0]['event_data']['numero_ticket'] == "TK202507001"


# =============================================================================
# Generador de códigos
# =============================================================================

class TestDjangoGeneradorCodigo:

    def test_primer_codigo_del_mes(self, db):
        momento = timezone.localtime()

        assert DjangoGeneradorCodigo().generar() == f"{prefijo_mensual(momento)}001"

    def test_continua_la_secuencia(self, ticket_factory):
        """Debe seguir al código más alto del mes, aun pasado el 999."""
        prefijo = prefijo_mensual(timezone.localtime())
        ticket_factory(numero_ticket=f"{prefijo}999")
        ticket_factory(numero_ticket=f"{prefijo}1000")

        assert DjangoGeneradorCodigo().generar() == f"{prefijo}1001"

    def test_ignora_codigos_de_otro_largo(self, ticket_factory):
        """Debe seguir la secuencia de 3 dígitos aunque haya un código de respaldo del mes."""
        prefijo = prefijo_mensual(timezone.localtime())
        ticket_factory(numero_ticket=f"{prefijo}005")
        ticket_factory(numero_ticket=f"{prefijo}4321")

        assert DjangoGeneradorCodigo().generar() == f"{prefijo}006"
