"""
Repositorios Django.

Implementan los Ports definidos en el Core. Son DRIVEN ADAPTERS:
el Core los invoca para persistir y consultar.

Responsabilidades:
- Traducir entities ↔ models con los Mappers
- Ejecutar las consultas con el ORM
- Traducir errores de la base de datos a excepciones de dominio

Principios:
- Sin lógica de negocio
- Las consultas por criterio reciben un FiltroTickets tipado
"""

from typing import Any, Dict, List, Optional
import logging

from django.db import IntegrityError, transaction
from django.db.models import F, Max, Q, QuerySet

from mesa_ayuda.core.datos_maestros import DepartamentoEntity, PrioridadEntity, EstadoEntity
from mesa_ayuda.core.shared.events import DomainEvent
from mesa_ayuda.core.shared.exceptions import CodigoDuplicadoError, ConflictError
from mesa_ayuda.core.shared.interfaces import EventStore
from mesa_ayuda.core.tickets.dtos import FiltroTickets, OrdenTickets
from mesa_ayuda.core.tickets.entities import TicketEntity, DerivacionTicket
from mesa_ayuda.core.usuarios import UsuarioEntity
from mesa_ayuda.core.usuarios.dtos import FiltroUsuarios, OrdenUsuarios

from .models import (
    TicketModel,
    DerivacionTicketModel,
    DepartamentoModel,
    PrioridadModel,
    EstadoModel,
    UsuarioModel,
    DomainEventModel,
)
from .mappers import (
    TicketMapper,
    DerivacionMapper,
    DatosMaestrosMapper,
    UsuarioMapper,
    DomainEventMapper,
)

logger = logging.getLogger(__name__)


class DjangoTicketRepository:
    """
    Implementación Django de TicketRepository.

    Example:
        repo = DjangoTicketRepository()
        ticket = repo.save(ticket)       # alta: asigna ticket.id
        repo.get_by_id(ticket.id)
        repo.list_by_filtro(FiltroTickets(id_solicitante=42))
    """

    def __init__(self):
        self._mapper = TicketMapper()

    def save(self, ticket: TicketEntity) -> TicketEntity:
        """
        Alta si el ticket no tiene ID; si lo tiene, actualización.

        Raises:
            CodigoDuplicadoError: Si en el alta el código ya existe
        """
        if ticket.id is None:
            return self._insert(ticket)

        model = TicketModel.objects.get(id_ticket=ticket.id)
        self._mapper.update_model(model, ticket)
        model.save()

        logger.debug(f"Ticket actualizado: {ticket.numero_ticket}")
        return ticket

    def _insert(self, ticket: TicketEntity) -> TicketEntity:
        model = self._mapper.to_model(ticket)

        try:
            # Savepoint: un choque de código no invalida la transacción exterior
            with transaction.atomic():
                model.save(force_insert=True)
        except IntegrityError:
            if TicketModel.objects.filter(numero_ticket=ticket.numero_ticket).exists():
                raise CodigoDuplicadoError(ticket.numero_ticket)
            raise

        ticket.id = model.id_ticket
        logger.debug(f"Ticket insertado: {ticket.numero_ticket} (id={ticket.id})")
        return ticket

    def get_by_id(self, ticket_id: int) -> Optional[TicketEntity]:
        try:
            return self._mapper.to_entity(TicketModel.objects.get(id_ticket=ticket_id))
        except TicketModel.DoesNotExist:
            logger.debug(f"Ticket no encontrado: {ticket_id}")
            return None

    def delete(self, ticket_id: int) -> None:
        deleted_count, _ = TicketModel.objects.filter(id_ticket=ticket_id).delete()

        if deleted_count:
            logger.info(f"Ticket eliminado: {ticket_id}")
        else:
            logger.debug(f"Ticket no encontrado para eliminar: {ticket_id}")

    def list_by_filtro(self, filtro: FiltroTickets) -> List[TicketEntity]:
        queryset = self._ordenar(self._filtrar(filtro), filtro.orden)
        return self._mapper.to_entity_list(queryset)

    def count_by_filtro(self, filtro: FiltroTickets) -> int:
        return self._filtrar(filtro).count()

    def save_derivacion(self, derivacion: DerivacionTicket) -> DerivacionTicket:
        model = DerivacionMapper.to_model(derivacion)
        model.save()
        derivacion.id = model.id
        return derivacion

    def list_derivaciones(self, ticket_id: int) -> List[DerivacionTicket]:
        return [
            DerivacionMapper.to_entity(model)
            for model in DerivacionTicketModel.objects.filter(id_ticket=ticket_id).order_by('fecha', 'id')
        ]

    @staticmethod
    def _filtrar(filtro: FiltroTickets) -> QuerySet:
        queryset = TicketModel.objects.all()

        if filtro.id_solicitante is not None:
            queryset = queryset.filter(solicitante_id=filtro.id_solicitante)

        if filtro.ids_estado is not None:
            queryset = queryset.filter(estado_id__in=[int(e) for e in filtro.ids_estado])

        if filtro.ambito is not None:
            condicion = Q(asignado_a_id=filtro.ambito.id_usuario)
            if filtro.ambito.id_departamento is not None:
                condicion |= Q(departamento_id=filtro.ambito.id_departamento)
            queryset = queryset.filter(condicion)

        if filtro.vencimiento_antes_de is not None:
            queryset = queryset.filter(fecha_vencimiento__lt=filtro.vencimiento_antes_de)

        return queryset

    @staticmethod
    def _ordenar(queryset: QuerySet, orden: OrdenTickets) -> QuerySet:
        if orden == OrdenTickets.PRIORIDAD_VENCIMIENTO:
            return queryset.order_by('prioridad__nivel', F('fecha_vencimiento').asc(nulls_last=True))

        if orden == OrdenTickets.PRIORIDAD_CREACION:
            return queryset.order_by('prioridad__nivel', 'fecha_creacion')

        return queryset.order_by('-fecha_creacion', '-id_ticket')


class DjangoDatosMaestrosRepository:
    """Implementación Django de DatosMaestrosRepository (sólo lectura)."""

    def get_departamento(self, departamento_id: int) -> Optional[DepartamentoEntity]:
        try:
            return DatosMaestrosMapper.departamento(
                DepartamentoModel.objects.get(id_departamento=departamento_id)
            )
        except DepartamentoModel.DoesNotExist:
            return None

    def list_departamentos(self, solo_activos: bool = True) -> List[DepartamentoEntity]:
        queryset = DepartamentoModel.objects.order_by('nombre_departamento')
        if solo_activos:
            queryset = queryset.filter(activo=True)
        return [DatosMaestrosMapper.departamento(m) for m in queryset]

    def get_prioridad(self, prioridad_id: int) -> Optional[PrioridadEntity]:
        try:
            return DatosMaestrosMapper.prioridad(PrioridadModel.objects.get(id_prioridad=prioridad_id))
        except PrioridadModel.DoesNotExist:
            return None

    def list_prioridades(self) -> List[PrioridadEntity]:
        return [DatosMaestrosMapper.prioridad(m) for m in PrioridadModel.objects.order_by('nivel')]

    def get_estado(self, estado_id: int) -> Optional[EstadoEntity]:
        try:
            return DatosMaestrosMapper.estado(EstadoModel.objects.get(id_estado=estado_id))
        except EstadoModel.DoesNotExist:
            return None

    def list_estados(self) -> List[EstadoEntity]:
        return [DatosMaestrosMapper.estado(m) for m in EstadoModel.objects.order_by('id_estado')]


class DjangoUsuarioRepository:
    """Implementación Django de UsuarioRepository."""

    _CAMPOS_ORDEN = {
        OrdenUsuarios.NOMBRE: ('nombre', 'apellido'),
        OrdenUsuarios.CORREO: ('correo',),
        OrdenUsuarios.FECHA_CREACION: ('fecha_creacion',),
    }

    def get_by_id(self, usuario_id: int) -> Optional[UsuarioEntity]:
        try:
            return UsuarioMapper.to_entity(UsuarioModel.objects.get(id_usuario=usuario_id))
        except UsuarioModel.DoesNotExist:
            return None

    def save(self, usuario: UsuarioEntity) -> UsuarioEntity:
        """
        Raises:
            ConflictError: Si el correo o el RUT chocan con otro usuario
                guardado en paralelo
        """
        if usuario.id is None:
            model = UsuarioMapper.to_model(usuario)
        else:
            model = UsuarioModel.objects.get(id_usuario=usuario.id)
            UsuarioMapper.update_model(model, usuario)

        try:
            with transaction.atomic():
                model.save()
        except IntegrityError as e:
            logger.warning(f"Choque de unicidad al guardar el usuario {usuario.correo}: {e}")
            raise ConflictError("El correo o el RUT ya están registrados", code="USUARIO_DUPLICADO")

        usuario.id = model.id_usuario
        usuario.fecha_creacion = model.fecha_creacion
        logger.debug(f"Usuario guardado: {usuario.correo} (id={usuario.id})")
        return usuario

    def delete(self, usuario_id: int) -> None:
        deleted_count, _ = UsuarioModel.objects.filter(id_usuario=usuario_id).delete()

        if deleted_count:
            logger.info(f"Usuario eliminado: {usuario_id}")

    def list_by_filtro(self, filtro: FiltroUsuarios) -> List[UsuarioEntity]:
        queryset = UsuarioModel.objects.all()

        if filtro.texto:
            queryset = queryset.filter(
                Q(nombre__icontains=filtro.texto)
                | Q(apellido__icontains=filtro.texto)
                | Q(correo__icontains=filtro.texto)
            )

        if filtro.id_departamento is not None:
            queryset = queryset.filter(departamento_id=filtro.id_departamento)

        if filtro.rol is not None:
            queryset = queryset.filter(rol=int(filtro.rol))

        if filtro.activo is not None:
            queryset = queryset.filter(activo=filtro.activo)

        prefijo = '-' if filtro.descendente else ''
        campos = [f"{prefijo}{campo}" for campo in self._CAMPOS_ORDEN[filtro.orden]]

        return [
            UsuarioMapper.to_entity(model)
            for model in queryset.order_by(*campos, f"{prefijo}id_usuario")
        ]

    def exists_correo(self, correo: str, excluir_id: Optional[int] = None) -> bool:
        queryset = UsuarioModel.objects.filter(correo__iexact=correo.strip())
        if excluir_id is not None:
            queryset = queryset.exclude(id_usuario=excluir_id)
        return queryset.exists()

    def exists_rut(self, rut: str, excluir_id: Optional[int] = None) -> bool:
        queryset = UsuarioModel.objects.filter(rut=rut.strip())
        if excluir_id is not None:
            queryset = queryset.exclude(id_usuario=excluir_id)
        return queryset.exists()


class DjangoEventStore(EventStore):
    """
    Event Store sobre la tabla eventos_dominio.

    Persiste dentro de la transacción activa (la del Unit of Work).
    """

    def append(self, event: DomainEvent, sequence: int = 0, user_id: Optional[str] = None) -> None:
        DomainEventMapper.to_model(event=event, sequence=sequence, user_id=user_id).save(force_insert=True)
        logger.debug(f"Evento almacenado: {event.event_type} de {event.aggregate_id}")

    def get_events_for_aggregate(
        self,
        aggregate_id: str,
        since_sequence: int = 0,
    ) -> List[Dict[str, Any]]:
        events = (
            DomainEventModel.objects
            .filter(aggregate_id=str(aggregate_id), sequence__gte=since_sequence)
            .order_by('sequence')
        )

        return [
            {
                'event_id': e.event_id,
                'event_type': e.event_type,
                'aggregate_id': e.aggregate_id,
                'event_data': e.event_data,
                'sequence': e.sequence,
                'occurred_at': e.occurred_at,
            }
            for e in events
        ]

    def get_last_sequence(self, aggregate_id: str) -> int:
        ultimo = (
            DomainEventModel.objects
            .filter(aggregate_id=str(aggregate_id))
            .aggregate(ultimo=Max('sequence'))['ultimo']
        )
        return ultimo or 0
