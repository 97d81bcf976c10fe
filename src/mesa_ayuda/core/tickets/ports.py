"""
Ports (Interfaces) del Dominio de Tickets.

- TicketRepository: persistencia y consultas por criterio tipado
- GeneradorCodigoTicket: produce el código legible de cada ticket

Example:
    # En el adapter (Django)
    class DjangoTicketRepository:
        def save(self, ticket: TicketEntity) -> TicketEntity:
            ...
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable
import copy

from mesa_ayuda.core.shared.exceptions import CodigoDuplicadoError

from .entities import TicketEntity, DerivacionTicket
from .dtos import FiltroTickets, OrdenTickets


@runtime_checkable
class TicketRepository(Protocol):
    """
    Interfaz para persistencia de Tickets.

    Implementaciones:
    - DjangoTicketRepository (ORM)
    - InMemoryTicketRepository (tests)
    """

    def save(self, ticket: TicketEntity) -> TicketEntity:
        """
        Persiste el ticket (alta si no tiene ID, actualización si lo tiene).

        Returns:
            El ticket con su ID asignado

        Raises:
            CodigoDuplicadoError: Si en el alta el código ya existe
        """
        ...

    def get_by_id(self, ticket_id: int) -> Optional[TicketEntity]:
        ...

    def delete(self, ticket_id: int) -> None:
        """Borrado físico. No falla si el ticket no existe."""
        ...

    def list_by_filtro(self, filtro: FiltroTickets) -> List[TicketEntity]:
        """Tickets que cumplen el criterio, en el orden que indica."""
        ...

    def count_by_filtro(self, filtro: FiltroTickets) -> int:
        ...

    def save_derivacion(self, derivacion: DerivacionTicket) -> DerivacionTicket:
        """Registra la auditoría de una derivación."""
        ...

    def list_derivaciones(self, ticket_id: int) -> List[DerivacionTicket]:
        """Historial de derivaciones de un ticket, de la más antigua a la más reciente."""
        ...


@runtime_checkable
class GeneradorCodigoTicket(Protocol):
    """Produce códigos TK<año><mes><secuencia>."""

    def generar(self) -> str:
        ...


class InMemoryTicketRepository:
    """
    Implementación en memoria de TicketRepository.

    Guarda copias de las entidades para que las modificaciones sólo
    se vean después de `save`, como en una base de datos.

    Args:
        nivel_de_prioridad: Traduce id_prioridad a nivel para ordenar.
            Por defecto se asume que el ID coincide con el nivel.

    Example:
        repo = InMemoryTicketRepository()
        ticket = repo.save(ticket)
        repo.get_by_id(ticket.id)
    """

    def __init__(self, nivel_de_prioridad: Optional[Callable[[int], int]] = None):
        self._tickets: Dict[int, TicketEntity] = {}
        self._derivaciones: List[DerivacionTicket] = []
        self._siguiente_id = 1
        self._nivel_de_prioridad = nivel_de_prioridad or (lambda id_prioridad: id_prioridad)

    def save(self, ticket: TicketEntity) -> TicketEntity:
        if ticket.id is None:
            if any(t.numero_ticket == ticket.numero_ticket for t in self._tickets.values()):
                raise CodigoDuplicadoError(ticket.numero_ticket)
            ticket.id = self._siguiente_id
            self._siguiente_id += 1

        self._tickets[ticket.id] = copy.deepcopy(ticket)
        return ticket

    def get_by_id(self, ticket_id: int) -> Optional[TicketEntity]:
        ticket = self._tickets.get(ticket_id)
        return copy.deepcopy(ticket) if ticket else None

    def delete(self, ticket_id: int) -> None:
        self._tickets.pop(ticket_id, None)

    def list_by_filtro(self, filtro: FiltroTickets) -> List[TicketEntity]:
        tickets = [t for t in self._tickets.values() if self._cumple(t, filtro)]
        return [copy.deepcopy(t) for t in sorted(tickets, key=self._clave_orden(filtro.orden))]

    def count_by_filtro(self, filtro: FiltroTickets) -> int:
        return len([t for t in self._tickets.values() if self._cumple(t, filtro)])

    def save_derivacion(self, derivacion: DerivacionTicket) -> DerivacionTicket:
        derivacion.id = len(self._derivaciones) + 1
        self._derivaciones.append(copy.deepcopy(derivacion))
        return derivacion

    def list_derivaciones(self, ticket_id: int) -> List[DerivacionTicket]:
        return [d for d in self._derivaciones if d.id_ticket == ticket_id]

    def pares_codigo_fecha(self) -> List[Tuple[str, datetime]]:
        """Fuente para InMemoryGeneradorCodigo."""
        return [(t.numero_ticket, t.fecha_creacion) for t in self._tickets.values()]

    def count(self) -> int:
        return len(self._tickets)

    def clear(self) -> None:
        self._tickets.clear()
        self._derivaciones.clear()

    @staticmethod
    def _cumple(ticket: TicketEntity, filtro: FiltroTickets) -> bool:
        if filtro.id_solicitante is not None and ticket.id_solicitante != filtro.id_solicitante:
            return False

        if filtro.ids_estado is not None and ticket.id_estado not in filtro.ids_estado:
            return False

        if filtro.ambito is not None:
            del_departamento = (
                filtro.ambito.id_departamento is not None
                and ticket.id_departamento == filtro.ambito.id_departamento
            )
            asignado = ticket.asignado_a == filtro.ambito.id_usuario
            if not (del_departamento or asignado):
                return False

        if filtro.vencimiento_antes_de is not None:
            if ticket.fecha_vencimiento is None or ticket.fecha_vencimiento >= filtro.vencimiento_antes_de:
                return False

        return True

    def _clave_orden(self, orden: OrdenTickets):
        if orden == OrdenTickets.PRIORIDAD_VENCIMIENTO:
            return lambda t: (
                self._nivel_de_prioridad(t.id_prioridad),
                t.fecha_vencimiento.timestamp() if t.fecha_vencimiento else float("inf"),
            )

        if orden == OrdenTickets.PRIORIDAD_CREACION:
            return lambda t: (self._nivel_de_prioridad(t.id_prioridad), t.fecha_creacion.timestamp())

        return lambda t: (-t.fecha_creacion.timestamp(), -(t.id or 0))
