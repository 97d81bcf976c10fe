"""
Domain Events del Dominio de Tickets.

Eventos:
- TicketCreadoEvent: se creó un ticket
- TicketActualizadoEvent: se modificaron campos de un ticket
- TicketEliminadoEvent: se eliminó un ticket
- TicketTomadoEvent: un agente tomó el ticket
- TicketDerivadoEvent: el ticket cambió de departamento

Uso:
    with uow:
        repo.save(ticket)
        uow.publish_event(TicketCreadoEvent(aggregate_id=ticket.id, ...))
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mesa_ayuda.core.shared.events import DomainEvent


@dataclass
class TicketCreadoEvent(DomainEvent):
    """
    Evento: se creó un ticket.

    Handlers típicos:
    - Avisar al departamento (prioridad alta)
    - Confirmar al solicitante
    """

    numero_ticket: str = ""
    id_solicitante: int = 0
    id_departamento: int = 0
    id_prioridad: int = 0
    fecha_vencimiento: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "numero_ticket": self.numero_ticket,
            "id_solicitante": self.id_solicitante,
            "id_departamento": self.id_departamento,
            "id_prioridad": self.id_prioridad,
            "fecha_vencimiento": self.fecha_vencimiento,
        }


@dataclass
class TicketActualizadoEvent(DomainEvent):
    """Evento: se actualizaron campos de un ticket."""

    numero_ticket: str = ""
    campos: List[str] = field(default_factory=list)
    id_estado: int = 0
    actualizado_por: Optional[int] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "numero_ticket": self.numero_ticket,
            "campos": list(self.campos),
            "id_estado": self.id_estado,
            "actualizado_por": self.actualizado_por,
        }


@dataclass
class TicketEliminadoEvent(DomainEvent):
    """Evento: se eliminó un ticket (borrado físico)."""

    numero_ticket: str = ""
    eliminado_por: Optional[int] = None

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "numero_ticket": self.numero_ticket,
            "eliminado_por": self.eliminado_por,
        }


@dataclass
class TicketTomadoEvent(DomainEvent):
    """
    Evento: un agente tomó el ticket.

    Handlers típicos:
    - Avisar al solicitante que su ticket está en atención
    """

    numero_ticket: str = ""
    id_agente: int = 0
    id_solicitante: int = 0

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "numero_ticket": self.numero_ticket,
            "id_agente": self.id_agente,
            "id_solicitante": self.id_solicitante,
        }


@dataclass
class TicketDerivadoEvent(DomainEvent):
    """
    Evento: el ticket se transfirió a otro departamento.

    Handlers típicos:
    - Avisar al departamento de destino
    """

    numero_ticket: str = ""
    id_departamento_origen: int = 0
    id_departamento_destino: int = 0
    motivo: str = ""
    id_agente: int = 0

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "numero_ticket": self.numero_ticket,
            "id_departamento_origen": self.id_departamento_origen,
            "id_departamento_destino": self.id_departamento_destino,
            "motivo": self.motivo,
            "id_agente": self.id_agente,
        }
