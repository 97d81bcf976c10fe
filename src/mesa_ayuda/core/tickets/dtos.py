"""
Data Transfer Objects (DTOs) del Dominio de Tickets.

Tipos:
- Input DTOs: datos de entrada ya parseados por el adapter
- Output DTOs: datos formateados para la respuesta
- Criterios: filtro tipado para las consultas de listas
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .entities import TicketEntity


# =============================================================================
# INPUT DTOs
# =============================================================================

@dataclass(frozen=True)
class CrearTicketInputDTO:
    """
    DTO de entrada para crear un ticket.

    El estado, el responsable, el código y las fechas no se reciben:
    los fija el servidor.
    """

    asunto: str
    descripcion: str
    id_departamento: int
    id_prioridad: int
    id_solicitante: int

    def to_dict(self) -> dict:
        return {
            "asunto": self.asunto,
            "descripcion": self.descripcion,
            "id_departamento": self.id_departamento,
            "id_prioridad": self.id_prioridad,
            "id_solicitante": self.id_solicitante,
        }


@dataclass(frozen=True)
class ActualizarTicketInputDTO:
    """
    DTO de entrada para actualización parcial.

    Un campo en None significa "no enviado". El departamento no se
    actualiza por esta vía (para eso está derivar).

    Attributes:
        quitar_asignado: El cliente pidió explícitamente asignado_a = null
    """

    asunto: Optional[str] = None
    descripcion: Optional[str] = None
    id_prioridad: Optional[int] = None
    id_estado: Optional[int] = None
    asignado_a: Optional[int] = None
    quitar_asignado: bool = False

    def to_dict(self) -> dict:
        return {
            "asunto": self.asunto,
            "descripcion": self.descripcion,
            "id_prioridad": self.id_prioridad,
            "id_estado": self.id_estado,
            "asignado_a": self.asignado_a,
            "quitar_asignado": self.quitar_asignado,
        }


@dataclass(frozen=True)
class DerivarTicketInputDTO:
    """
    DTO de entrada para derivar un ticket.

    Attributes:
        id_departamento_destino: Departamento que recibe el ticket
        motivo: Razón de la derivación (queda en la auditoría)
        id_agente: Quién deriva
    """

    id_departamento_destino: int
    motivo: str
    id_agente: int

    def to_dict(self) -> dict:
        return {
            "id_departamento_destino": self.id_departamento_destino,
            "motivo": self.motivo,
            "id_agente": self.id_agente,
        }


# =============================================================================
# CRITERIOS DE CONSULTA
# =============================================================================

class OrdenTickets(Enum):
    """Ordenamientos soportados por los repositorios."""

    RECIENTES = "recientes"                          # creación desc
    PRIORIDAD_VENCIMIENTO = "prioridad_vencimiento"  # nivel asc, vencimiento asc
    PRIORIDAD_CREACION = "prioridad_creacion"        # nivel asc, creación asc


@dataclass(frozen=True)
class AmbitoAgente:
    """
    Tickets que ve un agente: los de su departamento o los asignados a él.
    """

    id_usuario: int
    id_departamento: Optional[int] = None


@dataclass(frozen=True)
class FiltroTickets:
    """
    Criterio tipado para listar tickets.

    Cada repositorio lo traduce a su propia consulta.
    Los campos en None no filtran.
    """

    id_solicitante: Optional[int] = None
    ids_estado: Optional[Tuple[int, ...]] = None
    ambito: Optional[AmbitoAgente] = None
    vencimiento_antes_de: Optional[datetime] = None
    orden: OrdenTickets = OrdenTickets.RECIENTES


# =============================================================================
# OUTPUT DTOs
# =============================================================================

@dataclass
class TicketOutputDTO:
    """
    DTO de salida con todos los datos del ticket.

    Attributes:
        esta_vencido: Calculado al momento de construir el DTO
    """

    id: int
    numero_ticket: str
    asunto: str
    descripcion: str
    id_departamento: int
    id_prioridad: int
    id_estado: int
    id_solicitante: int
    asignado_a: Optional[int]
    fecha_creacion: datetime
    fecha_vencimiento: Optional[datetime]
    fecha_resolucion: Optional[datetime] = None
    fecha_cierre: Optional[datetime] = None
    fecha_actualizacion: Optional[datetime] = None
    esta_vencido: bool = False

    @classmethod
    def from_entity(cls, entity: TicketEntity) -> "TicketOutputDTO":
        return cls(
            id=entity.id,
            numero_ticket=entity.numero_ticket,
            asunto=entity.asunto,
            descripcion=entity.descripcion,
            id_departamento=entity.id_departamento,
            id_prioridad=entity.id_prioridad,
            id_estado=int(entity.id_estado),
            id_solicitante=entity.id_solicitante,
            asignado_a=entity.asignado_a,
            fecha_creacion=entity.fecha_creacion,
            fecha_vencimiento=entity.fecha_vencimiento,
            fecha_resolucion=entity.fecha_resolucion,
            fecha_cierre=entity.fecha_cierre,
            fecha_actualizacion=entity.fecha_actualizacion,
            esta_vencido=entity.esta_vencido(),
        )

    def to_dict(self) -> dict:
        """Convierte a diccionario serializable a JSON."""
        return {
            "id": self.id,
            "numero_ticket": self.numero_ticket,
            "asunto": self.asunto,
            "descripcion": self.descripcion,
            "id_departamento": self.id_departamento,
            "id_prioridad": self.id_prioridad,
            "id_estado": self.id_estado,
            "id_solicitante": self.id_solicitante,
            "asignado_a": self.asignado_a,
            "fecha_creacion": _iso(self.fecha_creacion),
            "fecha_vencimiento": _iso(self.fecha_vencimiento),
            "fecha_resolucion": _iso(self.fecha_resolucion),
            "fecha_cierre": _iso(self.fecha_cierre),
            "fecha_actualizacion": _iso(self.fecha_actualizacion),
            "esta_vencido": self.esta_vencido,
        }


@dataclass
class DerivacionOutputDTO:
    """Ticket derivado más el registro de auditoría."""

    ticket: TicketOutputDTO
    id_departamento_origen: int
    id_departamento_destino: int
    motivo: str
    id_agente: int
    fecha: datetime

    def to_dict(self) -> dict:
        return {
            "ticket": self.ticket.to_dict(),
            "derivacion": {
                "id_departamento_origen": self.id_departamento_origen,
                "id_departamento_destino": self.id_departamento_destino,
                "motivo": self.motivo,
                "id_agente": self.id_agente,
                "fecha": _iso(self.fecha),
            },
        }


def _iso(valor: Optional[datetime]) -> Optional[str]:
    return valor.isoformat() if valor else None
