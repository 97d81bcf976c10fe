"""
Domain Events - Comunicación desacoplada entre partes del sistema.

Características:
- Inmutables una vez publicados
- ID y timestamp generados automáticamente
- Serializables para persistencia (Event Store) y transporte (Celery)
- Rastreables vía aggregate_id

Flujo:
    - Los eventos se encolan en el Unit of Work durante el caso de uso
    - Se persisten en el Event Store antes del commit
    - Se publican sólo después de un commit exitoso
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, ClassVar
import uuid

from .tiempo import ahora


@dataclass(frozen=False)
class DomainEvent(ABC):
    """
    Clase base abstracta para Domain Events.

    Un Domain Event representa algo relevante que ocurrió en el dominio.
    Se nombran en pasado (TicketCreado, no CrearTicket).

    Attributes:
        event_id: Identificador único del evento
        aggregate_id: ID del agregado que generó el evento
        occurred_at: Momento en que ocurrió
        version: Versión del esquema del evento

    Example:
        @dataclass
        class TicketCreadoEvent(DomainEvent):
            id_solicitante: int = 0

            @property
            def aggregate_type(self) -> str:
                return "Ticket"
    """

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    aggregate_id: str = ""
    occurred_at: datetime = field(default_factory=ahora)
    version: int = 1

    _event_type: ClassVar[str] = ""

    def __post_init__(self):
        if not self.aggregate_id:
            raise ValueError("aggregate_id es obligatorio")
        # Los IDs de tickets son numéricos; el Event Store guarda texto
        self.aggregate_id = str(self.aggregate_id)

    @property
    @abstractmethod
    def aggregate_type(self) -> str:
        """Tipo del agregado que generó el evento (ej: "Ticket")."""
        ...

    @property
    def event_type(self) -> str:
        """Nombre de la clase del evento."""
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializa el evento a diccionario.

        Se usa para el Event Store, el envío a Celery y el logging.
        """
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "occurred_at": self.occurred_at.isoformat(),
            "version": self.version,
            "data": self._get_event_data(),
        }

    def _get_event_data(self) -> Dict[str, Any]:
        """Datos propios del evento. Las subclases pueden sobrescribirlo."""
        base_fields = {"event_id", "aggregate_id", "occurred_at", "version"}
        return {
            key: value
            for key, value in self.__dict__.items()
            if key not in base_fields and not key.startswith("_")
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DomainEvent":
        """Reconstruye el evento desde su forma serializada."""
        event_data = data.get("data", {})
        return cls(
            event_id=data.get("event_id", str(uuid.uuid4())),
            aggregate_id=data["aggregate_id"],
            occurred_at=datetime.fromisoformat(data["occurred_at"]),
            version=data.get("version", 1),
            **event_data,
        )

    def __repr__(self) -> str:
        return (
            f"{self.event_type}("
            f"event_id={self.event_id[:8]}..., "
            f"aggregate_id={self.aggregate_id}, "
            f"occurred_at={self.occurred_at.isoformat()}"
            f")"
        )
