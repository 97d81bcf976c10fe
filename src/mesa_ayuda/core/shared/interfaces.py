"""
Interfaces (Ports) - Contratos entre Core y Adapters.

Tipos de Ports:
- Driven Ports: UnitOfWork, EventPublisher, EventStore
- Driving Ports: definidos por los casos de uso

Principio: el Core define las interfaces; los Adapters las implementan.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .events import DomainEvent


class UnitOfWork(ABC):
    """
    Unit of Work - Coordina transacciones atómicas.

    Garantiza que varias operaciones de persistencia se ejecuten
    como una sola unidad, y que los eventos encolados sólo se
    publiquen después de un commit exitoso.

    Pattern: Context Manager
        with uow:
            repo.save(entidad)
            uow.publish_event(evento)
        # Commit automático al salir sin error
        # Rollback automático si hay excepción
    """

    def __init__(self):
        self._events: List[DomainEvent] = []

    def __enter__(self) -> "UnitOfWork":
        self._begin_transaction()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()
        return False  # No suprime excepciones

    @abstractmethod
    def _begin_transaction(self) -> None:
        """Inicia una nueva transacción."""
        raise NotImplementedError

    @abstractmethod
    def commit(self) -> None:
        """
        Persiste los cambios y publica los eventos.

        Orden:
        1. Persistir eventos en el Event Store (misma transacción)
        2. Commit en la base de datos
        3. Publicar eventos encolados
        """
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        """Deshace los cambios y descarta los eventos."""
        raise NotImplementedError

    def publish_event(self, event: DomainEvent) -> None:
        """
        Encola un evento para publicarlo después del commit.

        Example:
            with uow:
                repo.save(ticket)
                uow.publish_event(TicketCreadoEvent(aggregate_id=ticket.id))
            # El evento se publica aquí
        """
        self._events.append(event)

    def collect_events(self) -> List[DomainEvent]:
        """Eventos pendientes (para tests y debugging)."""
        return list(self._events)

    def clear_events(self) -> None:
        self._events.clear()


class EventPublisher(ABC):
    """
    Interfaz para publicación de eventos.

    Los adapters la implementan para distintos transportes
    (log, Celery, memoria en tests).
    """

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        raise NotImplementedError

    @abstractmethod
    def publish_batch(self, events: List[DomainEvent]) -> None:
        raise NotImplementedError


class EventStore(ABC):
    """Interfaz para la persistencia de eventos de dominio (auditoría y replay)."""

    @abstractmethod
    def append(self, event: DomainEvent, sequence: int = 0, user_id: Optional[str] = None) -> None:
        """
        Agrega un evento al store.

        Args:
            event: Evento a persistir
            sequence: Secuencia del evento dentro del agregado
            user_id: Usuario que originó la acción
        """
        raise NotImplementedError

    @abstractmethod
    def get_events_for_aggregate(
        self,
        aggregate_id: str,
        since_sequence: int = 0,
    ) -> List[Dict[str, Any]]:
        """Eventos de un agregado ordenados por secuencia."""
        raise NotImplementedError

    @abstractmethod
    def get_last_sequence(self, aggregate_id: str) -> int:
        """Última secuencia registrada para el agregado (0 si no hay eventos)."""
        raise NotImplementedError


# Alias para tipado
UoW = UnitOfWork
