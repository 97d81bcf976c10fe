"""
Unit of Work - Implementación Django.

Coordina transacciones atómicas entre varios repositorios.

Responsabilidades:
- Abrir y cerrar la transacción (transaction.atomic)
- Commit/Rollback coordinado
- Persistir eventos en el Event Store dentro de la misma transacción
- Publicar eventos sólo después de un commit exitoso

Se apoya en transaction.atomic para que funcione igual dentro de
otra transacción (savepoint) que en autocommit.
"""

from typing import Dict, List, Optional
import logging

from django.db import transaction

from mesa_ayuda.core.shared.interfaces import UnitOfWork, EventPublisher, EventStore
from mesa_ayuda.core.shared.events import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork(UnitOfWork):
    """
    Implementación Django del Unit of Work.

    La misma instancia puede reutilizarse: cada `with` abre una
    transacción nueva y reinicia el estado.

    Example:
        with DjangoUnitOfWork(event_publisher=publisher) as uow:
            repo.save(ticket)
            uow.publish_event(TicketCreadoEvent(...))
        # Commit automático + eventos publicados

    Example con rollback:
        with DjangoUnitOfWork() as uow:
            repo.save(ticket)
            raise ValidationError("...")
        # Rollback automático, eventos descartados
    """

    def __init__(
        self,
        event_publisher: Optional[EventPublisher] = None,
        event_store: Optional[EventStore] = None,
    ):
        super().__init__()
        self._event_publisher = event_publisher
        self._event_store = event_store
        self._atomic = None
        self._committed = False
        self._rolled_back = False
        self._sequence_counters: Dict[str, int] = {}

    def _begin_transaction(self) -> None:
        self._committed = False
        self._rolled_back = False
        self._sequence_counters = {}
        self.clear_events()

        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        logger.debug("Transacción iniciada")

    def commit(self) -> None:
        """
        Orden:
        1. Persistir eventos en el Event Store (misma transacción)
        2. Cerrar el bloque atómico (commit)
        3. Publicar eventos a los handlers
        """
        if self._committed or self._rolled_back:
            logger.warning("Transacción ya finalizada")
            return

        try:
            if self._event_store and self._events:
                self._persist_events()
        except Exception:
            logger.error("Falló la persistencia de eventos", exc_info=True)
            self.rollback()
            raise

        if self._atomic is not None:
            self._atomic.__exit__(None, None, None)
            self._atomic = None
            logger.debug("Transacción confirmada")

        self._committed = True

        if self._events:
            self._publish_events()

    def rollback(self) -> None:
        if self._committed or self._rolled_back:
            return

        try:
            if self._atomic is not None:
                transaction.set_rollback(True)
                self._atomic.__exit__(None, None, None)
                logger.debug("Transacción revertida")
        finally:
            self._atomic = None
            self._rolled_back = True
            self.clear_events()

    def _persist_events(self) -> None:
        for event in self._events:
            self._event_store.append(
                event=event,
                sequence=self._get_next_sequence(event.aggregate_id),
            )

    def _publish_events(self) -> None:
        """
        Publica los eventos encolados.

        El commit ya ocurrió: un fallo del publicador se registra pero
        no se propaga, los eventos quedan en el Event Store.
        """
        for event in self._events:
            logger.info(f"Publicando evento: {event.event_type} del agregado {event.aggregate_id}")

            if self._event_publisher:
                try:
                    self._event_publisher.publish(event)
                except Exception as e:
                    logger.error(f"Falló la publicación del evento {event.event_id}: {e}", exc_info=True)

        self.clear_events()

    def _get_next_sequence(self, aggregate_id: str) -> int:
        if aggregate_id not in self._sequence_counters:
            self._sequence_counters[aggregate_id] = self._event_store.get_last_sequence(aggregate_id)

        self._sequence_counters[aggregate_id] += 1
        return self._sequence_counters[aggregate_id]

    @property
    def is_committed(self) -> bool:
        return self._committed

    @property
    def is_rolled_back(self) -> bool:
        return self._rolled_back


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work en memoria para tests y scripts.

    No persiste nada; simula commit y rollback y, si recibe un
    publicador, le entrega los eventos al confirmar.

    Example:
        uow = InMemoryUnitOfWork()
        with uow:
            uow.publish_event(event)

        assert uow.committed
        assert len(uow.published_events) == 1
    """

    def __init__(self, event_publisher: Optional[EventPublisher] = None):
        super().__init__()
        self._event_publisher = event_publisher
        self._committed = False
        self._rolled_back = False
        self._published_events: List[DomainEvent] = []

    def _begin_transaction(self) -> None:
        self._committed = False
        self._rolled_back = False

    def commit(self) -> None:
        self._committed = True
        self._published_events.extend(self._events)
        if self._event_publisher:
            self._event_publisher.publish_batch(list(self._events))
        self.clear_events()

    def rollback(self) -> None:
        self._rolled_back = True
        self.clear_events()

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def rolled_back(self) -> bool:
        return self._rolled_back

    @property
    def published_events(self) -> List[DomainEvent]:
        return self._published_events

    def reset(self) -> None:
        self._committed = False
        self._rolled_back = False
        self._published_events.clear()
        self.clear_events()
