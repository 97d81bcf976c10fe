"""
Event Publishers - Publicadores de Eventos de Dominio.

Entregan los eventos a los handlers después del commit.
Implementaciones:
- LoggingEventPublisher: sólo registra en el log (desarrollo)
- CeleryEventPublisher: despacha vía Celery (producción)
- InMemoryEventPublisher: para tests
- CompositeEventPublisher: reparte a varios publicadores

Patrón Observer/Pub-Sub para desacoplar productores y consumidores.
"""

from typing import Callable, Dict, List, Optional
import logging
import json

from mesa_ayuda.core.shared.events import DomainEvent
from mesa_ayuda.core.shared.interfaces import EventPublisher

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class _HandlersLocales:
    """Registro de handlers síncronos por tipo de evento."""

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def _dispatch_to_handlers(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error en handler de {event.event_type}: {e}", exc_info=True)


class LoggingEventPublisher(_HandlersLocales, EventPublisher):
    """
    Publisher que registra cada evento en el log.

    Usado en desarrollo para ver los eventos sin infraestructura
    de mensajería.
    """

    def __init__(self, log_level: int = logging.INFO):
        super().__init__()
        self._log_level = log_level

    def publish(self, event: DomainEvent) -> None:
        logger.log(
            self._log_level,
            f"[EVENT] {event.event_type} | "
            f"aggregate={event.aggregate_id} | "
            f"data={json.dumps(event.to_dict(), default=str)}"
        )
        self._dispatch_to_handlers(event)

    def publish_batch(self, events: List[DomainEvent]) -> None:
        for event in events:
            self.publish(event)


class CeleryEventPublisher(EventPublisher):
    """
    Publisher que envía los eventos al dispatcher de Celery.

    Un broker caído no debe revertir una operación ya confirmada:
    el fallo se registra y el evento queda en el Event Store.
    """

    def __init__(self, also_log: bool = True):
        self._also_log = also_log

    def publish(self, event: DomainEvent) -> None:
        if self._also_log:
            logger.info(f"[EVENT->CELERY] {event.event_type} | aggregate={event.aggregate_id}")

        from mesa_ayuda.adapters.django_app.events.handlers import dispatch_domain_event

        try:
            dispatch_domain_event.delay(event.event_type, event.to_dict())
        except Exception as e:
            logger.error(f"Falló la publicación del evento en Celery: {e}", exc_info=True)

    def publish_batch(self, events: List[DomainEvent]) -> None:
        for event in events:
            self.publish(event)


class InMemoryEventPublisher(_HandlersLocales, EventPublisher):
    """
    Publisher en memoria para tests.

    Guarda los eventos publicados para verificarlos.
    """

    def __init__(self):
        super().__init__()
        self._published_events: List[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self._published_events.append(event)
        self._dispatch_to_handlers(event)

    def publish_batch(self, events: List[DomainEvent]) -> None:
        for event in events:
            self.publish(event)

    @property
    def published_events(self) -> List[DomainEvent]:
        return self._published_events.copy()

    def get_events_by_type(self, event_type: str) -> List[DomainEvent]:
        return [e for e in self._published_events if e.event_type == event_type]

    def clear(self) -> None:
        self._published_events.clear()


class CompositeEventPublisher(EventPublisher):
    """Publisher que delega en varios publicadores."""

    def __init__(self, publishers: Optional[List[EventPublisher]] = None):
        self._publishers = publishers or []

    def add_publisher(self, publisher: EventPublisher) -> None:
        self._publishers.append(publisher)

    def publish(self, event: DomainEvent) -> None:
        for publisher in self._publishers:
            try:
                publisher.publish(event)
            except Exception as e:
                logger.error(f"Error al publicar en {publisher.__class__.__name__}: {e}", exc_info=True)

    def publish_batch(self, events: List[DomainEvent]) -> None:
        for publisher in self._publishers:
            try:
                publisher.publish_batch(events)
            except Exception as e:
                logger.error(f"Error al publicar lote en {publisher.__class__.__name__}: {e}", exc_info=True)


def get_event_publisher(use_celery: bool = False) -> EventPublisher:
    """
    Factory del publicador según EVENT_PUBLISHER_MODE.

    Args:
        use_celery: True en producción ('celery'); False en desarrollo ('sync')
    """
    if use_celery:
        return CeleryEventPublisher()
    return LoggingEventPublisher()
