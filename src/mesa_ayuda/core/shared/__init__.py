"""
Componentes compartidos del dominio.

Contiene lo que usan todos los subdominios:
- Excepciones de dominio
- Interfaces (Ports)
- Clase base de Domain Events
- Reloj del dominio
"""

from .exceptions import (
    DomainException,
    ValidationError,
    EntityNotFoundError,
    InvalidReferenceError,
    AccessDeniedError,
    ConflictError,
    InvalidOperationError,
    BusinessRuleViolationError,
    ConcurrencyError,
    CodigoDuplicadoError,
)
from .events import DomainEvent
from .interfaces import UnitOfWork, EventPublisher, EventStore
from .tiempo import ahora

__all__ = [
    "DomainException",
    "ValidationError",
    "EntityNotFoundError",
    "InvalidReferenceError",
    "AccessDeniedError",
    "ConflictError",
    "InvalidOperationError",
    "BusinessRuleViolationError",
    "ConcurrencyError",
    "CodigoDuplicadoError",
    "DomainEvent",
    "UnitOfWork",
    "EventPublisher",
    "EventStore",
    "ahora",
]
