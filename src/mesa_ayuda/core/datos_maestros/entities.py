"""
Entidades de datos maestros: departamentos, prioridades y estados.

Son catálogos de referencia que el motor de tickets valida
pero no modifica.
"""

from dataclasses import dataclass
from typing import ClassVar, FrozenSet, Optional


@dataclass
class DepartamentoEntity:
    """Departamento que recibe tickets."""

    id: int
    nombre: str
    descripcion: Optional[str] = None
    activo: bool = True


@dataclass
class PrioridadEntity:
    """
    Prioridad de un ticket.

    Attributes:
        nivel: 1 = más urgente. Determina el plazo de respuesta (SLA).
        color_hex: Color para la interfaz
    """

    id: int
    nombre: str
    nivel: int
    color_hex: Optional[str] = None


@dataclass
class EstadoEntity:
    """Estado del ciclo de vida de un ticket."""

    IDS_FINALES: ClassVar[FrozenSet[int]] = frozenset({4, 5})

    id: int
    nombre: str
    descripcion: Optional[str] = None
    color_hex: Optional[str] = None

    @property
    def es_final(self) -> bool:
        """Resuelto y Cerrado son estados finales."""
        return self.id in self.IDS_FINALES
