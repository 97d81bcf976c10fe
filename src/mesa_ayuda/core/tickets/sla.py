"""
Calculadora de SLA.

Definición única del plazo de respuesta por nivel de prioridad.
La usan la creación de tickets (fecha de vencimiento) y el catálogo
de prioridades (horas de respuesta esperadas).

    Nivel 1 (Alta):  4 horas
    Nivel 2 (Media): 24 horas
    Nivel 3 (Baja):  72 horas
    Otro nivel:      24 horas
"""

from datetime import datetime, timedelta
from typing import Dict

HORAS_RESPUESTA_POR_NIVEL: Dict[int, int] = {
    1: 4,
    2: 24,
    3: 72,
}

HORAS_RESPUESTA_POR_DEFECTO = 24


def horas_respuesta(nivel: int) -> int:
    """Horas de respuesta comprometidas para un nivel de prioridad."""
    return HORAS_RESPUESTA_POR_NIVEL.get(nivel, HORAS_RESPUESTA_POR_DEFECTO)


def calcular_fecha_vencimiento(nivel: int, ahora: datetime) -> datetime:
    """
    Fecha de vencimiento de un ticket.

    Args:
        nivel: Nivel de la prioridad del ticket
        ahora: Instante de creación (explícito para que sea determinista)

    Returns:
        `ahora` más las horas de respuesta del nivel
    """
    return ahora + timedelta(hours=horas_respuesta(nivel))
