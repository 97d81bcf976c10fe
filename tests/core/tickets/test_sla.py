"""
Tests de la calculadora de SLA.

Un solo lugar define el plazo de respuesta: 4 / 24 / 72 horas por
nivel y 24 horas para cualquier otro nivel.
"""

import pytest
from datetime import datetime, timedelta, timezone

from mesa_ayuda.core.tickets.sla import (
    horas_respuesta,
    calcular_fecha_vencimiento,
    HORAS_RESPUESTA_POR_DEFECTO,
)


class TestHorasRespuesta:

    @pytest.mark.parametrize("nivel,horas", [(1, 4), (2, 24), (3, 72)])
    def test_horas_por_nivel(self, nivel, horas):
        """Debe devolver las horas comprometidas para cada nivel."""
        assert horas_respuesta(nivel) == horas

    @pytest.mark.parametrize("nivel", [0, 4, 99, -1])
    def test_nivel_desconocido_usa_defecto(self, nivel):
        """Debe usar 24 horas para niveles fuera de la tabla."""
        assert horas_respuesta(nivel) == HORAS_RESPUESTA_POR_DEFECTO == 24


class TestCalcularFechaVencimiento:

    def test_vencimiento_alta(self):
        """Debe sumar 4 horas para prioridad alta."""
        ahora = datetime(2025, 7, 1, 9, 0, tzinfo=timezone.utc)

        assert calcular_fecha_vencimiento(1, ahora) == datetime(2025, 7, 1, 13, 0, tzinfo=timezone.utc)

    def test_vencimiento_baja_cruza_dias(self):
        """Debe sumar 72 horas aunque cruce el fin de mes."""
        ahora = datetime(2025, 7, 30, 12, 0, tzinfo=timezone.utc)

        assert calcular_fecha_vencimiento(3, ahora) == datetime(2025, 8, 2, 12, 0, tzinfo=timezone.utc)

    def test_es_determinista(self):
        """Debe depender sólo del nivel y del instante recibido."""
        ahora = datetime(2025, 1, 1, tzinfo=timezone.utc)

        assert calcular_fecha_vencimiento(2, ahora) == calcular_fecha_vencimiento(2, ahora)
        assert calcular_fecha_vencimiento(2, ahora) - ahora == timedelta(hours=24)
