"""Reloj del dominio. Todas las marcas de tiempo del core son UTC con zona horaria."""

from datetime import datetime, timezone


def ahora() -> datetime:
    """Instante actual en UTC."""
    return datetime.now(timezone.utc)
