"""Mesa de Ayuda - motor de ciclo de vida y SLA de tickets."""

__version__ = "1.0.0"
