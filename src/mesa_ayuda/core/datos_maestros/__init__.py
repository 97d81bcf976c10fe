"""
Datos maestros - departamentos, prioridades y estados.

Los casos de uso se importan desde `.use_cases`; este paquete sólo
reexporta entidades y ports, que es lo que consume el motor de tickets.
"""

from .entities import DepartamentoEntity, PrioridadEntity, EstadoEntity
from .ports import DatosMaestrosRepository, InMemoryDatosMaestrosRepository

__all__ = [
    "DepartamentoEntity",
    "PrioridadEntity",
    "EstadoEntity",
    "DatosMaestrosRepository",
    "InMemoryDatosMaestrosRepository",
]
