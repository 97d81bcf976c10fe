"""
Control de acceso: roles y política de acceso a tickets.
"""

from .roles import Rol
from .politica import Accion, ContextoUsuario, PoliticaAccesoTickets

__all__ = [
    "Rol",
    "Accion",
    "ContextoUsuario",
    "PoliticaAccesoTickets",
]
