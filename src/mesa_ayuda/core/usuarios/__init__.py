"""
Subdominio de Usuarios - identidad, rol y datos de perfil.
"""

from .entities import UsuarioEntity, normalizar_rut
from .dtos import (
    CrearUsuarioInputDTO,
    ActualizarUsuarioInputDTO,
    FiltroUsuarios,
    OrdenUsuarios,
    UsuarioOutputDTO,
)
from .ports import UsuarioRepository, InMemoryUsuarioRepository
from .use_cases import (
    ResolverContextoUsuarioService,
    VerificarCorreoDisponibleService,
    VerificarRutDisponibleService,
)

__all__ = [
    "UsuarioEntity",
    "normalizar_rut",
    "CrearUsuarioInputDTO",
    "ActualizarUsuarioInputDTO",
    "FiltroUsuarios",
    "OrdenUsuarios",
    "UsuarioOutputDTO",
    "UsuarioRepository",
    "InMemoryUsuarioRepository",
    "ResolverContextoUsuarioService",
    "VerificarCorreoDisponibleService",
    "VerificarRutDisponibleService",
]
