"""
Casos de uso del subdominio de usuarios.

- ResolverContextoUsuarioService: identidad + rol para la política de acceso
- VerificarCorreoDisponibleService: disponibilidad de correo
- VerificarRutDisponibleService: disponibilidad de RUT

Las verificaciones de disponibilidad son "fail-closed": si la consulta
falla, se informa como no disponible y se registra en el log.
"""

import logging
from typing import Optional

from mesa_ayuda.core.acceso import ContextoUsuario
from mesa_ayuda.core.shared.exceptions import AccessDeniedError, ValidationError

from .entities import normalizar_rut
from .ports import UsuarioRepository

logger = logging.getLogger(__name__)


class ResolverContextoUsuarioService:
    """
    Use Case: resolver el contexto (id + rol) de quien hace la petición.

    El rol siempre se lee del almacén de usuarios; nunca se confía
    en un rol declarado por el cliente.
    """

    def __init__(self, usuario_repo: UsuarioRepository):
        self.usuario_repo = usuario_repo

    def execute(self, id_usuario: int) -> ContextoUsuario:
        """
        Raises:
            AccessDeniedError: Si el usuario no existe o está inactivo
        """
        usuario = self.usuario_repo.get_by_id(id_usuario)

        if not usuario or not usuario.activo:
            logger.warning(f"Usuario desconocido o inactivo: {id_usuario}")
            raise AccessDeniedError("Usuario no autorizado")

        return usuario.contexto()


class VerificarCorreoDisponibleService:
    """Use Case: verificar si un correo puede registrarse."""

    def __init__(self, usuario_repo: UsuarioRepository):
        self.usuario_repo = usuario_repo

    def execute(self, correo: str, excluir_id: Optional[int] = None) -> bool:
        try:
            return not self.usuario_repo.exists_correo(correo.strip().lower(), excluir_id)
        except Exception as e:
            logger.warning(f"No se pudo verificar el correo {correo}: {e}", exc_info=True)
            return False


class VerificarRutDisponibleService:
    """Use Case: verificar si un RUT puede registrarse."""

    def __init__(self, usuario_repo: UsuarioRepository):
        self.usuario_repo = usuario_repo

    def execute(self, rut: str, excluir_id: Optional[int] = None) -> bool:
        """Un RUT mal formado nunca está registrado: se consulta tal cual."""
        try:
            rut = normalizar_rut(rut)
        except ValidationError:
            rut = rut.strip()

        try:
            return not self.usuario_repo.exists_rut(rut, excluir_id)
        except Exception as e:
            logger.warning(f"No se pudo verificar el RUT {rut}: {e}", exc_info=True)
            return False
