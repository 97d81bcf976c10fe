"""
Política de acceso a tickets.

Predicado único de rol y propiedad que consultan los casos de uso
antes de leer, modificar o eliminar un ticket.

Reglas:
- Sin contexto de usuario (llamada interna de confianza): permitido
- Administrador: permitido
- Leer / Modificar: solicitante o responsable asignado
- Eliminar: sólo el solicitante
- Administración de usuarios y métricas: sólo administradores
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mesa_ayuda.core.shared.exceptions import AccessDeniedError

from .roles import Rol


class Accion(Enum):
    """Acciones que la política sabe evaluar."""

    LEER = "leer"
    MODIFICAR = "modificar"
    ELIMINAR = "eliminar"


@dataclass(frozen=True)
class ContextoUsuario:
    """
    Identidad del usuario que ejecuta una operación.

    Attributes:
        id_usuario: ID numérico del usuario
        rol: Rol resuelto desde el almacén de usuarios
    """

    id_usuario: int
    rol: Rol

    @property
    def es_administrador(self) -> bool:
        return self.rol == Rol.ADMINISTRADOR

    @property
    def puede_gestionar(self) -> bool:
        return self.rol.puede_gestionar


class PoliticaAccesoTickets:
    """
    Evalúa si un usuario puede ejecutar una acción sobre un ticket.

    El ticket se recibe por duck typing: basta con que exponga
    `id_solicitante` y `asignado_a`.

    Example:
        politica = PoliticaAccesoTickets()
        politica.verificar(usuario, ticket, Accion.ELIMINAR)
    """

    def puede(self, usuario: Optional[ContextoUsuario], ticket, accion: Accion) -> bool:
        if usuario is None:
            return True

        if usuario.es_administrador:
            return True

        es_solicitante = ticket.id_solicitante == usuario.id_usuario

        if accion == Accion.ELIMINAR:
            return es_solicitante

        es_asignado = ticket.asignado_a is not None and ticket.asignado_a == usuario.id_usuario
        return es_solicitante or es_asignado

    def verificar(self, usuario: Optional[ContextoUsuario], ticket, accion: Accion) -> None:
        """
        Igual que `puede`, pero lanza excepción si la acción no está permitida.

        Raises:
            AccessDeniedError: Si el usuario no tiene acceso
        """
        if not self.puede(usuario, ticket, accion):
            raise AccessDeniedError("No tiene acceso a este ticket")

    def verificar_gestion(self, usuario: Optional[ContextoUsuario]) -> None:
        """
        Exige un rol que atienda tickets (administrador o responsable).

        Raises:
            AccessDeniedError: Si el rol no gestiona tickets
        """
        if usuario is not None and not usuario.puede_gestionar:
            raise AccessDeniedError("Solo administradores y responsables pueden gestionar tickets")

    def verificar_administracion(self, usuario: Optional[ContextoUsuario]) -> None:
        """
        Exige rol administrador (gestión de usuarios y métricas).

        Raises:
            AccessDeniedError: Si el usuario no es administrador
        """
        if usuario is not None and not usuario.es_administrador:
            raise AccessDeniedError("Solo los administradores pueden realizar esta operación")
