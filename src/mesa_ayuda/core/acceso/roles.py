"""
Roles de usuario.

Tabla canónica única: el id numérico es el que se guarda en la base
de datos, el nombre canónico es el que se expone por la API.

    1 = administrador
    2 = cliente       (alias: usuario_externo)
    3 = responsable   (alias: usuario_interno)
"""

from enum import IntEnum
from typing import Dict, Tuple


class Rol(IntEnum):
    """Rol de un usuario de la mesa de ayuda."""

    ADMINISTRADOR = 1
    CLIENTE = 2
    RESPONSABLE = 3

    @property
    def nombre(self) -> str:
        """Nombre canónico del rol."""
        return _NOMBRES[self][0]

    @property
    def puede_gestionar(self) -> bool:
        """Si el rol atiende tickets (tomar, derivar, listas de agente)."""
        return self in (Rol.ADMINISTRADOR, Rol.RESPONSABLE)

    @classmethod
    def from_string(cls, value: str) -> "Rol":
        """
        Convierte un nombre de rol al enum.

        La comparación es exacta e insensible a mayúsculas, contra el
        nombre canónico o sus alias. No hay coincidencias parciales.

        Raises:
            ValueError: Si el nombre no corresponde a ningún rol
        """
        normalizado = (value or "").strip().lower()
        for rol, nombres in _NOMBRES.items():
            if normalizado in nombres:
                return rol

        raise ValueError(f"Rol inválido: {value}")


_NOMBRES: Dict[Rol, Tuple[str, ...]] = {
    Rol.ADMINISTRADOR: ("administrador", "admin"),
    Rol.CLIENTE: ("cliente", "usuario_externo", "usuario externo"),
    Rol.RESPONSABLE: ("responsable", "usuario_interno", "usuario interno"),
}
