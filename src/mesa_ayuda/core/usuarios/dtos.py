"""
DTOs del subdominio de usuarios.

- CrearUsuarioInputDTO / ActualizarUsuarioInputDTO: datos ya parseados
- FiltroUsuarios: criterio tipado para listar
- UsuarioOutputDTO: datos de perfil para la respuesta
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from mesa_ayuda.core.acceso import Rol

from .entities import UsuarioEntity


@dataclass(frozen=True)
class CrearUsuarioInputDTO:
    nombre: str
    apellido: str
    correo: str
    rut: str
    rol: Rol = Rol.CLIENTE
    id_departamento: Optional[int] = None


@dataclass(frozen=True)
class ActualizarUsuarioInputDTO:
    """Actualización parcial: un campo en None significa "no enviado"."""

    nombre: Optional[str] = None
    apellido: Optional[str] = None
    correo: Optional[str] = None
    rut: Optional[str] = None
    rol: Optional[Rol] = None
    id_departamento: Optional[int] = None
    activo: Optional[bool] = None


class OrdenUsuarios(Enum):
    """Ordenamientos de la lista de usuarios."""

    NOMBRE = "nombre"
    CORREO = "correo"
    FECHA_CREACION = "fecha_creacion"


@dataclass(frozen=True)
class FiltroUsuarios:
    """
    Criterio tipado para listar usuarios. Los campos en None no filtran.

    Attributes:
        texto: Búsqueda sin distinguir mayúsculas en nombre, apellido y correo
        descendente: Invierte el orden (por defecto, los más recientes primero)
    """

    texto: Optional[str] = None
    id_departamento: Optional[int] = None
    rol: Optional[Rol] = None
    activo: Optional[bool] = None
    orden: OrdenUsuarios = OrdenUsuarios.FECHA_CREACION
    descendente: bool = True


@dataclass
class UsuarioOutputDTO:
    id: int
    nombre: str
    apellido: str
    correo: str
    rut: str
    rol: Rol
    id_departamento: Optional[int]
    activo: bool
    fecha_creacion: Optional[datetime]

    @classmethod
    def from_entity(cls, entity: UsuarioEntity) -> "UsuarioOutputDTO":
        return cls(
            id=entity.id,
            nombre=entity.nombre,
            apellido=entity.apellido,
            correo=entity.correo,
            rut=entity.rut,
            rol=entity.rol,
            id_departamento=entity.id_departamento,
            activo=entity.activo,
            fecha_creacion=entity.fecha_creacion,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nombre": self.nombre,
            "apellido": self.apellido,
            "nombre_completo": f"{self.nombre} {self.apellido}".strip(),
            "correo": self.correo,
            "rut": self.rut,
            "rol": self.rol.nombre,
            "id_rol": int(self.rol),
            "id_departamento": self.id_departamento,
            "activo": self.activo,
            "fecha_creacion": self.fecha_creacion.isoformat() if self.fecha_creacion else None,
        }
