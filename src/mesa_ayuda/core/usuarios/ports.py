"""
Ports del subdominio de usuarios.
"""

from typing import Dict, List, Optional, Protocol, runtime_checkable
import copy

from .entities import UsuarioEntity
from .dtos import FiltroUsuarios, OrdenUsuarios


@runtime_checkable
class UsuarioRepository(Protocol):
    """
    Interfaz de persistencia de usuarios.

    Implementaciones:
    - DjangoUsuarioRepository (ORM)
    - InMemoryUsuarioRepository (tests)
    """

    def get_by_id(self, usuario_id: int) -> Optional[UsuarioEntity]:
        ...

    def save(self, usuario: UsuarioEntity) -> UsuarioEntity:
        """Alta si el usuario no tiene ID (y se le asigna); si lo tiene, actualización."""
        ...

    def delete(self, usuario_id: int) -> None:
        """Borrado físico. No falla si el usuario no existe."""
        ...

    def list_by_filtro(self, filtro: FiltroUsuarios) -> List[UsuarioEntity]:
        ...

    def exists_correo(self, correo: str, excluir_id: Optional[int] = None) -> bool:
        """Si ya hay un usuario (distinto de `excluir_id`) con ese correo."""
        ...

    def exists_rut(self, rut: str, excluir_id: Optional[int] = None) -> bool:
        """Si ya hay un usuario (distinto de `excluir_id`) con ese RUT."""
        ...


class InMemoryUsuarioRepository:
    """
    Implementación en memoria de UsuarioRepository.

    Útil para tests unitarios. No usar en producción.
    """

    def __init__(self):
        self._usuarios: Dict[int, UsuarioEntity] = {}

    def save(self, usuario: UsuarioEntity) -> UsuarioEntity:
        if usuario.id is None:
            usuario.id = max(self._usuarios, default=0) + 1

        self._usuarios[usuario.id] = copy.deepcopy(usuario)
        return usuario

    def get_by_id(self, usuario_id: int) -> Optional[UsuarioEntity]:
        usuario = self._usuarios.get(usuario_id)
        return copy.deepcopy(usuario) if usuario else None

    def delete(self, usuario_id: int) -> None:
        self._usuarios.pop(usuario_id, None)

    def list_by_filtro(self, filtro: FiltroUsuarios) -> List[UsuarioEntity]:
        usuarios = [u for u in self._usuarios.values() if self._cumple(u, filtro)]
        usuarios.sort(key=self._clave_orden(filtro.orden), reverse=filtro.descendente)
        return [copy.deepcopy(u) for u in usuarios]

    def exists_correo(self, correo: str, excluir_id: Optional[int] = None) -> bool:
        correo = correo.strip().lower()
        return any(
            u.correo.lower() == correo and u.id != excluir_id
            for u in self._usuarios.values()
        )

    def exists_rut(self, rut: str, excluir_id: Optional[int] = None) -> bool:
        return any(
            u.rut == rut and u.id != excluir_id
            for u in self._usuarios.values()
        )

    def clear(self) -> None:
        self._usuarios.clear()

    @staticmethod
    def _cumple(usuario: UsuarioEntity, filtro: FiltroUsuarios) -> bool:
        if filtro.texto:
            texto = filtro.texto.lower()
            if not any(texto in campo.lower() for campo in (usuario.nombre, usuario.apellido, usuario.correo)):
                return False

        if filtro.id_departamento is not None and usuario.id_departamento != filtro.id_departamento:
            return False

        if filtro.rol is not None and usuario.rol != filtro.rol:
            return False

        if filtro.activo is not None and usuario.activo != filtro.activo:
            return False

        return True

    @staticmethod
    def _clave_orden(orden: OrdenUsuarios):
        if orden == OrdenUsuarios.NOMBRE:
            return lambda u: (u.nombre.lower(), u.apellido.lower(), u.id)

        if orden == OrdenUsuarios.CORREO:
            return lambda u: (u.correo.lower(), u.id)

        return lambda u: (u.fecha_creacion.timestamp() if u.fecha_creacion else 0, u.id)
