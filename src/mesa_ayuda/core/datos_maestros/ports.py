"""
Ports de datos maestros.

Un único repositorio de lectura para los tres catálogos, con su
implementación en memoria para tests.
"""

from typing import Dict, List, Optional, Protocol, runtime_checkable

from .entities import DepartamentoEntity, EstadoEntity, PrioridadEntity


@runtime_checkable
class DatosMaestrosRepository(Protocol):
    """
    Interfaz de consulta de catálogos.

    Implementaciones:
    - DjangoDatosMaestrosRepository (ORM)
    - InMemoryDatosMaestrosRepository (tests)
    """

    def get_departamento(self, departamento_id: int) -> Optional[DepartamentoEntity]:
        ...

    def list_departamentos(self, solo_activos: bool = True) -> List[DepartamentoEntity]:
        """Departamentos ordenados por nombre."""
        ...

    def get_prioridad(self, prioridad_id: int) -> Optional[PrioridadEntity]:
        ...

    def list_prioridades(self) -> List[PrioridadEntity]:
        """Prioridades ordenadas por nivel."""
        ...

    def get_estado(self, estado_id: int) -> Optional[EstadoEntity]:
        ...

    def list_estados(self) -> List[EstadoEntity]:
        """Estados ordenados por ID."""
        ...


class InMemoryDatosMaestrosRepository:
    """
    Implementación en memoria de DatosMaestrosRepository.

    Example:
        repo = InMemoryDatosMaestrosRepository.con_datos_iniciales()
        repo.get_prioridad(1).nivel  # 1
    """

    def __init__(self):
        self._departamentos: Dict[int, DepartamentoEntity] = {}
        self._prioridades: Dict[int, PrioridadEntity] = {}
        self._estados: Dict[int, EstadoEntity] = {}

    @classmethod
    def con_datos_iniciales(cls) -> "InMemoryDatosMaestrosRepository":
        """Repositorio cargado con los mismos catálogos que siembra la migración."""
        repo = cls()
        for departamento in (
            DepartamentoEntity(1, "Administración", "Gestión administrativa y recursos humanos"),
            DepartamentoEntity(2, "Comercial", "Ventas y atención a clientes"),
            DepartamentoEntity(3, "Informática", "Soporte técnico y sistemas"),
            DepartamentoEntity(4, "Operaciones", "Logística y operaciones"),
        ):
            repo.save_departamento(departamento)
        for prioridad in (
            PrioridadEntity(1, "Alta", 1, "#dc3545"),
            PrioridadEntity(2, "Media", 2, "#ffc107"),
            PrioridadEntity(3, "Baja", 3, "#28a745"),
        ):
            repo.save_prioridad(prioridad)
        for estado in (
            EstadoEntity(1, "Nuevo", "Ticket recién creado", "#17a2b8"),
            EstadoEntity(2, "En Proceso", "Ticket en atención", "#ffc107"),
            EstadoEntity(3, "Escalado", "Ticket escalado", "#fd7e14"),
            EstadoEntity(4, "Resuelto", "Ticket resuelto", "#28a745"),
            EstadoEntity(5, "Cerrado", "Ticket cerrado", "#6c757d"),
        ):
            repo.save_estado(estado)
        return repo

    def save_departamento(self, departamento: DepartamentoEntity) -> None:
        self._departamentos[departamento.id] = departamento

    def save_prioridad(self, prioridad: PrioridadEntity) -> None:
        self._prioridades[prioridad.id] = prioridad

    def save_estado(self, estado: EstadoEntity) -> None:
        self._estados[estado.id] = estado

    def get_departamento(self, departamento_id: int) -> Optional[DepartamentoEntity]:
        return self._departamentos.get(departamento_id)

    def list_departamentos(self, solo_activos: bool = True) -> List[DepartamentoEntity]:
        departamentos = [
            d for d in self._departamentos.values()
            if d.activo or not solo_activos
        ]
        return sorted(departamentos, key=lambda d: d.nombre)

    def get_prioridad(self, prioridad_id: int) -> Optional[PrioridadEntity]:
        return self._prioridades.get(prioridad_id)

    def list_prioridades(self) -> List[PrioridadEntity]:
        return sorted(self._prioridades.values(), key=lambda p: p.nivel)

    def get_estado(self, estado_id: int) -> Optional[EstadoEntity]:
        return self._estados.get(estado_id)

    def list_estados(self) -> List[EstadoEntity]:
        return sorted(self._estados.values(), key=lambda e: e.id)
