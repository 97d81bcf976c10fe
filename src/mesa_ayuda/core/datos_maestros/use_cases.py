"""
Casos de uso de datos maestros.

Sólo lectura: no usan Unit of Work.
"""

import logging
from typing import List

from mesa_ayuda.core.shared.exceptions import EntityNotFoundError

from .ports import DatosMaestrosRepository
from .dtos import (
    DepartamentoOutputDTO,
    PrioridadOutputDTO,
    EstadoOutputDTO,
    ValidacionFormularioDTO,
    EstadisticasGeneralesDTO,
)

logger = logging.getLogger(__name__)


class ListarDepartamentosService:
    """Use Case: departamentos activos ordenados por nombre."""

    def __init__(self, datos_repo: DatosMaestrosRepository):
        self.datos_repo = datos_repo

    def execute(self) -> List[DepartamentoOutputDTO]:
        return [
            DepartamentoOutputDTO.from_entity(d)
            for d in self.datos_repo.list_departamentos(solo_activos=True)
        ]


class ObtenerDepartamentoService:
    def __init__(self, datos_repo: DatosMaestrosRepository):
        self.datos_repo = datos_repo

    def execute(self, departamento_id: int) -> DepartamentoOutputDTO:
        """
        Raises:
            EntityNotFoundError: Si el departamento no existe
        """
        departamento = self.datos_repo.get_departamento(departamento_id)

        if not departamento:
            raise EntityNotFoundError(
                f"Departamento con ID {departamento_id} no encontrado",
                entity_type="Departamento",
                entity_id=departamento_id,
            )

        return DepartamentoOutputDTO.from_entity(departamento)


class ListarPrioridadesService:
    """Use Case: prioridades ordenadas por nivel, con su plazo de respuesta."""

    def __init__(self, datos_repo: DatosMaestrosRepository):
        self.datos_repo = datos_repo

    def execute(self) -> List[PrioridadOutputDTO]:
        return [PrioridadOutputDTO.from_entity(p) for p in self.datos_repo.list_prioridades()]


class ObtenerPrioridadService:
    def __init__(self, datos_repo: DatosMaestrosRepository):
        self.datos_repo = datos_repo

    def execute(self, prioridad_id: int) -> PrioridadOutputDTO:
        prioridad = self.datos_repo.get_prioridad(prioridad_id)

        if not prioridad:
            raise EntityNotFoundError(
                f"Prioridad con ID {prioridad_id} no encontrada",
                entity_type="Prioridad",
                entity_id=prioridad_id,
            )

        return PrioridadOutputDTO.from_entity(prioridad)


class ListarEstadosService:
    def __init__(self, datos_repo: DatosMaestrosRepository):
        self.datos_repo = datos_repo

    def execute(self) -> List[EstadoOutputDTO]:
        return [EstadoOutputDTO.from_entity(e) for e in self.datos_repo.list_estados()]


class ObtenerEstadoService:
    def __init__(self, datos_repo: DatosMaestrosRepository):
        self.datos_repo = datos_repo

    def execute(self, estado_id: int) -> EstadoOutputDTO:
        estado = self.datos_repo.get_estado(estado_id)

        if not estado:
            raise EntityNotFoundError(
                f"Estado con ID {estado_id} no encontrado",
                entity_type="Estado",
                entity_id=estado_id,
            )

        return EstadoOutputDTO.from_entity(estado)


class ValidarFormularioTicketService:
    """
    Use Case: validar departamento y prioridad elegidos en un formulario.

    Un departamento inactivo no es válido para crear tickets.
    """

    def __init__(self, datos_repo: DatosMaestrosRepository):
        self.datos_repo = datos_repo

    def execute(self, departamento_id: int, prioridad_id: int) -> ValidacionFormularioDTO:
        departamento = self.datos_repo.get_departamento(departamento_id)
        prioridad = self.datos_repo.get_prioridad(prioridad_id)

        resultado = ValidacionFormularioDTO(
            departamento_valido=bool(departamento and departamento.activo),
            prioridad_valida=prioridad is not None,
        )
        logger.debug(
            f"Validación de formulario dep={departamento_id} prio={prioridad_id}: "
            f"{resultado.puede_crear_ticket}"
        )
        return resultado


class ObtenerEstadisticasGeneralesService:
    """Use Case: conteos de los catálogos."""

    def __init__(self, datos_repo: DatosMaestrosRepository):
        self.datos_repo = datos_repo

    def execute(self) -> EstadisticasGeneralesDTO:
        todos = self.datos_repo.list_departamentos(solo_activos=False)

        return EstadisticasGeneralesDTO(
            total_departamentos=len(todos),
            departamentos_activos=len([d for d in todos if d.activo]),
            total_prioridades=len(self.datos_repo.list_prioridades()),
            total_estados=len(self.datos_repo.list_estados()),
        )
