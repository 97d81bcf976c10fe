"""
DTOs de salida de datos maestros.

Los nombres de campo siguen el contrato JSON que consume el frontend
(`id_departamento`, `nombre_departamento`, ...).
"""

from dataclasses import dataclass
from typing import Optional

from mesa_ayuda.core.tickets.sla import horas_respuesta

from .entities import DepartamentoEntity, EstadoEntity, PrioridadEntity


@dataclass
class DepartamentoOutputDTO:
    id_departamento: int
    nombre_departamento: str
    descripcion: Optional[str]
    activo: bool

    @classmethod
    def from_entity(cls, entity: DepartamentoEntity) -> "DepartamentoOutputDTO":
        return cls(
            id_departamento=entity.id,
            nombre_departamento=entity.nombre,
            descripcion=entity.descripcion,
            activo=entity.activo,
        )

    def to_dict(self) -> dict:
        return {
            "id_departamento": self.id_departamento,
            "nombre_departamento": self.nombre_departamento,
            "descripcion": self.descripcion,
            "activo": self.activo,
        }


@dataclass
class PrioridadOutputDTO:
    """
    Prioridad con su plazo de respuesta.

    `tiempo_respuesta_horas` sale de la calculadora de SLA, la misma
    que fija el vencimiento de los tickets.
    """

    id_prioridad: int
    nombre_prioridad: str
    nivel: int
    color_hex: Optional[str]
    tiempo_respuesta_horas: int

    @classmethod
    def from_entity(cls, entity: PrioridadEntity) -> "PrioridadOutputDTO":
        return cls(
            id_prioridad=entity.id,
            nombre_prioridad=entity.nombre,
            nivel=entity.nivel,
            color_hex=entity.color_hex,
            tiempo_respuesta_horas=horas_respuesta(entity.nivel),
        )

    def to_dict(self) -> dict:
        return {
            "id_prioridad": self.id_prioridad,
            "nombre_prioridad": self.nombre_prioridad,
            "nivel": self.nivel,
            "color_hex": self.color_hex,
            "tiempo_respuesta_horas": self.tiempo_respuesta_horas,
        }


@dataclass
class EstadoOutputDTO:
    id_estado: int
    nombre_estado: str
    descripcion: Optional[str]
    color_hex: Optional[str]
    es_estado_final: bool

    @classmethod
    def from_entity(cls, entity: EstadoEntity) -> "EstadoOutputDTO":
        return cls(
            id_estado=entity.id,
            nombre_estado=entity.nombre,
            descripcion=entity.descripcion,
            color_hex=entity.color_hex,
            es_estado_final=entity.es_final,
        )

    def to_dict(self) -> dict:
        return {
            "id_estado": self.id_estado,
            "nombre_estado": self.nombre_estado,
            "descripcion": self.descripcion,
            "color_hex": self.color_hex,
            "es_estado_final": self.es_estado_final,
        }


@dataclass
class ValidacionFormularioDTO:
    """Resultado de validar la combinación departamento + prioridad de un formulario."""

    departamento_valido: bool
    prioridad_valida: bool

    @property
    def puede_crear_ticket(self) -> bool:
        return self.departamento_valido and self.prioridad_valida

    def to_dict(self) -> dict:
        return {
            "departamento_valido": self.departamento_valido,
            "prioridad_valida": self.prioridad_valida,
            "puede_crear_ticket": self.puede_crear_ticket,
        }


@dataclass
class EstadisticasGeneralesDTO:
    total_departamentos: int
    departamentos_activos: int
    total_prioridades: int
    total_estados: int

    def to_dict(self) -> dict:
        return {
            "total_departamentos": self.total_departamentos,
            "departamentos_activos": self.departamentos_activos,
            "total_prioridades": self.total_prioridades,
            "total_estados": self.total_estados,
        }
