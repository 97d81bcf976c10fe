"""
DTOs de salida de las métricas de administración.

Sólo datos: el tablero que los dibuja queda fuera de este servicio.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class ResumenEmpresaDTO:
    """
    Totales de la empresa.

    Attributes:
        tiempo_promedio_resolucion_horas: Promedio entre creación y
            resolución de los tickets resueltos; None si no hay ninguno
    """

    total_usuarios: int
    usuarios_activos: int
    total_departamentos: int
    total_tickets: int
    tickets_abiertos: int
    tickets_vencidos: int
    tiempo_promedio_resolucion_horas: Optional[float]
    fecha_actualizacion: datetime

    def to_dict(self) -> dict:
        return {
            "total_usuarios": self.total_usuarios,
            "usuarios_activos": self.usuarios_activos,
            "total_departamentos": self.total_departamentos,
            "total_tickets": self.total_tickets,
            "tickets_abiertos": self.tickets_abiertos,
            "tickets_vencidos": self.tickets_vencidos,
            "tiempo_promedio_resolucion_horas": self.tiempo_promedio_resolucion_horas,
            "fecha_actualizacion": self.fecha_actualizacion.isoformat(),
        }


@dataclass
class MetricasDepartamentoDTO:
    id_departamento: int
    nombre: str
    activo: bool
    total_usuarios: int
    usuarios_por_rol: Dict[str, int]
    total_tickets: int
    tickets_abiertos: int
    tickets_cerrados: int
    tickets_vencidos: int
    tiempo_promedio_resolucion_horas: Optional[float]

    def to_dict(self) -> dict:
        return {
            "id_departamento": self.id_departamento,
            "nombre": self.nombre,
            "activo": self.activo,
            "usuarios": {
                "total": self.total_usuarios,
                "por_rol": dict(self.usuarios_por_rol),
            },
            "tickets": {
                "total": self.total_tickets,
                "abiertos": self.tickets_abiertos,
                "cerrados": self.tickets_cerrados,
                "vencidos": self.tickets_vencidos,
                "tiempo_promedio_resolucion_horas": self.tiempo_promedio_resolucion_horas,
            },
        }


@dataclass
class TendenciaMensualDTO:
    """Altas del mes (formato AAAA-MM)."""

    mes: str
    usuarios_nuevos: int
    tickets_creados: int
    tickets_resueltos: int

    def to_dict(self) -> dict:
        return {
            "mes": self.mes,
            "usuarios_nuevos": self.usuarios_nuevos,
            "tickets_creados": self.tickets_creados,
            "tickets_resueltos": self.tickets_resueltos,
        }


@dataclass
class TicketsPorEstadoDTO:
    id_estado: int
    estado: str
    cantidad: int
    color_hex: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id_estado": self.id_estado,
            "estado": self.estado,
            "cantidad": self.cantidad,
            "color": self.color_hex,
        }


@dataclass
class MetricasAdminDTO:
    resumen: ResumenEmpresaDTO
    departamentos: List[MetricasDepartamentoDTO] = field(default_factory=list)
    tendencia_mensual: List[TendenciaMensualDTO] = field(default_factory=list)
    tickets_por_estado: List[TicketsPorEstadoDTO] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "resumen": self.resumen.to_dict(),
            "departamentos": [d.to_dict() for d in self.departamentos],
            "tendencia_mensual": [t.to_dict() for t in self.tendencia_mensual],
            "tickets_por_estado": [e.to_dict() for e in self.tickets_por_estado],
        }
