"""
Administración: gestión de usuarios y métricas, sólo para administradores.
"""

from .dtos import (
    ResumenEmpresaDTO,
    MetricasDepartamentoDTO,
    TendenciaMensualDTO,
    TicketsPorEstadoDTO,
    MetricasAdminDTO,
)
from .use_cases import (
    ListarUsuariosService,
    ObtenerUsuarioService,
    CrearUsuarioService,
    ActualizarUsuarioService,
    EliminarUsuarioService,
    ObtenerMetricasAdminService,
)

__all__ = [
    "ResumenEmpresaDTO",
    "MetricasDepartamentoDTO",
    "TendenciaMensualDTO",
    "TicketsPorEstadoDTO",
    "MetricasAdminDTO",
    "ListarUsuariosService",
    "ObtenerUsuarioService",
    "CrearUsuarioService",
    "ActualizarUsuarioService",
    "EliminarUsuarioService",
    "ObtenerMetricasAdminService",
]
