"""
Use Cases de administración (sólo administradores).

Usuarios:
- ListarUsuariosService: lista filtrada y ordenada
- ObtenerUsuarioService: detalle
- CrearUsuarioService: alta con correo y RUT únicos
- ActualizarUsuarioService: actualización parcial
- EliminarUsuarioService: borrado físico de usuarios sin tickets

Métricas:
- ObtenerMetricasAdminService: resumen de la empresa, métricas por
  departamento, tendencia mensual y tickets por estado

Todos reciben el ContextoUsuario de quien opera; sin contexto
(llamada interna de confianza) se permite, igual que en tickets.
"""

from datetime import datetime
from statistics import mean
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import logging

from mesa_ayuda.core.acceso import ContextoUsuario, PoliticaAccesoTickets, Rol
from mesa_ayuda.core.datos_maestros import DatosMaestrosRepository
from mesa_ayuda.core.shared.exceptions import (
    ConflictError,
    EntityNotFoundError,
    InvalidOperationError,
    InvalidReferenceError,
    ValidationError,
)
from mesa_ayuda.core.shared.interfaces import UnitOfWork
from mesa_ayuda.core.shared.tiempo import ahora
from mesa_ayuda.core.tickets import FiltroTickets, TicketEntity, TicketRepository
from mesa_ayuda.core.usuarios import (
    ActualizarUsuarioInputDTO,
    CrearUsuarioInputDTO,
    FiltroUsuarios,
    UsuarioEntity,
    UsuarioOutputDTO,
    UsuarioRepository,
)

from .dtos import (
    MetricasAdminDTO,
    MetricasDepartamentoDTO,
    ResumenEmpresaDTO,
    TendenciaMensualDTO,
    TicketsPorEstadoDTO,
)

logger = logging.getLogger(__name__)

MAX_MESES_TENDENCIA = 24


def _obtener_usuario(usuario_repo: UsuarioRepository, usuario_id: int) -> UsuarioEntity:
    usuario = usuario_repo.get_by_id(usuario_id)

    if not usuario:
        raise EntityNotFoundError(
            "Usuario no encontrado",
            entity_type="Usuario",
            entity_id=usuario_id,
        )

    return usuario


def _verificar_departamento(datos_repo: DatosMaestrosRepository, departamento_id: Optional[int]) -> None:
    if departamento_id is None:
        return

    departamento = datos_repo.get_departamento(departamento_id)
    if not departamento or not departamento.activo:
        raise InvalidReferenceError("Departamento inválido", field="id_departamento")


def _verificar_unicidad(
    usuario_repo: UsuarioRepository,
    usuario: UsuarioEntity,
    campos: Iterable[str] = ("correo", "rut"),
) -> None:
    """
    Raises:
        ConflictError: CORREO_EN_USO o RUT_EN_USO
    """
    if "correo" in campos and usuario_repo.exists_correo(usuario.correo, excluir_id=usuario.id):
        raise ConflictError("El correo ya está registrado", code="CORREO_EN_USO")

    if "rut" in campos and usuario_repo.exists_rut(usuario.rut, excluir_id=usuario.id):
        raise ConflictError("El RUT ya está registrado", code="RUT_EN_USO")


# =============================================================================
# Usuarios
# =============================================================================

class ListarUsuariosService:
    """Use Case: usuarios que cumplen el filtro (por defecto, los más recientes primero)."""

    def __init__(self, usuario_repo: UsuarioRepository, politica: Optional[PoliticaAccesoTickets] = None):
        self.usuario_repo = usuario_repo
        self.politica = politica or PoliticaAccesoTickets()

    def execute(
        self,
        filtro: Optional[FiltroUsuarios] = None,
        usuario: Optional[ContextoUsuario] = None,
    ) -> List[UsuarioOutputDTO]:
        self.politica.verificar_administracion(usuario)

        usuarios = self.usuario_repo.list_by_filtro(filtro or FiltroUsuarios())
        return [UsuarioOutputDTO.from_entity(u) for u in usuarios]


class ObtenerUsuarioService:
    """Use Case: detalle de un usuario."""

    def __init__(self, usuario_repo: UsuarioRepository, politica: Optional[PoliticaAccesoTickets] = None):
        self.usuario_repo = usuario_repo
        self.politica = politica or PoliticaAccesoTickets()

    def execute(self, usuario_id: int, usuario: Optional[ContextoUsuario] = None) -> UsuarioOutputDTO:
        """
        Raises:
            AccessDeniedError: Si quien consulta no es administrador
            EntityNotFoundError: Si el usuario no existe
        """
        self.politica.verificar_administracion(usuario)
        return UsuarioOutputDTO.from_entity(_obtener_usuario(self.usuario_repo, usuario_id))


class CrearUsuarioService:
    """
    Use Case: alta de un usuario.

    Flujo:
    1. Exigir administrador
    2. Validar y normalizar los datos (correo en minúsculas, RUT 12345678-5)
    3. Validar departamento activo
    4. Verificar correo y RUT únicos
    5. Persistir
    """

    def __init__(
        self,
        usuario_repo: UsuarioRepository,
        datos_repo: DatosMaestrosRepository,
        uow: UnitOfWork,
        politica: Optional[PoliticaAccesoTickets] = None,
    ):
        self.usuario_repo = usuario_repo
        self.datos_repo = datos_repo
        self.uow = uow
        self.politica = politica or PoliticaAccesoTickets()

    def execute(
        self,
        input_dto: CrearUsuarioInputDTO,
        usuario: Optional[ContextoUsuario] = None,
    ) -> UsuarioOutputDTO:
        """
        Raises:
            AccessDeniedError: Si quien crea no es administrador
            ValidationError: Datos inválidos
            InvalidReferenceError: Departamento inexistente o inactivo
            ConflictError: Correo o RUT ya registrados
        """
        self.politica.verificar_administracion(usuario)

        nuevo = UsuarioEntity.crear(
            nombre=input_dto.nombre,
            apellido=input_dto.apellido,
            correo=input_dto.correo,
            rut=input_dto.rut,
            rol=input_dto.rol,
            id_departamento=input_dto.id_departamento,
        )

        with self.uow:
            _verificar_departamento(self.datos_repo, nuevo.id_departamento)
            _verificar_unicidad(self.usuario_repo, nuevo)
            self.usuario_repo.save(nuevo)

        logger.info(f"Usuario creado: {nuevo.correo} (id={nuevo.id}, rol={nuevo.rol.nombre})")
        return UsuarioOutputDTO.from_entity(nuevo)


class ActualizarUsuarioService:
    """
    Use Case: actualización parcial de un usuario.

    Un administrador no puede quitarse su propio rol ni desactivarse.
    """

    def __init__(
        self,
        usuario_repo: UsuarioRepository,
        datos_repo: DatosMaestrosRepository,
        uow: UnitOfWork,
        politica: Optional[PoliticaAccesoTickets] = None,
    ):
        self.usuario_repo = usuario_repo
        self.datos_repo = datos_repo
        self.uow = uow
        self.politica = politica or PoliticaAccesoTickets()

    def execute(
        self,
        usuario_id: int,
        input_dto: ActualizarUsuarioInputDTO,
        usuario: Optional[ContextoUsuario] = None,
    ) -> UsuarioOutputDTO:
        """
        Raises:
            AccessDeniedError: Si quien actualiza no es administrador
            EntityNotFoundError: Si el usuario no existe
            ValidationError: Datos inválidos
            InvalidReferenceError: Departamento inexistente o inactivo
            ConflictError: Correo o RUT de otro usuario
            InvalidOperationError: Si el administrador se degrada o desactiva a sí mismo
        """
        self.politica.verificar_administracion(usuario)

        with self.uow:
            existente = _obtener_usuario(self.usuario_repo, usuario_id)

            if usuario is not None and usuario.id_usuario == existente.id:
                self._verificar_auto_degradacion(input_dto)

            _verificar_departamento(self.datos_repo, input_dto.id_departamento)

            cambios = existente.actualizar(
                nombre=input_dto.nombre,
                apellido=input_dto.apellido,
                correo=input_dto.correo,
                rut=input_dto.rut,
                rol=input_dto.rol,
                id_departamento=input_dto.id_departamento,
                activo=input_dto.activo,
            )

            _verificar_unicidad(self.usuario_repo, existente, campos=cambios)
            self.usuario_repo.save(existente)

        logger.info(f"Usuario {usuario_id} actualizado: {cambios or 'sin cambios'}")
        return UsuarioOutputDTO.from_entity(existente)

    @staticmethod
    def _verificar_auto_degradacion(input_dto: ActualizarUsuarioInputDTO) -> None:
        if input_dto.rol is not None and input_dto.rol != Rol.ADMINISTRADOR:
            raise InvalidOperationError("Un administrador no puede quitarse su propio rol")

        if input_dto.activo is False:
            raise InvalidOperationError("Un administrador no puede desactivarse a sí mismo")


class EliminarUsuarioService:
    """
    Use Case: borrado físico de un usuario.

    Un usuario que solicitó tickets no se borra: se desactiva con
    ActualizarUsuarioService. Los tickets que tenía
    asignados quedan sin responsable.
    """

    def __init__(
        self,
        usuario_repo: UsuarioRepository,
        ticket_repo: TicketRepository,
        uow: UnitOfWork,
        politica: Optional[PoliticaAccesoTickets] = None,
    ):
        self.usuario_repo = usuario_repo
        self.ticket_repo = ticket_repo
        self.uow = uow
        self.politica = politica or PoliticaAccesoTickets()

    def execute(self, usuario_id: int, usuario: Optional[ContextoUsuario] = None) -> None:
        """
        Raises:
            AccessDeniedError: Si quien borra no es administrador
            EntityNotFoundError: Si el usuario no existe
            InvalidOperationError: Si el administrador intenta borrarse a sí mismo
            ConflictError: USUARIO_CON_TICKETS
        """
        self.politica.verificar_administracion(usuario)

        with self.uow:
            existente = _obtener_usuario(self.usuario_repo, usuario_id)

            if usuario is not None and usuario.id_usuario == existente.id:
                raise InvalidOperationError("Un administrador no puede eliminarse a sí mismo")

            if self.ticket_repo.count_by_filtro(FiltroTickets(id_solicitante=existente.id)):
                raise ConflictError(
                    "El usuario tiene tickets registrados; desactívelo en lugar de eliminarlo",
                    code="USUARIO_CON_TICKETS",
                )

            self.usuario_repo.delete(existente.id)

        logger.info(f"Usuario eliminado: {existente.correo} (id={existente.id})")


# =============================================================================
# Métricas
# =============================================================================

def _horas_promedio_resolucion(tickets: List[TicketEntity]) -> Optional[float]:
    duraciones = [
        (t.fecha_resolucion - t.fecha_creacion).total_seconds() / 3600
        for t in tickets
        if t.fecha_resolucion is not None
    ]
    return round(mean(duraciones), 2) if duraciones else None


def _ultimos_meses(momento: datetime, meses: int) -> List[Tuple[int, int]]:
    """(año, mes) de los últimos `meses` meses, del más antiguo al actual."""
    indice = momento.year * 12 + momento.month - 1
    return [divmod(i, 12) for i in range(indice - meses + 1, indice + 1)]


def _clave_mes(fecha: Optional[datetime]) -> Optional[Tuple[int, int]]:
    return (fecha.year, fecha.month - 1) if fecha else None


class ObtenerMetricasAdminService:
    """
    Use Case: métricas del tablero de administración.

    Todas las cifras salen de los datos registrados; los meses se
    cuentan en UTC, igual que las marcas de tiempo del core.

    Args:
        reloj: Instante de referencia (vencidos y meses de la tendencia)
    """

    def __init__(
        self,
        usuario_repo: UsuarioRepository,
        ticket_repo: TicketRepository,
        datos_repo: DatosMaestrosRepository,
        politica: Optional[PoliticaAccesoTickets] = None,
        reloj: Callable[[], datetime] = ahora,
    ):
        self.usuario_repo = usuario_repo
        self.ticket_repo = ticket_repo
        self.datos_repo = datos_repo
        self.politica = politica or PoliticaAccesoTickets()
        self._reloj = reloj

    def execute(self, usuario: Optional[ContextoUsuario] = None, meses: int = 6) -> MetricasAdminDTO:
        """
        Raises:
            AccessDeniedError: Si quien consulta no es administrador
            ValidationError: Si meses no está entre 1 y 24
        """
        self.politica.verificar_administracion(usuario)

        if not 1 <= meses <= MAX_MESES_TENDENCIA:
            raise ValidationError(f"meses debe estar entre 1 y {MAX_MESES_TENDENCIA}", field="meses")

        momento = self._reloj()
        usuarios = self.usuario_repo.list_by_filtro(FiltroUsuarios())
        tickets = self.ticket_repo.list_by_filtro(FiltroTickets())

        return MetricasAdminDTO(
            resumen=self._resumen(usuarios, tickets, momento),
            departamentos=self._por_departamento(usuarios, tickets, momento),
            tendencia_mensual=self._tendencia(usuarios, tickets, momento, meses),
            tickets_por_estado=self._por_estado(tickets),
        )

    def _resumen(
        self,
        usuarios: List[UsuarioEntity],
        tickets: List[TicketEntity],
        momento: datetime,
    ) -> ResumenEmpresaDTO:
        return ResumenEmpresaDTO(
            total_usuarios=len(usuarios),
            usuarios_activos=len([u for u in usuarios if u.activo]),
            total_departamentos=len(self.datos_repo.list_departamentos(solo_activos=False)),
            total_tickets=len(tickets),
            tickets_abiertos=len([t for t in tickets if t.esta_abierto]),
            tickets_vencidos=len([t for t in tickets if t.esta_vencido(momento)]),
            tiempo_promedio_resolucion_horas=_horas_promedio_resolucion(tickets),
            fecha_actualizacion=momento,
        )

    def _por_departamento(
        self,
        usuarios: List[UsuarioEntity],
        tickets: List[TicketEntity],
        momento: datetime,
    ) -> List[MetricasDepartamentoDTO]:
        metricas = []

        for departamento in sorted(self.datos_repo.list_departamentos(solo_activos=False), key=lambda d: d.id):
            del_departamento = [u for u in usuarios if u.id_departamento == departamento.id]
            sus_tickets = [t for t in tickets if t.id_departamento == departamento.id]

            por_rol: Dict[str, int] = {}
            for u in del_departamento:
                por_rol[u.rol.nombre] = por_rol.get(u.rol.nombre, 0) + 1

            metricas.append(MetricasDepartamentoDTO(
                id_departamento=departamento.id,
                nombre=departamento.nombre,
                activo=departamento.activo,
                total_usuarios=len(del_departamento),
                usuarios_por_rol=por_rol,
                total_tickets=len(sus_tickets),
                tickets_abiertos=len([t for t in sus_tickets if t.esta_abierto]),
                tickets_cerrados=len([t for t in sus_tickets if not t.esta_abierto]),
                tickets_vencidos=len([t for t in sus_tickets if t.esta_vencido(momento)]),
                tiempo_promedio_resolucion_horas=_horas_promedio_resolucion(sus_tickets),
            ))

        return metricas

    @staticmethod
    def _tendencia(
        usuarios: List[UsuarioEntity],
        tickets: List[TicketEntity],
        momento: datetime,
        meses: int,
    ) -> List[TendenciaMensualDTO]:
        def contar(fechas) -> Dict[Tuple[int, int], int]:
            conteo: Dict[Tuple[int, int], int] = {}
            for clave in map(_clave_mes, fechas):
                if clave is not None:
                    conteo[clave] = conteo.get(clave, 0) + 1
            return conteo

        altas = contar(u.fecha_creacion for u in usuarios)
        creados = contar(t.fecha_creacion for t in tickets)
        resueltos = contar(t.fecha_resolucion for t in tickets)

        return [
            TendenciaMensualDTO(
                mes=f"{anio:04d}-{mes + 1:02d}",
                usuarios_nuevos=altas.get((anio, mes), 0),
                tickets_creados=creados.get((anio, mes), 0),
                tickets_resueltos=resueltos.get((anio, mes), 0),
            )
            for anio, mes in _ultimos_meses(momento, meses)
        ]

    def _por_estado(self, tickets: List[TicketEntity]) -> List[TicketsPorEstadoDTO]:
        conteo: Dict[int, int] = {}
        for t in tickets:
            conteo[int(t.id_estado)] = conteo.get(int(t.id_estado), 0) + 1

        return [
            TicketsPorEstadoDTO(
                id_estado=estado.id,
                estado=estado.nombre,
                cantidad=conteo.get(estado.id, 0),
                color_hex=estado.color_hex,
            )
            for estado in self.datos_repo.list_estados()
        ]
