"""
Use Cases (Application Services) del Dominio de Tickets.

Use Cases:
- CrearTicketService: crea un ticket con código y vencimiento
- ListarTicketsService: todos los tickets o los de un solicitante
- ObtenerTicketService: detalle con control de acceso
- ActualizarTicketService: actualización parcial
- EliminarTicketService: borrado físico
- TomarTicketService: un agente se asigna el ticket
- DerivarTicketService: transferencia a otro departamento
- ListarTicketsAbiertosService / Cerrados / Vencidos: listas de agente

Responsabilidades:
- Validar referencias (departamento, prioridad, estado, usuarios)
- Consultar la política de acceso
- Coordinar entidades y repositorios dentro del Unit of Work
- Publicar eventos de dominio (después del commit)
- Devolver DTOs de salida
"""

from datetime import timedelta
from typing import List, Optional
import logging

from mesa_ayuda.core.shared.interfaces import UnitOfWork
from mesa_ayuda.core.shared.exceptions import (
    EntityNotFoundError,
    InvalidReferenceError,
    InvalidOperationError,
    ValidationError,
    CodigoDuplicadoError,
)
from mesa_ayuda.core.shared.tiempo import ahora
from mesa_ayuda.core.acceso import Accion, ContextoUsuario, PoliticaAccesoTickets
from mesa_ayuda.core.datos_maestros import (
    DatosMaestrosRepository,
    DepartamentoEntity,
    PrioridadEntity,
)
from mesa_ayuda.core.usuarios import UsuarioEntity, UsuarioRepository

from .ports import TicketRepository, GeneradorCodigoTicket
from .entities import (
    TicketEntity,
    DerivacionTicket,
    ESTADOS_ABIERTOS,
    ESTADOS_CERRADOS,
)
from .dtos import (
    CrearTicketInputDTO,
    ActualizarTicketInputDTO,
    DerivarTicketInputDTO,
    TicketOutputDTO,
    DerivacionOutputDTO,
    FiltroTickets,
    OrdenTickets,
    AmbitoAgente,
)
from .events import (
    TicketCreadoEvent,
    TicketActualizadoEvent,
    TicketEliminadoEvent,
    TicketTomadoEvent,
    TicketDerivadoEvent,
)

logger = logging.getLogger(__name__)

# Horizonte de la lista de vencidos: incluye lo que vence en las próximas 24 h
HORIZONTE_VENCIMIENTO = timedelta(hours=24)


def _obtener_ticket(ticket_repo: TicketRepository, ticket_id: int) -> TicketEntity:
    ticket = ticket_repo.get_by_id(ticket_id)

    if not ticket:
        raise EntityNotFoundError(
            "Ticket no encontrado",
            entity_type="Ticket",
            entity_id=ticket_id,
        )

    return ticket


def _departamento_activo(datos_repo: DatosMaestrosRepository, departamento_id: int) -> DepartamentoEntity:
    departamento = datos_repo.get_departamento(departamento_id)

    if not departamento or not departamento.activo:
        raise InvalidReferenceError("Departamento inválido", field="id_departamento")

    return departamento


def _prioridad(datos_repo: DatosMaestrosRepository, prioridad_id: int) -> PrioridadEntity:
    prioridad = datos_repo.get_prioridad(prioridad_id)

    if not prioridad:
        raise InvalidReferenceError("Prioridad inválida", field="id_prioridad")

    return prioridad


def _agente(
    usuario_repo: UsuarioRepository,
    politica: PoliticaAccesoTickets,
    id_agente: int,
) -> UsuarioEntity:
    """Agente existente con un rol que gestiona tickets."""
    agente = usuario_repo.get_by_id(id_agente)

    if not agente:
        raise InvalidReferenceError("Agente inválido", field="id_agente")

    politica.verificar_gestion(agente.contexto())
    return agente


# =============================================================================
# Crear
# =============================================================================

class CrearTicketService:
    """
    Use Case: crear un ticket.

    Flujo:
    1. Validar asunto y descripción (antes de tocar la base de datos)
    2. Validar departamento activo, prioridad y solicitante
    3. Generar código y calcular vencimiento según el nivel de prioridad
    4. Persistir en estado Nuevo y sin responsable
    5. Publicar TicketCreadoEvent

    Si el código choca con el de otro ticket guardado en paralelo, se
    regenera y se reintenta hasta `max_reintentos` veces.

    Example:
        service = CrearTicketService(ticket_repo, datos_repo, usuario_repo, generador, uow)
        output = service.execute(CrearTicketInputDTO(
            asunto="Servidor de correo caído",
            descripcion="El relay SMTP falla desde las 9am",
            id_departamento=3,
            id_prioridad=1,
            id_solicitante=42,
        ))
        output.numero_ticket  # "TK202507001"
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        datos_repo: DatosMaestrosRepository,
        usuario_repo: UsuarioRepository,
        generador_codigo: GeneradorCodigoTicket,
        uow: UnitOfWork,
        max_reintentos: int = 3,
    ):
        self.ticket_repo = ticket_repo
        self.datos_repo = datos_repo
        self.usuario_repo = usuario_repo
        self.generador_codigo = generador_codigo
        self.uow = uow
        self.max_reintentos = max_reintentos

    def execute(self, input_dto: CrearTicketInputDTO) -> TicketOutputDTO:
        """
        Raises:
            ValidationError: Asunto o descripción inválidos
            InvalidReferenceError: Departamento, prioridad o solicitante inválidos
            CodigoDuplicadoError: Si se agotaron los reintentos
        """
        TicketEntity.validar_asunto(input_dto.asunto)
        TicketEntity.validar_descripcion(input_dto.descripcion)

        _departamento_activo(self.datos_repo, input_dto.id_departamento)
        prioridad = _prioridad(self.datos_repo, input_dto.id_prioridad)

        if not self.usuario_repo.get_by_id(input_dto.id_solicitante):
            raise InvalidReferenceError("Solicitante inválido", field="id_solicitante")

        intentos = self.max_reintentos + 1
        for intento in range(1, intentos + 1):
            try:
                return self._crear(input_dto, prioridad)
            except CodigoDuplicadoError as e:
                if intento >= intentos:
                    logger.error(f"Código duplicado tras {intento} intentos: {e.numero_ticket}")
                    raise
                logger.warning(f"Código {e.numero_ticket} ya usado, reintentando ({intento}/{self.max_reintentos})")

    def _crear(self, input_dto: CrearTicketInputDTO, prioridad: PrioridadEntity) -> TicketOutputDTO:
        with self.uow:
            ticket = TicketEntity.crear(
                numero_ticket=self.generador_codigo.generar(),
                asunto=input_dto.asunto,
                descripcion=input_dto.descripcion,
                id_departamento=input_dto.id_departamento,
                id_prioridad=prioridad.id,
                nivel_prioridad=prioridad.nivel,
                id_solicitante=input_dto.id_solicitante,
            )
            ticket.asignado_a = self._asignacion_automatica(ticket)

            ticket = self.ticket_repo.save(ticket)

            self.uow.publish_event(
                TicketCreadoEvent(
                    aggregate_id=ticket.id,
                    numero_ticket=ticket.numero_ticket,
                    id_solicitante=ticket.id_solicitante,
                    id_departamento=ticket.id_departamento,
                    id_prioridad=ticket.id_prioridad,
                    fecha_vencimiento=ticket.fecha_vencimiento.isoformat(),
                )
            )

        logger.info(f"Ticket creado: {ticket.numero_ticket} (id={ticket.id})")
        return TicketOutputDTO.from_entity(ticket)

    def _asignacion_automatica(self, ticket: TicketEntity) -> Optional[int]:
        """Punto de extensión: responsable inicial. Por ahora los tickets nacen sin asignar."""
        return None


# =============================================================================
# Consultas
# =============================================================================

class ListarTicketsService:
    """
    Use Case: listar tickets, más recientes primero.

    Sin solicitante lista todos; con solicitante, sólo los suyos
    ("mis tickets").
    """

    def __init__(self, ticket_repo: TicketRepository):
        self.ticket_repo = ticket_repo

    def execute(self, id_solicitante: Optional[int] = None) -> List[TicketOutputDTO]:
        filtro = FiltroTickets(id_solicitante=id_solicitante, orden=OrdenTickets.RECIENTES)
        return [TicketOutputDTO.from_entity(t) for t in self.ticket_repo.list_by_filtro(filtro)]


class ObtenerTicketService:
    """Use Case: detalle de un ticket."""

    def __init__(self, ticket_repo: TicketRepository, politica: Optional[PoliticaAccesoTickets] = None):
        self.ticket_repo = ticket_repo
        self.politica = politica or PoliticaAccesoTickets()

    def execute(self, ticket_id: int, usuario: Optional[ContextoUsuario] = None) -> TicketOutputDTO:
        """
        Raises:
            EntityNotFoundError: Si el ticket no existe
            AccessDeniedError: Si el usuario no puede leerlo
        """
        ticket = _obtener_ticket(self.ticket_repo, ticket_id)
        self.politica.verificar(usuario, ticket, Accion.LEER)
        return TicketOutputDTO.from_entity(ticket)


# =============================================================================
# Actualizar / Eliminar
# =============================================================================

class ActualizarTicketService:
    """
    Use Case: actualización parcial de un ticket.

    Sólo se aplican y validan los campos enviados. Pasar a Resuelto
    o Cerrado sella la fecha correspondiente; la fecha de vencimiento
    no se recalcula aunque cambie la prioridad.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        datos_repo: DatosMaestrosRepository,
        usuario_repo: UsuarioRepository,
        uow: UnitOfWork,
        politica: Optional[PoliticaAccesoTickets] = None,
    ):
        self.ticket_repo = ticket_repo
        self.datos_repo = datos_repo
        self.usuario_repo = usuario_repo
        self.uow = uow
        self.politica = politica or PoliticaAccesoTickets()

    def execute(
        self,
        ticket_id: int,
        input_dto: ActualizarTicketInputDTO,
        usuario: Optional[ContextoUsuario] = None,
    ) -> TicketOutputDTO:
        """
        Raises:
            EntityNotFoundError: Si el ticket no existe
            AccessDeniedError: Si el usuario no puede modificarlo
            ValidationError: Si un texto es inválido
            InvalidReferenceError: Prioridad, estado o responsable inexistentes
            InvalidOperationError: Si se intenta quitar el responsable
        """
        with self.uow:
            ticket = _obtener_ticket(self.ticket_repo, ticket_id)
            self.politica.verificar(usuario, ticket, Accion.MODIFICAR)

            self._validar_referencias(ticket, input_dto)

            cambios = ticket.actualizar(
                asunto=input_dto.asunto,
                descripcion=input_dto.descripcion,
                id_prioridad=input_dto.id_prioridad,
                id_estado=input_dto.id_estado,
                asignado_a=input_dto.asignado_a,
            )

            self.ticket_repo.save(ticket)

            if cambios:
                self.uow.publish_event(
                    TicketActualizadoEvent(
                        aggregate_id=ticket.id,
                        numero_ticket=ticket.numero_ticket,
                        campos=cambios,
                        id_estado=int(ticket.id_estado),
                        actualizado_por=usuario.id_usuario if usuario else None,
                    )
                )

        logger.info(f"Ticket {ticket.numero_ticket} actualizado: {cambios or 'sin cambios'}")
        return TicketOutputDTO.from_entity(ticket)

    def _validar_referencias(self, ticket: TicketEntity, input_dto: ActualizarTicketInputDTO) -> None:
        if input_dto.quitar_asignado and ticket.asignado_a is not None:
            raise InvalidOperationError(
                "El responsable sólo se quita al derivar el ticket"
            )

        if input_dto.id_prioridad is not None:
            _prioridad(self.datos_repo, input_dto.id_prioridad)

        if input_dto.id_estado is not None and not self.datos_repo.get_estado(input_dto.id_estado):
            raise InvalidReferenceError("Estado inválido", field="id_estado")

        if input_dto.asignado_a is not None and not self.usuario_repo.get_by_id(input_dto.asignado_a):
            raise InvalidReferenceError("Responsable inválido", field="asignado_a")


class EliminarTicketService:
    """Use Case: borrado físico de un ticket (solicitante o administrador)."""

    def __init__(
        self,
        ticket_repo: TicketRepository,
        uow: UnitOfWork,
        politica: Optional[PoliticaAccesoTickets] = None,
    ):
        self.ticket_repo = ticket_repo
        self.uow = uow
        self.politica = politica or PoliticaAccesoTickets()

    def execute(self, ticket_id: int, usuario: Optional[ContextoUsuario] = None) -> None:
        """
        Raises:
            EntityNotFoundError: Si el ticket no existe
            AccessDeniedError: Si el usuario no es el solicitante ni administrador
        """
        with self.uow:
            ticket = _obtener_ticket(self.ticket_repo, ticket_id)
            self.politica.verificar(usuario, ticket, Accion.ELIMINAR)

            self.ticket_repo.delete(ticket.id)

            self.uow.publish_event(
                TicketEliminadoEvent(
                    aggregate_id=ticket.id,
                    numero_ticket=ticket.numero_ticket,
                    eliminado_por=usuario.id_usuario if usuario else None,
                )
            )

        logger.info(f"Ticket eliminado: {ticket.numero_ticket}")


# =============================================================================
# Tomar / Derivar
# =============================================================================

class TomarTicketService:
    """
    Use Case: un agente toma el ticket.

    Reglas:
    - El agente existe y es administrador o responsable
    - Si otro agente ya lo tiene: conflicto
    - Si el mismo agente ya lo tiene: éxito sin cambios
    - Queda En Proceso
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        usuario_repo: UsuarioRepository,
        uow: UnitOfWork,
        politica: Optional[PoliticaAccesoTickets] = None,
    ):
        self.ticket_repo = ticket_repo
        self.usuario_repo = usuario_repo
        self.uow = uow
        self.politica = politica or PoliticaAccesoTickets()

    def execute(self, ticket_id: int, id_agente: int) -> TicketOutputDTO:
        """
        Raises:
            EntityNotFoundError: Si el ticket no existe
            InvalidReferenceError: Si el agente no existe
            AccessDeniedError: Si el agente no gestiona tickets
            ConflictError: Si otro agente ya tomó el ticket
        """
        with self.uow:
            ticket = _obtener_ticket(self.ticket_repo, ticket_id)
            _agente(self.usuario_repo, self.politica, id_agente)

            if ticket.tomar(id_agente):
                self.ticket_repo.save(ticket)
                self.uow.publish_event(
                    TicketTomadoEvent(
                        aggregate_id=ticket.id,
                        numero_ticket=ticket.numero_ticket,
                        id_agente=id_agente,
                        id_solicitante=ticket.id_solicitante,
                    )
                )
                logger.info(f"Ticket {ticket.numero_ticket} tomado por {id_agente}")
            else:
                logger.debug(f"Ticket {ticket.numero_ticket} ya estaba asignado a {id_agente}")

        return TicketOutputDTO.from_entity(ticket)


class DerivarTicketService:
    """
    Use Case: transferir un ticket a otro departamento.

    El ticket queda sin responsable y en estado Nuevo. La derivación
    se registra en la auditoría dentro de la misma transacción.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        datos_repo: DatosMaestrosRepository,
        usuario_repo: UsuarioRepository,
        uow: UnitOfWork,
        politica: Optional[PoliticaAccesoTickets] = None,
    ):
        self.ticket_repo = ticket_repo
        self.datos_repo = datos_repo
        self.usuario_repo = usuario_repo
        self.uow = uow
        self.politica = politica or PoliticaAccesoTickets()

    def execute(self, ticket_id: int, input_dto: DerivarTicketInputDTO) -> DerivacionOutputDTO:
        """
        Raises:
            EntityNotFoundError: Si el ticket no existe
            InvalidReferenceError: Destino inexistente o inactivo, o agente inexistente
            AccessDeniedError: Si el agente no gestiona tickets
            InvalidOperationError: Si el destino es el departamento actual
        """
        with self.uow:
            ticket = _obtener_ticket(self.ticket_repo, ticket_id)
            _departamento_activo(self.datos_repo, input_dto.id_departamento_destino)
            _agente(self.usuario_repo, self.politica, input_dto.id_agente)

            momento = ahora()
            origen = ticket.derivar(input_dto.id_departamento_destino, momento)
            self.ticket_repo.save(ticket)

            derivacion = self.ticket_repo.save_derivacion(
                DerivacionTicket(
                    id_ticket=ticket.id,
                    id_departamento_origen=origen,
                    id_departamento_destino=input_dto.id_departamento_destino,
                    motivo=(input_dto.motivo or "").strip(),
                    id_agente=input_dto.id_agente,
                    fecha=momento,
                )
            )

            self.uow.publish_event(
                TicketDerivadoEvent(
                    aggregate_id=ticket.id,
                    numero_ticket=ticket.numero_ticket,
                    id_departamento_origen=origen,
                    id_departamento_destino=input_dto.id_departamento_destino,
                    motivo=derivacion.motivo,
                    id_agente=input_dto.id_agente,
                )
            )

        logger.info(
            f"Ticket {ticket.numero_ticket} derivado de {origen} a "
            f"{input_dto.id_departamento_destino} por {input_dto.id_agente}"
        )
        return DerivacionOutputDTO(
            ticket=TicketOutputDTO.from_entity(ticket),
            id_departamento_origen=origen,
            id_departamento_destino=derivacion.id_departamento_destino,
            motivo=derivacion.motivo,
            id_agente=derivacion.id_agente,
            fecha=derivacion.fecha,
        )


# =============================================================================
# Listas de agente
# =============================================================================

class _ListaAgenteService:
    """
    Base de las listas de agente.

    Administradores (o llamadas internas sin agente) ven todo; los
    demás agentes ven los tickets de su departamento y los asignados a ellos.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        usuario_repo: UsuarioRepository,
        politica: Optional[PoliticaAccesoTickets] = None,
    ):
        self.ticket_repo = ticket_repo
        self.usuario_repo = usuario_repo
        self.politica = politica or PoliticaAccesoTickets()

    def execute(self, id_agente: Optional[int] = None) -> List[TicketOutputDTO]:
        filtro = self._filtro(self._ambito(id_agente))
        return [TicketOutputDTO.from_entity(t) for t in self.ticket_repo.list_by_filtro(filtro)]

    def _ambito(self, id_agente: Optional[int]) -> Optional[AmbitoAgente]:
        if id_agente is None:
            return None

        agente = _agente(self.usuario_repo, self.politica, id_agente)

        if agente.contexto().es_administrador:
            return None

        return AmbitoAgente(id_usuario=agente.id, id_departamento=agente.id_departamento)

    def _filtro(self, ambito: Optional[AmbitoAgente]) -> FiltroTickets:
        raise NotImplementedError


class ListarTicketsAbiertosService(_ListaAgenteService):
    """Use Case: tickets Nuevos, En Proceso o Escalados; más urgentes primero."""

    def _filtro(self, ambito: Optional[AmbitoAgente]) -> FiltroTickets:
        return FiltroTickets(
            ids_estado=tuple(sorted(ESTADOS_ABIERTOS)),
            ambito=ambito,
            orden=OrdenTickets.PRIORIDAD_VENCIMIENTO,
        )


class ListarTicketsCerradosService(_ListaAgenteService):
    """Use Case: tickets Resueltos o Cerrados, por prioridad y antigüedad."""

    def _filtro(self, ambito: Optional[AmbitoAgente]) -> FiltroTickets:
        return FiltroTickets(
            ids_estado=tuple(sorted(ESTADOS_CERRADOS)),
            ambito=ambito,
            orden=OrdenTickets.PRIORIDAD_CREACION,
        )


class ListarTicketsVencidosService(_ListaAgenteService):
    """
    Use Case: tickets abiertos vencidos o por vencer.

    Incluye los que vencen dentro de las próximas 24 horas.
    """

    def _filtro(self, ambito: Optional[AmbitoAgente]) -> FiltroTickets:
        return FiltroTickets(
            ids_estado=tuple(sorted(ESTADOS_ABIERTOS)),
            ambito=ambito,
            vencimiento_antes_de=ahora() + HORIZONTE_VENCIMIENTO,
            orden=OrdenTickets.PRIORIDAD_VENCIMIENTO,
        )
