"""
Dominio de Tickets - ciclo de vida y SLA.

Contiene:
- Entidades (TicketEntity, EstadoTicket, NivelPrioridad, DerivacionTicket)
- Calculadora de SLA y generador de códigos
- Use Cases (crear, listar, obtener, actualizar, eliminar, tomar, derivar)
- Domain Events
- DTOs y criterios de consulta
- Ports (interfaces de repositorio)

Características del dominio:
- Vencimiento calculado por nivel de prioridad (4 / 24 / 72 horas)
- Código legible TK<año><mes><secuencia>, reiniciado cada mes
- Política de acceso por rol y propiedad
- Eventos publicados después del commit
"""

from .entities import (
    TicketEntity,
    DerivacionTicket,
    EstadoTicket,
    NivelPrioridad,
    ESTADOS_ABIERTOS,
    ESTADOS_CERRADOS,
)
from .events import (
    TicketCreadoEvent,
    TicketActualizadoEvent,
    TicketEliminadoEvent,
    TicketTomadoEvent,
    TicketDerivadoEvent,
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
from .ports import TicketRepository, GeneradorCodigoTicket, InMemoryTicketRepository
from .use_cases import (
    CrearTicketService,
    ListarTicketsService,
    ObtenerTicketService,
    ActualizarTicketService,
    EliminarTicketService,
    TomarTicketService,
    DerivarTicketService,
    ListarTicketsAbiertosService,
    ListarTicketsCerradosService,
    ListarTicketsVencidosService,
)

__all__ = [
    # Entities
    "TicketEntity",
    "DerivacionTicket",
    "EstadoTicket",
    "NivelPrioridad",
    "ESTADOS_ABIERTOS",
    "ESTADOS_CERRADOS",
    # Events
    "TicketCreadoEvent",
    "TicketActualizadoEvent",
    "TicketEliminadoEvent",
    "TicketTomadoEvent",
    "TicketDerivadoEvent",
    # DTOs
    "CrearTicketInputDTO",
    "ActualizarTicketInputDTO",
    "DerivarTicketInputDTO",
    "TicketOutputDTO",
    "DerivacionOutputDTO",
    "FiltroTickets",
    "OrdenTickets",
    "AmbitoAgente",
    # Ports
    "TicketRepository",
    "GeneradorCodigoTicket",
    "InMemoryTicketRepository",
    # Use Cases
    "CrearTicketService",
    "ListarTicketsService",
    "ObtenerTicketService",
    "ActualizarTicketService",
    "EliminarTicketService",
    "TomarTicketService",
    "DerivarTicketService",
    "ListarTicketsAbiertosService",
    "ListarTicketsCerradosService",
    "ListarTicketsVencidosService",
]
