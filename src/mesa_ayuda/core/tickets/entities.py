"""
Entidades del Dominio de Tickets.

Entidades:
- TicketEntity: Agregado principal
- EstadoTicket: IDs de los estados conocidos
- NivelPrioridad: Niveles de prioridad

Reglas de negocio encapsuladas:
- Validación de asunto y descripción antes de persistir
- Vencimiento derivado del nivel de prioridad al crear (nunca del usuario)
- Tomar: asigna responsable y pasa a En Proceso
- Derivar: cambia departamento, limpia responsable y vuelve a Nuevo
- Resolver / cerrar: sellan su fecha la primera vez
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import ClassVar, FrozenSet, List, Optional

from mesa_ayuda.core.shared.exceptions import (
    ValidationError,
    ConflictError,
    InvalidOperationError,
)
from mesa_ayuda.core.shared.tiempo import ahora

from .sla import calcular_fecha_vencimiento


class EstadoTicket(IntEnum):
    """
    Estados del ciclo de vida (IDs de la tabla de estados).

    Flujo habitual:
        NUEVO → EN_PROCESO → RESUELTO → CERRADO
                    ↓
                ESCALADO

    Derivar siempre devuelve el ticket a NUEVO. No se impone una
    máquina de estados: la actualización acepta cualquier estado existente.
    """

    NUEVO = 1
    EN_PROCESO = 2
    ESCALADO = 3
    RESUELTO = 4
    CERRADO = 5


ESTADOS_ABIERTOS: FrozenSet[int] = frozenset({
    EstadoTicket.NUEVO,
    EstadoTicket.EN_PROCESO,
    EstadoTicket.ESCALADO,
})

ESTADOS_CERRADOS: FrozenSet[int] = frozenset({
    EstadoTicket.RESUELTO,
    EstadoTicket.CERRADO,
})


class NivelPrioridad(IntEnum):
    """Nivel de prioridad (1 = más urgente)."""

    ALTA = 1
    MEDIA = 2
    BAJA = 3


@dataclass
class TicketEntity:
    """
    Entidad de Dominio: Ticket.

    Invariantes:
    - Un departamento, una prioridad, un estado y un solicitante
    - El código (numero_ticket) es único e inmutable
    - La fecha de vencimiento se deriva del nivel de prioridad al crear
    - El responsable sólo se limpia al derivar (que además vuelve a Nuevo)

    Attributes:
        id: ID numérico asignado por la base de datos (None antes de guardar)
        numero_ticket: Código legible (TK + año + mes + secuencia)
        asunto: Asunto (5 a 150 caracteres)
        descripcion: Descripción (mínimo 10 caracteres)
        id_departamento: Departamento que atiende
        id_prioridad: Prioridad elegida
        id_estado: Estado actual
        id_solicitante: Usuario que creó el ticket
        asignado_a: Responsable (opcional)
        fecha_creacion: Asignada por el servidor una sola vez
        fecha_vencimiento: Plazo de respuesta (SLA)
        fecha_resolucion: Primera vez que pasó a Resuelto
        fecha_cierre: Primera vez que pasó a Cerrado
        fecha_actualizacion: Última modificación

    Example:
        ticket = TicketEntity.crear(
            numero_ticket="TK202507001",
            asunto="Servidor de correo caído",
            descripcion="El relay SMTP falla desde las 9am",
            id_departamento=3,
            id_prioridad=1,
            nivel_prioridad=1,
            id_solicitante=42,
        )
        ticket.tomar(7)
    """

    numero_ticket: str
    asunto: str
    descripcion: str
    id_departamento: int
    id_prioridad: int
    id_solicitante: int
    id_estado: int = EstadoTicket.NUEVO
    asignado_a: Optional[int] = None
    id: Optional[int] = None

    fecha_creacion: datetime = field(default_factory=ahora)
    fecha_vencimiento: Optional[datetime] = None
    fecha_resolucion: Optional[datetime] = None
    fecha_cierre: Optional[datetime] = None
    fecha_actualizacion: Optional[datetime] = None

    ASUNTO_MIN_LENGTH: ClassVar[int] = 5
    ASUNTO_MAX_LENGTH: ClassVar[int] = 150
    DESCRIPCION_MIN_LENGTH: ClassVar[int] = 10
    DESCRIPCION_MAX_LENGTH: ClassVar[int] = 5000

    @classmethod
    def crear(
        cls,
        numero_ticket: str,
        asunto: str,
        descripcion: str,
        id_departamento: int,
        id_prioridad: int,
        nivel_prioridad: int,
        id_solicitante: int,
        momento: Optional[datetime] = None,
    ) -> "TicketEntity":
        """
        Factory method: crea un ticket nuevo con sus validaciones.

        Args:
            numero_ticket: Código generado
            asunto: Asunto (se recorta)
            descripcion: Descripción (se recorta)
            id_departamento: Departamento ya validado
            id_prioridad: Prioridad ya validada
            nivel_prioridad: Nivel de esa prioridad (define el SLA)
            id_solicitante: Solicitante ya validado
            momento: Instante de creación (por defecto, ahora)

        Raises:
            ValidationError: Si asunto o descripción son inválidos
        """
        cls.validar_asunto(asunto)
        cls.validar_descripcion(descripcion)

        momento = momento or ahora()

        return cls(
            numero_ticket=numero_ticket,
            asunto=asunto.strip(),
            descripcion=descripcion.strip(),
            id_departamento=id_departamento,
            id_prioridad=id_prioridad,
            id_solicitante=id_solicitante,
            id_estado=EstadoTicket.NUEVO,
            asignado_a=None,
            fecha_creacion=momento,
            fecha_vencimiento=calcular_fecha_vencimiento(nivel_prioridad, momento),
        )

    @classmethod
    def validar_asunto(cls, asunto: Optional[str]) -> None:
        if asunto is not None and not isinstance(asunto, str):
            raise ValidationError("El asunto debe ser texto", field="asunto")

        if not asunto or not asunto.strip():
            raise ValidationError("El asunto es obligatorio", field="asunto")

        asunto_limpio = asunto.strip()

        if len(asunto_limpio) < cls.ASUNTO_MIN_LENGTH:
            raise ValidationError(
                f"El asunto debe tener al menos {cls.ASUNTO_MIN_LENGTH} caracteres",
                field="asunto"
            )

        if len(asunto_limpio) > cls.ASUNTO_MAX_LENGTH:
            raise ValidationError(
                f"El asunto debe tener como máximo {cls.ASUNTO_MAX_LENGTH} caracteres",
                field="asunto"
            )

    @classmethod
    def validar_descripcion(cls, descripcion: Optional[str]) -> None:
        if descripcion is not None and not isinstance(descripcion, str):
            raise ValidationError("La descripción debe ser texto", field="descripcion")

        if not descripcion or not descripcion.strip():
            raise ValidationError("La descripción es obligatoria", field="descripcion")

        descripcion_limpia = descripcion.strip()

        if len(descripcion_limpia) < cls.DESCRIPCION_MIN_LENGTH:
            raise ValidationError(
                f"La descripción debe tener al menos {cls.DESCRIPCION_MIN_LENGTH} caracteres",
                field="descripcion"
            )

        if len(descripcion_limpia) > cls.DESCRIPCION_MAX_LENGTH:
            raise ValidationError(
                f"La descripción debe tener como máximo {cls.DESCRIPCION_MAX_LENGTH} caracteres",
                field="descripcion"
            )

    # =========================================================================
    # Transiciones
    # =========================================================================

    def tomar(self, id_agente: int, momento: Optional[datetime] = None) -> bool:
        """
        Asigna el ticket al agente y lo pasa a En Proceso.

        Si el agente ya es el responsable el estado igual vuelve a En
        Proceso; sólo es un no-op cuando ya estaba asignado y En Proceso.

        Returns:
            True si hubo cambio, False si no había nada que cambiar

        Raises:
            ConflictError: Si otro agente ya tomó el ticket
        """
        if self.asignado_a is not None and self.asignado_a != id_agente:
            raise ConflictError(
                f"El ticket {self.numero_ticket} ya fue tomado por otro agente",
                code="TICKET_YA_ASIGNADO",
            )

        if self.asignado_a == id_agente and self.id_estado == EstadoTicket.EN_PROCESO:
            return False

        self.asignado_a = id_agente
        self.id_estado = EstadoTicket.EN_PROCESO
        self._tocar(momento)
        return True

    def derivar(self, id_departamento_destino: int, momento: Optional[datetime] = None) -> int:
        """
        Transfiere el ticket a otro departamento.

        Limpia el responsable y vuelve el estado a Nuevo.

        Returns:
            El departamento de origen

        Raises:
            InvalidOperationError: Si el destino es el departamento actual
        """
        if id_departamento_destino == self.id_departamento:
            raise InvalidOperationError("El ticket ya pertenece al departamento de destino")

        origen = self.id_departamento
        self.id_departamento = id_departamento_destino
        self.asignado_a = None
        self.id_estado = EstadoTicket.NUEVO
        self._tocar(momento)
        return origen

    def actualizar(
        self,
        asunto: Optional[str] = None,
        descripcion: Optional[str] = None,
        id_prioridad: Optional[int] = None,
        id_estado: Optional[int] = None,
        asignado_a: Optional[int] = None,
        momento: Optional[datetime] = None,
    ) -> List[str]:
        """
        Aplica una actualización parcial (None = campo ausente).

        Las referencias (prioridad, estado, usuario) las valida el caso
        de uso; aquí sólo se validan los textos. El vencimiento no se
        recalcula al cambiar la prioridad.

        Returns:
            Nombres de los campos que cambiaron
        """
        momento = momento or ahora()
        cambios: List[str] = []

        if asunto is not None:
            self.validar_asunto(asunto)
            if asunto.strip() != self.asunto:
                self.asunto = asunto.strip()
                cambios.append("asunto")

        if descripcion is not None:
            self.validar_descripcion(descripcion)
            if descripcion.strip() != self.descripcion:
                self.descripcion = descripcion.strip()
                cambios.append("descripcion")

        if id_prioridad is not None and id_prioridad != self.id_prioridad:
            self.id_prioridad = id_prioridad
            cambios.append("id_prioridad")

        if asignado_a is not None and asignado_a != self.asignado_a:
            self.asignado_a = asignado_a
            cambios.append("asignado_a")

        if id_estado is not None and id_estado != self.id_estado:
            self.id_estado = id_estado
            cambios.append("id_estado")
            if id_estado == EstadoTicket.RESUELTO and self.fecha_resolucion is None:
                self.fecha_resolucion = momento
            if id_estado == EstadoTicket.CERRADO and self.fecha_cierre is None:
                self.fecha_cierre = momento

        self._tocar(momento)
        return cambios

    def _tocar(self, momento: Optional[datetime] = None) -> None:
        self.fecha_actualizacion = momento or ahora()

    # =========================================================================
    # Consultas
    # =========================================================================

    @property
    def esta_abierto(self) -> bool:
        return self.id_estado in ESTADOS_ABIERTOS

    @property
    def esta_asignado(self) -> bool:
        return self.asignado_a is not None

    def esta_vencido(self, momento: Optional[datetime] = None) -> bool:
        """Abierto y con la fecha de vencimiento ya pasada."""
        if not self.fecha_vencimiento or not self.esta_abierto:
            return False
        return (momento or ahora()) > self.fecha_vencimiento

    def __repr__(self) -> str:
        return (
            f"TicketEntity("
            f"id={self.id}, "
            f"numero_ticket={self.numero_ticket}, "
            f"asunto='{self.asunto[:20]}...', "
            f"id_estado={self.id_estado}"
            f")"
        )

    def __eq__(self, other: object) -> bool:
        """Igualdad por identidad: ID si existe, si no el código."""
        if not isinstance(other, TicketEntity):
            return False
        if self.id is not None and other.id is not None:
            return self.id == other.id
        return self.numero_ticket == other.numero_ticket

    def __hash__(self) -> int:
        return hash(self.numero_ticket)


@dataclass
class DerivacionTicket:
    """
    Registro de auditoría de una derivación.

    Guarda el ID del ticket sin relación de integridad para que el
    historial sobreviva al borrado físico del ticket.
    """

    id_ticket: int
    id_departamento_origen: int
    id_departamento_destino: int
    motivo: str
    id_agente: int
    fecha: datetime = field(default_factory=ahora)
    id: Optional[int] = None
