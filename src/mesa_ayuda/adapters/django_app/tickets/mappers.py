"""
Mappers entre Entities (Core) y Models (Django).

Responsabilidades:
- TicketEntity ↔ TicketModel
- DerivacionTicket ↔ DerivacionTicketModel
- UsuarioEntity ↔ UsuarioModel
- Datos maestros: Model → Entity (sólo lectura)
- DomainEvent → DomainEventModel (Event Store)

Principios:
- Stateless, sin lógica de negocio
- Sólo conversión de datos; el save() lo hace el Repository
"""

from typing import List, Optional

from mesa_ayuda.core.acceso import Rol
from mesa_ayuda.core.datos_maestros import DepartamentoEntity, PrioridadEntity, EstadoEntity
from mesa_ayuda.core.shared.events import DomainEvent
from mesa_ayuda.core.tickets.entities import TicketEntity, DerivacionTicket
from mesa_ayuda.core.usuarios import UsuarioEntity

from .models import (
    TicketModel,
    DerivacionTicketModel,
    DepartamentoModel,
    PrioridadModel,
    EstadoModel,
    UsuarioModel,
    DomainEventModel,
)


class TicketMapper:
    """
    Mapper entre TicketEntity y TicketModel.

    - to_model(): Entity → Model (alta)
    - update_model(): copia los campos mutables sobre un Model existente
    - to_entity(): Model → Entity
    """

    @staticmethod
    def to_model(entity: TicketEntity) -> TicketModel:
        """
        Note:
            No llama a .save(); eso lo hace el Repository.
        """
        return TicketModel(
            id_ticket=entity.id,
            numero_ticket=entity.numero_ticket,
            asunto=entity.asunto,
            descripcion=entity.descripcion,
            departamento_id=entity.id_departamento,
            prioridad_id=entity.id_prioridad,
            estado_id=int(entity.id_estado),
            solicitante_id=entity.id_solicitante,
            asignado_a_id=entity.asignado_a,
            fecha_creacion=entity.fecha_creacion,
            fecha_vencimiento=entity.fecha_vencimiento,
            fecha_resolucion=entity.fecha_resolucion,
            fecha_cierre=entity.fecha_cierre,
            fecha_actualizacion=entity.fecha_actualizacion,
        )

    @staticmethod
    def to_entity(model: TicketModel) -> TicketEntity:
        """
        Note:
            No pasa por TicketEntity.crear(): los datos ya se validaron
            al crearse el ticket.
        """
        return TicketEntity(
            id=model.id_ticket,
            numero_ticket=model.numero_ticket,
            asunto=model.asunto,
            descripcion=model.descripcion,
            id_departamento=model.departamento_id,
            id_prioridad=model.prioridad_id,
            id_estado=model.estado_id,
            id_solicitante=model.solicitante_id,
            asignado_a=model.asignado_a_id,
            fecha_creacion=model.fecha_creacion,
            fecha_vencimiento=model.fecha_vencimiento,
            fecha_resolucion=model.fecha_resolucion,
            fecha_cierre=model.fecha_cierre,
            fecha_actualizacion=model.fecha_actualizacion,
        )

    @staticmethod
    def to_entity_list(models: List[TicketModel]) -> List[TicketEntity]:
        return [TicketMapper.to_entity(model) for model in models]

    @staticmethod
    def update_model(model: TicketModel, entity: TicketEntity) -> TicketModel:
        """
        Copia los campos mutables. numero_ticket, solicitante y
        fecha_creacion no se tocan.
        """
        model.asunto = entity.asunto
        model.descripcion = entity.descripcion
        model.departamento_id = entity.id_departamento
        model.prioridad_id = entity.id_prioridad
        model.estado_id = int(entity.id_estado)
        model.asignado_a_id = entity.asignado_a
        model.fecha_vencimiento = entity.fecha_vencimiento
        model.fecha_resolucion = entity.fecha_resolucion
        model.fecha_cierre = entity.fecha_cierre
        model.fecha_actualizacion = entity.fecha_actualizacion

        return model


class DerivacionMapper:

    @staticmethod
    def to_model(entity: DerivacionTicket) -> DerivacionTicketModel:
        return DerivacionTicketModel(
            id=entity.id,
            id_ticket=entity.id_ticket,
            id_departamento_origen=entity.id_departamento_origen,
            id_departamento_destino=entity.id_departamento_destino,
            motivo=entity.motivo,
            id_agente=entity.id_agente,
            fecha=entity.fecha,
        )

    @staticmethod
    def to_entity(model: DerivacionTicketModel) -> DerivacionTicket:
        return DerivacionTicket(
            id=model.id,
            id_ticket=model.id_ticket,
            id_departamento_origen=model.id_departamento_origen,
            id_departamento_destino=model.id_departamento_destino,
            motivo=model.motivo,
            id_agente=model.id_agente,
            fecha=model.fecha,
        )


class DatosMaestrosMapper:
    """Datos maestros: sólo lectura desde el Core."""

    @staticmethod
    def departamento(model: DepartamentoModel) -> DepartamentoEntity:
        return DepartamentoEntity(
            id=model.id_departamento,
            nombre=model.nombre_departamento,
            descripcion=model.descripcion,
            activo=model.activo,
        )

    @staticmethod
    def prioridad(model: PrioridadModel) -> PrioridadEntity:
        return PrioridadEntity(
            id=model.id_prioridad,
            nombre=model.nombre_prioridad,
            nivel=model.nivel,
            color_hex=model.color_hex,
        )

    @staticmethod
    def estado(model: EstadoModel) -> EstadoEntity:
        return EstadoEntity(
            id=model.id_estado,
            nombre=model.nombre_estado,
            descripcion=model.descripcion,
            color_hex=model.color_hex,
        )


class UsuarioMapper:
    """Mapper entre UsuarioEntity y UsuarioModel."""

    @staticmethod
    def to_entity(model: UsuarioModel) -> UsuarioEntity:
        return UsuarioEntity(
            id=model.id_usuario,
            nombre=model.nombre,
            apellido=model.apellido,
            correo=model.correo,
            rut=model.rut,
            rol=Rol(model.rol),
            id_departamento=model.departamento_id,
            activo=model.activo,
            fecha_creacion=model.fecha_creacion,
        )

    @staticmethod
    def to_model(entity: UsuarioEntity) -> UsuarioModel:
        model = UsuarioModel(id_usuario=entity.id)
        UsuarioMapper.update_model(model, entity)
        if entity.fecha_creacion is not None:
            model.fecha_creacion = entity.fecha_creacion
        return model

    @staticmethod
    def update_model(model: UsuarioModel, entity: UsuarioEntity) -> None:
        model.nombre = entity.nombre
        model.apellido = entity.apellido
        model.correo = entity.correo
        model.rut = entity.rut
        model.rol = int(entity.rol)
        model.departamento_id = entity.id_departamento
        model.activo = entity.activo


class DomainEventMapper:
    """Mapper entre DomainEvent y DomainEventModel (Event Store)."""

    @staticmethod
    def to_model(
        event: DomainEvent,
        sequence: int = 0,
        user_id: Optional[str] = None,
    ) -> DomainEventModel:
        return DomainEventModel(
            event_id=event.event_id,
            event_type=event.event_type,
            aggregate_type=event.aggregate_type,
            aggregate_id=event.aggregate_id,
            event_data=event._get_event_data(),
            version=event.version,
            sequence=sequence,
            occurred_at=event.occurred_at,
            user_id=user_id,
        )
