"""
Event Handlers - Procesadores de Eventos de Dominio.

Se ejecutan de forma asíncrona vía Celery cuando se publican
eventos de dominio (modo 'celery').

Tipos de handlers:
- Notificación: avisar a solicitantes, agentes y departamentos
- Métricas: contadores de tickets creados, tomados, derivados
- Programados (beat): tickets vencidos, limpieza del Event Store

Las notificaciones sólo se registran en el log; el envío real
(correo, push) queda fuera del sistema.

Patrón:
    @shared_task(bind=True, ...)
    def handle_<evento>(self, event_data: dict) -> None:
        ...
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from celery import shared_task

from mesa_ayuda.core.shared.tiempo import ahora

logger = logging.getLogger(__name__)


def _datos(event_data: Dict[str, Any]) -> Dict[str, Any]:
    return event_data.get('data', {})


# =============================================================================
# Event Handlers - Tickets
# =============================================================================

@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    acks_late=True,
)
def handle_ticket_creado(self, event_data: Dict[str, Any]) -> None:
    """
    Handler de TicketCreadoEvent.

    Acciones:
    - Avisar al departamento que recibió el ticket
    - Registrar métrica por prioridad
    """
    try:
        ticket_id = event_data.get('aggregate_id')
        datos = _datos(event_data)
        numero = datos.get('numero_ticket')

        logger.info(
            f"[HANDLER] TicketCreado: {numero} (id={ticket_id}) | "
            f"Solicitante: {datos.get('id_solicitante')} | "
            f"Vence: {datos.get('fecha_vencimiento')}"
        )

        notificar_departamento.delay(
            id_departamento=datos.get('id_departamento'),
            mensaje=f"Nuevo ticket {numero}",
        )

        registrar_metrica.delay(
            nombre='tickets_creados',
            valor=1,
            tags={'id_prioridad': str(datos.get('id_prioridad'))},
        )

    except Exception as e:
        logger.error(f"Error en el handler TicketCreado: {e}", exc_info=True)
        raise


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    acks_late=True,
)
def handle_ticket_actualizado(self, event_data: Dict[str, Any]) -> None:
    """Handler de TicketActualizadoEvent: registra los campos modificados."""
    try:
        datos = _datos(event_data)

        logger.info(
            f"[HANDLER] TicketActualizado: {datos.get('numero_ticket')} | "
            f"Campos: {datos.get('campos')} | Por: {datos.get('actualizado_por')}"
        )

        if 'id_estado' in (datos.get('campos') or []):
            registrar_metrica.delay(
                nombre='tickets_cambio_estado',
                valor=1,
                tags={'id_estado': str(datos.get('id_estado'))},
            )

    except Exception as e:
        logger.error(f"Error en el handler TicketActualizado: {e}", exc_info=True)
        raise


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    acks_late=True,
)
def handle_ticket_eliminado(self, event_data: Dict[str, Any]) -> None:
    try:
        datos = _datos(event_data)

        logger.info(
            f"[HANDLER] TicketEliminado: {datos.get('numero_ticket')} | "
            f"Por: {datos.get('eliminado_por')}"
        )

        registrar_metrica.delay(nombre='tickets_eliminados', valor=1, tags={})

    except Exception as e:
        logger.error(f"Error en el handler TicketEliminado: {e}", exc_info=True)
        raise


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    acks_late=True,
)
def handle_ticket_tomado(self, event_data: Dict[str, Any]) -> None:
    """
    Handler de TicketTomadoEvent.

    Acciones:
    - Avisar al solicitante que su ticket está en proceso
    """
    try:
        datos = _datos(event_data)
        numero = datos.get('numero_ticket')

        logger.info(f"[HANDLER] TicketTomado: {numero} | Agente: {datos.get('id_agente')}")

        notificar_usuario.delay(
            id_usuario=datos.get('id_solicitante'),
            mensaje=f"Su ticket {numero} está siendo atendido",
        )

        registrar_metrica.delay(nombre='tickets_tomados', valor=1, tags={})

    except Exception as e:
        logger.error(f"Error en el handler TicketTomado: {e}", exc_info=True)
        raise


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    acks_late=True,
)
def handle_ticket_derivado(self, event_data: Dict[str, Any]) -> None:
    """
    Handler de TicketDerivadoEvent.

    Acciones:
    - Avisar al departamento de destino
    - Registrar métrica origen → destino
    """
    try:
        datos = _datos(event_data)
        numero = datos.get('numero_ticket')
        origen = datos.get('id_departamento_origen')
        destino = datos.get('id_departamento_destino')

        logger.info(
            f"[HANDLER] TicketDerivado: {numero} | {origen} -> {destino} | "
            f"Motivo: {datos.get('motivo') or '-'}"
        )

        notificar_departamento.delay(
            id_departamento=destino,
            mensaje=f"Ticket {numero} derivado desde el departamento {origen}",
        )

        registrar_metrica.delay(
            nombre='tickets_derivados',
            valor=1,
            tags={'origen': str(origen), 'destino': str(destino)},
        )

    except Exception as e:
        logger.error(f"Error en el handler TicketDerivado: {e}", exc_info=True)
        raise


# =============================================================================
# Event Dispatcher (Router)
# =============================================================================

@shared_task(bind=True, max_retries=5, default_retry_delay=30, autoretry_for=(Exception,))
def dispatch_domain_event(self, event_type: str, event_data: Dict[str, Any]) -> None:
    """
    Dispatcher central de Domain Events.

    Enruta cada evento a su handler. Es el punto de entrada de
    CeleryEventPublisher.

    Args:
        event_type: Tipo del evento (ej: 'TicketCreadoEvent')
        event_data: Evento serializado con to_dict()
    """
    handlers = {
        'TicketCreadoEvent': handle_ticket_creado,
        'TicketActualizadoEvent': handle_ticket_actualizado,
        'TicketEliminadoEvent': handle_ticket_eliminado,
        'TicketTomadoEvent': handle_ticket_tomado,
        'TicketDerivadoEvent': handle_ticket_derivado,
    }

    handler = handlers.get(event_type)

    if handler:
        logger.info(f"[DISPATCHER] Enrutando {event_type}")
        handler.delay(event_data)
    else:
        logger.warning(f"[DISPATCHER] Sin handler para {event_type}")


# =============================================================================
# Notificaciones
# =============================================================================

@shared_task(bind=True, max_retries=3, default_retry_delay=120)
def notificar_usuario(self, id_usuario: Optional[int], mensaje: str, canal: str = 'email') -> None:
    logger.info(f"[NOTIFICACION] {canal.upper()} para usuario {id_usuario}: {mensaje}")


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def notificar_departamento(
    self,
    id_departamento: Optional[int],
    mensaje: str,
    prioridad: str = 'normal',
) -> None:
    logger.info(f"[NOTIFICACION] Departamento {id_departamento} [{prioridad}]: {mensaje}")


# =============================================================================
# Métricas
# =============================================================================

@shared_task(bind=True, ignore_result=True)
def registrar_metrica(self, nombre: str, valor: float, tags: Optional[Dict[str, str]] = None) -> None:
    logger.info(f"[METRICA] {nombre}={valor} | tags={tags or {}}")


# =============================================================================
# Tareas programadas (Beat)
# =============================================================================

@shared_task(bind=True)
def revisar_tickets_vencidos(self) -> int:
    """
    Informa los tickets abiertos vencidos o por vencer.

    Ejecutada cada hora por Celery Beat. Usa la misma consulta que
    GET /api/tickets/vencidos/ sin restricción de agente.

    Returns:
        Cantidad de tickets encontrados
    """
    logger.info("[PROGRAMADA] Revisando tickets vencidos...")

    try:
        from mesa_ayuda.config.container import get_container

        vencidos = get_container().services.listar_vencidos_service().execute()

        logger.info(f"[PROGRAMADA] {len(vencidos)} tickets vencidos o por vencer")

        for ticket in vencidos:
            notificar_departamento.delay(
                id_departamento=ticket.id_departamento,
                mensaje=f"Ticket {ticket.numero_ticket} vence {ticket.fecha_vencimiento.isoformat()}",
                prioridad='alta',
            )

        registrar_metrica.delay(nombre='tickets_vencidos', valor=len(vencidos), tags={})

        return len(vencidos)

    except Exception as e:
        logger.error(f"Error al revisar tickets vencidos: {e}", exc_info=True)
        return 0


@shared_task(bind=True)
def limpiar_eventos_antiguos(self, dias: int = 90) -> int:
    """
    Borra del Event Store los eventos con más de `dias` días.

    Ejecutada semanalmente por Celery Beat.

    Returns:
        Cantidad de eventos borrados
    """
    logger.info(f"[PROGRAMADA] Limpiando eventos con más de {dias} días...")

    try:
        from mesa_ayuda.adapters.django_app.tickets.models import DomainEventModel

        limite = ahora() - timedelta(days=dias)
        borrados, _ = DomainEventModel.objects.filter(occurred_at__lt=limite).delete()

        logger.info(f"[PROGRAMADA] {borrados} eventos borrados")
        return borrados

    except Exception as e:
        logger.error(f"Error al limpiar eventos: {e}", exc_info=True)
        return 0
