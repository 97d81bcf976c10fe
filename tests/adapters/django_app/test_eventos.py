"""
Tests de publicadores y handlers de eventos.

Los handlers de Celery se llaman directamente; las tareas que
disparan (.delay) se reemplazan con mocks.
"""

import logging
import pytest
from datetime import timedelta
from unittest.mock import Mock, patch

from mesa_ayuda.adapters.django_app.events import handlers
from mesa_ayuda.adapters.django_app.events.publishers import (
    LoggingEventPublisher,
    CeleryEventPublisher,
    InMemoryEventPublisher,
    CompositeEventPublisher,
    get_event_publisher,
)
from mesa_ayuda.core.tickets.events import (
    TicketCreadoEvent,
    TicketTomadoEvent,
    TicketDerivadoEvent,
    TicketActualizadoEvent,
)

HANDLERS = 'mesa_ayuda.adapters.django_app.events.handlers'


@pytest.fixture
def evento_creado():
    return TicketCreadoEvent(
        aggregate_id=10,
        numero_ticket="TK202507001",
        id_solicitante=42,
        id_departamento=3,
        id_prioridad=1,
        fecha_vencimiento="2025-07-01T13:00:00+00:00",
    )


# =============================================================================
# Eventos
# =============================================================================

class TestEventosDeTicket:

    def test_to_dict_anida_los_datos(self, evento_creado):
        data = evento_creado.to_dict()

        assert data['event_type'] == 'TicketCreadoEvent'
        assert data['aggregate_id'] == '10'
        assert data['aggregate_type'] == 'Ticket'
        assert data['data']['numero_ticket'] == "TK202507001"

    def test_from_dict(self, evento_creado):
        copia = TicketCreadoEvent.from_dict(evento_creado.to_dict())

        assert copia.event_id == evento_creado.event_id
        assert copia.id_departamento == 3

    def test_aggregate_id_obligatorio(self):
        with pytest.raises(ValueError):
            TicketTomadoEvent(numero_ticket="TK202507001")


# =============================================================================
# Publishers
# =============================================================================

class TestPublishers:

    def test_in_memory_guarda_y_filtra(self, evento_creado):
        publisher = InMemoryEventPublisher()
        tomado = TicketTomadoEvent(aggregate_id=10, id_agente=7)

        publisher.publish_batch([evento_creado, tomado])

        assert len(publisher.published_events) == 2
        assert publisher.get_events_by_type('TicketTomadoEvent') == [tomado]

        publisher.clear()
        assert publisher.published_events == []

    def test_logging_publisher_registra_y_llama_handlers(self, evento_creado, caplog):
        publisher = LoggingEventPublisher()
        recibidos = []
        publisher.register_handler('TicketCreadoEvent', recibidos.append)

        with caplog.at_level(logging.INFO):
            publisher.publish(evento_creado)

        assert recibidos == [evento_creado]
        assert "[EVENT] TicketCreadoEvent" in caplog.text

    def test_handler_que_falla_no_corta_la_publicacion(self, evento_creado):
        """Debe seguir con los demás handlers si uno lanza excepción."""
        publisher = InMemoryEventPublisher()
        segundo = Mock()
        publisher.register_handler('TicketCreadoEvent', Mock(side_effect=RuntimeError("falla")))
        publisher.register_handler('TicketCreadoEvent', segundo)

        publisher.publish(evento_creado)

        segundo.assert_called_once_with(evento_creado)

    def test_composite_reparte(self, evento_creado):
        primero, segundo = InMemoryEventPublisher(), InMemoryEventPublisher()
        composite = CompositeEventPublisher([primero])
        composite.add_publisher(segundo)

        composite.publish(evento_creado)

        assert primero.published_events == segundo.published_events == [evento_creado]

    def test_celery_publisher_despacha(self, evento_creado):
        with patch(f'{HANDLERS}.dispatch_domain_event') as mock_dispatch:
            CeleryEventPublisher(also_log=False).publish(evento_creado)

        mock_dispatch.delay.assert_called_once_with('TicketCreadoEvent', evento_creado.to_dict())

    def test_celery_publisher_broker_caido(self, evento_creado, caplog):
        """Debe registrar el error sin propagarlo."""
        with patch(f'{HANDLERS}.dispatch_domain_event') as mock_dispatch:
            mock_dispatch.delay.side_effect = ConnectionError("broker caído")
            CeleryEventPublisher().publish(evento_creado)

        assert "Falló la publicación del evento en Celery" in caplog.text

    def test_factory(self):
        assert isinstance(get_event_publisher(use_celery=True), CeleryEventPublisher)
        assert isinstance(get_event_publisher(), LoggingEventPublisher)


# =============================================================================
# Handlers
# =============================================================================

class TestHandlers:

    def test_dispatcher_enruta(self, evento_creado):
        event_data = evento_creado.to_dict()

        with patch(f'{HANDLERS}.handle_ticket_creado') as mock_handler:
            handlers.dispatch_domain_event('TicketCreadoEvent', event_data)

        mock_handler.delay.assert_called_once_with(event_data)

    def test_dispatcher_evento_desconocido(self, caplog):
        handlers.dispatch_domain_event('EventoInventado', {})

        assert "Sin handler para EventoInventado" in caplog.text

    def test_ticket_creado_avisa_al_departamento(self, evento_creado):
        with patch(f'{HANDLERS}.notificar_departamento') as mock_notificar, \
                patch(f'{HANDLERS}.registrar_metrica') as mock_metrica:
            handlers.handle_ticket_creado(evento_creado.to_dict())

        assert mock_notificar.delay.call_args.kwargs['id_departamento'] == 3
        mock_metrica.delay.assert_called_once_with(
            nombre='tickets_creados', valor=1, tags={'id_prioridad': '1'},
        )

    def test_ticket_tomado_avisa_al_solicitante(self):
        evento = TicketTomadoEvent(aggregate_id=10, numero_ticket="TK202507001", id_agente=7, id_solicitante=42)

        with patch(f'{HANDLERS}.notificar_usuario') as mock_notificar, \
                patch(f'{HANDLERS}.registrar_metrica'):
            handlers.handle_ticket_tomado(evento.to_dict())

        assert mock_notificar.delay.call_args.kwargs['id_usuario'] == 42

    def test_ticket_derivado_avisa_al_destino(self):
        evento = TicketDerivadoEvent(
            aggregate_id=10,
            numero_ticket="TK202507001",
            id_departamento_origen=3,
            id_departamento_destino=2,
            motivo="Ventas",
            id_agente=7,
        )

        with patch(f'{HANDLERS}.notificar_departamento') as mock_notificar, \
                patch(f'{HANDLERS}.registrar_metrica') as mock_metrica:
            handlers.handle_ticket_derivado(evento.to_dict())

        assert mock_notificar.delay.call_args.kwargs['id_departamento'] == 2
        assert mock_metrica.delay.call_args.kwargs['tags'] == {'origen': '3', 'destino': '2'}

    def test_ticket_actualizado_metrica_solo_si_cambia_estado(self):
        sin_estado = TicketActualizadoEvent(aggregate_id=10, campos=['asunto'])
        con_estado = TicketActualizadoEvent(aggregate_id=10, campos=['id_estado'], id_estado=4)

        with patch(f'{HANDLERS}.registrar_metrica') as mock_metrica:
            handlers.handle_ticket_actualizado(sin_estado.to_dict())
            assert mock_metrica.delay.call_count == 0

            handlers.handle_ticket_actualizado(con_estado.to_dict())
            assert mock_metrica.delay.call_count == 1

    @pytest.mark.parametrize("nombre", [
        'handle_ticket_creado',
        'handle_ticket_actualizado',
        'handle_ticket_eliminado',
        'handle_ticket_tomado',
        'handle_ticket_derivado',
        'dispatch_domain_event',
    ])
    def test_handlers_con_reintento_automatico(self, nombre):
        """Los handlers de eventos deben reintentar ante cualquier excepción."""
        tarea = getattr(handlers, nombre)

        assert tarea.autoretry_for == (Exception,)
        assert tarea.max_retries >= 3

    def test_handler_propaga_errores(self, evento_creado):
        """Debe relanzar para que Celery reintente."""
        with patch(f'{HANDLERS}.notificar_departamento') as mock_notificar:
            mock_notificar.delay.side_effect = ConnectionError("broker caído")

            with pytest.raises(ConnectionError):
                handlers.handle_ticket_creado(evento_creado.to_dict())


class TestTareasProgramadas:

    def test_revisar_tickets_vencidos(self):
        vencido = Mock(id_departamento=3, numero_ticket="TK202507001")
        container = Mock()
        container.services.listar_vencidos_service.return_value.execute.return_value = [vencido]

        with patch('mesa_ayuda.config.container.get_container', return_value=container), \
                patch(f'{HANDLERS}.notificar_departamento') as mock_notificar, \
                patch(f'{HANDLERS}.registrar_metrica'):
            resultado = handlers.revisar_tickets_vencidos()

        assert resultado == 1
        assert mock_notificar.delay.call_args.kwargs['prioridad'] == 'alta'

    def test_revisar_tickets_vencidos_con_error(self):
        with patch('mesa_ayuda.config.container.get_container', side_effect=RuntimeError("sin base")):
            assert handlers.revisar_tickets_vencidos() == 0

    @pytest.mark.django_db
    def test_limpiar_eventos_antiguos(self):
        from mesa_ayuda.adapters.django_app.tickets.repositories import DjangoEventStore
        from mesa_ayuda.core.shared.tiempo import ahora

        store = DjangoEventStore()
        store.append(TicketTomadoEvent(aggregate_id=1, occurred_at=ahora() - timedelta(days=120)))
        store.append(TicketTomadoEvent(aggregate_id=2))

        assert handlers.limpiar_eventos_antiguos(dias=90) == 1
