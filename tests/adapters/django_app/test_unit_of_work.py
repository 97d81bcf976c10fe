"""
Tests del Unit of Work Django y en memoria.
"""

import pytest
from unittest.mock import Mock

from mesa_ayuda.adapters.django_app.events.publishers import InMemoryEventPublisher
from mesa_ayuda.adapters.django_app.shared.unit_of_work import DjangoUnitOfWork, InMemoryUnitOfWork
from mesa_ayuda.adapters.django_app.tickets.models import DomainEventModel, TicketModel
from mesa_ayuda.adapters.django_app.tickets.repositories import DjangoEventStore
from mesa_ayuda.core.tickets.events import TicketCreadoEvent, TicketTomadoEvent


def _evento(aggregate_id=10):
    return TicketCreadoEvent(aggregate_id=aggregate_id, numero_ticket="TK202507001")


@pytest.mark.django_db
class TestDjangoUnitOfWork:

    def test_commit_persiste_y_publica(self):
        """Debe guardar los eventos con secuencia y publicarlos tras el commit."""
        publisher = InMemoryEventPublisher()
        uow = DjangoUnitOfWork(event_publisher=publisher, event_store=DjangoEventStore())

        with uow:
            uow.publish_event(_evento())
            uow.publish_event(TicketTomadoEvent(aggregate_id=10, id_agente=7))

        assert uow.is_committed is True
        assert len(publisher.published_events) == 2
        assert list(
            DomainEventModel.objects.filter(aggregate_id="10").order_by('sequence').values_list('sequence', flat=True)
        ) == [1, 2]

    def test_secuencia_continua_entre_transacciones(self):
        uow = DjangoUnitOfWork(event_store=DjangoEventStore())

        with uow:
            uow.publish_event(_evento())
        with uow:
            uow.publish_event(_evento())

        assert DjangoEventStore().get_last_sequence("10") == 2

    def test_rollback_descarta_cambios_y_eventos(self, ticket_factory):
        publisher = InMemoryEventPublisher()
        uow = DjangoUnitOfWork(event_publisher=publisher, event_store=DjangoEventStore())

        with pytest.raises(RuntimeError):
            with uow:
                ticket_factory(numero_ticket="TK209901001")
                uow.publish_event(_evento())
                raise RuntimeError("falla a mitad de camino")

        assert uow.is_rolled_back is True
        assert not TicketModel.objects.filter(numero_ticket="TK209901001").exists()
        assert DomainEventModel.objects.count() == 0
        assert publisher.published_events == []

    def test_fallo_del_publicador_no_revierte(self, caplog):
        """El commit ya ocurrió: el error del publicador sólo se registra."""
        publisher = Mock()
        publisher.publish.side_effect = RuntimeError("broker caído")
        uow = DjangoUnitOfWork(event_publisher=publisher, event_store=DjangoEventStore())

        with uow:
            uow.publish_event(_evento())

        assert uow.is_committed is True
        assert DomainEventModel.objects.count() == 1
        assert "Falló la publicación del evento" in caplog.text


class TestInMemoryUnitOfWork:

    def test_commit_entrega_al_publicador(self):
        publisher = InMemoryEventPublisher()
        uow = InMemoryUnitOfWork(event_publisher=publisher)

        with uow:
            uow.publish_event(_evento())

        assert uow.committed is True
        assert len(uow.published_events) == 1
        assert len(publisher.published_events) == 1

    def test_rollback(self):
        uow = InMemoryUnitOfWork()

        with pytest.raises(ValueError):
            with uow:
                uow.publish_event(_evento())
                raise ValueError("error")

        assert uow.rolled_back is True
        assert uow.published_events == []

    def test_reset(self):
        uow = InMemoryUnitOfWork()
        with uow:
            uow.publish_event(_evento())

        uow.reset()

        assert uow.committed is False
        assert uow.published_events == []
