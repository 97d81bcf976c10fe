"""
Configuración de Celery.

Celery se usa para:
- Procesar Domain Events de forma asíncrona (EVENT_PUBLISHER_MODE=celery)
- Tareas programadas: tickets vencidos, limpieza del Event Store
- Notificaciones

Uso:
    celery -A mesa_ayuda.config.celery worker -l INFO
    celery -A mesa_ayuda.config.celery beat -l INFO
"""

import os
from celery import Celery
from celery.schedules import crontab
from kombu import Queue, Exchange

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'mesa_ayuda.config.settings')

app = Celery('mesa_ayuda')

# Toma las claves CELERY_* de los settings de Django
app.config_from_object('django.conf:settings', namespace='CELERY')

app.conf.update(
    worker_send_task_events=True,
    task_send_sent_event=True,
)

app.conf.task_default_queue = 'default'

app.conf.task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('events', Exchange('events'), routing_key='events.#'),
    Queue('notifications', Exchange('notifications'), routing_key='notifications.#'),
)

_HANDLERS = 'mesa_ayuda.adapters.django_app.events.handlers'

app.conf.task_routes = {
    f'{_HANDLERS}.notificar_*': {'queue': 'notifications'},
    f'{_HANDLERS}.*': {'queue': 'events'},
}

app.autodiscover_tasks(['mesa_ayuda.adapters.django_app.events'], related_name='handlers')

app.conf.beat_schedule = {
    # Tickets vencidos o por vencer, cada hora
    'revisar-tickets-vencidos': {
        'task': f'{_HANDLERS}.revisar_tickets_vencidos',
        'schedule': 3600.0,
    },

    # Limpieza semanal del Event Store (domingo 03:00)
    'limpiar-eventos-antiguos': {
        'task': f'{_HANDLERS}.limpiar_eventos_antiguos',
        'schedule': crontab(hour=3, minute=0, day_of_week=0),
    },
}
