"""
Configuración del Django App de Tickets.
"""

from django.apps import AppConfig


class TicketsConfig(AppConfig):
    """Configuración del app Tickets."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'mesa_ayuda.adapters.django_app.tickets'
    label = 'tickets'
    verbose_name = 'Mesa de Ayuda'
