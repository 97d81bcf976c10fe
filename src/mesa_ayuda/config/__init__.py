"""
Configuración del proyecto Mesa de Ayuda.

Módulos:
- settings: Settings de Django
- urls: Rutas principales
- wsgi: Aplicación WSGI
- celery: App de Celery (eventos asíncronos y tareas programadas)
- container: Container de Dependency Injection
"""

from .celery import app as celery_app

__all__ = ('celery_app',)
