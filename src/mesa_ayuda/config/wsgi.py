"""
WSGI de la Mesa de Ayuda.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'mesa_ayuda.config.settings')

application = get_wsgi_application()
