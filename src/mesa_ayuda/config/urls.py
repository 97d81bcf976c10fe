"""
URLs de la Mesa de Ayuda.

Estructura:
- /admin/ - Django Admin
- /api/tickets/ - API de tickets
- /api/datos-maestros/ - Departamentos, prioridades y estados
- /api/usuarios/ - Disponibilidad de correo y RUT
- /api/admin/ - Usuarios y métricas (sólo administradores)
- /health/ - Health check
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include

from mesa_ayuda.adapters.django_app.tickets import urls as api_urls

urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/tickets/', include((api_urls.tickets_urlpatterns, 'tickets'))),
    path('api/datos-maestros/', include((api_urls.datos_maestros_urlpatterns, 'datos_maestros'))),
    path('api/usuarios/', include((api_urls.usuarios_urlpatterns, 'usuarios'))),
    path('api/admin/', include((api_urls.admin_urlpatterns, 'administracion'))),

    path('health/', lambda r: JsonResponse({'status': 'ok'}), name='health'),
]
