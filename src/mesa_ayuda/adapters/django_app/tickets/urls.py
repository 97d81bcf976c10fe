"""
Rutas de la API de tickets, datos maestros, usuarios y administración.

Las rutas fijas (mis-tickets, abiertos, ...) van antes de <int:pk>.
"""

from django.urls import path

from . import api_views

tickets_urlpatterns = [
    path('', api_views.TicketAPIListView.as_view(), name='api_list'),
    path('mis-tickets/', api_views.MisTicketsAPIView.as_view(), name='api_mis_tickets'),
    path('abiertos/', api_views.TicketsAbiertosAPIView.as_view(), name='api_abiertos'),
    path('cerrados/', api_views.TicketsCerradosAPIView.as_view(), name='api_cerrados'),
    path('vencidos/', api_views.TicketsVencidosAPIView.as_view(), name='api_vencidos'),
    path('<int:pk>/', api_views.TicketAPIDetailView.as_view(), name='api_detail'),
    path('<int:pk>/tomar/', api_views.TicketAPITomarView.as_view(), name='api_tomar'),
    path('<int:pk>/derivar/', api_views.TicketAPIDerivarView.as_view(), name='api_derivar'),
]

datos_maestros_urlpatterns = [
    path('departamentos/', api_views.DepartamentosAPIView.as_view(), name='api_departamentos'),
    path('departamentos/<int:pk>/', api_views.DepartamentoAPIDetailView.as_view(), name='api_departamento'),
    path('prioridades/', api_views.PrioridadesAPIView.as_view(), name='api_prioridades'),
    path('prioridades/<int:pk>/', api_views.PrioridadAPIDetailView.as_view(), name='api_prioridad'),
    path('estados/', api_views.EstadosAPIView.as_view(), name='api_estados'),
    path('estados/<int:pk>/', api_views.EstadoAPIDetailView.as_view(), name='api_estado'),
    path('estadisticas/', api_views.EstadisticasAPIView.as_view(), name='api_estadisticas'),
    path(
        'validar/<int:id_departamento>/<int:id_prioridad>/',
        api_views.ValidarFormularioAPIView.as_view(),
        name='api_validar_formulario',
    ),
]

usuarios_urlpatterns = [
    path('disponibilidad/', api_views.DisponibilidadUsuarioAPIView.as_view(), name='api_disponibilidad'),
]

admin_urlpatterns = [
    path('usuarios/', api_views.UsuariosAdminAPIView.as_view(), name='api_admin_usuarios'),
    path('usuarios/<int:pk>/', api_views.UsuarioAdminDetailView.as_view(), name='api_admin_usuario'),
    path('metricas/', api_views.MetricasAdminAPIView.as_view(), name='api_admin_metricas'),
]
