"""
Dependency Injection Container.

Configura y administra las dependencias de la aplicación con
dependency-injector.

Patrones:
- Singleton: una instancia por aplicación (repositorios, publicador)
- Factory: nueva instancia por llamada (services, Unit of Work)

Organización:
- Infraestructura: repositorios, Event Store, publicador, Unit of Work
- Servicios: Use Cases, accesibles como container.services.<nombre>()

Los adapters Django se importan al crear la instancia: los models
necesitan que las apps estén cargadas.
"""

from typing import Optional

from dependency_injector import containers, providers

from mesa_ayuda.core.acceso import PoliticaAccesoTickets
from mesa_ayuda.core.administracion.use_cases import (
    ListarUsuariosService,
    ObtenerUsuarioService,
    CrearUsuarioService,
    ActualizarUsuarioService,
    EliminarUsuarioService,
    ObtenerMetricasAdminService,
)
from mesa_ayuda.core.datos_maestros.use_cases import (
    ListarDepartamentosService,
    ObtenerDepartamentoService,
    ListarPrioridadesService,
    ObtenerPrioridadService,
    ListarEstadosService,
    ObtenerEstadoService,
    ValidarFormularioTicketService,
    ObtenerEstadisticasGeneralesService,
)
from mesa_ayuda.core.tickets.use_cases import (
    CrearTicketService,
    ListarTicketsService,
    ObtenerTicketService,
    ActualizarTicketService,
    EliminarTicketService,
    TomarTicketService,
    DerivarTicketService,
    ListarTicketsAbiertosService,
    ListarTicketsCerradosService,
    ListarTicketsVencidosService,
)
from mesa_ayuda.core.usuarios.use_cases import (
    ResolverContextoUsuarioService,
    VerificarCorreoDisponibleService,
    VerificarRutDisponibleService,
)

_REPOSITORIES = 'mesa_ayuda.adapters.django_app.tickets.repositories'
_GENERADOR = 'mesa_ayuda.adapters.django_app.tickets.generador_codigo'
_UNIT_OF_WORK = 'mesa_ayuda.adapters.django_app.shared.unit_of_work'
_PUBLISHERS = 'mesa_ayuda.adapters.django_app.events.publishers'


def _lazy(module: str, name: str):
    """Callable que importa `module.name` recién al invocarse."""
    def crear(*args, **kwargs):
        return getattr(__import__(module, fromlist=[name]), name)(*args, **kwargs)
    return crear


class Infraestructura(containers.DeclarativeContainer):
    """Adapters: persistencia, eventos y transacciones."""

    config = providers.Configuration()

    event_publisher = providers.Singleton(
        _lazy(_PUBLISHERS, 'get_event_publisher'),
        use_celery=config.usar_celery,
    )

    event_store = providers.Singleton(_lazy(_REPOSITORIES, 'DjangoEventStore'))

    ticket_repository = providers.Singleton(_lazy(_REPOSITORIES, 'DjangoTicketRepository'))

    datos_maestros_repository = providers.Singleton(_lazy(_REPOSITORIES, 'DjangoDatosMaestrosRepository'))

    usuario_repository = providers.Singleton(_lazy(_REPOSITORIES, 'DjangoUsuarioRepository'))

    generador_codigo = providers.Singleton(_lazy(_GENERADOR, 'DjangoGeneradorCodigo'))

    unit_of_work = providers.Factory(
        _lazy(_UNIT_OF_WORK, 'DjangoUnitOfWork'),
        event_publisher=event_publisher,
        event_store=event_store,
    )

    politica = providers.Singleton(PoliticaAccesoTickets)


class Servicios(containers.DeclarativeContainer):
    """Use Cases. Nueva instancia (y nuevo Unit of Work) por llamada."""

    config = providers.Configuration()

    infra = providers.DependenciesContainer()

    # =========================================================================
    # Tickets
    # =========================================================================

    crear_ticket_service = providers.Factory(
        CrearTicketService,
        ticket_repo=infra.ticket_repository,
        datos_repo=infra.datos_maestros_repository,
        usuario_repo=infra.usuario_repository,
        generador_codigo=infra.generador_codigo,
        uow=infra.unit_of_work,
        max_reintentos=config.ticket_codigo_max_reintentos,
    )

    listar_tickets_service = providers.Factory(
        ListarTicketsService,
        ticket_repo=infra.ticket_repository,
    )

    obtener_ticket_service = providers.Factory(
        ObtenerTicketService,
        ticket_repo=infra.ticket_repository,
        politica=infra.politica,
    )

    actualizar_ticket_service = providers.Factory(
        ActualizarTicketService,
        ticket_repo=infra.ticket_repository,
        datos_repo=infra.datos_maestros_repository,
        usuario_repo=infra.usuario_repository,
        uow=infra.unit_of_work,
        politica=infra.politica,
    )

    eliminar_ticket_service = providers.Factory(
        EliminarTicketService,
        ticket_repo=infra.ticket_repository,
        uow=infra.unit_of_work,
        politica=infra.politica,
    )

    tomar_ticket_service = providers.Factory(
        TomarTicketService,
        ticket_repo=infra.ticket_repository,
        usuario_repo=infra.usuario_repository,
        uow=infra.unit_of_work,
        politica=infra.politica,
    )

    derivar_ticket_service = providers.Factory(
        DerivarTicketService,
        ticket_repo=infra.ticket_repository,
        datos_repo=infra.datos_maestros_repository,
        usuario_repo=infra.usuario_repository,
        uow=infra.unit_of_work,
        politica=infra.politica,
    )

    listar_abiertos_service = providers.Factory(
        ListarTicketsAbiertosService,
        ticket_repo=infra.ticket_repository,
        usuario_repo=infra.usuario_repository,
        politica=infra.politica,
    )

    listar_cerrados_service = providers.Factory(
        ListarTicketsCerradosService,
        ticket_repo=infra.ticket_repository,
        usuario_repo=infra.usuario_repository,
        politica=infra.politica,
    )

    listar_vencidos_service = providers.Factory(
        ListarTicketsVencidosService,
        ticket_repo=infra.ticket_repository,
        usuario_repo=infra.usuario_repository,
        politica=infra.politica,
    )

    # =========================================================================
    # Datos maestros
    # =========================================================================

    listar_departamentos_service = providers.Factory(
        ListarDepartamentosService, datos_repo=infra.datos_maestros_repository,
    )

    obtener_departamento_service = providers.Factory(
        ObtenerDepartamentoService, datos_repo=infra.datos_maestros_repository,
    )

    listar_prioridades_service = providers.Factory(
        ListarPrioridadesService, datos_repo=infra.datos_maestros_repository,
    )

    obtener_prioridad_service = providers.Factory(
        ObtenerPrioridadService, datos_repo=infra.datos_maestros_repository,
    )

    listar_estados_service = providers.Factory(
        ListarEstadosService, datos_repo=infra.datos_maestros_repository,
    )

    obtener_estado_service = providers.Factory(
        ObtenerEstadoService, datos_repo=infra.datos_maestros_repository,
    )

    validar_formulario_service = providers.Factory(
        ValidarFormularioTicketService, datos_repo=infra.datos_maestros_repository,
    )

    estadisticas_service = providers.Factory(
        ObtenerEstadisticasGeneralesService, datos_repo=infra.datos_maestros_repository,
    )

    # =========================================================================
    # Usuarios
    # =========================================================================

    resolver_contexto_service = providers.Factory(
        ResolverContextoUsuarioService, usuario_repo=infra.usuario_repository,
    )

    verificar_correo_service = providers.Factory(
        VerificarCorreoDisponibleService, usuario_repo=infra.usuario_repository,
    )

    verificar_rut_service = providers.Factory(
        VerificarRutDisponibleService, usuario_repo=infra.usuario_repository,
    )

    # =========================================================================
    # Administración
    # =========================================================================

    listar_usuarios_service = providers.Factory(
        ListarUsuariosService,
        usuario_repo=infra.usuario_repository,
        politica=infra.politica,
    )

    obtener_usuario_service = providers.Factory(
        ObtenerUsuarioService,
        usuario_repo=infra.usuario_repository,
        politica=infra.politica,
    )

    crear_usuario_service = providers.Factory(
        CrearUsuarioService,
        usuario_repo=infra.usuario_repository,
        datos_repo=infra.datos_maestros_repository,
        uow=infra.unit_of_work,
        politica=infra.politica,
    )

    actualizar_usuario_service = providers.Factory(
        ActualizarUsuarioService,
        usuario_repo=infra.usuario_repository,
        datos_repo=infra.datos_maestros_repository,
        uow=infra.unit_of_work,
        politica=infra.politica,
    )

    eliminar_usuario_service = providers.Factory(
        EliminarUsuarioService,
        usuario_repo=infra.usuario_repository,
        ticket_repo=infra.ticket_repository,
        uow=infra.unit_of_work,
        politica=infra.politica,
    )

    metricas_admin_service = providers.Factory(
        ObtenerMetricasAdminService,
        usuario_repo=infra.usuario_repository,
        ticket_repo=infra.ticket_repository,
        datos_repo=infra.datos_maestros_repository,
        politica=infra.politica,
    )


class Container(containers.DeclarativeContainer):
    """
    Container principal.

    Example:
        from mesa_ayuda.config.container import get_container

        service = get_container().services.crear_ticket_service()
        output = service.execute(input_dto)
    """

    config = providers.Configuration()

    infra = providers.Container(Infraestructura, config=config)

    services = providers.Container(Servicios, config=config, infra=infra)


def configurar_en_memoria(container: Container) -> Container:
    """
    Reemplaza la infraestructura por implementaciones en memoria.

    Para tests y scripts sin base de datos. Los datos maestros se
    cargan con los valores iniciales.
    """
    from mesa_ayuda.core.datos_maestros import InMemoryDatosMaestrosRepository
    from mesa_ayuda.core.tickets.codigos import InMemoryGeneradorCodigo
    from mesa_ayuda.core.tickets.ports import InMemoryTicketRepository
    from mesa_ayuda.core.usuarios import InMemoryUsuarioRepository
    from mesa_ayuda.adapters.django_app.events.publishers import InMemoryEventPublisher
    from mesa_ayuda.adapters.django_app.shared.unit_of_work import InMemoryUnitOfWork

    datos_repo = InMemoryDatosMaestrosRepository.con_datos_iniciales()
    ticket_repo = InMemoryTicketRepository(
        nivel_de_prioridad=lambda id_prioridad: datos_repo.get_prioridad(id_prioridad).nivel
    )
    publisher = InMemoryEventPublisher()

    container.infra.datos_maestros_repository.override(providers.Object(datos_repo))
    container.infra.ticket_repository.override(providers.Object(ticket_repo))
    container.infra.usuario_repository.override(providers.Object(InMemoryUsuarioRepository()))
    container.infra.event_publisher.override(providers.Object(publisher))
    container.infra.generador_codigo.override(
        providers.Object(InMemoryGeneradorCodigo(ticket_repo.pares_codigo_fecha))
    )
    container.infra.unit_of_work.override(providers.Factory(InMemoryUnitOfWork, event_publisher=publisher))

    return container


# =============================================================================
# Container global
# =============================================================================

_container: Optional[Container] = None


def get_container() -> Container:
    """
    Instancia global del container, configurada desde los settings
    de Django la primera vez que se pide.
    """
    global _container

    if _container is None:
        from django.conf import settings

        _container = Container()
        _container.config.from_dict({
            'usar_celery': getattr(settings, 'EVENT_PUBLISHER_MODE', 'sync') == 'celery',
            'ticket_codigo_max_reintentos': getattr(settings, 'TICKET_CODIGO_MAX_REINTENTOS', 3),
        })

    return _container


def reset_container() -> None:
    """Descarta el container global (tests)."""
    global _container
    _container = None
