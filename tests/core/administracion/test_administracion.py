"""
Tests de los Use Cases de administración.

Estrategia:
- Repositorios en memoria y InMemoryUnitOfWork
- Reloj fijo para las métricas

Coverage:
- ListarUsuariosService / ObtenerUsuarioService
- CrearUsuarioService (unicidad de correo y RUT, departamento)
- ActualizarUsuarioService (unicidad excluyendo al propio usuario, auto-degradación)
- EliminarUsuarioService (usuarios con tickets)
- ObtenerMetricasAdminService
"""

import pytest
from datetime import datetime, timezone

from mesa_ayuda.adapters.django_app.shared.unit_of_work import InMemoryUnitOfWork
from mesa_ayuda.core.acceso import ContextoUsuario, Rol
from mesa_ayuda.core.administracion import (
    ListarUsuariosService,
    ObtenerUsuarioService,
    CrearUsuarioService,
    ActualizarUsuarioService,
    EliminarUsuarioService,
    ObtenerMetricasAdminService,
)
from mesa_ayuda.core.datos_maestros import DepartamentoEntity, InMemoryDatosMaestrosRepository
from mesa_ayuda.core.shared.exceptions import (
    AccessDeniedError,
    ConflictError,
    EntityNotFoundError,
    InvalidOperationError,
    InvalidReferenceError,
    ValidationError,
)
from mesa_ayuda.core.tickets.entities import EstadoTicket, TicketEntity
from mesa_ayuda.core.tickets.ports import InMemoryTicketRepository
from mesa_ayuda.core.usuarios import (
    ActualizarUsuarioInputDTO,
    CrearUsuarioInputDTO,
    FiltroUsuarios,
    InMemoryUsuarioRepository,
    OrdenUsuarios,
    UsuarioEntity,
)

ADMIN = 1
AGENTE = 7
OTRO_AGENTE = 8
CLIENTE = 42
OTRO_CLIENTE = 43

COMO_ADMIN = ContextoUsuario(id_usuario=ADMIN, rol=Rol.ADMINISTRADOR)
COMO_AGENTE = ContextoUsuario(id_usuario=AGENTE, rol=Rol.RESPONSABLE)
COMO_CLIENTE = ContextoUsuario(id_usuario=CLIENTE, rol=Rol.CLIENTE)

RELOJ = datetime(2025, 7, 15, 12, 0, tzinfo=timezone.utc)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def datos_repo():
    repo = InMemoryDatosMaestrosRepository.con_datos_iniciales()
    repo.save_departamento(DepartamentoEntity(5, "Archivo", activo=False))
    return repo


@pytest.fixture
def usuario_repo():
    repo = InMemoryUsuarioRepository()
    repo.save(UsuarioEntity(ADMIN, "Ana", "Rojas", "ana@empresa.cl", "11111111-1",
                            Rol.ADMINISTRADOR, fecha_creacion=utc(2025, 1, 10)))
    repo.save(UsuarioEntity(AGENTE, "Pedro", "Soto", "pedro@empresa.cl", "22222222-2",
                            Rol.RESPONSABLE, 3, fecha_creacion=utc(2025, 6, 2)))
    repo.save(UsuarioEntity(OTRO_AGENTE, "Luis", "Mena", "luis@empresa.cl", "33333333-3",
                            Rol.RESPONSABLE, 2, fecha_creacion=utc(2025, 7, 1)))
    repo.save(UsuarioEntity(CLIENTE, "Carla", "Díaz", "carla@cliente.cl", "44444444-4",
                            Rol.CLIENTE, fecha_creacion=utc(2025, 7, 3)))
    repo.save(UsuarioEntity(OTRO_CLIENTE, "Jorge", "Vera", "jorge@cliente.cl", "55555555-5",
                            Rol.CLIENTE, activo=False, fecha_creacion=utc(2025, 5, 20)))
    return repo


@pytest.fixture
def ticket_repo():
    return InMemoryTicketRepository()


@pytest.fixture
def uow():
    return InMemoryUnitOfWork()


def nuevo_ticket(numero: str, id_departamento: int, nivel: int, momento: datetime,
                 id_solicitante: int = CLIENTE) -> TicketEntity:
    return TicketEntity.crear(
        numero_ticket=numero,
        asunto="Impresora sin tóner",
        descripcion="La impresora del segundo piso no imprime",
        id_departamento=id_departamento,
        id_prioridad=nivel,
        nivel_prioridad=nivel,
        id_solicitante=id_solicitante,
        momento=momento,
    )


def input_crear(**kwargs) -> CrearUsuarioInputDTO:
    datos = dict(
        nombre="Marta",
        apellido="Fuentes",
        correo="Marta.Fuentes@Empresa.cl",
        rut="12.345.678-5",
        rol=Rol.CLIENTE,
    )
    datos.update(kwargs)
    return CrearUsuarioInputDTO(**datos)


# =============================================================================
# Listar / Obtener
# =============================================================================

class TestListarUsuariosService:

    def test_lista_filtrada(self, usuario_repo):
        filtro = FiltroUsuarios(rol=Rol.RESPONSABLE, orden=OrdenUsuarios.NOMBRE, descendente=False)

        output = ListarUsuariosService(usuario_repo).execute(filtro, usuario=COMO_ADMIN)

        assert [u.nombre for u in output] == ["Luis", "Pedro"]

    def test_por_defecto_los_mas_recientes_primero(self, usuario_repo):
        output = ListarUsuariosService(usuario_repo).execute(usuario=COMO_ADMIN)

        assert [u.id for u in output] == [CLIENTE, OTRO_AGENTE, AGENTE, OTRO_CLIENTE, ADMIN]

    @pytest.mark.parametrize("contexto", [COMO_AGENTE, COMO_CLIENTE])
    def test_solo_administradores(self, usuario_repo, contexto):
        """Debe rechazar a quien no es administrador, aunque atienda tickets."""
        with pytest.raises(AccessDeniedError):
            ListarUsuariosService(usuario_repo).execute(usuario=contexto)


class TestObtenerUsuarioService:

    def test_detalle(self, usuario_repo):
        output = ObtenerUsuarioService(usuario_repo).execute(AGENTE, usuario=COMO_ADMIN)

        assert output.correo == "pedro@empresa.cl"
        assert output.to_dict()["rol"] == "responsable"

    def test_inexistente(self, usuario_repo):
        with pytest.raises(EntityNotFoundError):
            ObtenerUsuarioService(usuario_repo).execute(999, usuario=COMO_ADMIN)


# =============================================================================
# Crear
# =============================================================================

class TestCrearUsuarioService:

    @pytest.fixture
    def service(self, usuario_repo, datos_repo, uow):
        return CrearUsuarioService(usuario_repo, datos_repo, uow)

    def test_crea_normalizado(self, service, usuario_repo, uow):
        """Debe guardar el correo en minúsculas y el RUT sin puntos."""
        output = service.execute(input_crear(), usuario=COMO_ADMIN)

        assert output.id == OTRO_CLIENTE + 1
        assert output.correo == "marta.fuentes@empresa.cl"
        assert output.rut == "12345678-5"
        assert output.fecha_creacion is not None
        assert usuario_repo.get_by_id(output.id).nombre_completo == "Marta Fuentes"
        assert uow.committed

    def test_crea_responsable(self, service):
        output = service.execute(input_crear(rol=Rol.RESPONSABLE, id_departamento=3), usuario=COMO_ADMIN)

        assert output.rol == Rol.RESPONSABLE
        assert output.id_departamento == 3

    def test_responsable_sin_departamento(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.execute(input_crear(rol=Rol.RESPONSABLE), usuario=COMO_ADMIN)

        assert exc_info.value.field == "id_departamento"

    def test_departamento_inactivo(self, service):
        with pytest.raises(InvalidReferenceError):
            service.execute(input_crear(id_departamento=5), usuario=COMO_ADMIN)

    def test_correo_en_uso(self, service, usuario_repo, uow):
        """Debe comparar el correo sin distinguir mayúsculas."""
        total = len(usuario_repo.list_by_filtro(FiltroUsuarios()))

        with pytest.raises(ConflictError) as exc_info:
            service.execute(input_crear(correo="PEDRO@empresa.cl"), usuario=COMO_ADMIN)

        assert exc_info.value.code == "CORREO_EN_USO"
        assert len(usuario_repo.list_by_filtro(FiltroUsuarios())) == total
        assert uow.rolled_back

    def test_rut_en_uso(self, service):
        """Debe detectar el RUT aunque venga con puntos."""
        with pytest.raises(ConflictError) as exc_info:
            service.execute(input_crear(rut="22.222.222-2"), usuario=COMO_ADMIN)

        assert exc_info.value.code == "RUT_EN_USO"

    def test_rut_invalido(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.execute(input_crear(rut="12345678-9"), usuario=COMO_ADMIN)

        assert exc_info.value.field == "rut"

    def test_solo_administradores(self, service):
        with pytest.raises(AccessDeniedError):
            service.execute(input_crear(), usuario=COMO_CLIENTE)


# =============================================================================
# Actualizar
# =============================================================================

class TestActualizarUsuarioService:

    @pytest.fixture
    def service(self, usuario_repo, datos_repo, uow):
        return ActualizarUsuarioService(usuario_repo, datos_repo, uow)

    def test_actualizacion_parcial(self, service, usuario_repo):
        output = service.execute(
            CLIENTE,
            ActualizarUsuarioInputDTO(apellido="Díaz Pérez", activo=False),
            usuario=COMO_ADMIN,
        )

        assert output.apellido == "Díaz Pérez"
        assert output.activo is False
        assert output.correo == "carla@cliente.cl"
        assert usuario_repo.get_by_id(CLIENTE).activo is False

    def test_conserva_su_propio_correo(self, service):
        """Debe aceptar reenviar el mismo correo y RUT del usuario."""
        output = service.execute(
            AGENTE,
            ActualizarUsuarioInputDTO(correo="Pedro@Empresa.cl", rut="22.222.222-2"),
            usuario=COMO_ADMIN,
        )

        assert output.correo == "pedro@empresa.cl"

    def test_correo_de_otro_usuario(self, service, usuario_repo):
        with pytest.raises(ConflictError) as exc_info:
            service.execute(AGENTE, ActualizarUsuarioInputDTO(correo="luis@empresa.cl"), usuario=COMO_ADMIN)

        assert exc_info.value.code == "CORREO_EN_USO"
        assert usuario_repo.get_by_id(AGENTE).correo == "pedro@empresa.cl"

    def test_rut_de_otro_usuario(self, service):
        with pytest.raises(ConflictError) as exc_info:
            service.execute(AGENTE, ActualizarUsuarioInputDTO(rut="33333333-3"), usuario=COMO_ADMIN)

        assert exc_info.value.code == "RUT_EN_USO"

    def test_promover_a_responsable_exige_departamento(self, service):
        with pytest.raises(ValidationError):
            service.execute(CLIENTE, ActualizarUsuarioInputDTO(rol=Rol.RESPONSABLE), usuario=COMO_ADMIN)

        output = service.execute(
            CLIENTE,
            ActualizarUsuarioInputDTO(rol=Rol.RESPONSABLE, id_departamento=4),
            usuario=COMO_ADMIN,
        )
        assert output.rol == Rol.RESPONSABLE

    def test_departamento_inexistente(self, service):
        with pytest.raises(InvalidReferenceError):
            service.execute(AGENTE, ActualizarUsuarioInputDTO(id_departamento=99), usuario=COMO_ADMIN)

    @pytest.mark.parametrize("cambio", [
        ActualizarUsuarioInputDTO(rol=Rol.CLIENTE),
        ActualizarUsuarioInputDTO(activo=False),
    ])
    def test_administrador_no_se_degrada(self, service, usuario_repo, cambio):
        with pytest.raises(InvalidOperationError):
            service.execute(ADMIN, cambio, usuario=COMO_ADMIN)

        assert usuario_repo.get_by_id(ADMIN).rol == Rol.ADMINISTRADOR

    def test_administrador_edita_sus_datos(self, service):
        output = service.execute(ADMIN, ActualizarUsuarioInputDTO(nombre="Ana María"), usuario=COMO_ADMIN)

        assert output.nombre == "Ana María"

    def test_inexistente(self, service):
        with pytest.raises(EntityNotFoundError):
            service.execute(999, ActualizarUsuarioInputDTO(nombre="Nadie"), usuario=COMO_ADMIN)

    def test_solo_administradores(self, service):
        with pytest.raises(AccessDeniedError):
            service.execute(CLIENTE, ActualizarUsuarioInputDTO(nombre="Carla"), usuario=COMO_AGENTE)


# =============================================================================
# Eliminar
# =============================================================================

class TestEliminarUsuarioService:

    @pytest.fixture
    def service(self, usuario_repo, ticket_repo, uow):
        return EliminarUsuarioService(usuario_repo, ticket_repo, uow)

    def test_elimina_usuario_sin_tickets(self, service, usuario_repo):
        service.execute(OTRO_CLIENTE, usuario=COMO_ADMIN)

        assert usuario_repo.get_by_id(OTRO_CLIENTE) is None

    def test_usuario_con_tickets(self, service, usuario_repo, ticket_repo):
        """Debe exigir desactivar en lugar de borrar a quien solicitó tickets."""
        ticket_repo.save(nuevo_ticket("TK202507001", 3, 1, RELOJ))

        with pytest.raises(ConflictError) as exc_info:
            service.execute(CLIENTE, usuario=COMO_ADMIN)

        assert exc_info.value.code == "USUARIO_CON_TICKETS"
        assert usuario_repo.get_by_id(CLIENTE) is not None

    def test_no_se_elimina_a_si_mismo(self, service):
        with pytest.raises(InvalidOperationError):
            service.execute(ADMIN, usuario=COMO_ADMIN)

    def test_inexistente(self, service):
        with pytest.raises(EntityNotFoundError):
            service.execute(999, usuario=COMO_ADMIN)

    def test_solo_administradores(self, service):
        with pytest.raises(AccessDeniedError):
            service.execute(OTRO_CLIENTE, usuario=COMO_CLIENTE)


# =============================================================================
# Métricas
# =============================================================================

class TestObtenerMetricasAdminService:

    @pytest.fixture
    def ticket_repo(self):
        repo = InMemoryTicketRepository()

        # Alta, abierto y vencido a la hora del reloj
        repo.save(nuevo_ticket("TK202507001", 3, 1, utc(2025, 7, 15, 6)))

        resuelto = nuevo_ticket("TK202506001", 3, 1, utc(2025, 6, 10, 10))
        resuelto.actualizar(id_estado=EstadoTicket.RESUELTO, momento=utc(2025, 6, 10, 16))
        repo.save(resuelto)

        repo.save(nuevo_ticket("TK202507002", 2, 3, utc(2025, 7, 14, 9)))
        return repo

    @pytest.fixture
    def service(self, usuario_repo, ticket_repo, datos_repo):
        return ObtenerMetricasAdminService(usuario_repo, ticket_repo, datos_repo, reloj=lambda: RELOJ)

    def test_resumen(self, service):
        resumen = service.execute(usuario=COMO_ADMIN).resumen

        assert resumen.total_usuarios == 5
        assert resumen.usuarios_activos == 4
        assert resumen.total_departamentos == 5
        assert resumen.total_tickets == 3
        assert resumen.tickets_abiertos == 2
        assert resumen.tickets_vencidos == 1
        assert resumen.tiempo_promedio_resolucion_horas == 6.0
        assert resumen.fecha_actualizacion == RELOJ

    def test_por_departamento(self, service):
        departamentos = service.execute(usuario=COMO_ADMIN).departamentos

        assert [d.id_departamento for d in departamentos] == [1, 2, 3, 4, 5]

        informatica = departamentos[2].to_dict()
        assert informatica["nombre"] == "Informática"
        assert informatica["usuarios"] == {"total": 1, "por_rol": {"responsable": 1}}
        assert informatica["tickets"] == {
            "total": 2,
            "abiertos": 1,
            "cerrados": 1,
            "vencidos": 1,
            "tiempo_promedio_resolucion_horas": 6.0,
        }

        assert departamentos[0].total_tickets == 0
        assert departamentos[0].tiempo_promedio_resolucion_horas is None
        assert departamentos[4].activo is False

    def test_tendencia_mensual(self, service):
        tendencia = service.execute(usuario=COMO_ADMIN, meses=3).tendencia_mensual

        assert [t.to_dict() for t in tendencia] == [
            {"mes": "2025-05", "usuarios_nuevos": 1, "tickets_creados": 0, "tickets_resueltos": 0},
            {"mes": "2025-06", "usuarios_nuevos": 1, "tickets_creados": 1, "tickets_resueltos": 1},
            {"mes": "2025-07", "usuarios_nuevos": 2, "tickets_creados": 2, "tickets_resueltos": 0},
        ]

    def test_tendencia_cruza_el_anio(self, usuario_repo, ticket_repo, datos_repo):
        service = ObtenerMetricasAdminService(
            usuario_repo, ticket_repo, datos_repo, reloj=lambda: utc(2025, 2, 10),
        )

        tendencia = service.execute(usuario=COMO_ADMIN, meses=3).tendencia_mensual

        assert [t.mes for t in tendencia] == ["2024-12", "2025-01", "2025-02"]
        assert tendencia[1].usuarios_nuevos == 1

    def test_tickets_por_estado(self, service):
        por_estado = service.execute(usuario=COMO_ADMIN).tickets_por_estado

        assert [(e.estado, e.cantidad) for e in por_estado] == [
            ("Nuevo", 2),
            ("En Proceso", 0),
            ("Escalado", 0),
            ("Resuelto", 1),
            ("Cerrado", 0),
        ]
        assert por_estado[0].to_dict()["color"] == "#17a2b8"

    def test_sin_datos(self, datos_repo):
        service = ObtenerMetricasAdminService(
            InMemoryUsuarioRepository(), InMemoryTicketRepository(), datos_repo, reloj=lambda: RELOJ,
        )

        metricas = service.execute(usuario=COMO_ADMIN).to_dict()

        assert metricas["resumen"]["total_tickets"] == 0
        assert metricas["resumen"]["tiempo_promedio_resolucion_horas"] is None
        assert len(metricas["tendencia_mensual"]) == 6

    @pytest.mark.parametrize("meses", [0, 25])
    def test_meses_fuera_de_rango(self, service, meses):
        with pytest.raises(ValidationError) as exc_info:
            service.execute(usuario=COMO_ADMIN, meses=meses)

        assert exc_info.value.field == "meses"

    def test_solo_administradores(self, service):
        with pytest.raises(AccessDeniedError):
            service.execute(usuario=COMO_AGENTE)
