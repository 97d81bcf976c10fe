"""
API JSON de la mesa de ayuda.

Endpoints de tickets:
- GET    /api/tickets/                  - Listar (todos si es administrador, si no los propios)
- POST   /api/tickets/                  - Crear ticket
- GET    /api/tickets/mis-tickets/      - Tickets del usuario
- GET    /api/tickets/abiertos/         - Lista de agente: abiertos
- GET    /api/tickets/cerrados/         - Lista de agente: cerrados
- GET    /api/tickets/vencidos/         - Lista de agente: vencidos o por vencer
- GET    /api/tickets/<id>/             - Detalle
- PATCH  /api/tickets/<id>/             - Actualización parcial
- DELETE /api/tickets/<id>/             - Borrado
- PUT    /api/tickets/<id>/tomar/       - Tomar ticket
- PUT    /api/tickets/<id>/derivar/     - Derivar a otro departamento

Datos maestros y usuarios:
- GET /api/datos-maestros/departamentos/[<id>/], prioridades/[<id>/], estados/[<id>/]
- GET /api/datos-maestros/estadisticas/
- GET /api/datos-maestros/validar/<dep>/<prio>/
- GET /api/usuarios/disponibilidad/?correo=...&rut=...

Administración (sólo administradores):
- GET/POST           /api/admin/usuarios/
- GET/PUT/DELETE     /api/admin/usuarios/<id>/
- GET                /api/admin/metricas/

Formato:
- Entrada: JSON
- Salida: JSON con estructura {success, data/error, meta}

Autenticación:
- La capa de autenticación delante del servicio envía el ID del
  usuario en la cabecera X-Usuario-Id
"""

import json
import logging
from typing import Any, Dict, List, Optional

from django.views import View
from django.http import JsonResponse, HttpRequest
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt

from mesa_ayuda.core.acceso import ContextoUsuario, Rol
from mesa_ayuda.core.tickets.dtos import (
    CrearTicketInputDTO,
    ActualizarTicketInputDTO,
    DerivarTicketInputDTO,
)
from mesa_ayuda.core.usuarios.dtos import (
    CrearUsuarioInputDTO,
    ActualizarUsuarioInputDTO,
    FiltroUsuarios,
    OrdenUsuarios,
)
from mesa_ayuda.core.shared.exceptions import (
    DomainException,
    ValidationError,
    InvalidReferenceError,
    AccessDeniedError,
    EntityNotFoundError,
    ConflictError,
    ConcurrencyError,
    BusinessRuleViolationError,
)
from mesa_ayuda.config.container import get_container

logger = logging.getLogger(__name__)

CABECERA_USUARIO = 'HTTP_X_USUARIO_ID'


class NoAutenticadoError(DomainException):
    """La petición llegó sin identidad de usuario."""

    def __init__(self, message: str = "Se requiere la cabecera X-Usuario-Id"):
        super().__init__(message, code="NO_AUTENTICADO")


# =============================================================================
# Helpers
# =============================================================================

def json_response(success: bool, data: Any = None, error: str = None,
                  status: int = 200, meta: Dict = None) -> JsonResponse:
    """
    Crea la respuesta JSON estandarizada.

    Args:
        success: Si la operación fue exitosa
        data: Datos de la respuesta
        error: Mensaje de error
        status: HTTP status code
        meta: Metadatos adicionales
    """
    response = {'success': success}

    if data is not None:
        response['data'] = data

    if error is not None:
        response['error'] = error

    if meta is not None:
        response['meta'] = meta

    return JsonResponse(response, status=status)


def parse_json_body(request: HttpRequest) -> Dict:
    """
    Raises:
        ValueError: Si el JSON es inválido o no es un objeto
    """
    if not request.body:
        return {}

    try:
        data = json.loads(request.body)
    except json.JSONDecodeError as e:
        raise ValueError(f"JSON inválido: {e}")

    if not isinstance(data, dict):
        raise ValueError("El cuerpo debe ser un objeto JSON")

    return data


def entero(data: Dict, campo: str, requerido: bool = True) -> Optional[int]:
    """Lee un campo entero del cuerpo; None si es opcional y no viene."""
    valor = data.get(campo)

    if valor is None:
        if requerido:
            raise ValidationError(f"El campo {campo} es obligatorio", field=campo)
        return None

    if isinstance(valor, bool):
        raise ValidationError(f"El campo {campo} debe ser un entero", field=campo)

    try:
        return int(valor)
    except (TypeError, ValueError):
        raise ValidationError(f"El campo {campo} debe ser un entero", field=campo)


def texto(data: Dict, campo: str, requerido: bool = True) -> Optional[str]:
    """Lee un campo de texto del cuerpo; None si es opcional y no viene."""
    valor = data.get(campo)

    if valor is None:
        if requerido:
            raise ValidationError(f"El campo {campo} es obligatorio", field=campo)
        return None

    if not isinstance(valor, str):
        raise ValidationError(f"El campo {campo} debe ser texto", field=campo)

    return valor


# =============================================================================
# Base API View
# =============================================================================

@method_decorator(csrf_exempt, name='dispatch')
class BaseAPIView(View):
    """
    View base de la API JSON.

    Provee:
    - Parsing del JSON
    - Acceso al container de DI
    - Identidad del usuario desde la cabecera
    - Traducción de errores de dominio a códigos HTTP
    """

    def get_container(self):
        return get_container()

    def get_service(self, service_name: str):
        container = self.get_container()
        return getattr(container.services, service_name)()

    def parse_body(self, request: HttpRequest) -> Dict:
        return parse_json_body(request)

    def get_usuario(self, request: HttpRequest) -> ContextoUsuario:
        """
        Raises:
            NoAutenticadoError: Sin cabecera o con un valor no numérico
            AccessDeniedError: Si el usuario no existe o está inactivo
        """
        valor = request.META.get(CABECERA_USUARIO, '').strip()

        if not valor.isdigit():
            raise NoAutenticadoError()

        return self.get_service('resolver_contexto_service').execute(int(valor))

    def paginar(self, request: HttpRequest, items: List[Any]) -> JsonResponse:
        """Paginación simple en memoria con metadatos page/per_page."""
        try:
            page = max(int(request.GET.get('page', 1)), 1)
            per_page = min(max(int(request.GET.get('per_page', 20)), 1), 100)
        except ValueError:
            raise ValidationError("page y per_page deben ser enteros", field='page')

        total = len(items)
        start = (page - 1) * per_page

        return json_response(
            success=True,
            data=[item.to_dict() for item in items[start:start + per_page]],
            meta={
                'total': total,
                'page': page,
                'per_page': per_page,
                'total_pages': (total + per_page - 1) // per_page,
            }
        )

    def handle_exception(self, e: Exception) -> JsonResponse:
        """Traduce la excepción a la respuesta HTTP correspondiente."""
        if isinstance(e, NoAutenticadoError):
            return json_response(success=False, error=e.message, status=401)

        if isinstance(e, ValidationError):
            return json_response(
                success=False,
                error=e.message,
                status=400,
                meta={'field': e.field, 'code': e.code}
            )

        if isinstance(e, InvalidReferenceError):
            return json_response(
                success=False,
                error=e.message,
                status=400,
                meta={'field': e.field, 'code': e.code}
            )

        if isinstance(e, AccessDeniedError):
            return json_response(success=False, error=e.message, status=403)

        if isinstance(e, EntityNotFoundError):
            return json_response(success=False, error=e.message, status=404)

        if isinstance(e, (ConflictError, ConcurrencyError)):
            return json_response(
                success=False,
                error=e.message,
                status=409,
                meta={'code': e.code}
            )

        if isinstance(e, BusinessRuleViolationError):
            return json_response(
                success=False,
                error=e.message,
                status=422,
                meta={'rule': e.rule}
            )

        if isinstance(e, DomainException):
            return json_response(success=False, error=e.message, status=400)

        if isinstance(e, ValueError):
            return json_response(success=False, error=str(e), status=400)

        logger.exception(f"Error inesperado en la API: {e}")
        return json_response(
            success=False,
            error="Error interno del servidor",
            status=500
        )


# =============================================================================
# Tickets
# =============================================================================

class TicketAPIListView(BaseAPIView):
    """
    GET /api/tickets/ - Lista tickets
    POST /api/tickets/ - Crea ticket
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        """
        Administradores ven todos los tickets; los demás, sólo los suyos.

        Query params:
        - page: Página (default: 1)
        - per_page: Items por página (default: 20)
        """
        try:
            usuario = self.get_usuario(request)
            listar_service = self.get_service('listar_tickets_service')

            id_solicitante = None if usuario.es_administrador else usuario.id_usuario
            return self.paginar(request, listar_service.execute(id_solicitante=id_solicitante))

        except Exception as e:
            return self.handle_exception(e)

    def post(self, request: HttpRequest) -> JsonResponse:
        """
        Crea un ticket a nombre del usuario de la cabecera.

        Body JSON:
        {
            "asunto": "string (5 a 150)",
            "descripcion": "string (mínimo 10)",
            "id_departamento": int,
            "id_prioridad": int
        }
        """
        try:
            usuario = self.get_usuario(request)
            data = self.parse_body(request)

            crear_service = self.get_service('crear_ticket_service')

            output = crear_service.execute(CrearTicketInputDTO(
                asunto=texto(data, 'asunto'),
                descripcion=texto(data, 'descripcion'),
                id_departamento=entero(data, 'id_departamento'),
                id_prioridad=entero(data, 'id_prioridad'),
                id_solicitante=usuario.id_usuario,
            ))

            logger.info(f"API: ticket creado {output.numero_ticket}")

            return json_response(success=True, data=output.to_dict(), status=201)

        except Exception as e:
            return self.handle_exception(e)


class MisTicketsAPIView(BaseAPIView):
    """GET /api/tickets/mis-tickets/"""

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            listar_service = self.get_service('listar_tickets_service')
            return self.paginar(request, listar_service.execute(id_solicitante=usuario.id_usuario))

        except Exception as e:
            return self.handle_exception(e)


class _ListaAgenteAPIView(BaseAPIView):
    """Listas de agente; el service aplica rol y ámbito."""

    service_name: str = ''

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            service = self.get_service(self.service_name)
            return self.paginar(request, service.execute(id_agente=usuario.id_usuario))

        except Exception as e:
            return self.handle_exception(e)


class TicketsAbiertosAPIView(_ListaAgenteAPIView):
    """GET /api/tickets/abiertos/"""
    service_name = 'listar_abiertos_service'


class TicketsCerradosAPIView(_ListaAgenteAPIView):
    """GET /api/tickets/cerrados/"""
    service_name = 'listar_cerrados_service'


class TicketsVencidosAPIView(_ListaAgenteAPIView):
    """GET /api/tickets/vencidos/"""
    service_name = 'listar_vencidos_service'


class TicketAPIDetailView(BaseAPIView):
    """
    GET /api/tickets/<id>/ - Detalle
    PATCH /api/tickets/<id>/ - Actualización parcial
    DELETE /api/tickets/<id>/ - Borrado
    """

    def get(self, request: HttpRequest, pk: int) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            ticket = self.get_service('obtener_ticket_service').execute(pk, usuario=usuario)
            return json_response(success=True, data=ticket.to_dict())

        except Exception as e:
            return self.handle_exception(e)

    def patch(self, request: HttpRequest, pk: int) -> JsonResponse:
        """
        Actualiza sólo los campos enviados.

        Body JSON (todos opcionales):
        {
            "asunto": "string",
            "descripcion": "string",
            "id_prioridad": int,
            "id_estado": int,
            "asignado_a": int | null
        }

        Enviar "asignado_a": null sobre un ticket asignado responde 409:
        el responsable sólo se quita derivando.
        """
        try:
            usuario = self.get_usuario(request)
            data = self.parse_body(request)

            input_dto = ActualizarTicketInputDTO(
                asunto=texto(data, 'asunto', requerido=False),
                descripcion=texto(data, 'descripcion', requerido=False),
                id_prioridad=entero(data, 'id_prioridad', requerido=False),
                id_estado=entero(data, 'id_estado', requerido=False),
                asignado_a=entero(data, 'asignado_a', requerido=False),
                quitar_asignado='asignado_a' in data and data['asignado_a'] is None,
            )

            output = self.get_service('actualizar_ticket_service').execute(pk, input_dto, usuario=usuario)
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)

    def delete(self, request: HttpRequest, pk: int) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            self.get_service('eliminar_ticket_service').execute(pk, usuario=usuario)
            return json_response(success=True, data={'id_ticket': pk})

        except Exception as e:
            return self.handle_exception(e)


class TicketAPITomarView(BaseAPIView):
    """PUT /api/tickets/<id>/tomar/ - El usuario de la cabecera toma el ticket."""

    def put(self, request: HttpRequest, pk: int) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            output = self.get_service('tomar_ticket_service').execute(pk, usuario.id_usuario)
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIDerivarView(BaseAPIView):
    """
    PUT /api/tickets/<id>/derivar/

    Body JSON:
    {
        "id_departamento_destino": int,
        "motivo": "string (opcional)"
    }
    """

    def put(self, request: HttpRequest, pk: int) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            data = self.parse_body(request)

            output = self.get_service('derivar_ticket_service').execute(pk, DerivarTicketInputDTO(
                id_departamento_destino=entero(data, 'id_departamento_destino'),
                motivo=texto(data, 'motivo', requerido=False) or '',
                id_agente=usuario.id_usuario,
            ))

            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


# =============================================================================
# Datos maestros
# =============================================================================

class _DatosMaestrosListView(BaseAPIView):
    service_name: str = ''

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            items = self.get_service(self.service_name).execute()
            return json_response(
                success=True,
                data=[item.to_dict() for item in items],
                meta={'total': len(items)}
            )

        except Exception as e:
            return self.handle_exception(e)


class _DatosMaestrosDetailView(BaseAPIView):
    service_name: str = ''

    def get(self, request: HttpRequest, pk: int) -> JsonResponse:
        try:
            return json_response(success=True, data=self.get_service(self.service_name).execute(pk).to_dict())

        except Exception as e:
            return self.handle_exception(e)


class DepartamentosAPIView(_DatosMaestrosListView):
    """GET /api/datos-maestros/departamentos/ - Sólo activos, por nombre."""
    service_name = 'listar_departamentos_service'


class DepartamentoAPIDetailView(_DatosMaestrosDetailView):
    service_name = 'obtener_departamento_service'


class PrioridadesAPIView(_DatosMaestrosListView):
    """GET /api/datos-maestros/prioridades/ - Por nivel, con horas de respuesta."""
    service_name = 'listar_prioridades_service'


class PrioridadAPIDetailView(_DatosMaestrosDetailView):
    service_name = 'obtener_prioridad_service'


class EstadosAPIView(_DatosMaestrosListView):
    service_name = 'listar_estados_service'


class EstadoAPIDetailView(_DatosMaestrosDetailView):
    service_name = 'obtener_estado_service'


class EstadisticasAPIView(BaseAPIView):
    """GET /api/datos-maestros/estadisticas/"""

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            return json_response(success=True, data=self.get_service('estadisticas_service').execute().to_dict())

        except Exception as e:
            return self.handle_exception(e)


class ValidarFormularioAPIView(BaseAPIView):
    """GET /api/datos-maestros/validar/<dep>/<prio>/ - Si el formulario puede crear un ticket."""

    def get(self, request: HttpRequest, id_departamento: int, id_prioridad: int) -> JsonResponse:
        try:
            resultado = self.get_service('validar_formulario_service').execute(id_departamento, id_prioridad)
            return json_response(success=True, data=resultado.to_dict())

        except Exception as e:
            return self.handle_exception(e)


# =============================================================================
# Usuarios
# =============================================================================

class DisponibilidadUsuarioAPIView(BaseAPIView):
    """
    GET /api/usuarios/disponibilidad/?correo=...&rut=...&excluir_id=...

    Responde sólo por los parámetros enviados. Si la consulta falla,
    el valor se informa como no disponible.
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            correo = request.GET.get('correo')
            rut = request.GET.get('rut')
            excluir_id = entero(request.GET, 'excluir_id', requerido=False)

            if not correo and not rut:
                raise ValidationError("Debe indicar correo o rut", field='correo')

            data = {}
            if correo:
                data['correo_disponible'] = self.get_service('verificar_correo_service').execute(correo, excluir_id)
            if rut:
                data['rut_disponible'] = self.get_service('verificar_rut_service').execute(rut, excluir_id)

            return json_response(success=True, data=data)

        except Exception as e:
            return self.handle_exception(e)


# =============================================================================
# Administración
# =============================================================================

def rol(data: Dict, campo: str = 'rol', requerido: bool = True) -> Optional[Rol]:
    """Acepta el id numérico del rol o su nombre canónico (o alias)."""
    valor = data.get(campo)

    if valor == '':
        valor = None

    if isinstance(valor, str) and not valor.strip().isdigit():
        try:
            return Rol.from_string(valor)
        except ValueError:
            raise ValidationError(f"Rol inválido: {valor}", field=campo)

    id_rol = entero({campo: valor}, campo, requerido=requerido)
    if id_rol is None:
        return None

    try:
        return Rol(id_rol)
    except ValueError:
        raise ValidationError(f"Rol inválido: {valor}", field=campo)


def booleano(data: Dict, campo: str) -> Optional[bool]:
    """Lee un booleano opcional (JSON true/false o 'true'/'false' en la query)."""
    valor = data.get(campo)

    if valor is None or valor == '':
        return None

    if isinstance(valor, bool):
        return valor

    if isinstance(valor, str) and valor.lower() in ('true', 'false', '1', '0'):
        return valor.lower() in ('true', '1')

    raise ValidationError(f"El campo {campo} debe ser true o false", field=campo)


def filtro_usuarios(params) -> FiltroUsuarios:
    """
    Query params:
    - buscar: texto en nombre, apellido o correo
    - departamento, rol, activo
    - ordenar: nombre | correo | fecha_creacion
    - direccion: asc | desc
    """
    params = {clave: valor for clave, valor in params.items() if valor != ''}

    ordenar = params.get('ordenar') or OrdenUsuarios.FECHA_CREACION.value
    try:
        orden = OrdenUsuarios(ordenar)
    except ValueError:
        raise ValidationError(f"No se puede ordenar por {ordenar}", field='ordenar')

    direccion = (params.get('direccion') or ('desc' if orden == OrdenUsuarios.FECHA_CREACION else 'asc')).lower()
    if direccion not in ('asc', 'desc'):
        raise ValidationError("direccion debe ser asc o desc", field='direccion')

    return FiltroUsuarios(
        texto=(params.get('buscar') or '').strip() or None,
        id_departamento=entero(params, 'departamento', requerido=False),
        rol=rol(params, requerido=False),
        activo=booleano(params, 'activo'),
        orden=orden,
        descendente=direccion == 'desc',
    )


class UsuariosAdminAPIView(BaseAPIView):
    """
    GET /api/admin/usuarios/ - Lista filtrada y paginada
    POST /api/admin/usuarios/ - Alta de usuario
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            service = self.get_service('listar_usuarios_service')
            return self.paginar(request, service.execute(filtro_usuarios(request.GET), usuario=usuario))

        except Exception as e:
            return self.handle_exception(e)

    def post(self, request: HttpRequest) -> JsonResponse:
        """
        Body JSON:
        {
            "nombre": "string",
            "apellido": "string",
            "correo": "string",
            "rut": "12345678-5",
            "rol": "cliente" | "responsable" | "administrador" | 1..3,
            "id_departamento": int (obligatorio para responsables)
        }
        """
        try:
            usuario = self.get_usuario(request)
            data = self.parse_body(request)

            output = self.get_service('crear_usuario_service').execute(
                CrearUsuarioInputDTO(
                    nombre=texto(data, 'nombre'),
                    apellido=texto(data, 'apellido'),
                    correo=texto(data, 'correo'),
                    rut=texto(data, 'rut'),
                    rol=rol(data, requerido=False) or Rol.CLIENTE,
                    id_departamento=entero(data, 'id_departamento', requerido=False),
                ),
                usuario=usuario,
            )

            logger.info(f"API: usuario creado {output.id}")
            return json_response(success=True, data=output.to_dict(), status=201)

        except Exception as e:
            return self.handle_exception(e)


class UsuarioAdminDetailView(BaseAPIView):
    """
    GET /api/admin/usuarios/<id>/ - Detalle
    PUT /api/admin/usuarios/<id>/ - Actualización parcial (sólo los campos enviados)
    DELETE /api/admin/usuarios/<id>/ - Borrado (usuarios sin tickets)
    """

    def get(self, request: HttpRequest, pk: int) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            output = self.get_service('obtener_usuario_service').execute(pk, usuario=usuario)
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)

    def put(self, request: HttpRequest, pk: int) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            data = self.parse_body(request)

            input_dto = ActualizarUsuarioInputDTO(
                nombre=texto(data, 'nombre', requerido=False),
                apellido=texto(data, 'apellido', requerido=False),
                correo=texto(data, 'correo', requerido=False),
                rut=texto(data, 'rut', requerido=False),
                rol=rol(data, requerido=False),
                id_departamento=entero(data, 'id_departamento', requerido=False),
                activo=booleano(data, 'activo'),
            )

            output = self.get_service('actualizar_usuario_service').execute(pk, input_dto, usuario=usuario)
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)

    def delete(self, request: HttpRequest, pk: int) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            self.get_service('eliminar_usuario_service').execute(pk, usuario=usuario)
            return json_response(success=True, data={'id_usuario': pk})

        except Exception as e:
            return self.handle_exception(e)


class MetricasAdminAPIView(BaseAPIView):
    """
    GET /api/admin/metricas/?meses=6

    Resumen de la empresa, métricas por departamento, tendencia mensual
    y tickets por estado. Sólo datos.
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            usuario = self.get_usuario(request)
            meses = entero(request.GET, 'meses', requerido=False)
            if meses is None:
                meses = 6

            metricas = self.get_service('metricas_admin_service').execute(usuario=usuario, meses=meses)
            return json_response(success=True, data=metricas.to_dict())

        except Exception as e:
            return self.handle_exception(e)
