"""
Excepciones de Dominio de la Mesa de Ayuda.

Este módulo define las excepciones propias del dominio que permiten
comunicar errores de forma clara y tipada entre las capas.

Jerarquía:
    DomainException (base)
    ├── ValidationError (entrada malformada)
    ├── EntityNotFoundError (la entidad no existe)
    ├── InvalidReferenceError (clave foránea inexistente o inactiva)
    ├── AccessDeniedError (el usuario no puede operar sobre el recurso)
    ├── ConflictError (estado actual incompatible con la operación)
    │   └── InvalidOperationError (operación sin sentido para el estado)
    ├── BusinessRuleViolationError (regla de negocio violada)
    └── ConcurrencyError (colisión entre escrituras concurrentes)
        └── CodigoDuplicadoError (código de ticket ya usado)
"""


class DomainException(Exception):
    """
    Excepción base para todos los errores de dominio.

    Todas las excepciones específicas del dominio heredan de esta clase,
    lo que permite capturar cualquier error de dominio de forma genérica.

    Example:
        try:
            servicio.execute(...)
        except DomainException as e:
            logger.error(f"Error de dominio: {e}")
    """

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        """Serializa la excepción a diccionario (útil para APIs)."""
        return {
            "error": self.code,
            "message": self.message,
        }


class ValidationError(DomainException):
    """
    Error de validación de datos de entrada.

    Se lanza antes de cualquier persistencia cuando los datos
    recibidos no cumplen los requisitos mínimos.

    Example:
        if len(asunto) < 5:
            raise ValidationError("El asunto debe tener al menos 5 caracteres")
    """

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class EntityNotFoundError(DomainException):
    """
    Entidad no encontrada en el repositorio.

    Example:
        ticket = repo.get_by_id(ticket_id)
        if not ticket:
            raise EntityNotFoundError("Ticket no encontrado", "Ticket", ticket_id)
    """

    def __init__(self, message: str, entity_type: str = None, entity_id=None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, "ENTITY_NOT_FOUND")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id is not None:
            result["entity_id"] = self.entity_id
        return result


class InvalidReferenceError(DomainException):
    """
    Referencia a otra entidad que no existe o no está activa.

    Se distingue de EntityNotFoundError: el recurso principal existe
    (o se está creando), pero uno de sus campos apunta a algo inválido.

    Example:
        if not departamento or not departamento.activo:
            raise InvalidReferenceError("Departamento inválido", field="id_departamento")
    """

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message, "INVALID_REFERENCE")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class AccessDeniedError(DomainException):
    """El usuario no tiene permiso para operar sobre el recurso."""

    def __init__(self, message: str = "No tiene acceso a este ticket"):
        super().__init__(message, "ACCESS_DENIED")


class ConflictError(DomainException):
    """
    El estado actual del recurso impide la operación.

    Example:
        if ticket.asignado_a and ticket.asignado_a != id_agente:
            raise ConflictError("El ticket ya fue tomado por otro agente")
    """

    def __init__(self, message: str, code: str = None):
        super().__init__(message, code or "CONFLICT")


class InvalidOperationError(ConflictError):
    """Operación que no tiene sentido para el estado actual (ej: derivar al mismo departamento)."""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_OPERATION")


class BusinessRuleViolationError(DomainException):
    """
    Violación de una regla de negocio.

    Example:
        raise BusinessRuleViolationError(
            "No se puede quitar el responsable de un ticket",
            rule="responsable_solo_se_limpia_al_derivar"
        )
    """

    def __init__(self, message: str, rule: str = None):
        self.rule = rule
        super().__init__(message, "BUSINESS_RULE_VIOLATION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.rule:
            result["rule"] = self.rule
        return result


class ConcurrencyError(DomainException):
    """
    Error de concurrencia entre escrituras.

    Se lanza cuando una operación falla porque otro proceso
    escribió el mismo dato entre la lectura y la escritura.
    """

    def __init__(self, message: str, code: str = None):
        super().__init__(message, code or "CONCURRENCY_ERROR")


class CodigoDuplicadoError(ConcurrencyError):
    """
    Otro proceso guardó un ticket con el mismo código.

    El caso de uso de creación la captura para regenerar el código
    y reintentar.
    """

    def __init__(self, numero_ticket: str):
        self.numero_ticket = numero_ticket
        super().__init__(
            f"El código de ticket {numero_ticket} ya existe",
            code="CODIGO_DUPLICADO",
        )
