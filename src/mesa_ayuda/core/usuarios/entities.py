"""
Entidad de Usuario.

La mesa de ayuda no maneja credenciales ni sesiones: eso lo resuelve
la capa de autenticación. Aquí se guardan los datos de perfil, el rol
y el departamento, que los administradores mantienen.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
import re

from mesa_ayuda.core.acceso import ContextoUsuario, Rol
from mesa_ayuda.core.shared.exceptions import ValidationError
from mesa_ayuda.core.shared.tiempo import ahora

_PATRON_CORREO = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PATRON_RUT = re.compile(r"^(\d{7,8})([0-9K])$")


def digito_verificador(numero: str) -> str:
    """Dígito verificador módulo 11 del cuerpo de un RUT."""
    suma = 0
    multiplicador = 2
    for digito in reversed(numero):
        suma += int(digito) * multiplicador
        multiplicador = 2 if multiplicador == 7 else multiplicador + 1

    resto = 11 - suma % 11
    if resto == 11:
        return "0"
    if resto == 10:
        return "K"
    return str(resto)


def normalizar_rut(rut: str) -> str:
    """
    Deja el RUT como 12345678-5: sin puntos, con guion y K mayúscula.

    Raises:
        ValidationError: Formato inválido o dígito verificador incorrecto
    """
    if not isinstance(rut, str) or not rut.strip():
        raise ValidationError("El RUT es obligatorio", field="rut")

    compacto = rut.strip().upper().replace(".", "").replace("-", "")
    coincidencia = _PATRON_RUT.match(compacto)

    if not coincidencia:
        raise ValidationError("Formato de RUT inválido (ej: 12345678-5)", field="rut")

    numero, dv = coincidencia.groups()
    if digito_verificador(numero) != dv:
        raise ValidationError("El dígito verificador del RUT es incorrecto", field="rut")

    return f"{numero}-{dv}"


@dataclass
class UsuarioEntity:
    """
    Usuario registrado.

    Attributes:
        id: ID numérico (None hasta que se persiste)
        nombre: Nombre(s)
        apellido: Apellido(s)
        correo: Correo electrónico (único, en minúsculas)
        rut: RUT chileno (único)
        rol: Rol del usuario
        id_departamento: Departamento al que pertenece (obligatorio para responsables)
        activo: Si el usuario puede operar
        fecha_creacion: Alta del usuario
    """

    id: Optional[int]
    nombre: str
    apellido: str
    correo: str
    rut: str
    rol: Rol = Rol.CLIENTE
    id_departamento: Optional[int] = None
    activo: bool = True
    fecha_creacion: Optional[datetime] = None

    @classmethod
    def crear(
        cls,
        nombre: str,
        apellido: str,
        correo: str,
        rut: str,
        rol: Rol = Rol.CLIENTE,
        id_departamento: Optional[int] = None,
        momento: Optional[datetime] = None,
    ) -> "UsuarioEntity":
        """
        Factory method: valida y normaliza los datos de un usuario nuevo.

        Raises:
            ValidationError: Si algún dato es inválido
        """
        usuario = cls(
            id=None,
            nombre=cls.validar_nombre(nombre, "nombre"),
            apellido=cls.validar_nombre(apellido, "apellido"),
            correo=cls.validar_correo(correo),
            rut=normalizar_rut(rut),
            rol=rol,
            id_departamento=id_departamento,
            fecha_creacion=momento or ahora(),
        )
        usuario._validar_departamento()
        return usuario

    @staticmethod
    def validar_nombre(valor: str, campo: str) -> str:
        if valor is not None and not isinstance(valor, str):
            raise ValidationError(f"El campo {campo} debe ser texto", field=campo)

        valor = (valor or "").strip()

        if len(valor) < 2:
            raise ValidationError(f"El campo {campo} debe tener al menos 2 caracteres", field=campo)

        if len(valor) > 100:
            raise ValidationError(f"El campo {campo} no puede superar 100 caracteres", field=campo)

        return valor

    @staticmethod
    def validar_correo(correo: str) -> str:
        if correo is not None and not isinstance(correo, str):
            raise ValidationError("El correo debe ser texto", field="correo")

        correo = (correo or "").strip().lower()

        if not _PATRON_CORREO.match(correo) or len(correo) > 150:
            raise ValidationError("Correo electrónico inválido", field="correo")

        return correo

    def _validar_departamento(self) -> None:
        # Las listas de agente se acotan por departamento
        if self.rol == Rol.RESPONSABLE and self.id_departamento is None:
            raise ValidationError(
                "Un responsable debe pertenecer a un departamento",
                field="id_departamento",
            )

    def actualizar(
        self,
        nombre: Optional[str] = None,
        apellido: Optional[str] = None,
        correo: Optional[str] = None,
        rut: Optional[str] = None,
        rol: Optional[Rol] = None,
        id_departamento: Optional[int] = None,
        activo: Optional[bool] = None,
    ) -> List[str]:
        """
        Actualización parcial: los argumentos en None no se tocan.

        Returns:
            Nombres de los campos que cambiaron de valor
        """
        nuevos = {
            "nombre": self.validar_nombre(nombre, "nombre") if nombre is not None else None,
            "apellido": self.validar_nombre(apellido, "apellido") if apellido is not None else None,
            "correo": self.validar_correo(correo) if correo is not None else None,
            "rut": normalizar_rut(rut) if rut is not None else None,
            "rol": rol,
            "id_departamento": id_departamento,
            "activo": activo,
        }

        cambios = []
        for campo, valor in nuevos.items():
            if valor is not None and getattr(self, campo) != valor:
                setattr(self, campo, valor)
                cambios.append(campo)

        self._validar_departamento()
        return cambios

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombre} {self.apellido}".strip()

    def contexto(self) -> ContextoUsuario:
        """Contexto que consume la política de acceso."""
        return ContextoUsuario(id_usuario=self.id, rol=self.rol)
