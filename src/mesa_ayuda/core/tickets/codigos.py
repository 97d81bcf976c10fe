"""
Generador de códigos de ticket.

Formato: "TK" + año (4 dígitos) + mes (2 dígitos) + secuencia (3 dígitos,
rellenada con ceros). Ej: TK202507003. La secuencia se reinicia cada mes;
pasado 999 el código simplemente crece (TK2025071000).

Política de fallas: si no se puede leer o interpretar el último código
del mes, se usa un código de respaldo "TK" + año + últimos 6 dígitos del
timestamp en milisegundos. La degradación queda registrada en el log.

La unicidad final la garantiza la restricción UNIQUE de la base de datos;
el caso de uso de creación reintenta si el código choca.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple
import logging

from mesa_ayuda.core.shared.tiempo import ahora as reloj_utc

logger = logging.getLogger(__name__)

PREFIJO = "TK"
DIGITOS_SECUENCIA = 3


def prefijo_mensual(momento: datetime) -> str:
    """"TK" + año + mes del momento dado (ej: TK202507)."""
    return f"{PREFIJO}{momento.year:04d}{momento.month:02d}"


def formatear_codigo(momento: datetime, secuencia: int) -> str:
    return f"{prefijo_mensual(momento)}{secuencia:0{DIGITOS_SECUENCIA}d}"


def inicio_mes(momento: datetime) -> datetime:
    """Primer instante del mes calendario (misma zona horaria)."""
    return momento.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def fin_mes(momento: datetime) -> datetime:
    """Último instante representable del mes calendario."""
    inicio = inicio_mes(momento)
    if inicio.month == 12:
        siguiente = inicio.replace(year=inicio.year + 1, month=1)
    else:
        siguiente = inicio.replace(month=inicio.month + 1)
    return siguiente - timedelta(microseconds=1)


def siguiente_secuencia(ultimo_codigo: Optional[str], prefijo: str) -> int:
    """
    Secuencia que sigue al último código del mes.

    Args:
        ultimo_codigo: Código más alto del mes, o None si no hay tickets
        prefijo: Prefijo mensual esperado

    Raises:
        ValueError: Si el código no tiene el prefijo o el sufijo no es numérico
    """
    if not ultimo_codigo:
        return 1

    if not ultimo_codigo.startswith(prefijo):
        raise ValueError(f"Código {ultimo_codigo} no pertenece al mes {prefijo}")

    sufijo = ultimo_codigo[len(prefijo):]
    if not sufijo.isdigit():
        raise ValueError(f"Sufijo no numérico en el código {ultimo_codigo}")

    return int(sufijo) + 1


def codigo_respaldo(momento: datetime) -> str:
    """Código basado en timestamp para cuando la secuencia no está disponible."""
    milisegundos = int(momento.timestamp() * 1000)
    return f"{PREFIJO}{momento.year:04d}{str(milisegundos)[-6:]}"


class GeneradorCodigoBase(ABC):
    """
    Algoritmo común de generación; las subclases sólo saben consultar
    el código más alto de un rango de fechas.

    Args:
        reloj: Función que devuelve el instante actual. Los adapters
            inyectan la hora local para que el mes calendario coincida
            con el de la zona horaria configurada.
    """

    def __init__(self, reloj: Callable[[], datetime] = reloj_utc):
        self._reloj = reloj

    def generar(self) -> str:
        momento = self._reloj()
        prefijo = prefijo_mensual(momento)

        try:
            ultimo = self._ultimo_codigo_del_mes(prefijo, inicio_mes(momento), fin_mes(momento))
            return formatear_codigo(momento, siguiente_secuencia(ultimo, prefijo))
        except Exception as e:
            codigo = codigo_respaldo(momento)
            logger.warning(
                f"No se pudo calcular la secuencia de {prefijo}, "
                f"se usa código de respaldo {codigo}: {e}",
                exc_info=True,
            )
            return codigo

    def _ultimo_codigo_del_mes(self, prefijo: str, inicio: datetime, fin: datetime) -> Optional[str]:
        """
        Código más alto del mes, buscado por tramos de largo.

        Sólo se miran códigos con DIGITOS_SECUENCIA dígitos de secuencia;
        el tramo siguiente se consulta cuando el actual está lleno
        (TK202507999). Así un código de respaldo que comparte el prefijo
        del mes no se toma como parte de la secuencia.
        """
        largo = len(prefijo) + DIGITOS_SECUENCIA
        ultimo = self._ultimo_codigo_de_largo(prefijo, inicio, fin, largo)

        while ultimo == prefijo + "9" * (largo - len(prefijo)):
            siguiente = self._ultimo_codigo_de_largo(prefijo, inicio, fin, largo + 1)
            if siguiente is None:
                break
            ultimo, largo = siguiente, largo + 1

        return ultimo

    @abstractmethod
    def _ultimo_codigo_de_largo(
        self, prefijo: str, inicio: datetime, fin: datetime, largo: int
    ) -> Optional[str]:
        """Código más alto con ese prefijo y ese largo, entre los tickets creados en [inicio, fin]."""
        raise NotImplementedError


class InMemoryGeneradorCodigo(GeneradorCodigoBase):
    """
    Generador para tests: lee los tickets de un repositorio en memoria.

    Example:
        generador = InMemoryGeneradorCodigo(ticket_repo.pares_codigo_fecha)
    """

    def __init__(
        self,
        fuente: Callable[[], List[Tuple[str, datetime]]],
        reloj: Callable[[], datetime] = reloj_utc,
    ):
        super().__init__(reloj)
        self._fuente = fuente

    def _ultimo_codigo_de_largo(
        self, prefijo: str, inicio: datetime, fin: datetime, largo: int
    ) -> Optional[str]:
        codigos = [
            codigo for codigo, fecha in self._fuente()
            if inicio <= fecha <= fin and codigo.startswith(prefijo) and len(codigo) == largo
        ]
        return max(codigos, default=None)
