"""
Generador de códigos de ticket sobre el ORM.

El mes calendario se toma en la zona horaria configurada (TIME_ZONE),
no en UTC.
"""

from datetime import datetime
from typing import Callable, Optional

from django.db import transaction
from django.db.models.functions import Length
from django.utils import timezone

from mesa_ayuda.core.tickets.codigos import GeneradorCodigoBase

from .models import TicketModel


class DjangoGeneradorCodigo(GeneradorCodigoBase):
    """
    Lee el código más alto del mes desde la tabla de tickets, un largo
    de código por consulta.
    """

    def __init__(self, reloj: Optional[Callable[[], datetime]] = None):
        super().__init__(reloj or timezone.localtime)

    def _ultimo_codigo_de_largo(
        self, prefijo: str, inicio: datetime, fin: datetime, largo: int
    ) -> Optional[str]:
        # Savepoint: un error de lectura no debe invalidar la transacción del alta
        with transaction.atomic():
            return (
                TicketModel.objects
                .annotate(largo_codigo=Length('numero_ticket'))
                .filter(
                    fecha_creacion__range=(inicio, fin),
                    numero_ticket__startswith=prefijo,
                    largo_codigo=largo,
                )
                .order_by('-numero_ticket')
                .values_list('numero_ticket', flat=True)
                .first()
            )
