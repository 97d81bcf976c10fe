"""
Capa de Dominio - El Hexágono.

Contiene la lógica de negocio pura de la mesa de ayuda:
- Sin dependencias de frameworks (Django, Celery, etc.)
- Testeable sin base de datos
- Agnóstica a la infraestructura
"""
