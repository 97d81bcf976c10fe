"""
Configuración global de Pytest para la Mesa de Ayuda.

Este archivo lo carga pytest automáticamente y provee:
- Settings de Django para tests (SQLite en memoria)
- Markers y opciones de línea de comandos
- Fixtures compartidas
"""

import pytest
from pathlib import Path


def pytest_configure(config):
    """Configura Django antes de importar los tests."""
    import django
    from django.conf import settings

    config.addinivalue_line(
        "markers", "slow: marca tests lentos (deseleccionar con '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marca tests de integración"
    )

    if not settings.configured:
        settings.configure(
            DEBUG=True,
            SECRET_KEY='test-secret-key',
            DATABASES={
                'default': {
                    'ENGINE': 'django.db.backends.sqlite3',
                    'NAME': ':memory:',
                }
            },
            INSTALLED_APPS=[
                'django.contrib.admin',
                'django.contrib.contenttypes',
                'django.contrib.auth',
                'django.contrib.sessions',
                'django.contrib.messages',
                'mesa_ayuda.adapters.django_app.tickets',
            ],
            ROOT_URLCONF='mesa_ayuda.config.urls',
            TEMPLATES=[{
                'BACKEND': 'django.template.backends.django.DjangoTemplates',
                'DIRS': [],
                'APP_DIRS': True,
                'OPTIONS': {
                    'context_processors': [
                        'django.template.context_processors.request',
                        'django.contrib.auth.context_processors.auth',
                        'django.contrib.messages.context_processors.messages',
                    ],
                },
            }],
            MIDDLEWARE=[
                'django.contrib.sessions.middleware.SessionMiddleware',
                'django.middleware.common.CommonMiddleware',
                'django.contrib.auth.middleware.AuthenticationMiddleware',
                'django.contrib.messages.middleware.MessageMiddleware',
            ],
            DEFAULT_AUTO_FIELD='django.db.models.BigAutoField',
            USE_TZ=True,
            TIME_ZONE='America/Santiago',
            EVENT_PUBLISHER_MODE='sync',
            TICKET_CODIGO_MAX_REINTENTOS=3,
        )
        django.setup()


def pytest_addoption(parser):
    """Agrega opciones de línea de comandos."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="ejecuta los tests de integración",
    )


def pytest_collection_modifyitems(config, items):
    """Salta los tests de integración salvo que se pida --run-integration."""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="Usar --run-integration para ejecutarlos")

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(scope="session")
def project_root():
    """Raíz del repositorio."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def reset_container_global():
    """
    Descarta el container global después de cada test.

    Garantiza que cada test parte con providers sin overrides.
    """
    yield
    from mesa_ayuda.config.container import reset_container
    reset_container()
