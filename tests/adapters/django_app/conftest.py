"""
Configuração pytest para testes com Django.

Este arquivo configura:
- Django settings para testes (SQLite em memória)
- Fixtures de repositório e Unit of Work Django

As tabelas são criadas pelas migrations do app de chamados
(django_db_setup padrão do pytest-django).
"""

import pytest


def pytest_configure(config):
    """Configura Django antes dos testes."""
    import django
    from django.conf import settings

    if not settings.configured:
        settings.configure(
            DEBUG=True,
            DATABASES={
                'default': {
                    'ENGINE': 'django.db.backends.sqlite3',
                    'NAME': ':memory:',
                }
            },
            INSTALLED_APPS=[
                'django.contrib.contenttypes',
                'src.adapters.django_app.chamados',
            ],
            DEFAULT_AUTO_FIELD='django.db.models.BigAutoField',
            USE_TZ=True,
            TIME_ZONE='America/Sao_Paulo',
        )
        django.setup()


@pytest.fixture
def django_repo():
    """Repositório Django de chamados."""
    from src.adapters.django_app.chamados.repositories import DjangoChamadoRepository
    return DjangoChamadoRepository()


@pytest.fixture
def django_publisher():
    from src.adapters.django_app.events.publishers import InMemoryEventPublisher
    return InMemoryEventPublisher()


@pytest.fixture
def django_uow_factory(django_publisher):
    """Cria um DjangoUnitOfWork novo a cada chamada."""
    from src.adapters.django_app.shared.unit_of_work import DjangoUnitOfWork

    def create_uow():
        return DjangoUnitOfWork(event_publisher=django_publisher)

    return create_uow
