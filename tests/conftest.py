"""
Configurações globais do Pytest para Gestão de Chamados.

Este arquivo é carregado automaticamente pelo pytest e
fornece fixtures e configurações compartilhadas.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from src.core.chamados.entities import Chamado
from src.core.chamados.enums import Categoria, Prioridade
from src.core.chamados.sla import PoliticaSLA
from src.core.shared.relogio import RelogioFixo


# 2024-01-01 08:00 UTC - instante inicial de todos os cenários temporais
INSTANTE_INICIAL = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def project_root():
    """Retorna o caminho raiz do projeto."""
    return Path(__file__).parent.parent


@pytest.fixture
def relogio():
    """Relógio fixo em INSTANTE_INICIAL."""
    return RelogioFixo(INSTANTE_INICIAL)


@pytest.fixture
def politica():
    """Tabela inicial: ALTA 4h, MÉDIA 24h, BAIXA 72h."""
    return PoliticaSLA.criar()


@pytest.fixture
def chamado_factory(politica):
    """Factory de chamados ABERTOS criados em INSTANTE_INICIAL."""

    def criar(**kwargs):
        dados = {
            "titulo": "Lâmpada queimada",
            "categoria": Categoria.ELETRICA,
            "local": "Bloco B - Corredor 2",
            "solicitante": "maria",
            "foto_abertura": "fotos/abertura.jpg",
            "prioridade": Prioridade.MEDIA,
            "politica": politica,
            "agora": INSTANTE_INICIAL,
        }
        dados.update(kwargs)
        return Chamado.criar(**dados)

    return criar


def pytest_configure(config):
    """Configuração do pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Pula testes de integração sem --run-integration."""
    skip_integration = pytest.mark.skip(reason="Integration tests require --run-integration")

    for item in items:
        if "integration" in item.keywords:
            if not config.getoption("--run-integration", default=False):
                item.add_marker(skip_integration)


def pytest_addoption(parser):
    """Adiciona opções de linha de comando."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="run integration tests",
    )
