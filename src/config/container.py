"""
Dependency Injection Container.

Configura e gerencia as dependências da Central de Chamados.
Usa dependency-injector para lazy-loading e injeção.

Padrões:
- Singleton: Uma instância para toda app (repositório, relógio,
  política de SLA, travas, publisher, central)
- Factory: Nova instância por chamada (services, UoW)
- Selector: Implementação escolhida por configuração (backend)

O backend 'django' exige Django configurado (django.setup())
antes do primeiro uso; os adapters são importados sob demanda.
"""

from typing import Optional

from dependency_injector import containers, providers

from src.core.chamados.central import CentralDeChamados
from src.core.chamados.ports import InMemoryChamadoRepository
from src.core.chamados.sla import ConfiguracaoSLA
from src.core.chamados.use_cases import (
    AlterarAndamentoService,
    AlterarPrioridadeService,
    AprovarJustificativaService,
    AtualizarPoliticaSLAService,
    CriarChamadoService,
    FinalizarChamadoService,
    ListarChamadosService,
    ObterChamadoService,
    ProrrogarPrazoService,
    RegistrarMaterialService,
    RejeitarJustificativaService,
    RejeitarTriagemService,
    SubmeterJustificativaService,
    TriarChamadoService,
)
from src.core.shared.interfaces import InMemoryUnitOfWork
from src.core.shared.relogio import RelogioSistema
from src.core.shared.travas import TravasPorChave


def _django_repository():
    return __import__(
        'src.adapters.django_app.chamados.repositories',
        fromlist=['DjangoChamadoRepository']
    ).DjangoChamadoRepository()


def _django_unit_of_work(event_publisher):
    return __import__(
        'src.adapters.django_app.shared.unit_of_work',
        fromlist=['DjangoUnitOfWork']
    ).DjangoUnitOfWork(event_publisher=event_publisher)


def _event_publisher(modo):
    return __import__(
        'src.adapters.django_app.events.publishers',
        fromlist=['get_event_publisher']
    ).get_event_publisher(modo)


class Container(containers.DeclarativeContainer):
    """
    Container principal de Dependency Injection.

    Organização:
    - Configuration: backend, publisher, tabela de SLA
    - Infrastructure: relógio, travas, publisher
    - Repositories / Unit of Work: por backend
    - Services: Use Cases
    - Central: fachada compartilhada

    Example:
        container = Container()
        container.config.from_dict({'backend': 'memoria', 'sla_horas': {'ALTA': 2}})

        central = container.central()
        output = central.criar(input_dto)
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    config = providers.Configuration(
        default={
            'backend': 'memoria',
            'event_publisher': 'logging',
        }
    )

    # =========================================================================
    # Infrastructure
    # =========================================================================

    relogio = providers.Singleton(RelogioSistema)

    travas = providers.Singleton(TravasPorChave)

    configuracao_sla = providers.Singleton(
        ConfiguracaoSLA,
        horas=config.sla_horas,
    )

    event_publisher = providers.Singleton(
        _event_publisher,
        modo=config.event_publisher,
    )

    # =========================================================================
    # Repositories (Singleton - uma instância por app)
    # =========================================================================

    chamado_repository = providers.Selector(
        config.backend,
        memoria=providers.Singleton(InMemoryChamadoRepository),
        django=providers.Singleton(_django_repository),
    )

    # =========================================================================
    # Unit of Work (Factory - nova instância por operação)
    # =========================================================================

    unit_of_work = providers.Selector(
        config.backend,
        memoria=providers.Factory(InMemoryUnitOfWork, event_publisher=event_publisher),
        django=providers.Factory(_django_unit_of_work, event_publisher=event_publisher),
    )

    # =========================================================================
    # Services / Use Cases (Factory - nova instância por chamada)
    # =========================================================================

    criar_chamado_service = providers.Factory(
        CriarChamadoService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        configuracao_sla=configuracao_sla,
        relogio=relogio,
    )

    # Serviços de mutação compartilham relógio, travas e política
    triar_chamado_service = providers.Factory(
        TriarChamadoService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        relogio=relogio,
        travas=travas,
        configuracao_sla=configuracao_sla,
    )

    rejeitar_triagem_service = providers.Factory(
        RejeitarTriagemService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        relogio=relogio,
        travas=travas,
        configuracao_sla=configuracao_sla,
    )

    alterar_andamento_service = providers.Factory(
        AlterarAndamentoService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        relogio=relogio,
        travas=travas,
        configuracao_sla=configuracao_sla,
    )

    registrar_material_service = providers.Factory(
        RegistrarMaterialService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        relogio=relogio,
        travas=travas,
        configuracao_sla=configuracao_sla,
    )

    finalizar_chamado_service = providers.Factory(
        FinalizarChamadoService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        relogio=relogio,
        travas=travas,
        configuracao_sla=configuracao_sla,
    )

    alterar_prioridade_service = providers.Factory(
        AlterarPrioridadeService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        relogio=relogio,
        travas=travas,
        configuracao_sla=configuracao_sla,
    )

    prorrogar_prazo_service = providers.Factory(
        ProrrogarPrazoService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        relogio=relogio,
        travas=travas,
        configuracao_sla=configuracao_sla,
    )

    submeter_justificativa_service = providers.Factory(
        SubmeterJustificativaService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        relogio=relogio,
        travas=travas,
        configuracao_sla=configuracao_sla,
    )

    aprovar_justificativa_service = providers.Factory(
        AprovarJustificativaService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        relogio=relogio,
        travas=travas,
        configuracao_sla=configuracao_sla,
    )

    rejeitar_justificativa_service = providers.Factory(
        RejeitarJustificativaService,
        chamado_repo=chamado_repository,
        uow=unit_of_work,
        relogio=relogio,
        travas=travas,
        configuracao_sla=configuracao_sla,
    )

    atualizar_politica_sla_service = providers.Factory(
        AtualizarPoliticaSLAService,
        configuracao_sla=configuracao_sla,
        uow=unit_of_work,
        relogio=relogio,
    )

    # Leitura (sem UoW)
    obter_chamado_service = providers.Factory(
        ObterChamadoService,
        chamado_repo=chamado_repository,
        relogio=relogio,
    )

    listar_chamados_service = providers.Factory(
        ListarChamadosService,
        chamado_repo=chamado_repository,
        relogio=relogio,
    )

    # =========================================================================
    # Central (fachada)
    # =========================================================================

    central = providers.Singleton(
        CentralDeChamados,
        chamado_repo=chamado_repository,
        uow_factory=unit_of_work.provider,
        configuracao_sla=configuracao_sla,
        relogio=relogio,
        travas=travas,
    )


# =============================================================================
# Container Global (Singleton)
# =============================================================================

_container: Optional[Container] = None


def get_container() -> Container:
    """
    Retorna instância global do container.

    Na primeira chamada, carrega backend, publisher e tabela de SLA
    de src/config/settings.py.
    """
    global _container

    if _container is None:
        from src.config import settings

        _container = Container()
        _container.config.from_dict({
            'backend': settings.CHAMADOS_BACKEND,
            'event_publisher': settings.EVENT_PUBLISHER_MODE,
            'sla_horas': settings.SLA_HORAS,
        })

    return _container


def reset_container() -> None:
    """Reset do container (para testes)."""
    global _container
    _container = None
