"""
Testes Unitários para Use Cases do Domínio de Chamados.

Usa o repositório e o Unit of Work em memória: sem banco de dados.

Coverage:
- CriarChamadoService: Abertura, evento, validação
- Serviços de mutação: persistência, evento, rollback em falha
- ObterChamadoService / ListarChamadosService: leitura e filtros
- AtualizarPoliticaSLAService: troca da tabela
- Repositório em memória: controle otimista de versão
"""

from datetime import timedelta

import pytest

from src.adapters.django_app.events.publishers import InMemoryEventPublisher
from src.core.chamados.dtos import (
    AguardarMaterialInputDTO,
    AlterarPrioridadeInputDTO,
    AtualizarPoliticaSLAInputDTO,
    CriarChamadoInputDTO,
    FinalizarChamadoInputDTO,
    IniciarAtendimentoInputDTO,
    ListarChamadosQueryDTO,
    ProrrogarPrazoInputDTO,
    RegistrarMaterialInputDTO,
    RejeitarTriagemInputDTO,
    TriarChamadoInputDTO,
)
from src.core.chamados.enums import Prioridade, StatusChamado
from src.core.chamados.exceptions import (
    InvalidTransitionError,
    MissingEvidenceError,
    MissingReasonError,
)
from src.core.chamados.ports import InMemoryChamadoRepository
from src.core.chamados.sla import ConfiguracaoSLA
from src.core.chamados.use_cases import (
    AlterarAndamentoService,
    AlterarPrioridadeService,
    AtualizarPoliticaSLAService,
    CriarChamadoService,
    FinalizarChamadoService,
    ListarChamadosService,
    ObterChamadoService,
    ProrrogarPrazoService,
    RegistrarMaterialService,
    RejeitarTriagemService,
    TriarChamadoService,
)
from src.core.shared.exceptions import (
    ConcurrencyError,
    EntityNotFoundError,
    ValidationError,
)
from src.core.shared.interfaces import InMemoryUnitOfWork
from src.core.shared.travas import TravasPorChave


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def chamado_repo():
    return InMemoryChamadoRepository()


@pytest.fixture
def publisher():
    return InMemoryEventPublisher()


@pytest.fixture
def uow(publisher):
    return InMemoryUnitOfWork(event_publisher=publisher)


@pytest.fixture
def configuracao_sla():
    return ConfiguracaoSLA()


@pytest.fixture
def servico(chamado_repo, uow, relogio, configuracao_sla):
    """Cria serviços de mutação com dependências compartilhadas."""
    travas = TravasPorChave()

    def criar(classe):
        return classe(
            chamado_repo,
            uow,
            relogio=relogio,
            travas=travas,
            configuracao_sla=configuracao_sla,
        )

    return criar


@pytest.fixture
def sample_chamado(chamado_repo, uow, relogio, configuracao_sla):
    """Chamado MÉDIA aberto pelo CriarChamadoService."""
    service = CriarChamadoService(chamado_repo, uow, configuracao_sla=configuracao_sla, relogio=relogio)
    return service.execute(_criar_dto())


def _criar_dto(**kwargs):
    dados = {
        "titulo": "Vazamento na pia",
        "categoria": "Hidráulica",
        "local": "Copa - 3º andar",
        "solicitante": "joana",
        "foto_abertura": "fotos/vazamento.jpg",
        "prioridade": "MEDIA",
    }
    dados.update(kwargs)
    return CriarChamadoInputDTO(**dados)


# =============================================================================
# Testes
# =============================================================================

class TestCriarChamadoService:
    """Testes para CriarChamadoService."""

    def test_criar_chamado_sucesso(self, chamado_repo, uow, relogio, configuracao_sla):
        """Deve abrir chamado e retornar snapshot."""
        service = CriarChamadoService(chamado_repo, uow, configuracao_sla=configuracao_sla, relogio=relogio)

        output = service.execute(_criar_dto(prioridade="ALTA"))

        assert output.status == "ABERTO"
        assert output.prioridade == "ALTA"
        assert output.categoria == "Hidráulica"
        assert output.sla_prazo == relogio.agora() + timedelta(hours=4)
        assert output.esta_atrasado is False
        assert output.total_historico == 1
        assert output.historico[0]["descricao"] == "Abertura do chamado"
        assert output.eventos_permitidos == ["rejeitar_triagem", "triar"]

    def test_criar_chamado_persiste(self, chamado_repo, sample_chamado):
        """Deve persistir o chamado com versão 1."""
        chamado = chamado_repo.get_by_id(sample_chamado.id)

        assert chamado is not None
        assert chamado.versao == 1

    def test_criar_chamado_publica_evento(self, sample_chamado, publisher, uow):
        """Deve publicar ChamadoCriadoEvent após o commit."""
        eventos = publisher.get_events_by_type("ChamadoCriadoEvent")

        assert len(eventos) == 1
        assert eventos[0].aggregate_id == sample_chamado.id
        assert eventos[0].usuario == "joana"
        assert uow.committed

    def test_criar_chamado_sem_foto_erro(self, chamado_repo, uow, relogio, publisher):
        """Deve rejeitar abertura sem foto, sem persistir nem publicar."""
        service = CriarChamadoService(chamado_repo, uow, relogio=relogio)

        with pytest.raises(MissingEvidenceError):
            service.execute(_criar_dto(foto_abertura=None))

        assert chamado_repo.count() == 0
        assert uow.rolled_back
        assert publisher.published_events == []

    def test_criar_chamado_usa_politica_vigente(self, chamado_repo, uow, relogio):
        """Deve usar a tabela de SLA configurada."""
        configuracao = ConfiguracaoSLA({"MEDIA": 8})
        service = CriarChamadoService(chamado_repo, uow, configuracao_sla=configuracao, relogio=relogio)

        output = service.execute(_criar_dto())

        assert output.sla_prazo == relogio.agora() + timedelta(hours=8)


class TestServicosDeMutacao:
    """Testes para os serviços que alteram chamados existentes."""

    def test_triar_chamado(self, servico, sample_chamado, publisher):
        """Deve encaminhar e publicar ChamadoEncaminhadoEvent."""
        output = servico(TriarChamadoService).execute(
            TriarChamadoInputDTO(sample_chamado.id, tecnico="carlos", usuario="ana", nova_prioridade="ALTA")
        )

        assert output.status == "EM FILA"
        assert output.atribuido_a == "carlos"
        assert output.prioridade == "ALTA"

        evento = publisher.get_events_by_type("ChamadoEncaminhadoEvent")[0]
        assert evento.tecnico == "carlos"
        assert evento.prioridade_anterior == "MÉDIA"

    def test_rejeitar_triagem(self, servico, sample_chamado, publisher):
        """Deve bloquear e publicar StatusChamadoAlteradoEvent."""
        output = servico(RejeitarTriagemService).execute(
            RejeitarTriagemInputDTO(sample_chamado.id, motivo="Duplicado", usuario="ana")
        )

        assert output.status == "BLOQUEADO"
        evento = publisher.get_events_by_type("StatusChamadoAlteradoEvent")[0]
        assert evento.status_anterior == "ABERTO"
        assert evento.status_novo == "BLOQUEADO"
        assert evento.comentario == "Duplicado"

    def test_fluxo_de_andamento(self, servico, sample_chamado, relogio):
        """Deve iniciar, pausar, registrar material e finalizar."""
        chamado_id = sample_chamado.id
        servico(TriarChamadoService).execute(TriarChamadoInputDTO(chamado_id, "carlos", "ana"))

        relogio.avancar(hours=1)
        output = servico(AlterarAndamentoService).execute(IniciarAtendimentoInputDTO(chamado_id, "carlos"))
        assert output.status == "EM ATENDIMENTO"
        assert output.iniciado_em == relogio.agora()

        servico(AlterarAndamentoService).execute(
            AguardarMaterialInputDTO(chamado_id, "carlos", comentario="Sifão em falta")
        )
        output = servico(RegistrarMaterialService).execute(
            RegistrarMaterialInputDTO(chamado_id, "Sifão", "carlos")
        )
        assert output.status == "AGUARDANDO MATERIAL"
        assert output.materiais == ["Sifão"]

        with pytest.raises(InvalidTransitionError):
            servico(FinalizarChamadoService).execute(
                FinalizarChamadoInputDTO(chamado_id, "carlos", foto_conclusao="fotos/ok.jpg")
            )

    def test_falha_nao_altera_chamado(self, servico, sample_chamado, chamado_repo, publisher, uow):
        """Operação com falha deve deixar o chamado persistido intacto."""
        antes = chamado_repo.get_by_id(sample_chamado.id)
        eventos_antes = len(publisher.published_events)

        with pytest.raises(MissingReasonError):
            servico(ProrrogarPrazoService).execute(
                ProrrogarPrazoInputDTO(sample_chamado.id, dias=2, motivo="", usuario="admin")
            )

        depois = chamado_repo.get_by_id(sample_chamado.id)
        assert depois.sla_prazo == antes.sla_prazo
        assert depois.versao == antes.versao
        assert len(depois.historico) == len(antes.historico)
        assert len(publisher.published_events) == eventos_antes
        assert uow.rolled_back

    def test_chamado_inexistente_erro(self, servico):
        """Deve lançar EntityNotFoundError para ID desconhecido."""
        with pytest.raises(EntityNotFoundError) as exc_info:
            servico(AlterarAndamentoService).execute(IniciarAtendimentoInputDTO("nao-existe", "carlos"))

        assert exc_info.value.entity_type == "Chamado"
        assert exc_info.value.entity_id == "nao-existe"

    def test_operacao_de_andamento_desconhecida_erro(self, servico, sample_chamado):
        """Deve rejeitar DTO que não é de andamento."""
        with pytest.raises(ValidationError):
            servico(AlterarAndamentoService).execute(
                RegistrarMaterialInputDTO(sample_chamado.id, "Cabo", "carlos")
            )

    def test_alterar_prioridade(self, servico, sample_chamado, relogio):
        """Deve recalcular o prazo a partir da abertura."""
        relogio.avancar(hours=3)

        output = servico(AlterarPrioridadeService).execute(
            AlterarPrioridadeInputDTO(sample_chamado.id, "ALTA", "ana")
        )

        assert output.prioridade == "ALTA"
        assert output.sla_prazo == sample_chamado.criado_em + timedelta(hours=4)

    def test_prorrogar_prazo_publica_evento(self, servico, sample_chamado, publisher):
        """Deve publicar PrazoProrrogadoEvent com prazo anterior e novo."""
        output = servico(ProrrogarPrazoService).execute(
            ProrrogarPrazoInputDTO(sample_chamado.id, dias=2, motivo="Fornecedor", usuario="admin")
        )

        assert output.sla_prazo == sample_chamado.sla_prazo + timedelta(days=2)
        assert output.sla_prazo_original == sample_chamado.sla_prazo
        evento = publisher.get_events_by_type("PrazoProrrogadoEvent")[0]
        assert evento.dias == 2
        assert evento.motivo == "Fornecedor"


class TestRepositorioEmMemoria:
    """Testes para o controle otimista do repositório."""

    def test_gravacao_com_versao_desatualizada_erro(self, chamado_repo, sample_chamado):
        """Deve rejeitar gravação a partir de leitura antiga."""
        primeira = chamado_repo.get_by_id(sample_chamado.id)
        segunda = chamado_repo.get_by_id(sample_chamado.id)

        primeira.prorrogado = True
        chamado_repo.save(primeira)

        with pytest.raises(ConcurrencyError):
            chamado_repo.save(segunda)

    def test_copias_isoladas(self, chamado_repo, sample_chamado):
        """Alterar a entidade carregada não deve alterar o repositório."""
        chamado = chamado_repo.get_by_id(sample_chamado.id)
        chamado.titulo = "Alterado sem salvar"

        assert chamado_repo.get_by_id(sample_chamado.id).titulo == "Vazamento na pia"


class TestLeitura:
    """Testes para ObterChamadoService e ListarChamadosService."""

    def test_obter_chamado(self, chamado_repo, sample_chamado, relogio):
        """Deve devolver o snapshot atual."""
        output = ObterChamadoService(chamado_repo, relogio=relogio).execute(sample_chamado.id)

        assert output.id == sample_chamado.id
        assert output.consultado_em == relogio.agora()

    def test_obter_inexistente_erro(self, chamado_repo):
        """Deve lançar EntityNotFoundError."""
        with pytest.raises(EntityNotFoundError):
            ObterChamadoService(chamado_repo).execute("nao-existe")

    def test_obter_reflete_atraso(self, chamado_repo, sample_chamado, relogio):
        """Deve calcular atraso no instante da consulta."""
        relogio.avancar(hours=25)

        output = ObterChamadoService(chamado_repo, relogio=relogio).execute(sample_chamado.id)

        assert output.esta_atrasado is True
        assert output.esta_critico is False

    def test_listar_filtros(self, chamado_repo, uow, relogio, servico):
        """Deve filtrar por status e técnico, mais recentes primeiro."""
        criar = CriarChamadoService(chamado_repo, uow, relogio=relogio)
        primeiro = criar.execute(_criar_dto(titulo="Primeiro"))
        relogio.avancar(minutes=10)
        segundo = criar.execute(_criar_dto(titulo="Segundo"))
        servico(TriarChamadoService).execute(TriarChamadoInputDTO(primeiro.id, "carlos", "ana"))

        listar = ListarChamadosService(chamado_repo, relogio=relogio)

        assert [c.id for c in listar.execute()] == [segundo.id, primeiro.id]
        assert [c.id for c in listar.execute(ListarChamadosQueryDTO(status="EM_FILA"))] == [primeiro.id]
        assert [c.id for c in listar.execute(ListarChamadosQueryDTO(tecnico="carlos"))] == [primeiro.id]
        assert [c.id for c in listar.execute(ListarChamadosQueryDTO(status="ABERTO"))] == [segundo.id]

    def test_listar_atrasados(self, chamado_repo, uow, relogio):
        """Deve listar apenas chamados com prazo vencido."""
        criar = CriarChamadoService(chamado_repo, uow, relogio=relogio)
        alta = criar.execute(_criar_dto(prioridade="ALTA"))
        criar.execute(_criar_dto(prioridade="BAIXA"))
        relogio.avancar(hours=5)

        atrasados = ListarChamadosService(chamado_repo, relogio=relogio).execute(
            ListarChamadosQueryDTO(apenas_atrasados=True)
        )

        assert [c.id for c in atrasados] == [alta.id]

    def test_listar_status_invalido_erro(self, chamado_repo):
        """Deve rejeitar status desconhecido."""
        with pytest.raises(ValidationError) as exc_info:
            ListarChamadosService(chamado_repo).execute(ListarChamadosQueryDTO(status="CANCELADO"))

        assert exc_info.value.field == "status"


class TestAtualizarPoliticaSLAService:

    def test_atualizar_politica(self, configuracao_sla, uow, relogio, publisher):
        """Deve trocar a tabela e publicar PoliticaSLAAtualizadaEvent."""
        service = AtualizarPoliticaSLAService(configuracao_sla, uow, relogio=relogio)

        politica = service.execute(AtualizarPoliticaSLAInputDTO({"ALTA": 2, "MEDIA": 12}, usuario="admin"))

        assert politica.versao == 2
        assert configuracao_sla.atual.horas_para(Prioridade.ALTA) == 2
        evento = publisher.get_events_by_type("PoliticaSLAAtualizadaEvent")[0]
        assert evento.versao == 2
        assert evento.horas == {"ALTA": 2, "MÉDIA": 12}

    def test_chamados_existentes_mantem_prazo(self, configuracao_sla, uow, relogio, chamado_repo, sample_chamado):
        """Trocar a tabela não deve recalcular prazos já gravados."""
        AtualizarPoliticaSLAService(configuracao_sla, uow, relogio=relogio).execute(
            AtualizarPoliticaSLAInputDTO({"MEDIA": 2}, usuario="admin")
        )

        assert chamado_repo.get_by_id(sample_chamado.id).sla_prazo == sample_chamado.sla_prazo
        assert chamado_repo.list_by_status(StatusChamado.ABERTO)[0].sla_prazo == sample_chamado.sla_prazo
