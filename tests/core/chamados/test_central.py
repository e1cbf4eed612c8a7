"""
Testes da CentralDeChamados (fachada do domínio).

Coverage:
- Fluxos completos de ponta a ponta
- Justificativa de atraso via fachada
- Tudo ou nada: falhas não deixam rastro
- Serialização de operações concorrentes no mesmo chamado
- Troca da política de SLA
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
import threading

import pytest

from src.adapters.django_app.events.publishers import InMemoryEventPublisher
from src.core.chamados.central import TRANSICOES_SUPORTADAS, CentralDeChamados
from src.core.chamados.dtos import (
    AguardarMaterialInputDTO,
    AlterarPrioridadeInputDTO,
    AprovarJustificativaInputDTO,
    AtualizarPoliticaSLAInputDTO,
    BloquearAtendimentoInputDTO,
    CriarChamadoInputDTO,
    FinalizarChamadoInputDTO,
    IniciarAtendimentoInputDTO,
    ListarChamadosQueryDTO,
    ProrrogarPrazoInputDTO,
    RegistrarMaterialInputDTO,
    RejeitarJustificativaInputDTO,
    RetomarAtendimentoInputDTO,
    SubmeterJustificativaInputDTO,
    TriarChamadoInputDTO,
)
from src.core.chamados.enums import Prioridade
from src.core.chamados.exceptions import (
    InvalidTransitionError,
    MissingEvidenceError,
    MissingReasonError,
)
from src.core.chamados.ports import InMemoryChamadoRepository
from src.core.chamados.sla import ConfiguracaoSLA
from src.core.chamados.use_cases import ProrrogarPrazoService
from src.core.shared.exceptions import EntityNotFoundError, ValidationError
from src.core.shared.interfaces import InMemoryUnitOfWork
from src.core.shared.travas import TravasPorChave


@pytest.fixture
def publisher():
    return InMemoryEventPublisher()


@pytest.fixture
def central(relogio, publisher):
    return CentralDeChamados(
        chamado_repo=InMemoryChamadoRepository(),
        uow_factory=lambda: InMemoryUnitOfWork(event_publisher=publisher),
        configuracao_sla=ConfiguracaoSLA({"ALTA": 4, "MEDIA": 24, "BAIXA": 72}),
        relogio=relogio,
    )


def _abrir(central, prioridade="MEDIA", solicitante="joana"):
    return central.criar(CriarChamadoInputDTO(
        titulo="Lâmpada queimada",
        categoria="Elétrica",
        local="Sala 12",
        solicitante=solicitante,
        foto_abertura="fotos/lampada.jpg",
        prioridade=prioridade,
    ))


def _em_atendimento(central, relogio, prioridade="MEDIA"):
    chamado = _abrir(central, prioridade=prioridade)
    central.aplicar_transicao(TriarChamadoInputDTO(chamado.id, "carlos", "ana"))
    relogio.avancar(minutes=30)
    return central.aplicar_transicao(IniciarAtendimentoInputDTO(chamado.id, "carlos"))


class TestFluxoCompleto:
    """Testes de ponta a ponta do ciclo de vida."""

    def test_triagem_com_repriorizacao(self, central, relogio):
        """MÉDIA aberto em T0, triado como ALTA: prazo T0+4h e dois registros."""
        t0 = relogio.agora()
        chamado = _abrir(central)
        assert chamado.sla_prazo == t0 + timedelta(hours=24)

        triado = central.aplicar_transicao(
            TriarChamadoInputDTO(chamado.id, "carlos", "ana", nova_prioridade="ALTA")
        )

        assert triado.status == "EM FILA"
        assert triado.atribuido_a == "carlos"
        assert triado.sla_prazo == t0 + timedelta(hours=4)
        assert triado.total_historico == 2

    def test_ciclo_ate_finalizacao(self, central, relogio, publisher):
        """Deve percorrer pausa, bloqueio e retomada até finalizar."""
        chamado = _em_atendimento(central, relogio)
        chamado_id = chamado.id

        central.aplicar_transicao(AguardarMaterialInputDTO(chamado_id, "carlos", comentario="Reator"))
        central.registrar_material(RegistrarMaterialInputDTO(chamado_id, "Reator 2x40W", "carlos"))
        central.aplicar_transicao(RetomarAtendimentoInputDTO(chamado_id, "carlos"))
        central.aplicar_transicao(BloquearAtendimentoInputDTO(chamado_id, "carlos", comentario="Sala ocupada"))
        central.aplicar_transicao(RetomarAtendimentoInputDTO(chamado_id, "carlos"))

        relogio.avancar(hours=2)
        final = central.aplicar_transicao(FinalizarChamadoInputDTO(
            chamado_id, "carlos", foto_conclusao="fotos/ok.jpg", materiais=("Lâmpada LED",),
        ))

        assert final.status == "FINALIZADO"
        assert final.finalizado_em == relogio.agora()
        assert final.materiais == ["Reator 2x40W", "Lâmpada LED"]
        assert final.eventos_permitidos == []
        assert final.esta_atrasado is False

        evento = publisher.get_events_by_type("ChamadoFinalizadoEvent")[0]
        assert evento.dentro_do_prazo is True
        assert evento.tempo_resolucao_horas == 2.5

    def test_iniciado_em_nao_muda_na_retomada(self, central, relogio):
        """Retomar não deve sobrescrever o início do atendimento."""
        chamado = _em_atendimento(central, relogio)
        inicio = chamado.iniciado_em

        central.aplicar_transicao(BloquearAtendimentoInputDTO(chamado.id, "carlos"))
        relogio.avancar(hours=1)
        retomado = central.aplicar_transicao(RetomarAtendimentoInputDTO(chamado.id, "carlos"))

        assert retomado.iniciado_em == inicio

    def test_finalizado_e_imutavel(self, central, relogio):
        """Nenhuma mutação deve ser aceita após FINALIZADO."""
        chamado = _em_atendimento(central, relogio)
        central.aplicar_transicao(FinalizarChamadoInputDTO(chamado.id, "carlos", foto_conclusao="fotos/ok.jpg"))

        with pytest.raises(InvalidTransitionError):
            central.aplicar_transicao(RetomarAtendimentoInputDTO(chamado.id, "carlos"))
        with pytest.raises(InvalidTransitionError):
            central.prorrogar(ProrrogarPrazoInputDTO(chamado.id, 1, "Motivo", "admin"))
        with pytest.raises(InvalidTransitionError):
            central.repriorizar(AlterarPrioridadeInputDTO(chamado.id, "ALTA", "ana"))


class TestJustificativaViaCentral:

    def test_aprovacao_estende_prazo(self, central, relogio):
        """Justificativa aprovada troca o prazo e guarda o original."""
        chamado = _em_atendimento(central, relogio, prioridade="ALTA")
        prazo_antigo = chamado.sla_prazo
        relogio.avancar(hours=5)

        pendente = central.submeter_justificativa(SubmeterJustificativaInputDTO(
            chamado.id, "Peça quebrada", prazo_antigo + timedelta(hours=48), "carlos",
        ))
        assert pendente.status_justificativa == "Pendente"
        assert pendente.sla_prazo == prazo_antigo
        assert pendente.esta_atrasado is True

        aprovado = central.aprovar_justificativa(AprovarJustificativaInputDTO(chamado.id, "ana"))

        assert aprovado.sla_prazo == prazo_antigo + timedelta(hours=48)
        assert aprovado.prorrogado is True
        assert aprovado.sla_prazo_original == prazo_antigo
        assert aprovado.esta_atrasado is False

    def test_rejeicao_sem_motivo_mantem_pendente(self, central, relogio):
        """Deve falhar com MissingReasonError e manter PENDENTE."""
        chamado = _em_atendimento(central, relogio, prioridade="ALTA")
        relogio.avancar(hours=5)
        central.submeter_justificativa(SubmeterJustificativaInputDTO(
            chamado.id, "Peça quebrada", relogio.agora() + timedelta(days=1), "carlos",
        ))

        with pytest.raises(MissingReasonError):
            central.rejeitar_justificativa(RejeitarJustificativaInputDTO(chamado.id, "   ", "ana"))

        assert central.obter(chamado.id).status_justificativa == "Pendente"


class TestTudoOuNada:
    """Falhas não devem alterar o chamado nem publicar eventos."""

    def test_finalizar_sem_foto(self, central, relogio, publisher):
        """Deve falhar com MissingEvidenceError sem novo registro."""
        chamado = _em_atendimento(central, relogio)
        eventos_antes = len(publisher.published_events)

        with pytest.raises(MissingEvidenceError):
            central.aplicar_transicao(FinalizarChamadoInputDTO(chamado.id, "carlos", foto_conclusao=None))

        atual = central.obter(chamado.id)
        assert atual.status == "EM ATENDIMENTO"
        assert atual.total_historico == chamado.total_historico
        assert atual.finalizado_em is None
        assert len(publisher.published_events) == eventos_antes

    def test_finalizar_sem_foto_nao_registra_materiais(self, central, relogio):
        """Materiais enviados com a finalização recusada não devem ficar."""
        chamado = _em_atendimento(central, relogio)

        with pytest.raises(MissingEvidenceError):
            central.aplicar_transicao(FinalizarChamadoInputDTO(
                chamado.id, "carlos", foto_conclusao="", materiais=("Cabo",),
            ))

        assert central.obter(chamado.id).materiais == []

    def test_transicao_ilegal(self, central):
        """Iniciar um chamado ainda ABERTO deve falhar sem efeito."""
        chamado = _abrir(central)

        with pytest.raises(InvalidTransitionError):
            central.aplicar_transicao(IniciarAtendimentoInputDTO(chamado.id, "carlos"))

        atual = central.obter(chamado.id)
        assert atual.status == "ABERTO"
        assert atual.iniciado_em is None

    def test_comando_desconhecido(self, central):
        """Deve rejeitar comando que não é transição."""
        chamado = _abrir(central)

        with pytest.raises(ValidationError) as exc_info:
            central.aplicar_transicao(ProrrogarPrazoInputDTO(chamado.id, 1, "Motivo", "admin"))

        assert exc_info.value.field == "comando"
        assert ProrrogarPrazoInputDTO not in TRANSICOES_SUPORTADAS

    def test_chamado_inexistente(self, central):
        with pytest.raises(EntityNotFoundError):
            central.prorrogar(ProrrogarPrazoInputDTO("nao-existe", 1, "Motivo", "admin"))


class TestConcorrencia:
    """Operações no mesmo chamado são serializadas."""

    def test_prorrogacoes_concorrentes_acumulam(self, central):
        """Duas prorrogações simultâneas devem somar seus dias."""
        chamado = _abrir(central)
        original = chamado.sla_prazo
        barreira = threading.Barrier(2)

        def prorrogar(dias):
            barreira.wait()
            return central.prorrogar(ProrrogarPrazoInputDTO(chamado.id, dias, f"+{dias}", "admin"))

        with ThreadPoolExecutor(max_workers=2) as executor:
            resultados = list(executor.map(prorrogar, [1, 2]))

        assert len(resultados) == 2
        final = central.obter(chamado.id)
        assert final.sla_prazo == original + timedelta(days=3)
        assert final.sla_prazo_original == original
        assert final.total_historico == 3

    def test_travas_injetadas_vazias_sao_compartilhadas(self, relogio):
        """Um registro de travas ainda vazio deve ser o mesmo em todos os serviços."""
        travas = TravasPorChave()
        central = CentralDeChamados(
            chamado_repo=InMemoryChamadoRepository(),
            uow_factory=InMemoryUnitOfWork,
            relogio=relogio,
            travas=travas,
        )

        assert central.travas is travas
        assert central._servico(ProrrogarPrazoService).travas is travas
        assert central._servico(ProrrogarPrazoService).relogio is relogio

        chamado = _abrir(central)
        original = chamado.sla_prazo

        def prorrogar(_):
            central.prorrogar(ProrrogarPrazoInputDTO(chamado.id, 1, "Fornecedor", "admin"))

        with ThreadPoolExecutor(max_workers=4) as executor:
            list(executor.map(prorrogar, range(8)))

        assert central.obter(chamado.id).sla_prazo == original + timedelta(days=8)
        assert len(travas) == 1

    def test_muitas_operacoes_concorrentes(self, central):
        """Nenhuma operação concorrente deve se perder."""
        chamado = _abrir(central)
        original = chamado.sla_prazo

        def prorrogar(_):
            central.prorrogar(ProrrogarPrazoInputDTO(chamado.id, 1, "Fornecedor", "admin"))

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(prorrogar, range(20)))

        final = central.obter(chamado.id)
        assert final.sla_prazo == original + timedelta(days=20)
        assert final.total_historico == 21

    def test_chamados_distintos_em_paralelo(self, central):
        """Operações em chamados diferentes não interferem."""
        chamados = [_abrir(central, solicitante=f"user{i}") for i in range(5)]

        def triar(chamado):
            return central.aplicar_transicao(TriarChamadoInputDTO(chamado.id, "carlos", "ana"))

        with ThreadPoolExecutor(max_workers=5) as executor:
            resultados = list(executor.map(triar, chamados))

        assert all(r.status == "EM FILA" for r in resultados)
        assert len(central.listar(ListarChamadosQueryDTO(tecnico="carlos"))) == 5


class TestPoliticaSLA:

    def test_atualizar_afeta_apenas_novos(self, central, relogio):
        """Chamados antigos mantêm o prazo; novos usam a nova tabela."""
        antigo = _abrir(central, prioridade="ALTA")

        politica = central.atualizar_politica_sla(
            AtualizarPoliticaSLAInputDTO({"ALTA": 2, "MEDIA": 12, "BAIXA": 48}, usuario="admin")
        )
        novo = _abrir(central, prioridade="ALTA")

        assert politica.versao == 2
        assert central.politica_sla.horas_para(Prioridade.ALTA) == 2
        assert central.obter(antigo.id).sla_prazo == antigo.criado_em + timedelta(hours=4)
        assert novo.sla_prazo == novo.criado_em + timedelta(hours=2)

    def test_tabela_invalida_mantem_politica(self, central):
        """Tabela com duração inválida não deve substituir a vigente."""
        with pytest.raises(ValidationError):
            central.atualizar_politica_sla(AtualizarPoliticaSLAInputDTO({"ALTA": 0}, usuario="admin"))

        assert central.politica_sla.versao == 1
        assert central.politica_sla.horas_para(Prioridade.ALTA) == 4


class TestListagemPorPerfil:

    def test_filtro_por_perfil(self, central):
        """Perfis comuns veem apenas chamados próprios ou atribuídos."""
        proprio = _abrir(central, solicitante="joana")
        atribuido = _abrir(central, solicitante="pedro")
        _abrir(central, solicitante="lucas")
        central.aplicar_transicao(TriarChamadoInputDTO(atribuido.id, "joana", "ana"))

        visiveis = central.listar(ListarChamadosQueryDTO(perfil="TECNICO", usuario="joana"))
        todos = central.listar(ListarChamadosQueryDTO(perfil="SUPERVISOR", usuario="ana"))

        assert {c.id for c in visiveis} == {proprio.id, atribuido.id}
        assert len(todos) == 3
