"""
Testes de Integração do Repositório Django.

Testa a integração entre:
- Django Models ↔ Core Entities (via Mappers)
- Repository ↔ Database (SQLite em memória)
- Controle otimista de versão
- Histórico append-only
"""

from datetime import timedelta

import pytest

from src.adapters.django_app.chamados.mappers import ChamadoMapper, HistoricoMapper
from src.adapters.django_app.chamados.models import ChamadoModel, HistoricoChamadoModel
from src.core.chamados.enums import Categoria, Prioridade, StatusChamado, StatusJustificativa
from src.core.chamados.historico import TipoAcao
from src.core.shared.exceptions import ConcurrencyError


class TestChamadoMapper:
    """Testes de conversão Entity ↔ Model."""

    def test_to_model_data_usa_valores_dos_enums(self, chamado_factory):
        """Deve gravar os valores exibidos dos enums."""
        chamado = chamado_factory(prioridade=Prioridade.MEDIA)

        dados = ChamadoMapper.to_model_data(chamado)

        assert dados['status'] == 'ABERTO'
        assert dados['prioridade'] == 'MÉDIA'
        assert dados['categoria'] == 'Elétrica'
        assert dados['status_justificativa'] == 'Nenhuma'
        assert 'id' not in dados
        assert 'versao' not in dados

    def test_novos_models_a_partir_do_persistido(self, chamado_factory, relogio, politica):
        """Deve converter apenas as entradas posteriores a `inicio`."""
        chamado = chamado_factory()
        chamado.triar("carlos", usuario="ana", agora=relogio.agora(), politica=politica)

        novos = HistoricoMapper.novos_models(chamado.id, chamado.historico, 1)

        assert len(novos) == 1
        assert novos[0].sequencia == 1
        assert novos[0].acao == TipoAcao.TRIAGEM.value
        assert novos[0].dados['tecnico'] == 'carlos'


@pytest.mark.django_db
class TestDjangoChamadoRepository:
    """Testes de persistência."""

    def test_save_e_get_by_id(self, django_repo, chamado_factory):
        """Deve persistir e reconstruir o chamado com histórico."""
        chamado = chamado_factory(prioridade=Prioridade.ALTA)

        django_repo.save(chamado)
        carregado = django_repo.get_by_id(chamado.id)

        assert chamado.versao == 1
        assert carregado.versao == 1
        assert carregado.titulo == chamado.titulo
        assert carregado.categoria is Categoria.ELETRICA
        assert carregado.prioridade is Prioridade.ALTA
        assert carregado.status is StatusChamado.ABERTO
        assert carregado.sla_prazo == chamado.sla_prazo
        assert carregado.status_justificativa is StatusJustificativa.NENHUMA
        assert len(carregado.historico) == 1
        assert carregado.historico[0].acao is TipoAcao.ABERTURA

    def test_get_by_id_inexistente(self, django_repo):
        assert django_repo.get_by_id('nao-existe') is None
        assert django_repo.get_for_update('nao-existe') is None

    def test_atualizacao_incrementa_versao(self, django_repo, chamado_factory, relogio, politica):
        """Deve gravar alterações e só as novas entradas de histórico."""
        chamado = chamado_factory()
        django_repo.save(chamado)

        carregado = django_repo.get_for_update(chamado.id)
        carregado.triar("carlos", usuario="ana", agora=relogio.agora(), politica=politica)
        carregado.iniciar_atendimento(usuario="carlos", agora=relogio.avancar(hours=1))
        carregado.registrar_material("Disjuntor 20A", usuario="carlos", agora=relogio.agora())
        django_repo.save(carregado)

        model = ChamadoModel.objects.get(id=chamado.id)
        assert model.versao == 2
        assert model.status == 'EM ATENDIMENTO'
        assert model.atribuido_a == 'carlos'
        assert model.materiais == ['Disjuntor 20A']
        assert list(
            HistoricoChamadoModel.objects.filter(chamado_id=chamado.id).values_list('sequencia', flat=True)
        ) == [0, 1, 2, 3]

    def test_historico_append_only(self, django_repo, chamado_factory, relogio):
        """Salvar sem novas ações não deve duplicar o histórico."""
        chamado = chamado_factory()
        django_repo.save(chamado)

        carregado = django_repo.get_by_id(chamado.id)
        django_repo.save(carregado)

        assert HistoricoChamadoModel.objects.filter(chamado_id=chamado.id).count() == 1
        assert ChamadoModel.objects.get(id=chamado.id).versao == 2

    def test_versao_desatualizada_erro(self, django_repo, chamado_factory):
        """Deve rejeitar gravação a partir de leitura antiga."""
        chamado = chamado_factory()
        django_repo.save(chamado)

        primeira = django_repo.get_by_id(chamado.id)
        segunda = django_repo.get_by_id(chamado.id)
        primeira.prorrogar_prazo(1, "Fornecedor", usuario="admin", agora=primeira.criado_em)
        django_repo.save(primeira)

        segunda.prorrogar_prazo(2, "Outro", usuario="admin", agora=segunda.criado_em)
        with pytest.raises(ConcurrencyError):
            django_repo.save(segunda)

        recarregado = django_repo.get_by_id(chamado.id)
        assert recarregado.sla_prazo == chamado.sla_prazo + timedelta(days=1)
        assert len(recarregado.historico) == 2

    def test_listagens(self, django_repo, chamado_factory, relogio, politica):
        """Deve filtrar por status, técnico e solicitante."""
        primeiro = chamado_factory(solicitante="joana")
        segundo = chamado_factory(solicitante="pedro")
        segundo.triar("carlos", usuario="ana", agora=relogio.agora(), politica=politica)
        django_repo.save(primeiro)
        django_repo.save(segundo)

        assert django_repo.count() == 2
        assert django_repo.exists(primeiro.id)
        assert [c.id for c in django_repo.list_by_status(StatusChamado.EM_FILA)] == [segundo.id]
        assert [c.id for c in django_repo.list_by_tecnico("carlos")] == [segundo.id]
        assert [c.id for c in django_repo.list_by_solicitante("joana")] == [primeiro.id]
        assert {c.id for c in django_repo.list_all()} == {primeiro.id, segundo.id}
