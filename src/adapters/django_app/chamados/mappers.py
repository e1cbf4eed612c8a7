"""
Mappers para conversão entre Entities (Core) e Models (Django).

Responsabilidades:
- Chamado → dados de ChamadoModel (para persistência)
- ChamadoModel + linhas de histórico → Chamado (para uso no Core)
- RegistroHistorico ↔ HistoricoChamadoModel

Mappers são stateless e não contêm lógica de negócio.
"""

from typing import Any, Dict, Iterable, List, Sequence

from src.core.chamados.entities import Chamado
from src.core.chamados.enums import (
    Categoria,
    Prioridade,
    StatusChamado,
    StatusJustificativa,
)
from src.core.chamados.historico import RegistroHistorico, TipoAcao

from .models import ChamadoModel, HistoricoChamadoModel


class HistoricoMapper:
    """Mapper para RegistroHistorico ↔ HistoricoChamadoModel."""

    @staticmethod
    def to_model(chamado_id: str, sequencia: int, registro: RegistroHistorico) -> HistoricoChamadoModel:
        return HistoricoChamadoModel(
            chamado_id=chamado_id,
            sequencia=sequencia,
            momento=registro.momento,
            acao=registro.acao.value,
            usuario=registro.usuario,
            comentario=registro.comentario,
            dados=dict(registro.dados),
        )

    @staticmethod
    def to_entity(model: HistoricoChamadoModel) -> RegistroHistorico:
        return RegistroHistorico(
            momento=model.momento,
            acao=TipoAcao(model.acao),
            usuario=model.usuario,
            comentario=model.comentario,
            dados=model.dados or {},
        )

    @classmethod
    def novos_models(
        cls,
        chamado_id: str,
        registros: Sequence[RegistroHistorico],
        inicio: int,
    ) -> List[HistoricoChamadoModel]:
        """
        Converte as entradas a partir de `inicio` (já persistidas antes disso).
        """
        return [
            cls.to_model(chamado_id, sequencia, registro)
            for sequencia, registro in enumerate(registros[inicio:], start=inicio)
        ]


class ChamadoMapper:
    """
    Mapper para conversão entre Chamado e ChamadoModel.

    - to_model_data(): Entity → campos do Model (sem id/versao)
    - to_entity(): Model (+ histórico) → Entity
    """

    @staticmethod
    def to_model_data(entity: Chamado) -> Dict[str, Any]:
        """
        Campos persistidos do chamado.

        id e versao ficam de fora: o Repository controla ambos.
        """
        return {
            'titulo': entity.titulo,
            'categoria': entity.categoria.value,
            'local': entity.local,
            'descricao': entity.descricao,
            'solicitante': entity.solicitante,
            'foto_abertura': entity.foto_abertura,
            'atribuido_a': entity.atribuido_a,
            'supervisor': entity.supervisor,
            'status': entity.status.value,
            'prioridade': entity.prioridade.value,
            'criado_em': entity.criado_em,
            'iniciado_em': entity.iniciado_em,
            'finalizado_em': entity.finalizado_em,
            'sla_prazo': entity.sla_prazo,
            'sla_prazo_original': entity.sla_prazo_original,
            'prorrogado': entity.prorrogado,
            'prazo_proposto': entity.prazo_proposto,
            'justificativa_atraso': entity.justificativa_atraso,
            'status_justificativa': entity.status_justificativa.value,
            'motivo_rejeicao': entity.motivo_rejeicao,
            'foto_conclusao': entity.foto_conclusao,
            'nota_tecnica': entity.nota_tecnica,
            'materiais': list(entity.materiais),
        }

    @staticmethod
    def to_entity(model: ChamadoModel, historico: Iterable[HistoricoChamadoModel]) -> Chamado:
        """
        Converte ChamadoModel para Chamado.

        Note:
            Bypassa as validações de Chamado.criar(): os dados já
            foram validados na abertura.
        """
        return Chamado(
            id=model.id,
            titulo=model.titulo,
            categoria=Categoria(model.categoria),
            local=model.local,
            descricao=model.descricao,
            solicitante=model.solicitante,
            foto_abertura=model.foto_abertura,
            atribuido_a=model.atribuido_a,
            supervisor=model.supervisor,
            status=StatusChamado(model.status),
            prioridade=Prioridade(model.prioridade),
            criado_em=model.criado_em,
            iniciado_em=model.iniciado_em,
            finalizado_em=model.finalizado_em,
            sla_prazo=model.sla_prazo,
            sla_prazo_original=model.sla_prazo_original,
            prorrogado=model.prorrogado,
            prazo_proposto=model.prazo_proposto,
            justificativa_atraso=model.justificativa_atraso,
            status_justificativa=StatusJustificativa(model.status_justificativa),
            motivo_rejeicao=model.motivo_rejeicao,
            foto_conclusao=model.foto_conclusao,
            nota_tecnica=model.nota_tecnica,
            materiais=list(model.materiais or []),
            historico=[HistoricoMapper.to_entity(h) for h in historico],
            versao=model.versao,
        )
