"""
Fluxo de justificativa de atraso.

Máquina de estados sobre StatusJustificativa:

    NENHUMA ──submeter──▶ PENDENTE ──aprovar──▶ APROVADA
                           │  ▲
                   rejeitar│  │submeter (nova proposta)
                           ▼  │
                         REJEITADA

As funções validar_* apenas verificam guardas e lançam a falha
tipada correspondente; quem altera o chamado é a entidade, depois
que todas as guardas passaram.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional

from .enums import StatusJustificativa
from .exceptions import (
    InvalidJustificationRequestError,
    MissingReasonError,
    NoPendingProposalError,
)

if TYPE_CHECKING:
    from .entities import Chamado


TRANSICOES_JUSTIFICATIVA: Dict[StatusJustificativa, FrozenSet[StatusJustificativa]] = {
    StatusJustificativa.NENHUMA: frozenset({StatusJustificativa.PENDENTE}),
    StatusJustificativa.PENDENTE: frozenset({
        StatusJustificativa.APROVADA,
        StatusJustificativa.REJEITADA,
    }),
    StatusJustificativa.REJEITADA: frozenset({StatusJustificativa.PENDENTE}),
    StatusJustificativa.APROVADA: frozenset(),
}


def pode_mudar(atual: StatusJustificativa, novo: StatusJustificativa) -> bool:
    return novo in TRANSICOES_JUSTIFICATIVA[atual]


def validar_submissao(
    chamado: "Chamado",
    texto: Optional[str],
    prazo_proposto: Optional[datetime],
    agora: datetime,
) -> None:
    """
    Guardas da submissão.

    - chamado não finalizado
    - status da justificativa em {NENHUMA, REJEITADA}
    - prazo vencido: agora > sla_prazo (estritamente)
    - texto não vazio
    - prazo proposto com fuso horário e estritamente posterior ao
      sla_prazo atual

    Raises:
        InvalidJustificationRequestError: Se qualquer guarda falhar
    """
    if chamado.status.terminal:
        raise InvalidJustificationRequestError(
            "Chamado finalizado não aceita justificativa de atraso",
            rule="chamado_finalizado",
        )

    if not pode_mudar(chamado.status_justificativa, StatusJustificativa.PENDENTE):
        raise InvalidJustificationRequestError(
            f"Justificativa com status {chamado.status_justificativa.value} "
            f"não aceita nova submissão",
            rule="status_justificativa",
        )

    if not agora > chamado.sla_prazo:
        raise InvalidJustificationRequestError(
            "Justificativa só pode ser enviada após o vencimento do prazo",
            rule="prazo_nao_vencido",
        )

    if not texto or not texto.strip():
        raise InvalidJustificationRequestError(
            "Texto da justificativa é obrigatório",
            rule="texto_obrigatorio",
        )

    if prazo_proposto is None:
        raise InvalidJustificationRequestError(
            "Novo prazo proposto é obrigatório",
            rule="prazo_proposto_obrigatorio",
        )

    if prazo_proposto.tzinfo is None:
        raise InvalidJustificationRequestError(
            "Novo prazo proposto deve ter fuso horário",
            rule="prazo_proposto_sem_fuso",
        )

    if not prazo_proposto > chamado.sla_prazo:
        raise InvalidJustificationRequestError(
            "Novo prazo proposto deve ser posterior ao prazo atual",
            rule="prazo_proposto_anterior",
        )


def validar_aprovacao(chamado: "Chamado") -> None:
    """
    Só aprova proposta que ainda estende o prazo vigente: uma prorrogação
    ou repriorização feita enquanto a justificativa estava pendente pode
    ter levado o sla_prazo para além do prazo proposto.

    Raises:
        NoPendingProposalError: Se não há justificativa pendente com proposta
    """
    if chamado.status_justificativa is not StatusJustificativa.PENDENTE:
        raise NoPendingProposalError(
            f"Nenhuma justificativa pendente (status: {chamado.status_justificativa.value})"
        )
    if chamado.prazo_proposto is None:
        raise NoPendingProposalError(
            "Justificativa pendente sem prazo proposto",
            rule="prazo_proposto_ausente",
        )
    if not chamado.prazo_proposto > chamado.sla_prazo:
        raise NoPendingProposalError(
            "Prazo proposto não é posterior ao prazo vigente",
            rule="prazo_proposto_superado",
        )


def validar_rejeicao(chamado: "Chamado", motivo: Optional[str]) -> None:
    """
    Raises:
        NoPendingProposalError: Se não há justificativa pendente
        MissingReasonError: Se motivo vazio
    """
    if chamado.status_justificativa is not StatusJustificativa.PENDENTE:
        raise NoPendingProposalError(
            f"Nenhuma justificativa pendente (status: {chamado.status_justificativa.value})"
        )
    if not motivo or not motivo.strip():
        raise MissingReasonError(
            "Motivo da rejeição é obrigatório",
            field="motivo_rejeicao",
        )
