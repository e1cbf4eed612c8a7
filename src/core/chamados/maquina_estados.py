"""
Máquina de estados do ciclo de vida de chamados.

A tabela TRANSICOES é a única fonte de verdade sobre quais eventos
são legais em cada status. Pares (status, evento) fora da tabela
são rejeitados com InvalidTransitionError.

    | De                  | Evento           | Para                |
    |---------------------|------------------|---------------------|
    | ABERTO              | TRIAR            | EM FILA             |
    | ABERTO              | REJEITAR_TRIAGEM | BLOQUEADO           |
    | EM FILA             | INICIAR          | EM ATENDIMENTO      |
    | EM ATENDIMENTO      | AGUARDAR_MATERIAL| AGUARDANDO MATERIAL |
    | EM ATENDIMENTO      | BLOQUEAR         | BLOQUEADO           |
    | EM ATENDIMENTO      | FINALIZAR        | FINALIZADO          |
    | AGUARDANDO MATERIAL | RETOMAR          | EM ATENDIMENTO      |
    | BLOQUEADO           | RETOMAR          | EM ATENDIMENTO      |

RETOMAR a partir de BLOQUEADO só vale para chamados cujo atendimento
já começou; a guarda fica na entidade (depende de iniciado_em).
"""

from enum import Enum
from typing import Dict, FrozenSet, Tuple

from .enums import StatusChamado
from .exceptions import InvalidTransitionError


class EventoChamado(Enum):
    TRIAR = "triar"
    REJEITAR_TRIAGEM = "rejeitar_triagem"
    INICIAR = "iniciar"
    AGUARDAR_MATERIAL = "aguardar_material"
    BLOQUEAR = "bloquear"
    RETOMAR = "retomar"
    FINALIZAR = "finalizar"


TRANSICOES: Dict[Tuple[StatusChamado, EventoChamado], StatusChamado] = {
    (StatusChamado.ABERTO, EventoChamado.TRIAR): StatusChamado.EM_FILA,
    (StatusChamado.ABERTO, EventoChamado.REJEITAR_TRIAGEM): StatusChamado.BLOQUEADO,
    (StatusChamado.EM_FILA, EventoChamado.INICIAR): StatusChamado.EM_ATENDIMENTO,
    (StatusChamado.EM_ATENDIMENTO, EventoChamado.AGUARDAR_MATERIAL): StatusChamado.AGUARDANDO_MATERIAL,
    (StatusChamado.EM_ATENDIMENTO, EventoChamado.BLOQUEAR): StatusChamado.BLOQUEADO,
    (StatusChamado.EM_ATENDIMENTO, EventoChamado.FINALIZAR): StatusChamado.FINALIZADO,
    (StatusChamado.AGUARDANDO_MATERIAL, EventoChamado.RETOMAR): StatusChamado.EM_ATENDIMENTO,
    (StatusChamado.BLOQUEADO, EventoChamado.RETOMAR): StatusChamado.EM_ATENDIMENTO,
}

# Status em que o trabalho ainda não começou (repriorização permitida)
STATUS_PRE_ATENDIMENTO: FrozenSet[StatusChamado] = frozenset({
    StatusChamado.ABERTO,
    StatusChamado.EM_FILA,
})

# Status em que materiais podem ser lançados
STATUS_COM_MATERIAL: FrozenSet[StatusChamado] = frozenset({
    StatusChamado.EM_ATENDIMENTO,
    StatusChamado.AGUARDANDO_MATERIAL,
})


def pode_transitar(status: StatusChamado, evento: EventoChamado) -> bool:
    return (status, evento) in TRANSICOES


def proximo_status(status: StatusChamado, evento: EventoChamado) -> StatusChamado:
    """
    Status de destino para o evento.

    Raises:
        InvalidTransitionError: Se o evento não é legal no status atual
    """
    try:
        return TRANSICOES[(status, evento)]
    except KeyError:
        raise InvalidTransitionError(
            f"Evento '{evento.value}' não é permitido para chamado {status.value}",
            status_atual=status.value,
            evento=evento.value,
        ) from None


def eventos_permitidos(status: StatusChamado) -> FrozenSet[EventoChamado]:
    """Eventos aceitos a partir do status (vazio para FINALIZADO)."""
    return frozenset(evento for (origem, evento) in TRANSICOES if origem == status)
