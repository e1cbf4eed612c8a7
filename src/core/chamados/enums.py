"""
Enumerações do domínio de Chamados.

- Prioridade: ordinal, define a janela de SLA via PoliticaSLA
- StatusChamado: estados do ciclo de vida
- StatusJustificativa: estados do fluxo de justificativa de atraso
- Categoria: área de manutenção do chamado
"""

from enum import Enum
import unicodedata

from .exceptions import InvalidPriorityError


def _normalizar(valor: str) -> str:
    """Remove acentos, espaços extras e caixa para comparação."""
    sem_acento = unicodedata.normalize("NFKD", valor).encode("ascii", "ignore").decode("ascii")
    return sem_acento.strip().upper().replace(" ", "_")


class Prioridade(Enum):
    """
    Níveis de prioridade, do menor para o maior.

    A duração do SLA não fica aqui: vem da PoliticaSLA vigente.
    """

    BAIXA = "BAIXA"
    MEDIA = "MÉDIA"
    ALTA = "ALTA"
    EMERGENCIA = "EMERGÊNCIA"

    @property
    def nivel(self) -> int:
        """Posição ordinal (BAIXA=1 ... EMERGENCIA=4)."""
        return list(Prioridade).index(self) + 1

    def __lt__(self, other: "Prioridade") -> bool:
        if not isinstance(other, Prioridade):
            return NotImplemented
        return self.nivel < other.nivel

    @classmethod
    def from_string(cls, value) -> "Prioridade":
        """
        Converte nome ou valor para enum.

        Aceita "ALTA", "media", "MÉDIA", "Emergência"...

        Raises:
            InvalidPriorityError: Se valor desconhecido
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            raise InvalidPriorityError(value)

        chave = _normalizar(value)
        for prioridade in cls:
            if chave in (prioridade.name, _normalizar(prioridade.value)):
                return prioridade

        raise InvalidPriorityError(value)


class StatusChamado(Enum):
    """
    Estados possíveis de um chamado.

    Fluxo:
        ABERTO → EM FILA → EM ATENDIMENTO → FINALIZADO
           ↓                  ↓      ↑
        BLOQUEADO    {AGUARDANDO MATERIAL, BLOQUEADO}

    FINALIZADO é terminal.
    """

    ABERTO = "ABERTO"
    EM_FILA = "EM FILA"
    EM_ATENDIMENTO = "EM ATENDIMENTO"
    AGUARDANDO_MATERIAL = "AGUARDANDO MATERIAL"
    BLOQUEADO = "BLOQUEADO"
    FINALIZADO = "FINALIZADO"

    @property
    def terminal(self) -> bool:
        return self is StatusChamado.FINALIZADO

    @classmethod
    def from_string(cls, value: str) -> "StatusChamado":
        """
        Converte nome ("EM_FILA") ou valor ("EM FILA") para enum.

        Raises:
            ValueError: Se valor inválido
        """
        chave = _normalizar(value)
        for status in cls:
            if chave in (status.name, _normalizar(status.value)):
                return status
        raise ValueError(f"Status inválido: {value}")


class StatusJustificativa(Enum):
    """Estados do fluxo de justificativa de atraso."""

    NENHUMA = "Nenhuma"
    PENDENTE = "Pendente"
    APROVADA = "Aprovada"
    REJEITADA = "Rejeitada"


class Categoria(Enum):
    """Áreas de manutenção atendidas."""

    ELETRICA = "Elétrica"
    HIDRAULICA = "Hidráulica"
    CIVIL = "Civil"
    LIMPEZA = "Limpeza"
    JARDINAGEM = "Jardinagem"
    SEGURANCA = "Segurança"

    @classmethod
    def from_string(cls, value: str) -> "Categoria":
        """
        Converte nome ou valor para enum.

        Raises:
            ValueError: Se valor inválido
        """
        chave = _normalizar(value)
        for categoria in cls:
            if chave in (categoria.name, _normalizar(categoria.value)):
                return categoria
        raise ValueError(f"Categoria inválida: {value}")
