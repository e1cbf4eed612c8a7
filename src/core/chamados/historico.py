"""
Histórico (trilha de auditoria) de chamados.

Cada operação bem-sucedida acrescenta um RegistroHistorico imutável,
marcado por TipoAcao e com payload tipado. O texto exibido ao usuário
("Encaminhado para Carlos", "Prorrogação de Prazo (+2 dias)") não é
armazenado: é gerado na leitura por descrever().
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional


class TipoAcao(Enum):
    ABERTURA = "abertura"
    TRIAGEM = "triagem"
    TRIAGEM_REJEITADA = "triagem_rejeitada"
    INICIO_ATENDIMENTO = "inicio_atendimento"
    AGUARDANDO_MATERIAL = "aguardando_material"
    BLOQUEIO = "bloqueio"
    RETOMADA = "retomada"
    MATERIAL_REGISTRADO = "material_registrado"
    FINALIZACAO = "finalizacao"
    PRIORIDADE_ALTERADA = "prioridade_alterada"
    PRORROGACAO = "prorrogacao"
    JUSTIFICATIVA_SUBMETIDA = "justificativa_submetida"
    JUSTIFICATIVA_APROVADA = "justificativa_aprovada"
    JUSTIFICATIVA_REJEITADA = "justificativa_rejeitada"


@dataclass(frozen=True)
class RegistroHistorico:
    """
    Entrada imutável do histórico.

    Attributes:
        momento: Instante da ação
        acao: Tipo estruturado da ação
        usuario: Identificador opaco de quem agiu
        comentario: Texto livre opcional (motivo, nota)
        dados: Payload da ação (valores já serializáveis)
    """

    momento: datetime
    acao: TipoAcao
    usuario: str
    comentario: Optional[str] = None
    dados: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Congela o payload para que o registro seja de fato imutável
        object.__setattr__(self, "dados", MappingProxyType(dict(self.dados)))

    @property
    def descricao(self) -> str:
        return descrever(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "momento": self.momento.isoformat(),
            "acao": self.acao.value,
            "usuario": self.usuario,
            "comentario": self.comentario,
            "dados": dict(self.dados),
            "descricao": self.descricao,
        }

    def __deepcopy__(self, memo):
        # Imutável: cópias profundas do chamado podem compartilhar o registro
        return self


def _dias(n: int) -> str:
    return "1 dia" if n == 1 else f"{n} dias"


def _triagem(dados: Mapping[str, Any]) -> str:
    texto = f"Encaminhado para {dados.get('tecnico')}"
    if dados.get("prioridade_nova"):
        texto += f" (prioridade alterada para {dados['prioridade_nova']})"
    return texto


def _data(valor: Optional[str]) -> str:
    if not valor:
        return "-"
    return datetime.fromisoformat(valor).strftime("%d/%m/%Y %H:%M")


_RENDERIZADORES: Dict[TipoAcao, Callable[[Mapping[str, Any]], str]] = {
    TipoAcao.ABERTURA: lambda d: "Abertura do chamado",
    TipoAcao.TRIAGEM: _triagem,
    TipoAcao.TRIAGEM_REJEITADA: lambda d: f"Rejeitado: {d.get('motivo')}",
    TipoAcao.INICIO_ATENDIMENTO: lambda d: "Iniciou atendimento",
    TipoAcao.AGUARDANDO_MATERIAL: lambda d: "Aguardando material",
    TipoAcao.BLOQUEIO: lambda d: "Atendimento bloqueado",
    TipoAcao.RETOMADA: lambda d: "Retomou atendimento",
    TipoAcao.MATERIAL_REGISTRADO: lambda d: f"Material utilizado: {d.get('material')}",
    TipoAcao.FINALIZACAO: lambda d: "Finalizou o serviço",
    TipoAcao.PRIORIDADE_ALTERADA: lambda d: f"Alterou prioridade para {d.get('prioridade_nova')}",
    TipoAcao.PRORROGACAO: lambda d: f"Prorrogação de Prazo (+{_dias(d.get('dias', 0))})",
    TipoAcao.JUSTIFICATIVA_SUBMETIDA: lambda d: (
        f"Justificativa de atraso enviada (novo prazo proposto: {_data(d.get('prazo_proposto'))})"
    ),
    TipoAcao.JUSTIFICATIVA_APROVADA: lambda d: (
        f"Justificativa aprovada (novo prazo: {_data(d.get('sla_prazo_novo'))})"
    ),
    TipoAcao.JUSTIFICATIVA_REJEITADA: lambda d: f"Justificativa rejeitada: {d.get('motivo')}",
}


def descrever(registro: RegistroHistorico) -> str:
    """Rótulo legível do registro, gerado na leitura."""
    return _RENDERIZADORES[registro.acao](registro.dados)
