"""
Domain Events do Domínio de Chamados.

Um evento por operação bem-sucedida, publicado pelo UnitOfWork após
o commit. Datas viajam como strings ISO-8601 para que o payload seja
serializável sem conversões.

Eventos:
- ChamadoCriadoEvent
- ChamadoEncaminhadoEvent (triagem)
- StatusChamadoAlteradoEvent (rejeição na triagem, início, pausa, bloqueio, retomada)
- MaterialRegistradoEvent
- ChamadoFinalizadoEvent
- PrioridadeAlteradaEvent
- PrazoProrrogadoEvent
- JustificativaSubmetidaEvent / JustificativaAprovadaEvent / JustificativaRejeitadaEvent
- PoliticaSLAAtualizadaEvent
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from src.core.shared.events import DomainEvent


@dataclass
class _ChamadoEvent(DomainEvent):
    """Base dos eventos cujo agregado é um Chamado."""

    usuario: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Chamado"


@dataclass
class ChamadoCriadoEvent(_ChamadoEvent):
    """
    Chamado aberto.

    Handlers típicos: avisar supervisores de triagem.
    """

    titulo: str = ""
    categoria: str = ""
    local: str = ""
    prioridade: str = ""
    sla_prazo: str = ""


@dataclass
class ChamadoEncaminhadoEvent(_ChamadoEvent):
    """Chamado triado e encaminhado a um técnico."""

    tecnico: str = ""
    prioridade: str = ""
    prioridade_anterior: Optional[str] = None
    sla_prazo: str = ""


@dataclass
class StatusChamadoAlteradoEvent(_ChamadoEvent):
    """Mudança de status sem efeito colateral próprio."""

    status_anterior: str = ""
    status_novo: str = ""
    comentario: Optional[str] = None


@dataclass
class MaterialRegistradoEvent(_ChamadoEvent):
    material: str = ""


@dataclass
class ChamadoFinalizadoEvent(_ChamadoEvent):
    """
    Chamado concluído.

    Attributes:
        dentro_do_prazo: Se finalizado antes de vencer o sla_prazo vigente
        tempo_resolucao_horas: Horas entre criado_em e finalizado_em
    """

    dentro_do_prazo: bool = True
    tempo_resolucao_horas: float = 0.0
    materiais: list = field(default_factory=list)


@dataclass
class PrioridadeAlteradaEvent(_ChamadoEvent):
    prioridade_anterior: str = ""
    prioridade_nova: str = ""
    sla_prazo: str = ""


@dataclass
class PrazoProrrogadoEvent(_ChamadoEvent):
    dias: int = 0
    motivo: str = ""
    sla_prazo_anterior: str = ""
    sla_prazo: str = ""


@dataclass
class JustificativaSubmetidaEvent(_ChamadoEvent):
    """Handlers típicos: avisar supervisor/admin que há decisão pendente."""

    prazo_proposto: str = ""


@dataclass
class JustificativaAprovadaEvent(_ChamadoEvent):
    sla_prazo_anterior: str = ""
    sla_prazo: str = ""


@dataclass
class JustificativaRejeitadaEvent(_ChamadoEvent):
    motivo: str = ""


@dataclass
class PoliticaSLAAtualizadaEvent(DomainEvent):
    """Nova tabela de SLA em vigor (agregado: a própria política)."""

    usuario: str = ""
    versao: int = 0
    horas: Dict[str, Any] = field(default_factory=dict)

    @property
    def aggregate_type(self) -> str:
        return "PoliticaSLA"
