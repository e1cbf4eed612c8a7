"""
Domínio de Chamados - Manutenção predial.

Ciclo de vida de chamados com SLA por prioridade, prorrogação de
prazo, fluxo de justificativa de atraso e histórico de auditoria.

- Entidades e enums (Chamado, Prioridade, StatusChamado, ...)
- Máquina de estados e fluxo de justificativa
- Política de SLA
- Use Cases e a fachada CentralDeChamados
- Domain Events, DTOs e Ports
"""

from .central import CentralDeChamados
from .dtos import (
    AguardarMaterialInputDTO,
    AlterarPrioridadeInputDTO,
    AprovarJustificativaInputDTO,
    AtualizarPoliticaSLAInputDTO,
    BloquearAtendimentoInputDTO,
    ChamadoOutputDTO,
    CriarChamadoInputDTO,
    FinalizarChamadoInputDTO,
    IniciarAtendimentoInputDTO,
    ListarChamadosQueryDTO,
    ProrrogarPrazoInputDTO,
    RegistrarMaterialInputDTO,
    RejeitarJustificativaInputDTO,
    RejeitarTriagemInputDTO,
    RetomarAtendimentoInputDTO,
    SubmeterJustificativaInputDTO,
    TriarChamadoInputDTO,
)
from .entities import Chamado
from .enums import Categoria, Prioridade, StatusChamado, StatusJustificativa
from .exceptions import (
    InvalidJustificationRequestError,
    InvalidPriorityError,
    InvalidTransitionError,
    MissingEvidenceError,
    MissingReasonError,
    NoPendingProposalError,
)
from .historico import RegistroHistorico, TipoAcao
from .maquina_estados import EventoChamado
from .ports import ChamadoRepository, InMemoryChamadoRepository
from .sla import ConfiguracaoSLA, PoliticaSLA, calcular_prazo

__all__ = [
    # Entidades
    "Chamado",
    "Categoria",
    "Prioridade",
    "StatusChamado",
    "StatusJustificativa",
    "RegistroHistorico",
    "TipoAcao",
    "EventoChamado",
    # SLA
    "ConfiguracaoSLA",
    "PoliticaSLA",
    "calcular_prazo",
    # Falhas
    "InvalidJustificationRequestError",
    "InvalidPriorityError",
    "InvalidTransitionError",
    "MissingEvidenceError",
    "MissingReasonError",
    "NoPendingProposalError",
    # DTOs
    "AguardarMaterialInputDTO",
    "AlterarPrioridadeInputDTO",
    "AprovarJustificativaInputDTO",
    "AtualizarPoliticaSLAInputDTO",
    "BloquearAtendimentoInputDTO",
    "ChamadoOutputDTO",
    "CriarChamadoInputDTO",
    "FinalizarChamadoInputDTO",
    "IniciarAtendimentoInputDTO",
    "ListarChamadosQueryDTO",
    "ProrrogarPrazoInputDTO",
    "RegistrarMaterialInputDTO",
    "RejeitarJustificativaInputDTO",
    "RejeitarTriagemInputDTO",
    "RetomarAtendimentoInputDTO",
    "SubmeterJustificativaInputDTO",
    "TriarChamadoInputDTO",
    # Ports
    "ChamadoRepository",
    "InMemoryChamadoRepository",
    # Fachada
    "CentralDeChamados",
]
