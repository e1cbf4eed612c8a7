"""
Data Transfer Objects (DTOs) do Domínio de Chamados.

Cada operação tem seu próprio Input DTO imutável: não existe
"patch" genérico de campos. Output DTOs são snapshots de leitura
com as informações derivadas (atraso, estouro crítico, rótulos do
histórico) calculadas no instante da consulta.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .entities import Chamado
from .maquina_estados import eventos_permitidos


def _iso(valor: Optional[datetime]) -> Optional[str]:
    return valor.isoformat() if valor else None


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class CriarChamadoInputDTO:
    """
    DTO de entrada para abrir chamado.

    Attributes:
        titulo: Título curto do problema
        categoria: Categoria (nome ou valor, ex: "ELETRICA" ou "Elétrica")
        local: Onde o serviço deve ser feito
        solicitante: Quem abriu o chamado
        foto_abertura: Referência da foto que evidencia o problema
        prioridade: Prioridade (nome ou valor, ex: "ALTA")
        descricao: Texto livre opcional
    """

    titulo: str
    categoria: str
    local: str
    solicitante: str
    foto_abertura: Optional[str]
    prioridade: str = "MEDIA"
    descricao: str = ""

    def to_dict(self) -> dict:
        return {
            "titulo": self.titulo,
            "categoria": self.categoria,
            "local": self.local,
            "solicitante": self.solicitante,
            "foto_abertura": self.foto_abertura,
            "prioridade": self.prioridade,
            "descricao": self.descricao,
        }


@dataclass(frozen=True)
class TriarChamadoInputDTO:
    """Triagem: encaminhar a um técnico, opcionalmente repriorizando."""

    chamado_id: str
    tecnico: str
    usuario: str
    nova_prioridade: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "chamado_id": self.chamado_id,
            "tecnico": self.tecnico,
            "usuario": self.usuario,
            "nova_prioridade": self.nova_prioridade,
        }


@dataclass(frozen=True)
class RejeitarTriagemInputDTO:
    chamado_id: str
    motivo: str
    usuario: str

    def to_dict(self) -> dict:
        return {
            "chamado_id": self.chamado_id,
            "motivo": self.motivo,
            "usuario": self.usuario,
        }


@dataclass(frozen=True)
class _AndamentoInputDTO:
    """Base das mudanças de andamento feitas pelo técnico."""

    chamado_id: str
    usuario: str
    comentario: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "chamado_id": self.chamado_id,
            "usuario": self.usuario,
            "comentario": self.comentario,
        }


@dataclass(frozen=True)
class IniciarAtendimentoInputDTO(_AndamentoInputDTO):
    pass


@dataclass(frozen=True)
class AguardarMaterialInputDTO(_AndamentoInputDTO):
    pass


@dataclass(frozen=True)
class BloquearAtendimentoInputDTO(_AndamentoInputDTO):
    pass


@dataclass(frozen=True)
class RetomarAtendimentoInputDTO(_AndamentoInputDTO):
    pass


@dataclass(frozen=True)
class FinalizarChamadoInputDTO:
    """
    DTO de entrada para finalizar chamado.

    Attributes:
        foto_conclusao: Referência da foto do serviço concluído (obrigatória)
        nota_tecnica: Observação técnica opcional
        materiais: Materiais usados ainda não registrados
    """

    chamado_id: str
    usuario: str
    foto_conclusao: Optional[str]
    nota_tecnica: Optional[str] = None
    materiais: tuple = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "chamado_id": self.chamado_id,
            "usuario": self.usuario,
            "foto_conclusao": self.foto_conclusao,
            "nota_tecnica": self.nota_tecnica,
            "materiais": list(self.materiais),
        }


@dataclass(frozen=True)
class RegistrarMaterialInputDTO:
    chamado_id: str
    material: str
    usuario: str

    def to_dict(self) -> dict:
        return {
            "chamado_id": self.chamado_id,
            "material": self.material,
            "usuario": self.usuario,
        }


@dataclass(frozen=True)
class AlterarPrioridadeInputDTO:
    chamado_id: str
    nova_prioridade: str
    usuario: str

    def to_dict(self) -> dict:
        return {
            "chamado_id": self.chamado_id,
            "nova_prioridade": self.nova_prioridade,
            "usuario": self.usuario,
        }


@dataclass(frozen=True)
class ProrrogarPrazoInputDTO:
    """
    Prorrogação administrativa.

    Não é idempotente: cada chamada soma `dias` ao prazo vigente.
    """

    chamado_id: str
    dias: int
    motivo: str
    usuario: str

    def to_dict(self) -> dict:
        return {
            "chamado_id": self.chamado_id,
            "dias": self.dias,
            "motivo": self.motivo,
            "usuario": self.usuario,
        }


@dataclass(frozen=True)
class SubmeterJustificativaInputDTO:
    chamado_id: str
    texto: str
    prazo_proposto: Optional[datetime]
    usuario: str

    def to_dict(self) -> dict:
        return {
            "chamado_id": self.chamado_id,
            "texto": self.texto,
            "prazo_proposto": _iso(self.prazo_proposto),
            "usuario": self.usuario,
        }


@dataclass(frozen=True)
class AprovarJustificativaInputDTO:
    chamado_id: str
    usuario: str

    def to_dict(self) -> dict:
        return {"chamado_id": self.chamado_id, "usuario": self.usuario}


@dataclass(frozen=True)
class RejeitarJustificativaInputDTO:
    chamado_id: str
    motivo: str
    usuario: str

    def to_dict(self) -> dict:
        return {
            "chamado_id": self.chamado_id,
            "motivo": self.motivo,
            "usuario": self.usuario,
        }


@dataclass(frozen=True)
class AtualizarPoliticaSLAInputDTO:
    """
    Nova tabela de SLA completa.

    Attributes:
        horas: Prioridade (nome ou valor) → horas
        usuario: Quem alterou
    """

    horas: Mapping[str, int]
    usuario: str

    def to_dict(self) -> dict:
        return {"horas": dict(self.horas), "usuario": self.usuario}


# =============================================================================
# QUERY DTOs (Leitura)
# =============================================================================

@dataclass(frozen=True)
class ListarChamadosQueryDTO:
    """
    Filtros de listagem.

    `perfil`/`usuario` aplicam o filtro de visibilidade por papel
    (apenas consultivo): ADMIN, SUPERVISOR e DIRETORIA veem todos;
    demais perfis veem chamados que solicitaram ou que lhes foram
    atribuídos.
    """

    status: Optional[str] = None
    tecnico: Optional[str] = None
    solicitante: Optional[str] = None
    apenas_atrasados: bool = False
    apenas_criticos: bool = False
    perfil: Optional[str] = None
    usuario: Optional[str] = None


# =============================================================================
# OUTPUT DTOs (Saída)
# =============================================================================

@dataclass
class ChamadoOutputDTO:
    """
    Snapshot completo de um chamado.

    esta_atrasado, esta_critico e eventos_permitidos são calculados
    no instante `consultado_em`.
    """

    id: str
    titulo: str
    categoria: str
    local: str
    descricao: str
    solicitante: str
    foto_abertura: str
    atribuido_a: Optional[str]
    supervisor: Optional[str]
    status: str
    prioridade: str
    criado_em: datetime
    iniciado_em: Optional[datetime]
    finalizado_em: Optional[datetime]
    sla_prazo: Optional[datetime]
    sla_prazo_original: Optional[datetime]
    prorrogado: bool
    prazo_proposto: Optional[datetime]
    justificativa_atraso: Optional[str]
    status_justificativa: str
    motivo_rejeicao: Optional[str]
    foto_conclusao: Optional[str]
    nota_tecnica: Optional[str]
    esta_atrasado: bool
    esta_critico: bool
    consultado_em: datetime
    materiais: List[str] = field(default_factory=list)
    historico: List[Dict[str, Any]] = field(default_factory=list)
    eventos_permitidos: List[str] = field(default_factory=list)

    @classmethod
    def from_entity(cls, entity: Chamado, agora: datetime) -> "ChamadoOutputDTO":
        """
        Converte a entidade em snapshot.

        Args:
            entity: Chamado
            agora: Instante de referência para as leituras derivadas
        """
        return cls(
            id=entity.id,
            titulo=entity.titulo,
            categoria=entity.categoria.value,
            local=entity.local,
            descricao=entity.descricao,
            solicitante=entity.solicitante,
            foto_abertura=entity.foto_abertura,
            atribuido_a=entity.atribuido_a,
            supervisor=entity.supervisor,
            status=entity.status.value,
            prioridade=entity.prioridade.value,
            criado_em=entity.criado_em,
            iniciado_em=entity.iniciado_em,
            finalizado_em=entity.finalizado_em,
            sla_prazo=entity.sla_prazo,
            sla_prazo_original=entity.sla_prazo_original,
            prorrogado=entity.prorrogado,
            prazo_proposto=entity.prazo_proposto,
            justificativa_atraso=entity.justificativa_atraso,
            status_justificativa=entity.status_justificativa.value,
            motivo_rejeicao=entity.motivo_rejeicao,
            foto_conclusao=entity.foto_conclusao,
            nota_tecnica=entity.nota_tecnica,
            esta_atrasado=entity.esta_atrasado(agora),
            esta_critico=entity.esta_critico(agora),
            consultado_em=agora,
            materiais=list(entity.materiais),
            historico=[registro.to_dict() for registro in entity.historico],
            eventos_permitidos=sorted(e.value for e in eventos_permitidos(entity.status)),
        )

    def to_dict(self) -> dict:
        """Converte para dicionário com datas em ISO-8601."""
        return {
            "id": self.id,
            "titulo": self.titulo,
            "categoria": self.categoria,
            "local": self.local,
            "descricao": self.descricao,
            "solicitante": self.solicitante,
            "foto_abertura": self.foto_abertura,
            "atribuido_a": self.atribuido_a,
            "supervisor": self.supervisor,
            "status": self.status,
            "prioridade": self.prioridade,
            "criado_em": _iso(self.criado_em),
            "iniciado_em": _iso(self.iniciado_em),
            "finalizado_em": _iso(self.finalizado_em),
            "sla_prazo": _iso(self.sla_prazo),
            "sla_prazo_original": _iso(self.sla_prazo_original),
            "prorrogado": self.prorrogado,
            "prazo_proposto": _iso(self.prazo_proposto),
            "justificativa_atraso": self.justificativa_atraso,
            "status_justificativa": self.status_justificativa,
            "motivo_rejeicao": self.motivo_rejeicao,
            "foto_conclusao": self.foto_conclusao,
            "nota_tecnica": self.nota_tecnica,
            "esta_atrasado": self.esta_atrasado,
            "esta_critico": self.esta_critico,
            "consultado_em": _iso(self.consultado_em),
            "materiais": list(self.materiais),
            "historico": list(self.historico),
            "eventos_permitidos": list(self.eventos_permitidos),
        }

    @property
    def total_historico(self) -> int:
        return len(self.historico)
