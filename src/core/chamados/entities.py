"""
Entidades do Domínio de Chamados.

Chamado é o agregado raiz: concentra o ciclo de vida, o SLA e o
fluxo de justificativa, e registra cada mutação no histórico.

Regras de Negócio Encapsuladas:
- Validação de dados e evidência fotográfica na abertura
- Transições de status via maquina_estados.TRANSICOES
- Prazo de SLA calculado a partir de criado_em e da PoliticaSLA
- Prorrogação cumulativa com sla_prazo_original gravado uma única vez
- Justificativa de atraso (submeter, aprovar, rejeitar)

Todos os métodos de mutação verificam suas guardas antes de alterar
qualquer campo: uma falha deixa o chamado intacto.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Union
import uuid

from src.core.shared.exceptions import ValidationError

from . import justificativa
from .enums import Categoria, Prioridade, StatusChamado, StatusJustificativa
from .exceptions import (
    InvalidTransitionError,
    MissingEvidenceError,
    MissingReasonError,
)
from .historico import RegistroHistorico, TipoAcao
from .maquina_estados import (
    STATUS_COM_MATERIAL,
    STATUS_PRE_ATENDIMENTO,
    EventoChamado,
    proximo_status,
)
from .sla import PoliticaSLA, esta_atrasado, esta_critico


def _agora_utc() -> datetime:
    return datetime.now(timezone.utc)


def _texto_obrigatorio(valor: Optional[str]) -> bool:
    return bool(valor and valor.strip())


@dataclass
class Chamado:
    """
    Entidade de Domínio: Chamado de manutenção.

    Invariantes:
    - historico nunca vazio após a criação e apenas cresce
    - sla_prazo_original é gravado no máximo uma vez
    - finalizado_em é gravado uma única vez, ao entrar em FINALIZADO
    - FINALIZADO não aceita nenhuma transição

    Example:
        chamado = Chamado.criar(
            titulo="Lâmpada queimada",
            categoria=Categoria.ELETRICA,
            local="Bloco B - Corredor 2",
            descricao="Três lâmpadas apagadas",
            solicitante="maria",
            foto_abertura="fotos/abertura-123.jpg",
            prioridade=Prioridade.MEDIA,
            politica=PoliticaSLA.criar(),
            agora=relogio.agora(),
        )
        chamado.triar("carlos", usuario="supervisor", agora=..., politica=...)
    """

    # Sem padrão: toda reconstrução precisa informar a categoria
    categoria: Categoria

    # Identificação
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # Dados descritivos
    titulo: str = ""
    local: str = ""
    descricao: str = ""
    solicitante: str = ""
    foto_abertura: str = ""

    # Responsáveis
    atribuido_a: Optional[str] = None
    supervisor: Optional[str] = None

    # Estado
    status: StatusChamado = StatusChamado.ABERTO
    prioridade: Prioridade = Prioridade.MEDIA

    # Timestamps
    criado_em: datetime = field(default_factory=_agora_utc)
    iniciado_em: Optional[datetime] = None
    finalizado_em: Optional[datetime] = None

    # SLA
    sla_prazo: Optional[datetime] = None
    sla_prazo_original: Optional[datetime] = None
    prorrogado: bool = False

    # Justificativa de atraso
    prazo_proposto: Optional[datetime] = None
    justificativa_atraso: Optional[str] = None
    status_justificativa: StatusJustificativa = StatusJustificativa.NENHUMA
    motivo_rejeicao: Optional[str] = None

    # Conclusão
    foto_conclusao: Optional[str] = None
    nota_tecnica: Optional[str] = None
    materiais: List[str] = field(default_factory=list)

    historico: List[RegistroHistorico] = field(default_factory=list)

    # Controle de concorrência otimista (gravações persistidas)
    versao: int = 0

    TITULO_MIN_LENGTH = 3
    TITULO_MAX_LENGTH = 200
    DESCRICAO_MAX_LENGTH = 5000

    # =========================================================================
    # Criação
    # =========================================================================

    @classmethod
    def criar(
        cls,
        titulo: str,
        categoria: Union[Categoria, str],
        local: str,
        solicitante: str,
        foto_abertura: Optional[str],
        prioridade: Union[Prioridade, str],
        politica: PoliticaSLA,
        agora: datetime,
        descricao: str = "",
    ) -> "Chamado":
        """
        Abre um chamado com status ABERTO e prazo calculado.

        Raises:
            ValidationError: Título, local, solicitante ou categoria inválidos
            MissingEvidenceError: Sem foto de abertura
            InvalidPriorityError: Prioridade desconhecida
        """
        cls._validar_titulo(titulo)
        if not _texto_obrigatorio(local):
            raise ValidationError("Local é obrigatório", field="local")
        if not _texto_obrigatorio(solicitante):
            raise ValidationError("Solicitante é obrigatório", field="solicitante")
        if descricao and len(descricao.strip()) > cls.DESCRICAO_MAX_LENGTH:
            raise ValidationError(
                f"Descrição deve ter no máximo {cls.DESCRICAO_MAX_LENGTH} caracteres",
                field="descricao",
            )
        if not _texto_obrigatorio(foto_abertura):
            raise MissingEvidenceError(
                "Foto de abertura é obrigatória",
                field="foto_abertura",
            )

        categoria = cls._converter_categoria(categoria)
        prioridade = Prioridade.from_string(prioridade)

        chamado = cls(
            titulo=titulo.strip(),
            categoria=categoria,
            local=local.strip(),
            descricao=(descricao or "").strip(),
            solicitante=solicitante,
            foto_abertura=foto_abertura,
            prioridade=prioridade,
            criado_em=agora,
            sla_prazo=politica.calcular_prazo(prioridade, agora),
        )
        chamado._registrar(
            TipoAcao.ABERTURA,
            usuario=solicitante,
            agora=agora,
            prioridade=prioridade.value,
            sla_prazo=chamado.sla_prazo.isoformat(),
        )
        return chamado

    @classmethod
    def _validar_titulo(cls, titulo: str) -> None:
        if not _texto_obrigatorio(titulo):
            raise ValidationError("Título é obrigatório", field="titulo")

        titulo_limpo = titulo.strip()
        if len(titulo_limpo) < cls.TITULO_MIN_LENGTH:
            raise ValidationError(
                f"Título deve ter pelo menos {cls.TITULO_MIN_LENGTH} caracteres",
                field="titulo",
            )
        if len(titulo_limpo) > cls.TITULO_MAX_LENGTH:
            raise ValidationError(
                f"Título deve ter no máximo {cls.TITULO_MAX_LENGTH} caracteres",
                field="titulo",
            )

    @staticmethod
    def _converter_categoria(categoria: Union[Categoria, str]) -> Categoria:
        if isinstance(categoria, Categoria):
            return categoria
        try:
            return Categoria.from_string(categoria or "")
        except ValueError as e:
            raise ValidationError(str(e), field="categoria") from e

    # =========================================================================
    # Ciclo de vida
    # =========================================================================

    def triar(
        self,
        tecnico: str,
        usuario: str,
        agora: datetime,
        politica: PoliticaSLA,
        nova_prioridade: Optional[Union[Prioridade, str]] = None,
    ) -> None:
        """
        Encaminha o chamado ABERTO para um técnico (ABERTO → EM FILA).

        Se a prioridade mudar, o prazo é recalculado a partir de
        criado_em (retroativo à abertura, não a partir de agora).

        Raises:
            InvalidTransitionError: Se não estiver ABERTO
            ValidationError: Se técnico vazio
            InvalidPriorityError: Se prioridade desconhecida
        """
        novo_status = proximo_status(self.status, EventoChamado.TRIAR)
        if not _texto_obrigatorio(tecnico):
            raise ValidationError("Técnico é obrigatório", field="tecnico")

        prioridade = self.prioridade
        if nova_prioridade is not None:
            prioridade = Prioridade.from_string(nova_prioridade)
        mudou_prioridade = prioridade is not self.prioridade
        novo_prazo = politica.calcular_prazo(prioridade, self.criado_em) if mudou_prioridade else self.sla_prazo

        dados = {"tecnico": tecnico}
        if mudou_prioridade:
            dados.update(
                prioridade_anterior=self.prioridade.value,
                prioridade_nova=prioridade.value,
                sla_prazo_novo=novo_prazo.isoformat(),
            )

        self.atribuido_a = tecnico
        self.supervisor = usuario
        self.prioridade = prioridade
        self.sla_prazo = novo_prazo
        self.status = novo_status
        self._registrar(TipoAcao.TRIAGEM, usuario=usuario, agora=agora, **dados)

    def rejeitar_triagem(self, motivo: str, usuario: str, agora: datetime) -> None:
        """
        Recusa o chamado na triagem (ABERTO → BLOQUEADO).

        Raises:
            InvalidTransitionError: Se não estiver ABERTO
            MissingReasonError: Se motivo vazio
        """
        novo_status = proximo_status(self.status, EventoChamado.REJEITAR_TRIAGEM)
        if not _texto_obrigatorio(motivo):
            raise MissingReasonError("Motivo da rejeição é obrigatório")

        self.supervisor = usuario
        self.status = novo_status
        self._registrar(
            TipoAcao.TRIAGEM_REJEITADA,
            usuario=usuario,
            agora=agora,
            comentario=motivo.strip(),
            motivo=motivo.strip(),
        )

    def iniciar_atendimento(self, usuario: str, agora: datetime) -> None:
        """EM FILA → EM ATENDIMENTO; grava iniciado_em na primeira vez."""
        novo_status = proximo_status(self.status, EventoChamado.INICIAR)

        if self.iniciado_em is None:
            self.iniciado_em = agora
        self.status = novo_status
        self._registrar(TipoAcao.INICIO_ATENDIMENTO, usuario=usuario, agora=agora)

    def aguardar_material(self, usuario: str, agora: datetime, comentario: Optional[str] = None) -> None:
        novo_status = proximo_status(self.status, EventoChamado.AGUARDAR_MATERIAL)
        self.status = novo_status
        self._registrar(TipoAcao.AGUARDANDO_MATERIAL, usuario=usuario, agora=agora, comentario=comentario)

    def bloquear(self, usuario: str, agora: datetime, comentario: Optional[str] = None) -> None:
        novo_status = proximo_status(self.status, EventoChamado.BLOQUEAR)
        self.status = novo_status
        self._registrar(TipoAcao.BLOQUEIO, usuario=usuario, agora=agora, comentario=comentario)

    def retomar_atendimento(self, usuario: str, agora: datetime, comentario: Optional[str] = None) -> None:
        """
        AGUARDANDO MATERIAL / BLOQUEADO → EM ATENDIMENTO.

        Chamados bloqueados na triagem nunca iniciaram atendimento
        e não podem ser retomados.

        Raises:
            InvalidTransitionError: Se o evento não é legal ou o atendimento não começou
        """
        novo_status = proximo_status(self.status, EventoChamado.RETOMAR)
        if self.iniciado_em is None:
            raise InvalidTransitionError(
                "Chamado bloqueado na triagem não pode ser retomado",
                status_atual=self.status.value,
                evento=EventoChamado.RETOMAR.value,
                rule="atendimento_nao_iniciado",
            )

        self.status = novo_status
        self._registrar(TipoAcao.RETOMADA, usuario=usuario, agora=agora, comentario=comentario)

    def registrar_material(self, material: str, usuario: str, agora: datetime) -> None:
        """
        Lança material utilizado no atendimento.

        Raises:
            InvalidTransitionError: Fora de EM ATENDIMENTO / AGUARDANDO MATERIAL
            ValidationError: Se material vazio
        """
        if self.status not in STATUS_COM_MATERIAL:
            raise InvalidTransitionError(
                f"Não é possível registrar material em chamado {self.status.value}",
                status_atual=self.status.value,
                rule="material_fora_do_atendimento",
            )
        if not _texto_obrigatorio(material):
            raise ValidationError("Material é obrigatório", field="material")

        self.materiais.append(material.strip())
        self._registrar(TipoAcao.MATERIAL_REGISTRADO, usuario=usuario, agora=agora, material=material.strip())

    def finalizar(
        self,
        foto_conclusao: Optional[str],
        usuario: str,
        agora: datetime,
        nota_tecnica: Optional[str] = None,
        materiais: Iterable[str] = (),
    ) -> None:
        """
        EM ATENDIMENTO → FINALIZADO.

        Raises:
            InvalidTransitionError: Se não estiver EM ATENDIMENTO ou houver
                justificativa pendente de decisão
            MissingEvidenceError: Sem foto de conclusão
        """
        novo_status = proximo_status(self.status, EventoChamado.FINALIZAR)
        if self.status_justificativa is StatusJustificativa.PENDENTE:
            raise InvalidTransitionError(
                "Chamado com justificativa pendente não pode ser finalizado",
                status_atual=self.status.value,
                evento=EventoChamado.FINALIZAR.value,
                rule="justificativa_pendente",
            )
        if not _texto_obrigatorio(foto_conclusao):
            raise MissingEvidenceError(
                "Foto de conclusão é obrigatória",
                field="foto_conclusao",
            )

        novos_materiais = [m.strip() for m in materiais if _texto_obrigatorio(m)]
        dentro_do_prazo = not esta_atrasado(self.sla_prazo, agora)

        self.materiais.extend(novos_materiais)
        self.foto_conclusao = foto_conclusao
        self.nota_tecnica = nota_tecnica.strip() if nota_tecnica else None
        self.finalizado_em = agora
        self.status = novo_status
        self._registrar(
            TipoAcao.FINALIZACAO,
            usuario=usuario,
            agora=agora,
            comentario=self.nota_tecnica,
            dentro_do_prazo=dentro_do_prazo,
            materiais=novos_materiais,
        )

    # =========================================================================
    # SLA
    # =========================================================================

    def alterar_prioridade(
        self,
        nova_prioridade: Union[Prioridade, str],
        usuario: str,
        agora: datetime,
        politica: PoliticaSLA,
    ) -> None:
        """
        Repriorização antes do início do atendimento.

        sla_prazo = criado_em + horas(nova_prioridade), então repetir a
        mesma prioridade sempre produz o mesmo prazo.

        Raises:
            InvalidTransitionError: Fora de ABERTO / EM FILA
            InvalidPriorityError: Prioridade desconhecida
        """
        if self.status not in STATUS_PRE_ATENDIMENTO:
            raise InvalidTransitionError(
                f"Prioridade só pode ser alterada antes do atendimento (status: {self.status.value})",
                status_atual=self.status.value,
                rule="repriorizacao_apos_inicio",
            )
        prioridade = Prioridade.from_string(nova_prioridade)
        novo_prazo = politica.calcular_prazo(prioridade, self.criado_em)

        anterior = self.prioridade
        self.prioridade = prioridade
        self.sla_prazo = novo_prazo
        self._registrar(
            TipoAcao.PRIORIDADE_ALTERADA,
            usuario=usuario,
            agora=agora,
            prioridade_anterior=anterior.value,
            prioridade_nova=prioridade.value,
            sla_prazo_novo=novo_prazo.isoformat(),
        )

    def prorrogar_prazo(self, dias: int, motivo: str, usuario: str, agora: datetime) -> None:
        """
        Prorrogação administrativa: soma dias corridos ao prazo atual.

        Cumulativa; não é idempotente.

        Raises:
            MissingReasonError: Se motivo vazio
            ValidationError: Se dias não for inteiro positivo
            InvalidTransitionError: Se chamado finalizado
        """
        if not _texto_obrigatorio(motivo):
            raise MissingReasonError("Motivo da prorrogação é obrigatório")
        if isinstance(dias, bool) or not isinstance(dias, int) or dias <= 0:
            raise ValidationError(
                "Dias de prorrogação devem ser um inteiro positivo",
                field="dias",
            )
        if self.status.terminal:
            raise InvalidTransitionError(
                "Chamado finalizado não pode ter o prazo prorrogado",
                status_atual=self.status.value,
                rule="finalizado_imutavel",
            )

        anterior = self.sla_prazo
        self._fixar_prazo_original()
        self.sla_prazo = anterior + timedelta(days=dias)
        self.prorrogado = True
        self._registrar(
            TipoAcao.PRORROGACAO,
            usuario=usuario,
            agora=agora,
            comentario=motivo.strip(),
            dias=dias,
            sla_prazo_anterior=anterior.isoformat(),
            sla_prazo_novo=self.sla_prazo.isoformat(),
        )

    def _fixar_prazo_original(self) -> None:
        if self.sla_prazo_original is None:
            self.sla_prazo_original = self.sla_prazo

    # =========================================================================
    # Justificativa de atraso
    # =========================================================================

    def submeter_justificativa(
        self,
        texto: str,
        prazo_proposto: datetime,
        usuario: str,
        agora: datetime,
    ) -> None:
        """
        Envia justificativa com novo prazo proposto (→ PENDENTE).

        O prazo vigente só muda na aprovação. Uma nova submissão após
        rejeição limpa o motivo_rejeicao anterior e substitui a proposta.

        Raises:
            InvalidJustificationRequestError: Ver justificativa.validar_submissao
        """
        justificativa.validar_submissao(self, texto, prazo_proposto, agora)

        self.justificativa_atraso = texto.strip()
        self.prazo_proposto = prazo_proposto
        self.motivo_rejeicao = None
        self.status_justificativa = StatusJustificativa.PENDENTE
        self._registrar(
            TipoAcao.JUSTIFICATIVA_SUBMETIDA,
            usuario=usuario,
            agora=agora,
            comentario=self.justificativa_atraso,
            prazo_proposto=prazo_proposto.isoformat(),
        )

    def aprovar_justificativa(self, usuario: str, agora: datetime) -> None:
        """
        Aceita a proposta pendente: sla_prazo passa a ser o prazo proposto.

        Raises:
            NoPendingProposalError: Sem justificativa pendente
        """
        justificativa.validar_aprovacao(self)

        anterior = self.sla_prazo
        self._fixar_prazo_original()
        self.sla_prazo = self.prazo_proposto
        self.prorrogado = True
        self.status_justificativa = StatusJustificativa.APROVADA
        self._registrar(
            TipoAcao.JUSTIFICATIVA_APROVADA,
            usuario=usuario,
            agora=agora,
            sla_prazo_anterior=anterior.isoformat(),
            sla_prazo_novo=self.sla_prazo.isoformat(),
        )

    def rejeitar_justificativa(self, motivo: str, usuario: str, agora: datetime) -> None:
        """
        Recusa a proposta pendente; prazo e proposta ficam como estão.

        Raises:
            NoPendingProposalError: Sem justificativa pendente
            MissingReasonError: Motivo vazio
        """
        justificativa.validar_rejeicao(self, motivo)

        self.motivo_rejeicao = motivo.strip()
        self.status_justificativa = StatusJustificativa.REJEITADA
        self._registrar(
            TipoAcao.JUSTIFICATIVA_REJEITADA,
            usuario=usuario,
            agora=agora,
            comentario=self.motivo_rejeicao,
            motivo=self.motivo_rejeicao,
        )

    # =========================================================================
    # Leituras derivadas
    # =========================================================================

    def esta_atrasado(self, agora: Optional[datetime] = None) -> bool:
        """Prazo vencido (agora > sla_prazo) em chamado não finalizado."""
        if self.status.terminal or self.sla_prazo is None:
            return False
        return esta_atrasado(self.sla_prazo, agora or _agora_utc())

    def esta_critico(self, agora: Optional[datetime] = None) -> bool:
        """Tempo decorrido acima de 150% da janela criado_em → sla_prazo."""
        if self.status.terminal or self.sla_prazo is None:
            return False
        return esta_critico(self.criado_em, self.sla_prazo, agora or _agora_utc())

    def tempo_restante_sla(self, agora: Optional[datetime] = None) -> Optional[timedelta]:
        """Positivo dentro do prazo, negativo se atrasado, None se finalizado."""
        if self.status.terminal or self.sla_prazo is None:
            return None
        return self.sla_prazo - (agora or _agora_utc())

    # =========================================================================
    # Histórico
    # =========================================================================

    def _registrar(
        self,
        acao: TipoAcao,
        usuario: str,
        agora: datetime,
        comentario: Optional[str] = None,
        **dados,
    ) -> None:
        self.historico.append(
            RegistroHistorico(
                momento=agora,
                acao=acao,
                usuario=usuario,
                comentario=comentario,
                dados=dados,
            )
        )

    @property
    def ultima_acao(self) -> Optional[RegistroHistorico]:
        return self.historico[-1] if self.historico else None

    def __repr__(self) -> str:
        return (
            f"Chamado("
            f"id={self.id[:8]}..., "
            f"titulo='{self.titulo[:20]}', "
            f"status={self.status.value}, "
            f"prioridade={self.prioridade.value}"
            f")"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chamado):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
