"""
Use Cases (Application Services) do Domínio de Chamados.

Um serviço por operação de negócio. Todos os serviços de mutação
seguem o mesmo roteiro:

1. Adquirir a trava do chamado (serialização por ID)
2. Abrir o Unit of Work
3. Carregar o chamado (EntityNotFoundError se não existir)
4. Aplicar a operação na entidade (guardas + efeitos)
5. Persistir via repositório (controle otimista de versão)
6. Enfileirar o Domain Event (publicado após commit)
7. Devolver o snapshot ChamadoOutputDTO

Se qualquer passo falhar, o UoW faz rollback, os eventos são
descartados e o chamado persistido permanece como estava.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Type
import logging

from src.core.shared.events import DomainEvent
from src.core.shared.exceptions import EntityNotFoundError, ValidationError
from src.core.shared.interfaces import UnitOfWork
from src.core.shared.relogio import Relogio, RelogioSistema
from src.core.shared.travas import TravasPorChave

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
    _AndamentoInputDTO,
)
from .entities import Chamado
from .enums import StatusChamado
from .events import (
    ChamadoCriadoEvent,
    ChamadoEncaminhadoEvent,
    ChamadoFinalizadoEvent,
    JustificativaAprovadaEvent,
    JustificativaRejeitadaEvent,
    JustificativaSubmetidaEvent,
    MaterialRegistradoEvent,
    PoliticaSLAAtualizadaEvent,
    PrazoProrrogadoEvent,
    PrioridadeAlteradaEvent,
    StatusChamadoAlteradoEvent,
)
from .ports import ChamadoRepository
from .sla import ConfiguracaoSLA, PoliticaSLA

logger = logging.getLogger(__name__)


# Perfis que enxergam todos os chamados na listagem
PERFIS_VISAO_TOTAL = frozenset({"ADMIN", "SUPERVISOR", "DIRETORIA"})


def _iso(valor: Optional[datetime]) -> str:
    return valor.isoformat() if valor else ""


class _ServicoDeChamado:
    """
    Base dos serviços que alteram um chamado existente.

    Subclasses implementam `_aplicar(chamado, input_dto, agora)`,
    que chama o método da entidade e devolve o evento a publicar.

    Attributes:
        chamado_repo: Repositório de chamados
        uow: Unit of Work da operação
        relogio: Fonte do instante atual
        travas: Registro de travas por chamado (compartilhado entre serviços)
        configuracao_sla: Política de SLA vigente
    """

    def __init__(
        self,
        chamado_repo: ChamadoRepository,
        uow: UnitOfWork,
        relogio: Optional[Relogio] = None,
        travas: Optional[TravasPorChave] = None,
        configuracao_sla: Optional[ConfiguracaoSLA] = None,
    ):
        self.chamado_repo = chamado_repo
        self.uow = uow
        self.relogio = relogio if relogio is not None else RelogioSistema()
        self.travas = travas if travas is not None else TravasPorChave()
        self.configuracao_sla = configuracao_sla if configuracao_sla is not None else ConfiguracaoSLA()

    @property
    def politica(self) -> PoliticaSLA:
        return self.configuracao_sla.atual

    def execute(self, input_dto) -> ChamadoOutputDTO:
        """
        Executa a operação de forma serializada e atômica.

        Raises:
            EntityNotFoundError: Se o chamado não existe
            DomainException: Falha tipada da operação (chamado inalterado)
        """
        chamado_id = input_dto.chamado_id

        with self.travas.travar(chamado_id):
            with self.uow:
                chamado = self._carregar(chamado_id)
                agora = self.relogio.agora()
                evento = self._aplicar(chamado, input_dto, agora)
                self.chamado_repo.save(chamado)
                self.uow.publish_event(evento)

        logger.info(
            f"{self.__class__.__name__}: chamado {chamado_id} "
            f"status={chamado.status.value} versao={chamado.versao}"
        )
        return ChamadoOutputDTO.from_entity(chamado, agora)

    def _carregar(self, chamado_id: str) -> Chamado:
        chamado = self.chamado_repo.get_for_update(chamado_id)
        if chamado is None:
            raise EntityNotFoundError(
                f"Chamado {chamado_id} não encontrado",
                entity_type="Chamado",
                entity_id=chamado_id,
            )
        return chamado

    def _aplicar(self, chamado: Chamado, input_dto, agora: datetime) -> DomainEvent:
        raise NotImplementedError


class CriarChamadoService:
    """
    Use Case: Abrir chamado.

    Fluxo:
    1. Criar entidade (validações e prazo inicial na entidade)
    2. Persistir via repositório
    3. Disparar ChamadoCriadoEvent
    4. Retornar DTO de saída

    Example:
        service = CriarChamadoService(repo, uow, configuracao_sla)
        output = service.execute(CriarChamadoInputDTO(
            titulo="Vazamento na pia",
            categoria="Hidráulica",
            local="Copa - 3º andar",
            solicitante="joana",
            foto_abertura="fotos/vazamento.jpg",
            prioridade="ALTA",
        ))
    """

    def __init__(
        self,
        chamado_repo: ChamadoRepository,
        uow: UnitOfWork,
        configuracao_sla: Optional[ConfiguracaoSLA] = None,
        relogio: Optional[Relogio] = None,
    ):
        self.chamado_repo = chamado_repo
        self.uow = uow
        self.configuracao_sla = configuracao_sla if configuracao_sla is not None else ConfiguracaoSLA()
        self.relogio = relogio if relogio is not None else RelogioSistema()

    def execute(self, input_dto: CriarChamadoInputDTO) -> ChamadoOutputDTO:
        """
        Raises:
            ValidationError: Dados de entrada inválidos
            MissingEvidenceError: Sem foto de abertura
            InvalidPriorityError: Prioridade desconhecida
        """
        with self.uow:
            agora = self.relogio.agora()
            chamado = Chamado.criar(
                titulo=input_dto.titulo,
                categoria=input_dto.categoria,
                local=input_dto.local,
                solicitante=input_dto.solicitante,
                foto_abertura=input_dto.foto_abertura,
                prioridade=input_dto.prioridade,
                politica=self.configuracao_sla.atual,
                agora=agora,
                descricao=input_dto.descricao,
            )

            self.chamado_repo.save(chamado)

            self.uow.publish_event(
                ChamadoCriadoEvent(
                    aggregate_id=chamado.id,
                    occurred_at=agora,
                    usuario=chamado.solicitante,
                    titulo=chamado.titulo,
                    categoria=chamado.categoria.value,
                    local=chamado.local,
                    prioridade=chamado.prioridade.value,
                    sla_prazo=_iso(chamado.sla_prazo),
                )
            )

        logger.info(f"Chamado aberto: {chamado.id} ({chamado.prioridade.value})")
        return ChamadoOutputDTO.from_entity(chamado, agora)


class TriarChamadoService(_ServicoDeChamado):
    """Use Case: Triagem (ABERTO → EM FILA), com repriorização opcional."""

    def _aplicar(self, chamado: Chamado, input_dto: TriarChamadoInputDTO, agora: datetime) -> DomainEvent:
        prioridade_anterior = chamado.prioridade
        chamado.triar(
            tecnico=input_dto.tecnico,
            usuario=input_dto.usuario,
            agora=agora,
            politica=self.politica,
            nova_prioridade=input_dto.nova_prioridade,
        )
        mudou = chamado.prioridade is not prioridade_anterior
        return ChamadoEncaminhadoEvent(
            aggregate_id=chamado.id,
            occurred_at=agora,
            usuario=input_dto.usuario,
            tecnico=chamado.atribuido_a,
            prioridade=chamado.prioridade.value,
            prioridade_anterior=prioridade_anterior.value if mudou else None,
            sla_prazo=_iso(chamado.sla_prazo),
        )


class RejeitarTriagemService(_ServicoDeChamado):
    """Use Case: Rejeição na triagem (ABERTO → BLOQUEADO)."""

    def _aplicar(self, chamado: Chamado, input_dto: RejeitarTriagemInputDTO, agora: datetime) -> DomainEvent:
        anterior = chamado.status
        chamado.rejeitar_triagem(input_dto.motivo, usuario=input_dto.usuario, agora=agora)
        return StatusChamadoAlteradoEvent(
            aggregate_id=chamado.id,
            occurred_at=agora,
            usuario=input_dto.usuario,
            status_anterior=anterior.value,
            status_novo=chamado.status.value,
            comentario=chamado.ultima_acao.comentario,
        )


class AlterarAndamentoService(_ServicoDeChamado):
    """
    Use Case: Mudanças de andamento feitas pelo técnico.

    O tipo do DTO escolhe a operação:
    - IniciarAtendimentoInputDTO: EM FILA → EM ATENDIMENTO
    - AguardarMaterialInputDTO: EM ATENDIMENTO → AGUARDANDO MATERIAL
    - BloquearAtendimentoInputDTO: EM ATENDIMENTO → BLOQUEADO
    - RetomarAtendimentoInputDTO: AGUARDANDO MATERIAL / BLOQUEADO → EM ATENDIMENTO
    """

    _OPERACOES: Dict[Type[_AndamentoInputDTO], Callable[..., None]] = {
        IniciarAtendimentoInputDTO: lambda c, dto, agora: c.iniciar_atendimento(dto.usuario, agora),
        AguardarMaterialInputDTO: lambda c, dto, agora: c.aguardar_material(dto.usuario, agora, dto.comentario),
        BloquearAtendimentoInputDTO: lambda c, dto, agora: c.bloquear(dto.usuario, agora, dto.comentario),
        RetomarAtendimentoInputDTO: lambda c, dto, agora: c.retomar_atendimento(dto.usuario, agora, dto.comentario),
    }

    def _aplicar(self, chamado: Chamado, input_dto: _AndamentoInputDTO, agora: datetime) -> DomainEvent:
        operacao = self._OPERACOES.get(type(input_dto))
        if operacao is None:
            raise ValidationError(
                f"Operação de andamento desconhecida: {type(input_dto).__name__}",
                field="operacao",
            )

        anterior = chamado.status
        operacao(chamado, input_dto, agora)
        return StatusChamadoAlteradoEvent(
            aggregate_id=chamado.id,
            occurred_at=agora,
            usuario=input_dto.usuario,
            status_anterior=anterior.value,
            status_novo=chamado.status.value,
            comentario=input_dto.comentario,
        )


class RegistrarMaterialService(_ServicoDeChamado):
    """Use Case: Lançar material utilizado."""

    def _aplicar(self, chamado: Chamado, input_dto: RegistrarMaterialInputDTO, agora: datetime) -> DomainEvent:
        chamado.registrar_material(input_dto.material, usuario=input_dto.usuario, agora=agora)
        return MaterialRegistradoEvent(
            aggregate_id=chamado.id,
            occurred_at=agora,
            usuario=input_dto.usuario,
            material=chamado.materiais[-1],
        )


class FinalizarChamadoService(_ServicoDeChamado):
    """
    Use Case: Finalizar chamado (EM ATENDIMENTO → FINALIZADO).

    Exige foto de conclusão e nenhuma justificativa pendente.
    """

    def _aplicar(self, chamado: Chamado, input_dto: FinalizarChamadoInputDTO, agora: datetime) -> DomainEvent:
        chamado.finalizar(
            foto_conclusao=input_dto.foto_conclusao,
            usuario=input_dto.usuario,
            agora=agora,
            nota_tecnica=input_dto.nota_tecnica,
            materiais=input_dto.materiais,
        )
        registro = chamado.ultima_acao
        horas = (chamado.finalizado_em - chamado.criado_em).total_seconds() / 3600
        return ChamadoFinalizadoEvent(
            aggregate_id=chamado.id,
            occurred_at=agora,
            usuario=input_dto.usuario,
            dentro_do_prazo=registro.dados["dentro_do_prazo"],
            tempo_resolucao_horas=round(horas, 2),
            materiais=list(chamado.materiais),
        )


class AlterarPrioridadeService(_ServicoDeChamado):
    """
    Use Case: Repriorizar antes do início do atendimento.

    Recalcula o prazo a partir de criado_em com a política vigente.
    """

    def _aplicar(self, chamado: Chamado, input_dto: AlterarPrioridadeInputDTO, agora: datetime) -> DomainEvent:
        anterior = chamado.prioridade
        chamado.alterar_prioridade(
            input_dto.nova_prioridade,
            usuario=input_dto.usuario,
            agora=agora,
            politica=self.politica,
        )
        return PrioridadeAlteradaEvent(
            aggregate_id=chamado.id,
            occurred_at=agora,
            usuario=input_dto.usuario,
            prioridade_anterior=anterior.value,
            prioridade_nova=chamado.prioridade.value,
            sla_prazo=_iso(chamado.sla_prazo),
        )


class ProrrogarPrazoService(_ServicoDeChamado):
    """
    Use Case: Prorrogação administrativa do prazo.

    Não é idempotente: quem chama deve evitar reenvios duplicados.
    """

    def _aplicar(self, chamado: Chamado, input_dto: ProrrogarPrazoInputDTO, agora: datetime) -> DomainEvent:
        anterior = chamado.sla_prazo
        chamado.prorrogar_prazo(
            input_dto.dias,
            input_dto.motivo,
            usuario=input_dto.usuario,
            agora=agora,
        )
        return PrazoProrrogadoEvent(
            aggregate_id=chamado.id,
            occurred_at=agora,
            usuario=input_dto.usuario,
            dias=input_dto.dias,
            motivo=chamado.ultima_acao.comentario,
            sla_prazo_anterior=_iso(anterior),
            sla_prazo=_iso(chamado.sla_prazo),
        )


class SubmeterJustificativaService(_ServicoDeChamado):
    """Use Case: Técnico envia justificativa de atraso com novo prazo."""

    def _aplicar(self, chamado: Chamado, input_dto: SubmeterJustificativaInputDTO, agora: datetime) -> DomainEvent:
        chamado.submeter_justificativa(
            input_dto.texto,
            input_dto.prazo_proposto,
            usuario=input_dto.usuario,
            agora=agora,
        )
        return JustificativaSubmetidaEvent(
            aggregate_id=chamado.id,
            occurred_at=agora,
            usuario=input_dto.usuario,
            prazo_proposto=_iso(chamado.prazo_proposto),
        )


class AprovarJustificativaService(_ServicoDeChamado):
    """Use Case: Supervisor/admin aprova a justificativa pendente."""

    def _aplicar(self, chamado: Chamado, input_dto: AprovarJustificativaInputDTO, agora: datetime) -> DomainEvent:
        anterior = chamado.sla_prazo
        chamado.aprovar_justificativa(usuario=input_dto.usuario, agora=agora)
        return JustificativaAprovadaEvent(
            aggregate_id=chamado.id,
            occurred_at=agora,
            usuario=input_dto.usuario,
            sla_prazo_anterior=_iso(anterior),
            sla_prazo=_iso(chamado.sla_prazo),
        )


class RejeitarJustificativaService(_ServicoDeChamado):
    """Use Case: Supervisor/admin rejeita a justificativa pendente."""

    def _aplicar(self, chamado: Chamado, input_dto: RejeitarJustificativaInputDTO, agora: datetime) -> DomainEvent:
        chamado.rejeitar_justificativa(input_dto.motivo, usuario=input_dto.usuario, agora=agora)
        return JustificativaRejeitadaEvent(
            aggregate_id=chamado.id,
            occurred_at=agora,
            usuario=input_dto.usuario,
            motivo=chamado.motivo_rejeicao,
        )


class AtualizarPoliticaSLAService:
    """
    Use Case: Substituir a tabela de SLA.

    A troca é atômica; chamados existentes mantêm seus prazos.
    """

    def __init__(
        self,
        configuracao_sla: ConfiguracaoSLA,
        uow: UnitOfWork,
        relogio: Optional[Relogio] = None,
    ):
        self.configuracao_sla = configuracao_sla
        self.uow = uow
        self.relogio = relogio if relogio is not None else RelogioSistema()

    def execute(self, input_dto: AtualizarPoliticaSLAInputDTO) -> PoliticaSLA:
        """
        Raises:
            InvalidPriorityError: Chave desconhecida na tabela
            ValidationError: Duração não positiva
        """
        with self.uow:
            politica = self.configuracao_sla.atualizar(input_dto.horas)
            self.uow.publish_event(
                PoliticaSLAAtualizadaEvent(
                    aggregate_id="politica-sla",
                    occurred_at=self.relogio.agora(),
                    usuario=input_dto.usuario,
                    versao=politica.versao,
                    horas=politica.to_dict()["horas"],
                )
            )
        return politica


class ObterChamadoService:
    """Use Case: Snapshot de um chamado (somente leitura)."""

    def __init__(self, chamado_repo: ChamadoRepository, relogio: Optional[Relogio] = None):
        self.chamado_repo = chamado_repo
        self.relogio = relogio if relogio is not None else RelogioSistema()

    def execute(self, chamado_id: str) -> ChamadoOutputDTO:
        """
        Raises:
            EntityNotFoundError: Se o chamado não existe
        """
        chamado = self.chamado_repo.get_by_id(chamado_id)
        if chamado is None:
            raise EntityNotFoundError(
                f"Chamado {chamado_id} não encontrado",
                entity_type="Chamado",
                entity_id=chamado_id,
            )
        return ChamadoOutputDTO.from_entity(chamado, self.relogio.agora())


class ListarChamadosService:
    """
    Use Case: Listar chamados com filtros.

    Ordenação: mais recentes primeiro. Ordenações de apresentação
    (ex: prioridade na fila de triagem) ficam com quem exibe.
    """

    def __init__(self, chamado_repo: ChamadoRepository, relogio: Optional[Relogio] = None):
        self.chamado_repo = chamado_repo
        self.relogio = relogio if relogio is not None else RelogioSistema()

    def execute(self, query: Optional[ListarChamadosQueryDTO] = None) -> List[ChamadoOutputDTO]:
        query = query or ListarChamadosQueryDTO()
        agora = self.relogio.agora()

        if query.status:
            try:
                status = StatusChamado.from_string(query.status)
            except ValueError as e:
                raise ValidationError(str(e), field="status") from e
            chamados = self.chamado_repo.list_by_status(status)
        elif query.tecnico:
            chamados = self.chamado_repo.list_by_tecnico(query.tecnico)
        elif query.solicitante:
            chamados = self.chamado_repo.list_by_solicitante(query.solicitante)
        else:
            chamados = self.chamado_repo.list_all()

        if query.tecnico:
            chamados = [c for c in chamados if c.atribuido_a == query.tecnico]
        if query.solicitante:
            chamados = [c for c in chamados if c.solicitante == query.solicitante]
        if query.apenas_atrasados:
            chamados = [c for c in chamados if c.esta_atrasado(agora)]
        if query.apenas_criticos:
            chamados = [c for c in chamados if c.esta_critico(agora)]
        if query.perfil and query.perfil.upper() not in PERFIS_VISAO_TOTAL:
            chamados = [
                c for c in chamados
                if query.usuario in (c.solicitante, c.atribuido_a)
            ]

        chamados.sort(key=lambda c: c.criado_em, reverse=True)
        return [ChamadoOutputDTO.from_entity(c, agora) for c in chamados]
