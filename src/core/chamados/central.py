"""
Central de Chamados - ponto único de entrada do domínio.

Reúne os casos de uso atrás de uma fachada que compartilha a
mesma política de SLA, o mesmo relógio e o mesmo registro de
travas. Cada chamada cria um Unit of Work novo.

Example:
    central = CentralDeChamados(
        chamado_repo=InMemoryChamadoRepository(),
        uow_factory=InMemoryUnitOfWork,
    )
    chamado = central.criar(CriarChamadoInputDTO(...))
    central.aplicar_transicao(TriarChamadoInputDTO(chamado.id, "carlos", "ana"))
"""

from typing import Callable, Dict, List, Optional, Type

from src.core.shared.exceptions import ValidationError
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
)
from .ports import ChamadoRepository
from .sla import ConfiguracaoSLA, PoliticaSLA
from .use_cases import (
    AlterarAndamentoService,
    AlterarPrioridadeService,
    AprovarJustificativaService,
    AtualizarPoliticaSLAService,
    CriarChamadoService,
    FinalizarChamadoService,
    ListarChamadosService,
    ObterChamadoService,
    ProrrogarPrazoService,
    RegistrarMaterialService,
    RejeitarJustificativaService,
    RejeitarTriagemService,
    SubmeterJustificativaService,
    TriarChamadoService,
    _ServicoDeChamado,
)


# Comando de transição → serviço que o executa
TRANSICOES_SUPORTADAS: Dict[type, Type[_ServicoDeChamado]] = {
    TriarChamadoInputDTO: TriarChamadoService,
    RejeitarTriagemInputDTO: RejeitarTriagemService,
    IniciarAtendimentoInputDTO: AlterarAndamentoService,
    AguardarMaterialInputDTO: AlterarAndamentoService,
    BloquearAtendimentoInputDTO: AlterarAndamentoService,
    RetomarAtendimentoInputDTO: AlterarAndamentoService,
    FinalizarChamadoInputDTO: FinalizarChamadoService,
}


class CentralDeChamados:
    """
    Fachada do domínio de chamados.

    Garantias:
    - no máximo uma operação por chamado de cada vez
    - operação com falha não altera o chamado
    - toda operação bem-sucedida acrescenta ao histórico

    Attributes:
        chamado_repo: Repositório de chamados
        uow_factory: Cria um Unit of Work por operação
        configuracao_sla: Política de SLA compartilhada
        relogio: Fonte do instante atual
        travas: Travas por chamado
    """

    def __init__(
        self,
        chamado_repo: ChamadoRepository,
        uow_factory: Callable[[], UnitOfWork],
        configuracao_sla: Optional[ConfiguracaoSLA] = None,
        relogio: Optional[Relogio] = None,
        travas: Optional[TravasPorChave] = None,
    ):
        self.chamado_repo = chamado_repo
        self.uow_factory = uow_factory
        self.configuracao_sla = configuracao_sla if configuracao_sla is not None else ConfiguracaoSLA()
        self.relogio = relogio if relogio is not None else RelogioSistema()
        self.travas = travas if travas is not None else TravasPorChave()

    def _servico(self, classe: Type[_ServicoDeChamado]) -> _ServicoDeChamado:
        return classe(
            self.chamado_repo,
            self.uow_factory(),
            relogio=self.relogio,
            travas=self.travas,
            configuracao_sla=self.configuracao_sla,
        )

    @property
    def politica_sla(self) -> PoliticaSLA:
        return self.configuracao_sla.atual

    # =========================================================================
    # Escrita
    # =========================================================================

    def criar(self, input_dto: CriarChamadoInputDTO) -> ChamadoOutputDTO:
        servico = CriarChamadoService(
            self.chamado_repo,
            self.uow_factory(),
            configuracao_sla=self.configuracao_sla,
            relogio=self.relogio,
        )
        return servico.execute(input_dto)

    def aplicar_transicao(self, comando) -> ChamadoOutputDTO:
        """
        Aplica uma transição do ciclo de vida.

        Args:
            comando: Um dos DTOs em TRANSICOES_SUPORTADAS

        Raises:
            ValidationError: Se o tipo de comando não é uma transição
            InvalidTransitionError: Se a transição não é legal no status atual
        """
        classe = TRANSICOES_SUPORTADAS.get(type(comando))
        if classe is None:
            raise ValidationError(
                f"Comando de transição não suportado: {type(comando).__name__}",
                field="comando",
            )
        return self._servico(classe).execute(comando)

    def repriorizar(self, input_dto: AlterarPrioridadeInputDTO) -> ChamadoOutputDTO:
        return self._servico(AlterarPrioridadeService).execute(input_dto)

    def prorrogar(self, input_dto: ProrrogarPrazoInputDTO) -> ChamadoOutputDTO:
        return self._servico(ProrrogarPrazoService).execute(input_dto)

    def registrar_material(self, input_dto: RegistrarMaterialInputDTO) -> ChamadoOutputDTO:
        return self._servico(RegistrarMaterialService).execute(input_dto)

    def submeter_justificativa(self, input_dto: SubmeterJustificativaInputDTO) -> ChamadoOutputDTO:
        return self._servico(SubmeterJustificativaService).execute(input_dto)

    def aprovar_justificativa(self, input_dto: AprovarJustificativaInputDTO) -> ChamadoOutputDTO:
        return self._servico(AprovarJustificativaService).execute(input_dto)

    def rejeitar_justificativa(self, input_dto: RejeitarJustificativaInputDTO) -> ChamadoOutputDTO:
        return self._servico(RejeitarJustificativaService).execute(input_dto)

    def atualizar_politica_sla(self, input_dto: AtualizarPoliticaSLAInputDTO) -> PoliticaSLA:
        servico = AtualizarPoliticaSLAService(
            self.configuracao_sla,
            self.uow_factory(),
            relogio=self.relogio,
        )
        return servico.execute(input_dto)

    # =========================================================================
    # Leitura
    # =========================================================================

    def obter(self, chamado_id: str) -> ChamadoOutputDTO:
        return ObterChamadoService(self.chamado_repo, relogio=self.relogio).execute(chamado_id)

    def listar(self, query: Optional[ListarChamadosQueryDTO] = None) -> List[ChamadoOutputDTO]:
        return ListarChamadosService(self.chamado_repo, relogio=self.relogio).execute(query)
