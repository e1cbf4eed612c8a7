"""
Repositório Django para persistência de Chamados.

Implementa o ChamadoRepository definido em src/core/chamados/ports.py.
É um DRIVEN ADAPTER - acionado pelos casos de uso do Core.

Responsabilidades:
- Mapear entities para models e vice-versa
- Controle otimista de concorrência pela coluna `versao`
- Histórico append-only (só insere entradas novas)
- Evitar N+1 no histórico (prefetch_related)
"""

from typing import List, Optional
import logging

from django.db import IntegrityError
from django.db.models import F, QuerySet

from src.core.chamados.entities import Chamado
from src.core.chamados.enums import StatusChamado
from src.core.shared.exceptions import ConcurrencyError

from .mappers import ChamadoMapper, HistoricoMapper
from .models import ChamadoModel, HistoricoChamadoModel

logger = logging.getLogger(__name__)


class DjangoChamadoRepository:
    """
    Implementação Django do ChamadoRepository.

    Deve ser usado dentro de um DjangoUnitOfWork: save() grava o
    chamado e as novas entradas de histórico na mesma transação.

    Example:
        repo = DjangoChamadoRepository()
        with DjangoUnitOfWork():
            chamado = repo.get_for_update(chamado_id)
            chamado.registrar_material("Cabo 2,5mm", usuario="carlos", agora=agora)
            repo.save(chamado)
    """

    def __init__(self):
        self._mapper = ChamadoMapper()

    def _base_queryset(self) -> QuerySet:
        return ChamadoModel.objects.prefetch_related('historico')

    def _to_entity_list(self, queryset: QuerySet) -> List[Chamado]:
        return [self._mapper.to_entity(m, m.historico.all()) for m in queryset]

    def save(self, chamado: Chamado) -> None:
        """
        Persiste chamado (create ou update com verificação de versão).

        Raises:
            ConcurrencyError: Se a versão no banco mudou desde a leitura
        """
        logger.debug(f"Saving chamado: {chamado.id} (versao={chamado.versao})")
        dados = self._mapper.to_model_data(chamado)

        if chamado.versao == 0:
            try:
                ChamadoModel.objects.create(id=chamado.id, versao=1, **dados)
            except IntegrityError as e:
                raise ConcurrencyError(
                    f"Chamado {chamado.id} já existe",
                    entity_id=chamado.id,
                ) from e
        else:
            atualizados = ChamadoModel.objects.filter(
                id=chamado.id,
                versao=chamado.versao,
            ).update(versao=F('versao') + 1, **dados)

            if atualizados == 0:
                raise ConcurrencyError(
                    f"Chamado {chamado.id} foi alterado por outra operação "
                    f"(versão {chamado.versao})",
                    entity_id=chamado.id,
                )

        persistidos = HistoricoChamadoModel.objects.filter(chamado_id=chamado.id).count()
        novos = HistoricoMapper.novos_models(chamado.id, chamado.historico, persistidos)
        if novos:
            HistoricoChamadoModel.objects.bulk_create(novos)

        chamado.versao += 1
        logger.info(f"Chamado saved: {chamado.id} (+{len(novos)} histórico)")

    def get_by_id(self, chamado_id: str) -> Optional[Chamado]:
        try:
            model = self._base_queryset().get(id=chamado_id)
        except ChamadoModel.DoesNotExist:
            logger.debug(f"Chamado not found: {chamado_id}")
            return None
        return self._mapper.to_entity(model, model.historico.all())

    def get_for_update(self, chamado_id: str) -> Optional[Chamado]:
        """
        Busca chamado travando a linha até o fim da transação.

        Em bancos sem SELECT ... FOR UPDATE (SQLite) a trava é
        ignorada e vale apenas a verificação de versão no save().
        """
        try:
            model = ChamadoModel.objects.select_for_update().get(id=chamado_id)
        except ChamadoModel.DoesNotExist:
            logger.debug(f"Chamado not found: {chamado_id}")
            return None
        historico = HistoricoChamadoModel.objects.filter(chamado_id=chamado_id).order_by('sequencia')
        return self._mapper.to_entity(model, historico)

    def list_all(self) -> List[Chamado]:
        return self._to_entity_list(self._base_queryset())

    def list_by_status(self, status: StatusChamado) -> List[Chamado]:
        return self._to_entity_list(self._base_queryset().filter(status=status.value))

    def list_by_tecnico(self, tecnico: str) -> List[Chamado]:
        return self._to_entity_list(self._base_queryset().filter(atribuido_a=tecnico))

    def list_by_solicitante(self, solicitante: str) -> List[Chamado]:
        return self._to_entity_list(self._base_queryset().filter(solicitante=solicitante))

    def exists(self, chamado_id: str) -> bool:
        return ChamadoModel.objects.filter(id=chamado_id).exists()

    def count(self) -> int:
        return ChamadoModel.objects.count()
