"""
Ports (Interfaces) do Domínio de Chamados.

ChamadoRepository é o contrato de persistência usado pelos casos
de uso. Duas implementações:
- InMemoryChamadoRepository (abaixo): backend padrão e testes
- DjangoChamadoRepository (src/adapters/django_app/chamados)

Contrato de concorrência:
    save() aplica controle otimista pela `versao` do chamado.
    Se outro processo gravou depois da leitura, lança ConcurrencyError.
"""

from copy import deepcopy
from typing import Dict, List, Optional, Protocol, runtime_checkable
import threading

from src.core.shared.exceptions import ConcurrencyError

from .entities import Chamado
from .enums import StatusChamado


@runtime_checkable
class ChamadoRepository(Protocol):
    """
    Interface para persistência de Chamados.

    Methods:
        save: Cria ou atualiza (com verificação de versão)
        get_by_id: Busca por ID
        get_for_update: Busca por ID travando o registro até o fim da transação
        list_all / list_by_status / list_by_tecnico / list_by_solicitante
        exists / count
    """

    def save(self, chamado: Chamado) -> None:
        """
        Persiste o chamado e incrementa chamado.versao.

        Raises:
            ConcurrencyError: Se a versão persistida mudou desde a leitura
        """
        ...

    def get_by_id(self, chamado_id: str) -> Optional[Chamado]:
        ...

    def get_for_update(self, chamado_id: str) -> Optional[Chamado]:
        ...

    def list_all(self) -> List[Chamado]:
        ...

    def list_by_status(self, status: StatusChamado) -> List[Chamado]:
        ...

    def list_by_tecnico(self, tecnico: str) -> List[Chamado]:
        ...

    def list_by_solicitante(self, solicitante: str) -> List[Chamado]:
        ...

    def exists(self, chamado_id: str) -> bool:
        ...

    def count(self) -> int:
        ...


class InMemoryChamadoRepository:
    """
    Implementação em memória do ChamadoRepository.

    Guarda e devolve cópias profundas: alterações numa entidade
    carregada só chegam ao repositório via save(). Assim, uma
    operação que falha no meio não deixa rastro.

    Example:
        repo = InMemoryChamadoRepository()
        repo.save(chamado)
        encontrado = repo.get_by_id(chamado.id)
    """

    def __init__(self):
        self._chamados: Dict[str, Chamado] = {}
        self._lock = threading.Lock()

    def save(self, chamado: Chamado) -> None:
        with self._lock:
            atual = self._chamados.get(chamado.id)
            versao_persistida = atual.versao if atual else 0
            if chamado.versao != versao_persistida:
                raise ConcurrencyError(
                    f"Chamado {chamado.id} foi alterado por outra operação "
                    f"(versão {chamado.versao}, persistida {versao_persistida})",
                    entity_id=chamado.id,
                )
            chamado.versao += 1
            self._chamados[chamado.id] = deepcopy(chamado)

    def get_by_id(self, chamado_id: str) -> Optional[Chamado]:
        with self._lock:
            chamado = self._chamados.get(chamado_id)
            return deepcopy(chamado) if chamado else None

    def get_for_update(self, chamado_id: str) -> Optional[Chamado]:
        # A serialização em memória é feita pelas TravasPorChave dos casos de uso
        return self.get_by_id(chamado_id)

    def _filtrar(self, criterio) -> List[Chamado]:
        with self._lock:
            return [deepcopy(c) for c in self._chamados.values() if criterio(c)]

    def list_all(self) -> List[Chamado]:
        return self._filtrar(lambda c: True)

    def list_by_status(self, status: StatusChamado) -> List[Chamado]:
        return self._filtrar(lambda c: c.status == status)

    def list_by_tecnico(self, tecnico: str) -> List[Chamado]:
        return self._filtrar(lambda c: c.atribuido_a == tecnico)

    def list_by_solicitante(self, solicitante: str) -> List[Chamado]:
        return self._filtrar(lambda c: c.solicitante == solicitante)

    def exists(self, chamado_id: str) -> bool:
        with self._lock:
            return chamado_id in self._chamados

    def count(self) -> int:
        with self._lock:
            return len(self._chamados)

    def clear(self) -> None:
        """Limpa todos os dados (útil para testes)."""
        with self._lock:
            self._chamados.clear()
