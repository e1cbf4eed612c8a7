"""
Política de SLA - prazos por prioridade.

Regras:
- prazo = início + horas da prioridade (função pura)
- prioridade ausente da tabela usa HORAS_PADRAO (24h)
- a tabela é substituída inteira e atomicamente; chamados já
  criados mantêm o prazo calculado na época
- atraso e estouro crítico são leituras derivadas, nunca armazenadas
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union
import logging
import threading

from src.core.shared.exceptions import ValidationError

from .enums import Prioridade
from .exceptions import InvalidPriorityError

logger = logging.getLogger(__name__)


HORAS_PADRAO = 24

# Estouro crítico: tempo decorrido acima de 150% da janela alocada
FATOR_CRITICO = 1.5

HORAS_INICIAIS: Dict[Prioridade, int] = {
    Prioridade.ALTA: 4,
    Prioridade.MEDIA: 24,
    Prioridade.BAIXA: 72,
}


def _normalizar_tabela(horas: Mapping[Union[Prioridade, str], int]) -> Dict[Prioridade, int]:
    tabela: Dict[Prioridade, int] = {}
    for chave, valor in horas.items():
        prioridade = Prioridade.from_string(chave)
        if isinstance(valor, bool) or not isinstance(valor, int) or valor <= 0:
            raise ValidationError(
                f"Horas de SLA para {prioridade.value} devem ser um inteiro positivo (recebido {valor!r})",
                field="sla_horas",
            )
        tabela[prioridade] = valor
    return tabela


@dataclass(frozen=True)
class PoliticaSLA:
    """
    Tabela de SLA imutável e versionada.

    Attributes:
        horas: Horas permitidas por prioridade
        versao: Número sequencial da tabela (1 = tabela inicial)

    Example:
        politica = PoliticaSLA.criar({"ALTA": 4, "MEDIA": 24})
        prazo = politica.calcular_prazo(Prioridade.ALTA, criado_em)
    """

    horas: Mapping[Prioridade, int] = field(
        default_factory=lambda: MappingProxyType(dict(HORAS_INICIAIS))
    )
    versao: int = 1

    @classmethod
    def criar(
        cls,
        horas: Optional[Mapping[Union[Prioridade, str], int]] = None,
        versao: int = 1,
    ) -> "PoliticaSLA":
        """
        Factory com validação da tabela.

        Raises:
            InvalidPriorityError: Se alguma chave não é prioridade conhecida
            ValidationError: Se alguma duração não é inteiro positivo
        """
        tabela = _normalizar_tabela(HORAS_INICIAIS if horas is None else horas)
        return cls(horas=MappingProxyType(tabela), versao=versao)

    def horas_para(self, prioridade: Prioridade) -> int:
        """
        Horas permitidas para a prioridade.

        Raises:
            InvalidPriorityError: Se `prioridade` não é um Prioridade
        """
        if not isinstance(prioridade, Prioridade):
            raise InvalidPriorityError(prioridade)
        return self.horas.get(prioridade, HORAS_PADRAO)

    def calcular_prazo(self, prioridade: Prioridade, inicio: datetime) -> datetime:
        return inicio + timedelta(hours=self.horas_para(prioridade))

    def to_dict(self) -> dict:
        return {
            "versao": self.versao,
            "horas": {p.value: h for p, h in self.horas.items()},
            "horas_padrao": HORAS_PADRAO,
        }


def calcular_prazo(prioridade: Prioridade, inicio: datetime, politica: PoliticaSLA) -> datetime:
    """Prazo absoluto = início + horas da prioridade na política dada."""
    return politica.calcular_prazo(prioridade, inicio)


def esta_atrasado(sla_prazo: datetime, agora: datetime) -> bool:
    """Atrasado quando o instante atual passou estritamente do prazo."""
    return agora > sla_prazo


def esta_critico(criado_em: datetime, sla_prazo: datetime, agora: datetime) -> bool:
    """
    Estouro crítico: (agora - criado_em) > 1.5 × (sla_prazo - criado_em).

    Calculado sobre o par atual criado_em/sla_prazo, então prorrogações
    mudam o que conta como crítico daqui em diante.
    """
    return (agora - criado_em) > (sla_prazo - criado_em) * FATOR_CRITICO


class ConfiguracaoSLA:
    """
    Célula única e mutável que guarda a PoliticaSLA vigente.

    Leituras devolvem sempre uma tabela completa: atualizar() monta a
    nova política fora do lock e só a troca sob o lock.

    Example:
        configuracao = ConfiguracaoSLA({"ALTA": 4})
        configuracao.atualizar({"ALTA": 2, "MEDIA": 12})
        configuracao.atual.versao  # 2
    """

    def __init__(self, horas: Optional[Mapping[Union[Prioridade, str], int]] = None):
        self._lock = threading.Lock()
        self._politica = PoliticaSLA.criar(horas)

    @property
    def atual(self) -> PoliticaSLA:
        with self._lock:
            return self._politica

    def atualizar(self, horas: Mapping[Union[Prioridade, str], int]) -> PoliticaSLA:
        """
        Substitui a tabela inteira.

        Returns:
            A nova política vigente
        """
        tabela = _normalizar_tabela(horas)
        with self._lock:
            nova = PoliticaSLA(
                horas=MappingProxyType(tabela),
                versao=self._politica.versao + 1,
            )
            self._politica = nova

        logger.info(f"Política de SLA atualizada para versão {nova.versao}: {nova.to_dict()['horas']}")
        return nova
