"""
Componentes compartilhados do Core.

- Exceções de domínio tipadas
- Base de Domain Events
- Ports transversais (UnitOfWork, EventPublisher, Relogio)
- Travas por agregado
"""

from .exceptions import (
    DomainException,
    ValidationError,
    EntityNotFoundError,
    BusinessRuleViolationError,
    ConcurrencyError,
)
from .events import DomainEvent
from .interfaces import UnitOfWork, InMemoryUnitOfWork, EventPublisher
from .relogio import Relogio, RelogioSistema, RelogioFixo
from .travas import TravasPorChave

__all__ = [
    "DomainException",
    "ValidationError",
    "EntityNotFoundError",
    "BusinessRuleViolationError",
    "ConcurrencyError",
    "DomainEvent",
    "UnitOfWork",
    "InMemoryUnitOfWork",
    "EventPublisher",
    "Relogio",
    "RelogioSistema",
    "RelogioFixo",
    "TravasPorChave",
]
