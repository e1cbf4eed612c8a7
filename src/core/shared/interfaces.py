"""
Interfaces (Ports) - Contratos entre Core e Adapters.

Driven ports usados pelos casos de uso:
- UnitOfWork: fronteira transacional de cada operação
- EventPublisher: entrega de eventos após o commit

Princípio: Core define interfaces; Adapters implementam.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
import logging

from .events import DomainEvent

logger = logging.getLogger(__name__)


class EventPublisher(ABC):
    """
    Interface para publicação de eventos.

    Implementações em src/adapters/django_app/events/publishers.py
    (logging, memória, composite).
    """

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """Publica um evento para consumidores."""
        raise NotImplementedError

    @abstractmethod
    def publish_batch(self, events: List[DomainEvent]) -> None:
        """Publica múltiplos eventos, na ordem recebida."""
        raise NotImplementedError


class UnitOfWork(ABC):
    """
    Unit of Work - coordena a transação de uma operação.

    Pattern: Context Manager
        with uow:
            repo.save(chamado)
            uow.publish_event(evento)
        # commit automático ao sair sem erro
        # rollback automático (e eventos descartados) se exceção

    Eventos enfileirados com publish_event() só chegam ao
    EventPublisher depois de um commit bem-sucedido.
    """

    def __init__(self):
        self._events: List[DomainEvent] = []

    def __enter__(self) -> "UnitOfWork":
        self._begin_transaction()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()
        return False

    @abstractmethod
    def _begin_transaction(self) -> None:
        """Inicia uma nova transação."""
        raise NotImplementedError

    @abstractmethod
    def commit(self) -> None:
        """
        Persiste as mudanças e publica os eventos enfileirados.

        Note:
            Se o commit falhar, os eventos são descartados.
        """
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        """Desfaz as mudanças e descarta os eventos."""
        raise NotImplementedError

    def publish_event(self, event: DomainEvent) -> None:
        """
        Enfileira evento para publicação após commit.

        Args:
            event: Evento de domínio a ser publicado
        """
        self._events.append(event)

    def collect_events(self) -> List[DomainEvent]:
        """Retorna eventos enfileirados (testing/debugging)."""
        return list(self._events)

    def clear_events(self) -> None:
        self._events.clear()


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work sem banco de dados.

    Usado pelo backend em memória e pelos testes. O estado dos
    chamados é protegido pelo repositório em memória (cópias),
    então commit apenas repassa os eventos ao publisher.

    Example:
        uow = InMemoryUnitOfWork()
        with uow:
            uow.publish_event(evento)

        assert uow.committed
        assert uow.published_events == [evento]
    """

    def __init__(self, event_publisher: Optional[EventPublisher] = None):
        super().__init__()
        self._event_publisher = event_publisher
        self._committed = False
        self._rolled_back = False
        self._published_events: List[DomainEvent] = []

    def _begin_transaction(self) -> None:
        self._committed = False
        self._rolled_back = False

    def commit(self) -> None:
        events = list(self._events)
        self.clear_events()
        self._committed = True
        self._published_events.extend(events)

        if self._event_publisher and events:
            self._event_publisher.publish_batch(events)

    def rollback(self) -> None:
        self._rolled_back = True
        if self._events:
            logger.debug(f"Descartando {len(self._events)} evento(s) após rollback")
        self.clear_events()

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def rolled_back(self) -> bool:
        return self._rolled_back

    @property
    def published_events(self) -> List[DomainEvent]:
        """Eventos entregues em commits anteriores."""
        return list(self._published_events)
