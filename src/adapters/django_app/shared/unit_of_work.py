"""
Unit of Work - Implementação Django.

Cada operação de chamado roda dentro de um bloco atômico:
a gravação do chamado e das novas entradas de histórico é tudo
ou nada.

Responsabilidades:
- Abrir/fechar o bloco transacional
- Commit/Rollback coordenado
- Publicar eventos somente após commit bem-sucedido

Usa transaction.atomic(), então um DjangoUnitOfWork aberto dentro
de outro bloco atômico vira um savepoint.
"""

from typing import Optional
import logging

from django.db import DEFAULT_DB_ALIAS, transaction

from src.core.shared.interfaces import EventPublisher, UnitOfWork

logger = logging.getLogger(__name__)


class DjangoUnitOfWork(UnitOfWork):
    """
    Implementação Django do Unit of Work.

    Example:
        with DjangoUnitOfWork(event_publisher=publisher) as uow:
            repo.save(chamado)
            uow.publish_event(evento)
        # Commit automático + eventos publicados

    Example com rollback:
        with DjangoUnitOfWork() as uow:
            repo.save(chamado)
            raise InvalidTransitionError(...)
        # Rollback automático, eventos descartados
    """

    def __init__(
        self,
        event_publisher: Optional[EventPublisher] = None,
        using: str = DEFAULT_DB_ALIAS,
    ):
        """
        Args:
            event_publisher: Publicador de eventos
            using: Alias do banco de dados
        """
        super().__init__()
        self._event_publisher = event_publisher
        self._using = using
        self._atomic = None
        self._committed = False
        self._rolled_back = False

    def _begin_transaction(self) -> None:
        if self._atomic is None:
            self._atomic = transaction.atomic(using=self._using)
            self._atomic.__enter__()
            self._committed = False
            self._rolled_back = False
            logger.debug("Transaction started")

    def commit(self) -> None:
        """
        Fecha o bloco atômico e publica os eventos.

        Raises:
            Exception: Se o commit falhar; eventos são descartados
        """
        if self._atomic is None:
            logger.warning("Transaction already finalized")
            return

        atomic, self._atomic = self._atomic, None
        try:
            atomic.__exit__(None, None, None)
        except Exception as e:
            logger.error(f"Commit failed: {e}")
            self._rolled_back = True
            self.clear_events()
            raise

        self._committed = True
        logger.debug("Transaction committed")
        self._publish_events()

    def rollback(self) -> None:
        """
        Desfaz as mudanças e descarta eventos.

        Chamado automaticamente se exceção ocorrer dentro do contexto.
        """
        if self._atomic is None:
            self.clear_events()
            return

        atomic, self._atomic = self._atomic, None
        transaction.set_rollback(True, using=self._using)
        try:
            atomic.__exit__(None, None, None)
            logger.debug("Transaction rolled back")
        finally:
            self._rolled_back = True
            self.clear_events()

    def _publish_events(self) -> None:
        events = self.collect_events()
        self.clear_events()

        for event in events:
            logger.info(
                f"Publishing event: {event.event_type} "
                f"for aggregate {event.aggregate_id}"
            )

        if self._event_publisher and events:
            self._event_publisher.publish_batch(events)

    @property
    def is_committed(self) -> bool:
        return self._committed

    @property
    def is_rolled_back(self) -> bool:
        return self._rolled_back
