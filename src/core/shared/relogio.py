"""
Relógio - fonte do instante atual para o domínio.

Todo cálculo de prazo é relativo ao instante fornecido aqui.
Os casos de uso recebem um Relogio por injeção, o que permite
testar cenários de atraso sem depender do relógio do sistema.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol, runtime_checkable
import threading


@runtime_checkable
class Relogio(Protocol):
    """Port: fornece o instante atual (timezone-aware)."""

    def agora(self) -> datetime:
        ...


class RelogioSistema:
    """Relógio real, sempre em UTC."""

    def agora(self) -> datetime:
        return datetime.now(timezone.utc)


class RelogioFixo:
    """
    Relógio controlado manualmente.

    Example:
        relogio = RelogioFixo(datetime(2024, 5, 1, 8, tzinfo=timezone.utc))
        relogio.avancar(hours=5)
    """

    def __init__(self, instante: Optional[datetime] = None):
        self._instante = instante or datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def agora(self) -> datetime:
        with self._lock:
            return self._instante

    def definir(self, instante: datetime) -> None:
        with self._lock:
            self._instante = instante

    def avancar(self, **delta) -> datetime:
        """Avança o relógio (aceita os mesmos argumentos de timedelta)."""
        with self._lock:
            self._instante = self._instante + timedelta(**delta)
            return self._instante
