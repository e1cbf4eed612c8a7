"""
Travas por chave - serialização de operações por agregado.

Duas operações sobre o mesmo chamado não podem intercalar seus
ciclos de leitura-modificação-gravação. Operações sobre chamados
distintos seguem em paralelo.
"""

from contextlib import contextmanager
from typing import Dict, Iterator
import logging
import threading

logger = logging.getLogger(__name__)


class TravasPorChave:
    """
    Registro de locks indexado por ID de agregado.

    O próprio registro é protegido por um lock interno; cada chave
    recebe um threading.Lock criado sob demanda e mantido enquanto
    o registro existir (chamados nunca são destruídos).

    Example:
        travas = TravasPorChave()
        with travas.travar(chamado_id):
            chamado = repo.get_by_id(chamado_id)
            ...
            repo.save(chamado)
    """

    def __init__(self):
        self._registro_lock = threading.Lock()
        self._travas: Dict[str, threading.Lock] = {}

    def _obter(self, chave: str) -> threading.Lock:
        with self._registro_lock:
            trava = self._travas.get(chave)
            if trava is None:
                trava = threading.Lock()
                self._travas[chave] = trava
            return trava

    @contextmanager
    def travar(self, chave: str) -> Iterator[None]:
        """Mantém a trava da chave durante o bloco `with`."""
        trava = self._obter(chave)
        trava.acquire()
        logger.debug(f"Trava adquirida: {chave}")
        try:
            yield
        finally:
            trava.release()
            logger.debug(f"Trava liberada: {chave}")

    def __len__(self) -> int:
        with self._registro_lock:
            return len(self._travas)
