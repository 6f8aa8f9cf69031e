"""Fetch acotado del directorio de dispositivos.

Un pool compartido con un número fijo de slots. Cada fetch ocupa un slot
hasta que el listado termina de verdad, aunque el llamador ya haya
abandonado la espera por timeout. Con todos los slots ocupados el fetch
falla de inmediato: bajo una BD colgada nunca hay más de max_workers
threads (ni conexiones del pool) retenidos por el resolver.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from threading import Lock
from typing import List, Optional

from .directory import DeviceDirectory, DirectoryEntry

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


class DirectoryFetcher:
    """Ejecuta list_devices() con timeout sobre un pool acotado."""

    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        *,
        thread_name_prefix: str = "directory-fetch",
    ):
        self._max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )
        self._lock = Lock()
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def _try_acquire(self) -> bool:
        with self._lock:
            if self._in_flight >= self._max_workers:
                return False
            self._in_flight += 1
            return True

    def _release(self) -> None:
        with self._lock:
            self._in_flight -= 1

    def _run(self, directory: DeviceDirectory) -> List[DirectoryEntry]:
        try:
            return list(directory.list_devices())
        finally:
            self._release()

    def fetch(self, directory: DeviceDirectory, timeout_seconds: float) -> Optional[List[DirectoryEntry]]:
        """Snapshot del directorio, o None si falla, excede el timeout o no hay slot libre."""
        if not self._try_acquire():
            logger.error(
                "[RESOLVER] Directory fetch rejected: %d fetches still running",
                self._max_workers,
            )
            return None

        try:
            future = self._executor.submit(self._run, directory)
        except RuntimeError as e:
            self._release()
            logger.error("[RESOLVER] Directory fetch not scheduled: %s", e)
            return None

        try:
            return future.result(timeout=timeout_seconds)
        except FutureTimeoutError:
            logger.error(
                "[RESOLVER] Directory fetch timed out after %.1fs",
                timeout_seconds,
            )
            return None
        except Exception as e:
            logger.error("[RESOLVER] Directory fetch failed: %s", type(e).__name__)
            return None

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


_fetcher_instance: Optional[DirectoryFetcher] = None
_fetcher_lock = Lock()


def get_directory_fetcher() -> DirectoryFetcher:
    """Instancia singleton compartida por todos los resolvers."""
    global _fetcher_instance
    with _fetcher_lock:
        if _fetcher_instance is None:
            _fetcher_instance = DirectoryFetcher()
        return _fetcher_instance


def reset_directory_fetcher() -> None:
    """Resetea el fetcher singleton (útil para testing)."""
    global _fetcher_instance
    with _fetcher_lock:
        if _fetcher_instance is not None:
            _fetcher_instance.shutdown(wait=False)
        _fetcher_instance = None
