"""Conexión a Redis."""

from __future__ import annotations

import logging
from typing import Optional

import redis

logger = logging.getLogger(__name__)


class RedisConnection:
    """Gestiona la conexión a Redis (conexión perezosa, timeouts cortos)."""

    def __init__(self, url: str, *, socket_timeout: float = 2.0):
        self._url = url
        self._socket_timeout = socket_timeout
        self._client: Optional[redis.Redis] = None
        self._connected = False

    @property
    def client(self) -> Optional[redis.Redis]:
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> bool:
        """Conecta a Redis."""
        try:
            self._client = redis.Redis.from_url(
                self._url,
                decode_responses=True,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_timeout,
            )
            self._client.ping()
            self._connected = True
            logger.info("[REDIS] Connected: %s", self._url.split("@")[-1])
            return True
        except redis.RedisError as e:
            self._connected = False
            logger.warning("[REDIS] Connection failed: %s", e)
            return False

    def ensure_connected(self) -> bool:
        if self._connected and self._client is not None:
            return True
        return self.connect()

    def mark_disconnected(self) -> None:
        self._connected = False

    def disconnect(self) -> None:
        """Desconecta de Redis."""
        if self._client is not None:
            try:
                self._client.close()
            except redis.RedisError as e:
                logger.debug("[REDIS] Close failed: %s", e)
        self._connected = False
