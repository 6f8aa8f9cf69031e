"""Señal de invalidación de caché (best-effort).

Se emite después del COMMIT de una ingesta. NO forma parte de la
transacción: si el envío falla se loguea y se ignora.

Implementaciones:
- RedisInvalidationNotifier: PUBLISH en un canal Redis
- WebhookInvalidationNotifier: POST HTTP a un endpoint de invalidación
- NullInvalidationNotifier: no-op logueado (sin sink configurado)
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import redis
import requests

from telemetry_common.config import Settings, get_settings

from .connection import RedisConnection

logger = logging.getLogger(__name__)


def _build_message(
    *,
    serial_number: Optional[str] = None,
    device_id: Optional[str] = None,
    invalidate_all: bool = False,
) -> Dict[str, Any]:
    return {
        "serialNumber": serial_number,
        "deviceId": device_id,
        "invalidateAll": invalidate_all,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class CacheInvalidationNotifier(ABC):
    """Interfaz del sink de invalidación.

    Los métodos devuelven True si el mensaje salió, False si no.
    Nunca lanzan excepciones hacia el llamador.
    """

    @abstractmethod
    def _send(self, message: Dict[str, Any]) -> bool:
        pass

    def invalidate_device(
        self,
        serial_number: Optional[str],
        device_id: Optional[str] = None,
    ) -> bool:
        message = _build_message(serial_number=serial_number, device_id=device_id)
        return self._safe_send(message)

    def invalidate_all(self) -> bool:
        return self._safe_send(_build_message(invalidate_all=True))

    def _safe_send(self, message: Dict[str, Any]) -> bool:
        try:
            return self._send(message)
        except Exception:
            logger.exception(
                "[CACHE] Invalidation failed notifier=%s serial=%s",
                type(self).__name__,
                message.get("serialNumber"),
            )
            return False


class NullInvalidationNotifier(CacheInvalidationNotifier):
    """Sin sink configurado: solo deja constancia en el log."""

    def _send(self, message: Dict[str, Any]) -> bool:
        logger.debug(
            "[CACHE] No invalidation sink configured serial=%s all=%s",
            message.get("serialNumber"),
            message.get("invalidateAll"),
        )
        return False


class RedisInvalidationNotifier(CacheInvalidationNotifier):
    """Publica el mensaje de invalidación en un canal pub/sub."""

    def __init__(self, connection: RedisConnection, channel: str):
        self._conn = connection
        self._channel = channel

    @property
    def channel(self) -> str:
        return self._channel

    def _send(self, message: Dict[str, Any]) -> bool:
        if not self._conn.ensure_connected():
            return False

        try:
            receivers = self._conn.client.publish(self._channel, json.dumps(message))
        except redis.RedisError as e:
            self._conn.mark_disconnected()
            logger.warning("[CACHE] Redis publish failed: %s", e)
            return False

        logger.debug(
            "[CACHE] Invalidation published channel=%s serial=%s receivers=%s",
            self._channel,
            message.get("serialNumber"),
            receivers,
        )
        return True


class WebhookInvalidationNotifier(CacheInvalidationNotifier):
    """POST del mensaje a un endpoint HTTP de invalidación."""

    def __init__(self, url: str, *, timeout_seconds: float = 2.0):
        self._url = url
        self._timeout = timeout_seconds

    def _send(self, message: Dict[str, Any]) -> bool:
        try:
            response = requests.post(self._url, json=message, timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning("[CACHE] Invalidation webhook error: %s", e)
            return False

        if not response.ok:
            logger.warning(
                "[CACHE] Invalidation webhook rejected: %s %s",
                response.status_code,
                response.text[:200],
            )
            return False
        return True


def create_notifier(settings: Optional[Settings] = None) -> CacheInvalidationNotifier:
    """Elige el sink según configuración: Redis > webhook > no-op."""
    settings = settings or get_settings()

    if settings.redis_url:
        logger.info(
            "[CACHE] Using Redis invalidation channel=%s",
            settings.cache_invalidation_channel,
        )
        connection = RedisConnection(
            settings.redis_url,
            socket_timeout=settings.cache_invalidation_timeout_seconds,
        )
        return RedisInvalidationNotifier(connection, settings.cache_invalidation_channel)

    if settings.cache_invalidation_url:
        logger.info("[CACHE] Using webhook invalidation")
        return WebhookInvalidationNotifier(
            settings.cache_invalidation_url,
            timeout_seconds=settings.cache_invalidation_timeout_seconds,
        )

    logger.info("[CACHE] No invalidation sink configured, using no-op notifier")
    return NullInvalidationNotifier()


_notifier_instance: Optional[CacheInvalidationNotifier] = None


def get_notifier() -> CacheInvalidationNotifier:
    """Instancia singleton del notifier."""
    global _notifier_instance
    if _notifier_instance is None:
        _notifier_instance = create_notifier()
    return _notifier_instance


def reset_notifier() -> None:
    """Resetea el notifier singleton (útil para testing)."""
    global _notifier_instance
    if isinstance(_notifier_instance, RedisInvalidationNotifier):
        _notifier_instance._conn.disconnect()
    _notifier_instance = None
