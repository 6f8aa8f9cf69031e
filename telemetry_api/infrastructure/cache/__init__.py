"""Cache layer - Señales de invalidación post-commit."""

from .connection import RedisConnection
from .invalidation import (
    CacheInvalidationNotifier,
    NullInvalidationNotifier,
    RedisInvalidationNotifier,
    WebhookInvalidationNotifier,
    create_notifier,
    get_notifier,
    reset_notifier,
)

__all__ = [
    "RedisConnection",
    "CacheInvalidationNotifier",
    "NullInvalidationNotifier",
    "RedisInvalidationNotifier",
    "WebhookInvalidationNotifier",
    "create_notifier",
    "get_notifier",
    "reset_notifier",
]
