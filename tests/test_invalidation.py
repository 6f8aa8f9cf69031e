"""Tests de los notifiers de invalidación de caché."""

import json
from unittest.mock import MagicMock, patch

import redis
import requests

from telemetry_api.infrastructure.cache import (
    NullInvalidationNotifier,
    RedisConnection,
    RedisInvalidationNotifier,
    WebhookInvalidationNotifier,
    create_notifier,
)
from telemetry_common.config import Settings


def _settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        db_pool_recycle_seconds=300,
        db_auto_create_schema=True,
        redis_url=None,
        cache_invalidation_channel="cache:invalidate",
        cache_invalidation_url=None,
        cache_invalidation_timeout_seconds=2.0,
        resolver_directory_timeout_seconds=5.0,
    )
    values.update(overrides)
    return Settings(**values)


def _connected_redis():
    connection = MagicMock(spec=RedisConnection)
    connection.ensure_connected.return_value = True
    connection.client = MagicMock()
    return connection


# =============================================================================
# TESTS: Redis
# =============================================================================

class TestRedisNotifier:

    def test_publishes_device_message(self):
        connection = _connected_redis()
        connection.client.publish.return_value = 1
        notifier = RedisInvalidationNotifier(connection, "cache:invalidate")

        assert notifier.invalidate_device("S1", "D1") is True

        channel, raw = connection.client.publish.call_args[0]
        message = json.loads(raw)
        assert channel == "cache:invalidate"
        assert message["serialNumber"] == "S1"
        assert message["deviceId"] == "D1"
        assert message["invalidateAll"] is False
        assert message["timestamp"]

    def test_publishes_invalidate_all(self):
        connection = _connected_redis()
        notifier = RedisInvalidationNotifier(connection, "cache:invalidate")

        assert notifier.invalidate_all() is True

        message = json.loads(connection.client.publish.call_args[0][1])
        assert message["invalidateAll"] is True
        assert message["serialNumber"] is None

    def test_publish_error_returns_false(self):
        connection = _connected_redis()
        connection.client.publish.side_effect = redis.ConnectionError("gone")
        notifier = RedisInvalidationNotifier(connection, "cache:invalidate")

        assert notifier.invalidate_device("S1") is False
        connection.mark_disconnected.assert_called_once()

    def test_unreachable_redis_returns_false(self):
        connection = MagicMock(spec=RedisConnection)
        connection.ensure_connected.return_value = False
        notifier = RedisInvalidationNotifier(connection, "cache:invalidate")

        assert notifier.invalidate_device("S1") is False

    def test_unexpected_error_is_contained(self):
        connection = _connected_redis()
        connection.client.publish.side_effect = RuntimeError("boom")
        notifier = RedisInvalidationNotifier(connection, "cache:invalidate")

        assert notifier.invalidate_device("S1") is False

    def test_connection_failure_on_connect(self):
        with patch("redis.Redis.from_url") as from_url:
            from_url.return_value.ping.side_effect = redis.ConnectionError("refused")
            connection = RedisConnection("redis://localhost:6379/0")

            assert connection.connect() is False
            assert connection.is_connected is False


# =============================================================================
# TESTS: Webhook
# =============================================================================

class TestWebhookNotifier:

    def test_posts_message(self):
        notifier = WebhookInvalidationNotifier("http://cache.local/invalidate", timeout_seconds=1.5)

        with patch("requests.post") as post:
            post.return_value.ok = True
            assert notifier.invalidate_device("S1", "D1") is True

        _, kwargs = post.call_args
        assert post.call_args[0][0] == "http://cache.local/invalidate"
        assert kwargs["json"]["serialNumber"] == "S1"
        assert kwargs["timeout"] == 1.5

    def test_network_error_returns_false(self):
        notifier = WebhookInvalidationNotifier("http://cache.local/invalidate")

        with patch("requests.post", side_effect=requests.ConnectionError("down")):
            assert notifier.invalidate_device("S1") is False

    def test_rejected_response_returns_false(self):
        notifier = WebhookInvalidationNotifier("http://cache.local/invalidate")

        with patch("requests.post") as post:
            post.return_value.ok = False
            post.return_value.status_code = 503
            post.return_value.text = "unavailable"
            assert notifier.invalidate_all() is False


# =============================================================================
# TESTS: Selección del sink
# =============================================================================

class TestCreateNotifier:

    def test_null_without_sink(self):
        notifier = create_notifier(_settings())

        assert isinstance(notifier, NullInvalidationNotifier)
        assert notifier.invalidate_device("S1") is False

    def test_webhook_when_url_set(self):
        notifier = create_notifier(_settings(cache_invalidation_url="http://cache.local/x"))
        assert isinstance(notifier, WebhookInvalidationNotifier)

    def test_redis_has_priority(self):
        notifier = create_notifier(_settings(
            redis_url="redis://localhost:6379/0",
            cache_invalidation_url="http://cache.local/x",
            cache_invalidation_channel="devices:invalidate",
        ))

        assert isinstance(notifier, RedisInvalidationNotifier)
        assert notifier.channel == "devices:invalidate"
