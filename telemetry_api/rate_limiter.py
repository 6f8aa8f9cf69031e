"""Throttling de ingesta y resolución.

El resolver no cachea y cada llamada lista el directorio completo, así que
las búsquedas repetidas se frenan aquí, antes de llegar a la BD. Tres
cuotas por minuto, cada una en su propio contador:

- ip:          todas las llamadas de un cliente (RATE_LIMIT_IP_PER_MIN, 600)
- device:      payloads de un mismo serialNumber (RATE_LIMIT_DEVICE_PER_MIN, 30)
- identifier:  resoluciones del mismo identificador (RATE_LIMIT_IDENTIFIER_PER_MIN, 30)

RATE_LIMIT_ENABLED=0 desactiva todo.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Optional, Tuple

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


@dataclass
class RateLimitConfig:
    ip_per_min: int = 600
    device_per_min: int = 30
    identifier_per_min: int = 30
    enabled: bool = True

    @classmethod
    def from_env(cls) -> "RateLimitConfig":
        return cls(
            ip_per_min=int(os.getenv("RATE_LIMIT_IP_PER_MIN", "600")),
            device_per_min=int(os.getenv("RATE_LIMIT_DEVICE_PER_MIN", "30")),
            identifier_per_min=int(os.getenv("RATE_LIMIT_IDENTIFIER_PER_MIN", "30")),
            enabled=os.getenv("RATE_LIMIT_ENABLED", "1").strip().lower() in ("1", "true", "yes"),
        )


@dataclass
class _Window:
    start: float
    current: int = 0
    previous: int = 0

    def roll(self, window_start: float, length: float) -> None:
        if window_start <= self.start:
            return
        # Solo la ventana inmediatamente anterior pesa en la estimación
        self.previous = self.current if window_start - self.start == length else 0
        self.current = 0
        self.start = window_start

    def estimate(self, now: float, length: float) -> int:
        remaining = 1 - (now - self.start) / length
        return int(self.previous * remaining) + self.current


class SlidingWindowCounter:
    """Contador por clave con ventana fija + peso lineal de la anterior."""

    def __init__(self, window_seconds: int = 60):
        self._length = float(window_seconds)
        self._lock = Lock()
        self._windows: Dict[str, _Window] = {}

    def increment_and_check(
        self,
        key: str,
        limit: int,
        now: Optional[float] = None,
    ) -> Tuple[bool, int]:
        """Cuenta una llamada para key. Devuelve (permitida, conteo estimado)."""
        now = time.time() if now is None else now
        window_start = now - (now % self._length)

        with self._lock:
            window = self._windows.setdefault(key, _Window(start=window_start))
            window.roll(window_start, self._length)
            window.current += 1
            count = window.estimate(now, self._length)

        allowed = count <= limit
        if not allowed:
            logger.warning("[RATE_LIMIT] Exceeded key=%s count=%d limit=%d", key, count, limit)
        return allowed, count

    def cleanup_old_entries(self, max_age_seconds: int = 300) -> int:
        """Borra claves sin actividad reciente. Devuelve cuántas."""
        cutoff = time.time() - max_age_seconds
        with self._lock:
            stale = [key for key, window in self._windows.items() if window.start < cutoff]
            for key in stale:
                del self._windows[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._windows)


def _rejected(scope: str, limit: int) -> HTTPException:
    return HTTPException(
        status_code=429,
        detail=f"Rate limit exceeded for {scope}. Max {limit}/min.",
        headers={
            "Retry-After": str(RETRY_AFTER_SECONDS),
            "X-RateLimit-Limit": str(limit),
        },
    )


class TelemetryRateLimiter:

    def __init__(self, config: Optional[RateLimitConfig] = None):
        self.config = config or RateLimitConfig.from_env()
        self._counters = {
            "IP": SlidingWindowCounter(),
            "device": SlidingWindowCounter(),
            "identifier": SlidingWindowCounter(),
        }
        self._next_cleanup = time.time() + RETRY_AFTER_SECONDS

    def _consume(self, scope: str, key: str, limit: int) -> None:
        allowed, _ = self._counters[scope].increment_and_check(f"{scope}:{key}", limit)
        if not allowed:
            raise _rejected(scope, limit)

    def _housekeeping(self) -> None:
        now = time.time()
        if now < self._next_cleanup:
            return
        removed = sum(counter.cleanup_old_entries() for counter in self._counters.values())
        if removed:
            logger.debug("[RATE_LIMIT] Cleanup removed=%d keys", removed)
        self._next_cleanup = now + RETRY_AFTER_SECONDS

    def check_ingest(self, *, serial_number: Optional[str], ip: Optional[str]) -> None:
        """HTTPException(429) si el cliente o el dispositivo superan su cuota."""
        if not self.config.enabled:
            return
        self._housekeeping()
        if ip:
            self._consume("IP", ip, self.config.ip_per_min)
        if serial_number:
            self._consume("device", serial_number, self.config.device_per_min)

    def check_resolve(self, *, identifier: str, ip: Optional[str]) -> None:
        """HTTPException(429) si el cliente o el identificador superan su cuota."""
        if not self.config.enabled:
            return
        self._housekeeping()
        if ip:
            self._consume("IP", ip, self.config.ip_per_min)
        self._consume("identifier", identifier, self.config.identifier_per_min)


_rate_limiter: Optional[TelemetryRateLimiter] = None


def get_rate_limiter() -> TelemetryRateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = TelemetryRateLimiter()
        config = _rate_limiter.config
        logger.info(
            "[RATE_LIMIT] enabled=%s ip=%d/min device=%d/min identifier=%d/min",
            config.enabled,
            config.ip_per_min,
            config.device_per_min,
            config.identifier_per_min,
        )
    return _rate_limiter


def reset_rate_limiter() -> None:
    """Descarta el singleton (tests)."""
    global _rate_limiter
    _rate_limiter = None


def get_client_ip(request: Request) -> str:
    """IP del cliente: primer salto de X-Forwarded-For, luego X-Real-IP."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else "unknown"
