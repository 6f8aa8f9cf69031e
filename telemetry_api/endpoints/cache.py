"""Endpoint de invalidación manual de caché."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..auth import require_api_key
from ..infrastructure.cache.invalidation import CacheInvalidationNotifier, get_notifier
from ..schemas import CacheInvalidateIn, CacheInvalidateOut

router = APIRouter(tags=["cache"])
logger = logging.getLogger(__name__)


@router.post(
    "/cache/invalidate",
    response_model=CacheInvalidateOut,
    dependencies=[Depends(require_api_key)],
)
def invalidate_cache(
    payload: CacheInvalidateIn,
    notifier: CacheInvalidationNotifier = Depends(get_notifier),
):
    """Invalida la caché de un dispositivo o de todo el sistema.

    Best-effort: delivered=False indica que el sink no recibió el mensaje.
    """
    if payload.invalidateAll:
        delivered = notifier.invalidate_all()
        logger.info("[CACHE] Manual invalidation all delivered=%s", delivered)
        return CacheInvalidateOut(
            success=True,
            message="All caches scheduled for invalidation",
            delivered=delivered,
        )

    device = payload.serialNumber or payload.deviceId
    if not device:
        raise HTTPException(
            status_code=400,
            detail="Please provide deviceId, serialNumber, or set invalidateAll=true",
        )

    delivered = notifier.invalidate_device(payload.serialNumber, payload.deviceId)
    logger.info("[CACHE] Manual invalidation device=%s delivered=%s", device, delivered)
    return CacheInvalidateOut(
        success=True,
        message=f"Cache invalidated for device: {device}",
        device=device,
        delivered=delivered,
    )
