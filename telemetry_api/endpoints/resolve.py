"""Endpoint de resolución de identificadores de dispositivo."""

from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..auth import require_api_key
from ..dependencies import get_resolver
from ..rate_limiter import get_client_ip, get_rate_limiter
from ..resolution import IdentityResolver
from ..schemas import ResolutionOut

router = APIRouter(tags=["devices"])


@router.get(
    "/devices/resolve/{identifier}",
    response_model=ResolutionOut,
    responses={404: {"model": ResolutionOut}},
    dependencies=[Depends(require_api_key)],
)
def resolve_device(
    identifier: str,
    request: Request,
    resolver: IdentityResolver = Depends(get_resolver),
):
    """Resuelve serial, deviceId, asset tag, nombre o hostname al serial canónico.

    200 con redirectUrl si se encuentra; 404 si no (incluye directorio caído).
    """
    get_rate_limiter().check_resolve(identifier=identifier, ip=get_client_ip(request))

    result = resolver.resolve(identifier)

    if result.found and result.serial_number:
        return ResolutionOut(
            resolved=True,
            serialNumber=result.serial_number,
            originalIdentifier=result.original_identifier,
            identifierType=result.identifier_type.value,
            redirectUrl=f"/device/{quote(result.serial_number, safe='')}",
        )

    return JSONResponse(
        status_code=404,
        content={
            "resolved": False,
            "originalIdentifier": result.original_identifier,
            "identifierType": result.identifier_type.value,
            "message": (
                f"No device found for {result.identifier_type.value}: "
                f"{result.original_identifier}"
            ),
        },
    )
