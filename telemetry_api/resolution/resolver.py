"""Resolución de identificadores de dispositivo al serial canónico.

Estrategias exactas (case-sensitive), en orden fijo; gana la primera:
1. serialNumber
2. deviceId
3. assetTag de primer nivel
4. assetTag dentro del módulo inventory
5. name / deviceName / computerName (y variantes snake_case)
6. hostname en los módulos network / system
7. Sin match → found=False

Dentro de una estrategia gana la primera entrada del directorio, así que el
orden del directorio importa si dos dispositivos comparten un atributo.

Fail-safe: si el listado falla o excede el timeout se devuelve
found=False, nunca una excepción. Los fetches corren en un pool compartido
y acotado (DirectoryFetcher). Sin caché interno; el throttling de
llamadas repetidas es responsabilidad del llamador.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from ..core.classification import classify_identifier
from ..core.domain.identifiers import IdentifierType, ResolutionResult
from .directory import DeviceDirectory, DirectoryEntry
from .fetcher import DirectoryFetcher, get_directory_fetcher

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0

INVENTORY_ASSET_TAG_KEYS = ("assetTag", "asset_tag")
INVENTORY_NAME_KEYS = ("deviceName", "device_name", "computerName", "computer_name")
NETWORK_HOSTNAME_KEYS = ("hostname", "hostName", "host_name")
SYSTEM_HOSTNAME_KEYS = ("hostname", "hostName", "host_name", "computerName")


def _values(document: dict, keys: Sequence[str]) -> List[Any]:
    return [document.get(key) for key in keys]


def _by_serial(entry: DirectoryEntry) -> Iterable[Any]:
    return (entry.serial_number,)


def _by_device_id(entry: DirectoryEntry) -> Iterable[Any]:
    return (entry.device_id,)


def _by_asset_tag(entry: DirectoryEntry) -> Iterable[Any]:
    return (entry.asset_tag,)


def _by_inventory_asset_tag(entry: DirectoryEntry) -> Iterable[Any]:
    return _values(entry.module("inventory"), INVENTORY_ASSET_TAG_KEYS)


def _by_name(entry: DirectoryEntry) -> Iterable[Any]:
    return [entry.name] + _values(entry.module("inventory"), INVENTORY_NAME_KEYS)


def _by_hostname(entry: DirectoryEntry) -> Iterable[Any]:
    system = entry.module("system")
    operating_system = system.get("operatingSystem")
    nested = [operating_system.get("hostname")] if isinstance(operating_system, dict) else []
    return (
        _values(entry.module("network"), NETWORK_HOSTNAME_KEYS)
        + _values(system, SYSTEM_HOSTNAME_KEYS)
        + nested
    )


Strategy = Tuple[str, IdentifierType, Callable[[DirectoryEntry], Iterable[Any]]]

STRATEGIES: Tuple[Strategy, ...] = (
    ("serial_number", IdentifierType.SERIAL_NUMBER, _by_serial),
    ("device_id", IdentifierType.UUID, _by_device_id),
    ("asset_tag", IdentifierType.ASSET_TAG, _by_asset_tag),
    ("inventory_asset_tag", IdentifierType.ASSET_TAG, _by_inventory_asset_tag),
    ("device_name", IdentifierType.DEVICE_NAME, _by_name),
    ("hostname", IdentifierType.HOSTNAME, _by_hostname),
)


def match_identifier(
    identifier: str,
    entries: Sequence[DirectoryEntry],
) -> Optional[Tuple[DirectoryEntry, IdentifierType, str]]:
    """Aplica las estrategias en orden sobre un snapshot ya cargado."""
    for strategy_name, identifier_type, candidates in STRATEGIES:
        for entry in entries:
            if not entry.serial_number:
                continue
            if any(isinstance(v, str) and v == identifier for v in candidates(entry)):
                return entry, identifier_type, strategy_name
    return None


class IdentityResolver:
    """Resuelve un identificador libre al serialNumber canónico."""

    def __init__(
        self,
        directory: DeviceDirectory,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        fetcher: Optional[DirectoryFetcher] = None,
    ):
        self._directory = directory
        self._timeout = timeout_seconds
        self._fetcher = fetcher or get_directory_fetcher()

    def resolve(self, identifier: str) -> ResolutionResult:
        identifier_type = classify_identifier(identifier)

        if not identifier.strip():
            return ResolutionResult.not_found(identifier, identifier_type)

        logger.info("[RESOLVER] Resolving %s: %s", identifier_type.value, identifier)

        entries = self._fetch_directory()
        if entries is None:
            return ResolutionResult.not_found(identifier, identifier_type)

        match = match_identifier(identifier, entries)
        if match is None:
            logger.info(
                "[RESOLVER] No device found for identifier=%s searched=%d",
                identifier,
                len(entries),
            )
            return ResolutionResult.not_found(identifier, identifier_type)

        entry, matched_type, strategy_name = match
        logger.info(
            "[RESOLVER] Resolved %s -> serial=%s strategy=%s",
            identifier,
            entry.serial_number,
            strategy_name,
        )
        return ResolutionResult(
            found=True,
            original_identifier=identifier,
            identifier_type=matched_type,
            serial_number=entry.serial_number,
        )

    def _fetch_directory(self) -> Optional[List[DirectoryEntry]]:
        """Snapshot del directorio con timeout acotado. None si falla."""
        return self._fetcher.fetch(self._directory, self._timeout)
