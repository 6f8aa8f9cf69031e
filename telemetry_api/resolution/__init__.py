"""Resolución de identificadores de dispositivo."""

from .directory import (
    DeviceDirectory,
    DirectoryEntry,
    InMemoryDeviceDirectory,
    SqlDeviceDirectory,
)
from .fetcher import DirectoryFetcher, get_directory_fetcher, reset_directory_fetcher
from .resolver import IdentityResolver, match_identifier

__all__ = [
    "DeviceDirectory",
    "DirectoryEntry",
    "InMemoryDeviceDirectory",
    "SqlDeviceDirectory",
    "DirectoryFetcher",
    "get_directory_fetcher",
    "reset_directory_fetcher",
    "IdentityResolver",
    "match_identifier",
]
