from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class IngestSummaryOut(BaseModel):
    status: str
    deviceId: str
    serialNumber: str
    modulesProcessed: List[str] = Field(default_factory=list)
    modulesSkipped: List[str] = Field(default_factory=list)
    eventsProcessed: int = 0
    eventsRejected: int = 0


class ErrorOut(BaseModel):
    error: str
    message: str


class ResolutionOut(BaseModel):
    resolved: bool
    originalIdentifier: str
    identifierType: str
    serialNumber: Optional[str] = None
    redirectUrl: Optional[str] = None
    message: Optional[str] = None


class DeviceOut(BaseModel):
    serialNumber: str
    deviceId: str
    name: Optional[str] = None
    assetTag: Optional[str] = None
    hostname: Optional[str] = None
    model: Optional[str] = None
    manufacturer: Optional[str] = None
    osName: Optional[str] = None
    osVersion: Optional[str] = None
    architecture: Optional[str] = None
    clientVersion: Optional[str] = None
    status: str
    lastSeen: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class ModuleDocumentOut(BaseModel):
    data: Any
    collectedAt: Optional[str] = None


class EventOut(BaseModel):
    eventType: str
    module: Optional[str] = None
    message: Optional[str] = None
    details: Any = None
    timestamp: Optional[str] = None


class DeviceDetailOut(DeviceOut):
    modules: Dict[str, ModuleDocumentOut] = Field(default_factory=dict)
    recentEvents: List[EventOut] = Field(default_factory=list)


class CacheInvalidateIn(BaseModel):
    serialNumber: Optional[str] = None
    deviceId: Optional[str] = None
    invalidateAll: bool = False


class CacheInvalidateOut(BaseModel):
    success: bool
    message: str
    device: Optional[str] = None
    delivered: bool
