"""Esquema de almacenamiento (SQLAlchemy Core).

- devices: serial_number es la PK; device_id es UNIQUE. El perdedor de
  dos registros concurrentes falla en el constraint.
- Una tabla por módulo reconocido (MODULE_TABLES), con device_id UNIQUE:
  como máximo una fila por dispositivo y módulo.
- events: append-only.
"""

from __future__ import annotations

from typing import Dict

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

from ...core.domain.modules import MODULE_TABLES

metadata = MetaData()

devices = Table(
    "devices",
    metadata,
    Column("serial_number", String(255), primary_key=True),
    Column("device_id", String(255), nullable=False, unique=True),
    Column("name", String(255)),
    Column("asset_tag", String(255)),
    Column("hostname", String(255)),
    Column("model", String(255)),
    Column("manufacturer", String(255)),
    Column("os_name", String(255)),
    Column("os_version", String(255)),
    Column("architecture", String(64)),
    Column("client_version", String(64)),
    Column("status", String(32), nullable=False, default="online"),
    Column("last_seen", DateTime(timezone=True)),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
)

events = Table(
    "events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "device_id",
        String(255),
        ForeignKey("devices.device_id"),
        nullable=False,
    ),
    Column("event_type", String(16), nullable=False),
    Column("module", String(64)),
    Column("message", Text),
    Column("details", Text),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    Column("created_at", DateTime(timezone=True)),
    Index("ix_events_device_timestamp", "device_id", "timestamp"),
)


def _module_table(name: str) -> Table:
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column(
            "device_id",
            String(255),
            ForeignKey("devices.device_id"),
            nullable=False,
            unique=True,
        ),
        Column("data", Text, nullable=False),
        Column("collected_at", DateTime(timezone=True)),
        Column("updated_at", DateTime(timezone=True)),
    )


module_tables: Dict[str, Table] = {
    target: _module_table(target) for target in sorted(set(MODULE_TABLES.values()))
}
