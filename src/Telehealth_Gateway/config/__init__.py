"""Lightweight configuration package exports."""

from __future__ import annotations

from .resources import (
    ExtensionKey,
    FieldRule,
    ResourceSpec,
    ResourceTable,
    load_resource_table,
)
from .settings import (
    DataMode,
    Environment,
    ExtensionSettings,
    GatewaySettings,
    LoggingSettings,
    ModeSettings,
    QuerySettings,
    StoreSettings,
    get_settings,
    load_settings,
)

__all__ = [
    "DataMode",
    "Environment",
    "ExtensionKey",
    "ExtensionSettings",
    "FieldRule",
    "GatewaySettings",
    "LoggingSettings",
    "ModeSettings",
    "QuerySettings",
    "ResourceSpec",
    "ResourceTable",
    "StoreSettings",
    "get_settings",
    "load_resource_table",
    "load_settings",
]
