"""Configuration system for the resource gateway."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import AnyHttpUrl, BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environments supported by the back office."""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class DataMode(str, Enum):
    """Where reads and writes for a dataset are served from."""

    LIVE = "live"
    FIXTURE = "fixture"


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    level: str = Field(default="INFO", description="Log level for application output")
    scrub_fields: Sequence[str] = Field(
        default_factory=lambda: ["password", "token", "secret", "authorization"],
        description="Fields that should be redacted in logs",
    )


class StoreSettings(BaseModel):
    """Remote resource store connection settings."""

    base_url: AnyHttpUrl | None = Field(
        default=None, description="Base URL of the FHIR store, e.g. https://api.medplum.com/fhir/R4"
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="Per-request timeout")
    retry_attempts: int = Field(
        default=1,
        ge=1,
        description="Attempts per call; 1 means the gateway never retries on its own",
    )
    retry_backoff: Literal["none", "exponential", "linear"] = Field(
        default="exponential", description="Wait strategy between attempts when retry_attempts > 1"
    )
    retry_backoff_seconds: float = Field(
        default=0.5, ge=0, description="Initial wait; the step size for linear backoff"
    )
    breaker_failure_threshold: int | None = Field(
        default=None, ge=1, description="Open the circuit after this many consecutive failures"
    )
    breaker_recovery_seconds: float = Field(default=60.0, gt=0)
    headers: dict[str, str] = Field(
        default_factory=lambda: {
            "Accept": "application/fhir+json",
            "Content-Type": "application/fhir+json",
        },
        description="Static headers sent on every store request",
    )
    envelope: Literal["fhir", "api"] = Field(
        default="fhir",
        description="'fhir' for a plain FHIR REST store, 'api' for a {success, data} proxy",
    )


class QuerySettings(BaseModel):
    """Query builder limits."""

    max_page_size: int = Field(default=50, ge=1, description="Ceiling applied to _count")


class ExtensionSettings(BaseModel):
    """Extension side-channel lookup convention."""

    match: Literal["substring", "exact"] = Field(
        default="substring",
        description="How an extension token is compared against an extension url",
    )


class ModeSettings(BaseModel):
    """Live versus fixture routing per dataset key."""

    default: DataMode | None = Field(
        default=None,
        description="Mode for datasets without an override; None derives it from store.base_url",
    )
    overrides: dict[str, DataMode] = Field(default_factory=dict)


class GatewaySettings(BaseSettings):
    """Top-level gateway settings."""

    environment: Environment = Environment.DEV
    debug: bool = False
    service_name: str = "telehealth-gateway"
    store: StoreSettings = Field(default_factory=StoreSettings)
    query: QuerySettings = Field(default_factory=QuerySettings)
    extensions: ExtensionSettings = Field(default_factory=ExtensionSettings)
    mode: ModeSettings = Field(default_factory=ModeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    resource_table_path: Path | None = Field(
        default=None, description="Override for the packaged resources.yaml table"
    )

    model_config = SettingsConfigDict(env_prefix="TG_", env_nested_delimiter="__")


ENVIRONMENT_DEFAULTS: Mapping[Environment, dict[str, Any]] = {
    Environment.DEV: {
        "debug": True,
        "logging": {"level": "DEBUG"},
    },
    Environment.STAGING: {
        "store": {"breaker_failure_threshold": 5},
    },
    Environment.PROD: {
        "logging": {"level": "WARNING"},
        "store": {"breaker_failure_threshold": 5},
    },
}


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in updates.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            target[key] = _deep_update(dict(current), value)
        else:
            target[key] = value
    return target


def load_settings(environment: str | None = None) -> GatewaySettings:
    """Load settings with environment specific defaults applied.

    Explicit environment variables win over the per-environment defaults.
    """
    env_value = (environment or os.getenv("TG_ENV", "dev")).lower()
    env = Environment(env_value)
    try:
        base_settings = GatewaySettings()
    except ValidationError as err:
        raise RuntimeError(f"Invalid configuration: {err}") from err
    explicit = base_settings.model_dump(mode="json", exclude_defaults=True)
    merged = _deep_update(
        GatewaySettings.model_construct().model_dump(mode="json"), ENVIRONMENT_DEFAULTS.get(env, {})
    )
    merged = _deep_update(merged, explicit)
    merged["environment"] = env
    return GatewaySettings.model_validate(merged)


@lru_cache(maxsize=1)
def get_settings() -> GatewaySettings:
    """Cached accessor used by production code."""
    return load_settings()


__all__ = [
    "DataMode",
    "Environment",
    "ExtensionSettings",
    "GatewaySettings",
    "LoggingSettings",
    "ModeSettings",
    "QuerySettings",
    "StoreSettings",
    "get_settings",
    "load_settings",
]
