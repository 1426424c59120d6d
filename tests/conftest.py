from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from Telehealth_Gateway.codec import ExtensionCodec
from Telehealth_Gateway.config.resources import ResourceTable, load_resource_table
from Telehealth_Gateway.config.settings import StoreSettings
from Telehealth_Gateway.mappers import MapperRegistry, default_registry
from Telehealth_Gateway.transport.http import HttpResourceStore

BASE_URL = "https://fhir.test/R4"


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    for name in ("TG_ENV", "TG_STORE__BASE_URL", "TG_MODE__DEFAULT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def table() -> ResourceTable:
    return load_resource_table()


@pytest.fixture
def codec() -> ExtensionCodec:
    return ExtensionCodec()


@pytest.fixture
def registry(table: ResourceTable, codec: ExtensionCodec) -> MapperRegistry:
    return default_registry(table, codec)


@pytest.fixture
def http_store() -> Callable[..., HttpResourceStore]:
    """Build an HttpResourceStore answering through ``handler``."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response], **overrides
    ) -> HttpResourceStore:
        settings = StoreSettings(base_url=BASE_URL, **overrides)
        return HttpResourceStore(settings, transport=httpx.MockTransport(handler))

    return factory


def fhir_json(payload: object, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode(),
        headers={"Content-Type": "application/fhir+json"},
    )
