"""Resource store contract shared by the live and fixture transports.

Both implementations satisfy the same asynchronous interface so nothing
downstream of the mode selector needs to know which one it was handed.

Key Components:
    - ResourceStore: Abstract base class for stores

Error Contract:
    - ``NetworkError`` when the call did not complete
    - ``ResourceNotFoundError`` when the addressed id does not exist
    - ``StoreError`` for any other rejected call
    - ``MalformedResponseError`` when the answer has the wrong shape
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from Telehealth_Gateway.models import Bundle, RawResource
from Telehealth_Gateway.query.builder import ParamMap


class ResourceStore(ABC):
    """Asynchronous search/read/create/update/delete against a resource store."""

    name: str = "store"

    @abstractmethod
    async def search(self, resource_type: str, params: ParamMap | None = None) -> Bundle:
        """Return a Bundle of resources matching ``params``."""

    @abstractmethod
    async def read(self, resource_type: str, resource_id: str) -> RawResource:
        """Return a single resource by id."""

    @abstractmethod
    async def create(self, resource_type: str, body: Mapping[str, Any]) -> RawResource:
        """Store ``body`` as a new resource and return it with its assigned id."""

    @abstractmethod
    async def update(
        self, resource_type: str, resource_id: str, body: Mapping[str, Any]
    ) -> RawResource:
        """Replace the stored resource and return the stored representation."""

    @abstractmethod
    async def delete(self, resource_type: str, resource_id: str) -> None:
        """Remove a resource."""

    async def capabilities(self) -> RawResource:
        """Return the store's CapabilityStatement."""
        return {"resourceType": "CapabilityStatement", "status": "active", "kind": "instance"}

    async def aclose(self) -> None:
        """Release any held connections."""


__all__ = ["ResourceStore"]
