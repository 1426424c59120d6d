"""Resource store transports and bundle helpers."""

from .base import ResourceStore
from .bundle import group_by_type, index_references, unpack
from .fixtures import InMemoryResourceStore
from .http import HttpResourceStore

__all__ = [
    "HttpResourceStore",
    "InMemoryResourceStore",
    "ResourceStore",
    "group_by_type",
    "index_references",
    "unpack",
]
