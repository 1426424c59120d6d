"""Page-facing gateway, held collections and mode selection."""

from .collection import ResourceCollection
from .mode import ModeSelector
from .service import ResourceGateway

__all__ = ["ModeSelector", "ResourceCollection", "ResourceGateway"]
