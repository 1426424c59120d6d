"""Extension side-channel codec."""

from .extensions import ExtensionCodec, MatchMode

__all__ = ["ExtensionCodec", "MatchMode"]
