"""Response envelope validation."""

from .envelope import BUNDLE_SCHEMA, RESOURCE_SCHEMA, validate_bundle, validate_resource

__all__ = ["BUNDLE_SCHEMA", "RESOURCE_SCHEMA", "validate_bundle", "validate_resource"]
