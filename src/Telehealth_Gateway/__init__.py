"""Telehealth back-office resource gateway - main module.

Key Responsibilities:
    - Turn page filter intents into resource store queries
    - Map loosely-typed clinical resources to stable view-models and back
    - Apply optimistic list mutations with rollback

Collaborators:
    - Upstream: Back-office pages import from this module
    - Downstream: A FHIR resource store or the in-memory fixture store

Example:
    >>> from Telehealth_Gateway import FilterIntent, ResourceGateway
    >>> gateway = ResourceGateway.from_settings()
    >>> items = await gateway.list("Task", FilterIntent(searchText="follow"))
"""

from Telehealth_Gateway.config import DataMode, GatewaySettings, get_settings
from Telehealth_Gateway.dispatch import BulkFailure, BulkResult
from Telehealth_Gateway.gateway import ResourceCollection, ResourceGateway
from Telehealth_Gateway.models import FilterIntent

__all__ = [
    "BulkFailure",
    "BulkResult",
    "DataMode",
    "FilterIntent",
    "GatewaySettings",
    "ResourceCollection",
    "ResourceGateway",
    "get_settings",
]
