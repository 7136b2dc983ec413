"""Capability catalog: static trigger/action definitions per platform."""

from conduit.catalog.discovery import TriggerDiscoveryService, webhook_address
from conduit.catalog.importer import CatalogImporter, ImportResult
from conduit.catalog.models import (
    ActionDefinition,
    EventType,
    HttpMethod,
    PlatformCatalog,
    TriggerDefinition,
)
from conduit.catalog.registry import find_catalog, get_catalog, supported_platforms

__all__ = [
    "ActionDefinition",
    "CatalogImporter",
    "EventType",
    "HttpMethod",
    "ImportResult",
    "PlatformCatalog",
    "TriggerDefinition",
    "TriggerDiscoveryService",
    "find_catalog",
    "get_catalog",
    "supported_platforms",
    "webhook_address",
]
