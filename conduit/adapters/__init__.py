"""Vendor adapters: perform catalog actions against external platforms."""

from conduit.adapters.base import AdapterResult, PreparedRequest, VendorAdapter
from conduit.adapters.platforms import AirtableAdapter, OpenAIAdapter, SplynxAdapter, VapiAdapter
from conduit.adapters.registry import AdapterRegistry

__all__ = [
    "AdapterRegistry",
    "AdapterResult",
    "AirtableAdapter",
    "OpenAIAdapter",
    "PreparedRequest",
    "SplynxAdapter",
    "VapiAdapter",
    "VendorAdapter",
]
