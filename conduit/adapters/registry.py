"""Adapter registry: one adapter instance per platform type per process."""

import httpx

from conduit.adapters.base import VendorAdapter
from conduit.adapters.platforms import AirtableAdapter, OpenAIAdapter, SplynxAdapter, VapiAdapter
from conduit.settings import Settings, get_settings

ADAPTER_CLASSES: dict[str, type[VendorAdapter]] = {
    cls.platform_type: cls for cls in (SplynxAdapter, VapiAdapter, AirtableAdapter, OpenAIAdapter)
}


class AdapterRegistry:
    """Holds the process's vendor adapters."""

    def __init__(self, adapters: dict[str, VendorAdapter] | None = None):
        self._adapters: dict[str, VendorAdapter] = dict(adapters or {})

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AdapterRegistry":
        settings = settings or get_settings()
        return cls(
            {
                platform: adapter_cls(timeout=settings.adapter_timeout_seconds, transport=transport)
                for platform, adapter_cls in ADAPTER_CLASSES.items()
            }
        )

    def get(self, platform_type: str) -> VendorAdapter | None:
        return self._adapters.get(platform_type)

    def register(self, adapter: VendorAdapter) -> None:
        self._adapters[adapter.platform_type] = adapter

    @property
    def platforms(self) -> list[str]:
        return sorted(self._adapters)

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.close()
