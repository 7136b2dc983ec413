"""Catalog definition types.

Trigger and action definitions are immutable values compiled into the
package; the importer copies them into per-integration rows.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """How a trigger delivers events."""

    WEBHOOK = "webhook"
    POLLING = "polling"
    API_CALL = "api_call"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class TriggerDefinition(BaseModel):
    """An event source a platform exposes."""

    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    description: str = ""
    category: str | None = None
    event_type: EventType = EventType.WEBHOOK
    resource_type: str | None = None
    payload_schema: dict[str, Any] = Field(default_factory=dict)
    sample_payload: dict[str, Any] | None = None
    available_fields: list[str] = Field(default_factory=list)
    docs_url: str | None = None

    def to_row(self) -> dict[str, Any]:
        """Column values for an IntegrationTrigger row."""
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "event_type": self.event_type.value,
            "resource_type": self.resource_type,
            "payload_schema": dict(self.payload_schema),
            "sample_payload": dict(self.sample_payload) if self.sample_payload is not None else None,
            "available_fields": list(self.available_fields),
            "docs_url": self.docs_url,
        }


class ActionDefinition(BaseModel):
    """A callable vendor operation.

    ``endpoint`` may contain ``{param}`` placeholders that are filled
    from the step parameters at dispatch time.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    description: str = ""
    category: str | None = None
    http_method: HttpMethod
    endpoint: str
    parameter_schema: dict[str, Any] = Field(default_factory=dict)
    response_schema: dict[str, Any] = Field(default_factory=dict)
    required_fields: list[str] = Field(default_factory=list)
    optional_fields: list[str] = Field(default_factory=list)
    idempotent: bool = False
    resource_type: str | None = None
    docs_url: str | None = None

    def to_row(self) -> dict[str, Any]:
        """Column values for an IntegrationAction row."""
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "http_method": self.http_method.value,
            "endpoint": self.endpoint,
            "parameter_schema": dict(self.parameter_schema),
            "response_schema": dict(self.response_schema),
            "required_fields": list(self.required_fields),
            "optional_fields": list(self.optional_fields),
            "idempotent": self.idempotent,
            "resource_type": self.resource_type,
            "docs_url": self.docs_url,
        }


class PlatformCatalog(BaseModel):
    """All triggers and actions of one platform type."""

    model_config = ConfigDict(frozen=True)

    platform_type: str
    triggers: tuple[TriggerDefinition, ...] = ()
    actions: tuple[ActionDefinition, ...] = ()

    def get_trigger(self, key: str) -> TriggerDefinition | None:
        return next((t for t in self.triggers if t.key == key), None)

    def get_action(self, key: str) -> ActionDefinition | None:
        return next((a for a in self.actions if a.key == key), None)


def schema(required: list[str] | None = None, **properties: Any) -> dict[str, Any]:
    """Build a JSON-schema object from ``name=(type, description)`` pairs."""
    result: dict[str, Any] = {
        "type": "object",
        "properties": {
            name: {"type": spec[0], "description": spec[1]} if isinstance(spec, tuple) else {"type": spec}
            for name, spec in properties.items()
        },
    }
    if required:
        result["required"] = list(required)
    return result
