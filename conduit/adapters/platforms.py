"""Concrete vendor adapters."""

import base64
from typing import Any

from conduit.adapters.base import PreparedRequest, VendorAdapter, credential
from conduit.catalog.models import ActionDefinition
from conduit.exceptions import AdapterError
from conduit.query.airtable import build_formula
from conduit.query.filters import parse_clauses
from conduit.query.splynx import build_main_attributes, flatten_main_attributes


class BearerTokenAdapter(VendorAdapter):
    """Adapter for platforms authenticated with a bearer API key."""

    def auth_headers(self, credentials: dict[str, Any]) -> dict[str, str]:
        token = credential(credentials, "api_key", "apiKey", "access_token", "token")
        if not token:
            raise AdapterError(f"{self.platform_type} credentials are missing an API key")
        return {"Authorization": f"Bearer {token}"}


class SplynxAdapter(VendorAdapter):
    """Splynx admin API.

    Credentials carry ``base_url`` plus either a prebuilt ``auth_header``
    or an ``api_key``/``api_secret`` pair used for Basic auth.
    """

    platform_type = "splynx"

    def auth_headers(self, credentials: dict[str, Any]) -> dict[str, str]:
        header = credential(credentials, "auth_header", "authHeader")
        if header:
            return {"Authorization": header}
        key = credential(credentials, "api_key", "apiKey")
        secret = credential(credentials, "api_secret", "apiSecret")
        if not key or not secret:
            raise AdapterError("splynx credentials need auth_header or api_key and api_secret")
        token = base64.b64encode(f"{key}:{secret}".encode()).decode()
        return {"Authorization": f"Basic {token}"}

    def test_request(self) -> PreparedRequest:
        return PreparedRequest(
            method="GET",
            path="/api/2.0/admin/customers/customer",
            params={"limit": 1},
        )

    def adapt_parameters(self, action: ActionDefinition, params: dict[str, Any]) -> dict[str, Any]:
        if "filters" not in params:
            return params
        clauses = parse_clauses(params.pop("filters"))
        attributes = build_main_attributes(clauses)
        if attributes:
            params.update(flatten_main_attributes(attributes))
        return params


class VapiAdapter(BearerTokenAdapter):
    platform_type = "vapi"
    default_base_url = "https://api.vapi.ai"

    def test_request(self) -> PreparedRequest:
        return PreparedRequest(method="GET", path="/assistant", params={"limit": 1})


class AirtableAdapter(BearerTokenAdapter):
    """Airtable REST API. ``filters`` becomes ``filterByFormula``."""

    platform_type = "airtable"
    default_base_url = "https://api.airtable.com"

    def test_request(self) -> PreparedRequest:
        return PreparedRequest(method="GET", path="/v0/meta/whoami")

    def adapt_parameters(self, action: ActionDefinition, params: dict[str, Any]) -> dict[str, Any]:
        if "filters" not in params:
            return params
        formula = build_formula(parse_clauses(params.pop("filters")))
        if formula:
            params["filterByFormula"] = formula
        return params


class OpenAIAdapter(BearerTokenAdapter):
    platform_type = "openai"
    default_base_url = "https://api.openai.com"

    def test_request(self) -> PreparedRequest:
        return PreparedRequest(method="GET", path="/v1/models")
