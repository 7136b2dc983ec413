"""Base vendor adapter with HTTP request handling.

Adapters turn an action definition, resolved step parameters and a
decrypted credential mapping into one HTTP call, and normalize the
response into an :class:`AdapterResult`.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from conduit.catalog.models import ActionDefinition
from conduit.exceptions import AdapterError, StepResolutionError

logger = logging.getLogger(__name__)

PATH_PARAM = re.compile(r"\{(\w+)\}")


@dataclass
class AdapterResult:
    """Normalized outcome of a vendor call."""

    success: bool
    data: Any = None
    error: str | None = None
    status_code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "statusCode": self.status_code,
        }


@dataclass
class PreparedRequest:
    method: str
    path: str
    params: dict[str, Any] | None = None
    json: Any = None


def credential(credentials: dict[str, Any], *names: str) -> str | None:
    """First non-empty credential among alternative key spellings."""
    for name in names:
        value = credentials.get(name)
        if value:
            return str(value)
    return None


class VendorAdapter:
    """Base HTTP adapter for one platform type.

    Subclasses set ``platform_type`` and ``default_base_url`` and
    implement :meth:`auth_headers` and :meth:`test_request`.
    """

    platform_type: str = ""
    default_base_url: str | None = None

    def __init__(self, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared client (connection pooling across steps)."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # Platform hooks

    def base_url(self, credentials: dict[str, Any]) -> str:
        url = credential(credentials, "base_url", "baseUrl", "api_url", "apiUrl") or self.default_base_url
        if not url:
            raise AdapterError(f"{self.platform_type} credentials are missing a base URL")
        return url.rstrip("/")

    def auth_headers(self, credentials: dict[str, Any]) -> dict[str, str]:
        raise NotImplementedError

    def test_request(self) -> PreparedRequest:
        """Cheap read-only request used to verify credentials."""
        raise NotImplementedError

    def adapt_parameters(self, action: ActionDefinition, params: dict[str, Any]) -> dict[str, Any]:
        """Platform-specific parameter rewriting (e.g. translating filters)."""
        return params

    # Request building

    def prepare(self, action: ActionDefinition, params: dict[str, Any]) -> PreparedRequest:
        """Fill endpoint placeholders and split the rest into query or body.

        Raises:
            StepResolutionError: If an endpoint placeholder has no value.
        """
        remaining = dict(self.adapt_parameters(action, dict(params)))

        def substitute(match: re.Match) -> str:
            name = match.group(1)
            value = remaining.pop(name, None)
            if value is None or value == "":
                raise StepResolutionError(
                    f"Missing path parameter '{name}' for action '{action.key}'",
                    kind="invalid_parameters",
                )
            return quote(str(value), safe="")

        path = PATH_PARAM.sub(substitute, action.endpoint)
        method = action.http_method.value
        if method in ("GET", "DELETE"):
            return PreparedRequest(method=method, path=path, params=_query_params(remaining))
        return PreparedRequest(method=method, path=path, json=remaining)

    # Execution

    async def execute(
        self,
        action: ActionDefinition,
        params: dict[str, Any],
        credentials: dict[str, Any],
    ) -> AdapterResult:
        """Perform an action call.

        Returns:
            AdapterResult; a vendor error status is ``success=False``.

        Raises:
            AdapterError: On transport failure or timeout.
            StepResolutionError: If the endpoint cannot be built.
        """
        return await self._send(self.prepare(action, params), credentials)

    async def test_connection(self, credentials: dict[str, Any]) -> AdapterResult:
        """Probe the vendor with the given credentials."""
        try:
            return await self._send(self.test_request(), credentials)
        except AdapterError as e:
            return AdapterResult(success=False, error=str(e), status_code=e.status_code)

    async def _send(self, request: PreparedRequest, credentials: dict[str, Any]) -> AdapterResult:
        client = self._get_http_client()
        url = f"{self.base_url(credentials)}{request.path}"
        headers = {"Accept": "application/json", **self.auth_headers(credentials)}

        start_time = time.perf_counter()
        try:
            response = await client.request(
                request.method,
                url,
                headers=headers,
                params=request.params,
                json=request.json,
            )
        except httpx.TimeoutException as e:
            raise AdapterError(f"{self.platform_type} request timed out", timeout=True) from e
        except httpx.HTTPError as e:
            raise AdapterError(f"{self.platform_type} request failed: {type(e).__name__}") from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "%s %s %s -> %d (%.0fms)",
            self.platform_type,
            request.method,
            request.path,
            response.status_code,
            duration_ms,
        )
        return _normalize(response)


def _query_params(params: dict[str, Any]) -> dict[str, Any] | None:
    query = {k: v for k, v in params.items() if v is not None}
    return query or None


def _normalize(response: httpx.Response) -> AdapterResult:
    try:
        data = response.json() if response.content else None
    except ValueError:
        data = response.text

    if response.is_success:
        return AdapterResult(success=True, data=data, status_code=response.status_code)

    return AdapterResult(
        success=False,
        data=data,
        error=_error_message(data) or f"HTTP {response.status_code}",
        status_code=response.status_code,
    )


def _error_message(data: Any) -> str | None:
    if isinstance(data, dict):
        error = data.get("error") or data.get("message")
        if isinstance(error, dict):
            error = error.get("message") or error.get("type")
        if error:
            return str(error)
    if isinstance(data, str) and data.strip():
        return data.strip()[:500]
    return None
