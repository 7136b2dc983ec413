"""Conduit exception hierarchy.

Base exceptions for all application layers with correlation ID support.

Usage:
    from conduit.exceptions import CredentialError

    try:
        credentials = vault.decrypt_json(integration.credentials_encrypted)
    except CredentialError as e:
        logger.warning("Stored credentials unusable (%s)", e.reason)
"""

import uuid
from typing import Literal


class ConduitError(Exception):
    """Base exception for all Conduit application errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ConfigurationError(ConduitError):
    """Errors from application configuration.

    Raised at startup; a process that hits one must not start serving.
    """

    pass


class CredentialError(ConduitError):
    """Stored credentials could not be decrypted.

    ``reason`` is ``"malformed"`` when the blob is not in the expected
    shape and ``"integrity"`` when the ciphertext fails authentication
    (tampered, or written under a different key). Either way the user
    has to re-enter the credentials.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: Literal["malformed", "integrity"],
        **kwargs,
    ):
        self.reason = reason
        super().__init__(message, **kwargs)


class CatalogError(ConduitError):
    """No catalog exists for a platform type."""

    def __init__(self, message: str, *, platform_type: str | None = None, **kwargs):
        self.platform_type = platform_type
        super().__init__(message, **kwargs)


class StepResolutionError(ConduitError):
    """A workflow step could not be turned into a concrete action call."""

    def __init__(
        self,
        message: str,
        *,
        kind: Literal["unknown_action", "invalid_parameters"],
        **kwargs,
    ):
        self.kind = kind
        super().__init__(message, **kwargs)


class AdapterError(ConduitError):
    """Errors from vendor adapter calls (network, vendor error, timeout)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        timeout: bool = False,
        **kwargs,
    ):
        self.status_code = status_code
        self.timeout = timeout
        super().__init__(message, **kwargs)


class DALError(ConduitError):
    """Errors from data access layer operations."""

    pass


class ValidationError(ConduitError):
    """Input validation errors (bad platform type, malformed steps, ...)."""

    pass


class NotFoundError(ConduitError):
    """A requested resource does not exist for the organization."""

    def __init__(self, message: str, *, resource: str | None = None, **kwargs):
        self.resource = resource
        super().__init__(message, **kwargs)
