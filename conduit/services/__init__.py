"""Application services composing repositories, vault, catalog and adapters."""

from conduit.services.integrations import ConnectionTestOutcome, IntegrationService, SaveOutcome
from conduit.services.workflows import WorkflowService, validate_steps

__all__ = [
    "ConnectionTestOutcome",
    "IntegrationService",
    "SaveOutcome",
    "WorkflowService",
    "validate_steps",
]
