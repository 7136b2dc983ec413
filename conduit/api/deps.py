"""Shared FastAPI dependencies.

Process-wide collaborators (vault, adapters, runner) are built once in
the lifespan and stored on ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from conduit.adapters.registry import AdapterRegistry
from conduit.vault import CredentialVault
from conduit.workflow.runner import WorkflowRunner


def get_vault(request: Request) -> CredentialVault:
    return request.app.state.vault


def get_adapters(request: Request) -> AdapterRegistry:
    return request.app.state.adapters


def get_runner(request: Request) -> WorkflowRunner:
    return request.app.state.runner


def get_organization_id(
    x_organization_id: Annotated[str, Header(min_length=1, max_length=64)],
) -> str:
    """Organization scope of the request, from the X-Organization-ID header."""
    return x_organization_id


OrganizationId = Annotated[str, Depends(get_organization_id)]
Vault = Annotated[CredentialVault, Depends(get_vault)]
Adapters = Annotated[AdapterRegistry, Depends(get_adapters)]
Runner = Annotated[WorkflowRunner, Depends(get_runner)]
