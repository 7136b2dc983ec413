"""API route registration.

``api_router`` is mounted under /api/v1 behind the API key dependency.
``webhooks_router`` is mounted at the root: its addresses are handed
to external platforms.
"""

from fastapi import APIRouter

from conduit.api.routes.integrations import router as integrations_router
from conduit.api.routes.runs import router as runs_router
from conduit.api.routes.system import router as system_router
from conduit.api.routes.webhooks import router as webhooks_router
from conduit.api.routes.workflows import router as workflows_router

api_router = APIRouter()

api_router.include_router(system_router, tags=["System"])
api_router.include_router(integrations_router)
api_router.include_router(workflows_router)
api_router.include_router(runs_router)

__all__ = ["api_router", "webhooks_router"]
