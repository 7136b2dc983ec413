"""Unit tests for Integrations API routes.

Uses a minimal app with the integrations router, the application error
handlers and mocked services -- no real database or lifespan needed.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from conduit.adapters.base import AdapterResult
from conduit.api.rate_limit import limiter
from conduit.catalog.importer import ImportResult
from conduit.exceptions import CredentialError, NotFoundError, ValidationError
from conduit.storage.entities.integration import Integration
from conduit.storage.entities.integration_trigger import IntegrationTrigger
from tests.factories import IntegrationFactory, IntegrationTriggerFactory

HEADERS = {"X-Organization-ID": "org-1"}


def _make_test_app(settings):
    """Create a minimal FastAPI app with the integrations router."""
    from fastapi import FastAPI

    from conduit.api.main import _register_exception_handlers
    from conduit.api.routes.integrations import router

    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    app.state.vault = MagicMock()
    app.state.adapters = MagicMock()

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
    _register_exception_handlers(app, settings)

    return app


@pytest.fixture(autouse=True)
def _reset_limiter():
    limiter.reset()


@pytest.fixture
async def client(test_settings):
    async with AsyncClient(
        transport=ASGITransport(app=_make_test_app(test_settings)),
        base_url="http://test",
    ) as client:
        yield client


def _integration(**overrides) -> Integration:
    fields = IntegrationFactory(id="int-1", name="Billing", credentials_encrypted="aa:bb")
    fields.update(overrides)
    return Integration(**fields)


@pytest.fixture
def mocks(session_factory, test_settings):
    with (
        patch("conduit.api.routes.integrations.get_session", side_effect=session_factory),
        patch("conduit.api.routes.integrations.get_settings", return_value=test_settings),
        patch("conduit.api.routes.integrations.IntegrationService") as MockService,
        patch("conduit.api.routes.integrations.IntegrationRepository") as MockRepo,
        patch("conduit.api.routes.integrations.IntegrationTriggerRepository") as MockTriggers,
        patch("conduit.api.routes.integrations.IntegrationActionRepository") as MockActions,
        patch("conduit.api.routes.integrations.CatalogImporter") as MockImporter,
    ):
        MockRepo.return_value.get_for_org = AsyncMock(return_value=_integration())
        MockRepo.return_value.list_by_org = AsyncMock(return_value=[_integration()])
        MockRepo.return_value.delete = AsyncMock(return_value=True)
        yield SimpleNamespace(
            service=MockService.return_value,
            repo=MockRepo.return_value,
            triggers=MockTriggers.return_value,
            actions=MockActions.return_value,
            importer=MockImporter.return_value,
        )


class TestCatalogEndpoints:
    async def test_list_platforms(self, client):
        response = await client.get("/api/v1/integrations/catalog")
        assert response.json() == ["airtable", "openai", "splynx", "vapi"]

    async def test_preview(self, client):
        response = await client.get("/api/v1/integrations/catalog/vapi")

        assert response.status_code == 200
        body = response.json()
        assert body["platform_type"] == "vapi"
        assert len(body["triggers"]) == 4
        assert len(body["actions"]) == 4

    async def test_preview_unknown_platform(self, client):
        response = await client.get("/api/v1/integrations/catalog/xero")
        assert response.status_code == 404


class TestIntegrationCrud:
    async def test_organization_header_required(self, client, mocks):
        response = await client.get("/api/v1/integrations")
        assert response.status_code == 422

    async def test_list_never_returns_credentials(self, client, mocks):
        response = await client.get("/api/v1/integrations", headers=HEADERS)

        assert response.status_code == 200
        item = response.json()[0]
        assert item["has_credentials"] is True
        assert "credentials" not in item
        assert "credentials_encrypted" not in item
        mocks.repo.list_by_org.assert_awaited_once_with("org-1")

    async def test_create(self, client, mocks, mock_db_session):
        mocks.service.save = AsyncMock(
            return_value=SimpleNamespace(
                integration=_integration(),
                created=True,
                imported=ImportResult(triggers_imported=20, actions_imported=17),
            )
        )

        response = await client.post(
            "/api/v1/integrations",
            headers=HEADERS,
            json={"platform_type": "splynx", "name": "Billing", "credentials": {"api_key": "k"}},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["created"] is True
        assert body["imported"] == {"triggersImported": 20, "actionsImported": 17}
        kwargs = mocks.service.save.await_args.kwargs
        assert kwargs["organization_id"] == "org-1"
        assert kwargs["credentials"] == {"api_key": "k"}
        mock_db_session.commit.assert_awaited_once()

    async def test_create_validation_error(self, client, mocks):
        mocks.service.save = AsyncMock(side_effect=ValidationError("Unsupported platform type 'myspace'"))

        response = await client.post(
            "/api/v1/integrations",
            headers=HEADERS,
            json={"platform_type": "myspace", "name": "x", "credentials": {"k": "v"}},
        )

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "validation_error"

    async def test_update_passes_id(self, client, mocks):
        mocks.service.save = AsyncMock(
            return_value=SimpleNamespace(integration=_integration(), created=False, imported=None)
        )

        response = await client.put(
            "/api/v1/integrations/int-1",
            headers=HEADERS,
            json={"platform_type": "splynx", "name": "Billing", "credentials": {"api_key": "k"}},
        )

        assert response.status_code == 200
        assert response.json()["created"] is False
        assert mocks.service.save.await_args.kwargs["integration_id"] == "int-1"

    async def test_update_unknown(self, client, mocks):
        mocks.service.save = AsyncMock(side_effect=NotFoundError("Integration not found"))

        response = await client.put(
            "/api/v1/integrations/nope",
            headers=HEADERS,
            json={"platform_type": "splynx", "name": "x", "credentials": {"api_key": "k"}},
        )

        assert response.status_code == 404

    async def test_get(self, client, mocks):
        response = await client.get("/api/v1/integrations/int-1", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["name"] == "Billing"
        mocks.repo.get_for_org.assert_awaited_once_with("org-1", "int-1")

    async def test_get_other_organization(self, client, mocks):
        mocks.repo.get_for_org.return_value = None
        response = await client.get("/api/v1/integrations/int-1", headers={"X-Organization-ID": "org-2"})
        assert response.status_code == 404

    async def test_delete(self, client, mocks, mock_db_session):
        response = await client.delete("/api/v1/integrations/int-1", headers=HEADERS)

        assert response.status_code == 204
        mocks.repo.delete.assert_awaited_once_with("int-1")
        mock_db_session.commit.assert_awaited_once()


class TestConnectionTest:
    async def test_success(self, client, mocks):
        mocks.service.test_connection = AsyncMock(
            return_value=SimpleNamespace(
                success=True,
                integration=_integration(connection_status="connected"),
                result=AdapterResult(success=True, status_code=200),
                discovered=[SimpleNamespace(trigger_key="call_started")],
            )
        )

        response = await client.post("/api/v1/integrations/int-1/test", headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "connection_status": "connected",
            "status_code": 200,
            "error": None,
            "discovered_triggers": ["call_started"],
        }

    async def test_unreadable_credentials(self, client, mocks):
        mocks.service.test_connection = AsyncMock(
            side_effect=CredentialError("Stored credentials could not be decrypted", reason="integrity")
        )

        response = await client.post("/api/v1/integrations/int-1/test", headers=HEADERS)

        assert response.status_code == 422
        assert response.json()["error"]["reason"] == "integrity"


class TestImportedCatalog:
    async def test_reimport(self, client, mocks):
        mocks.importer.import_catalog = AsyncMock(
            return_value=ImportResult(triggers_imported=4, actions_imported=4)
        )

        response = await client.post("/api/v1/integrations/int-1/import", headers=HEADERS)

        assert response.json() == {"triggersImported": 4, "actionsImported": 4}

    async def test_triggers_carry_public_url(self, client, mocks):
        trigger = IntegrationTrigger(
            **IntegrationTriggerFactory(
                id="trig-1",
                integration_id="int-1",
                webhook_address="/webhooks/splynx/int-1/customer_created",
            )
        )
        mocks.triggers.list_for_integration = AsyncMock(return_value=[trigger])

        response = await client.get("/api/v1/integrations/int-1/triggers?active_only=true", headers=HEADERS)

        item = response.json()[0]
        assert item["webhook_url"] == "https://conduit.example.com/webhooks/splynx/int-1/customer_created"
        mocks.triggers.list_for_integration.assert_awaited_once_with("int-1", active_only=True)

    async def test_actions(self, client, mocks):
        action = SimpleNamespace(
            id="act-1",
            action_key="get_customer",
            name="Get Customer",
            description=None,
            category="customers",
            http_method="GET",
            endpoint="/api/2.0/admin/customers/customer/{id}",
            required_fields=["id"],
            optional_fields=[],
            is_active=True,
            usage_count=3,
            last_used_at=None,
        )
        mocks.actions.list_for_integration = AsyncMock(return_value=[action])

        response = await client.get("/api/v1/integrations/int-1/actions", headers=HEADERS)

        assert response.json()[0]["usage_count"] == 3

    async def test_catalog_of_unknown_integration(self, client, mocks):
        mocks.repo.get_for_org.return_value = None
        response = await client.get("/api/v1/integrations/nope/actions", headers=HEADERS)
        assert response.status_code == 404
