"""Unit tests for the database-backed action catalog."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conduit.exceptions import CredentialError
from conduit.storage.entities.integration_action import IntegrationAction
from conduit.workflow.resolution import StoredActionCatalog, definition_from_row
from conduit.workflow.steps import Step


def action_row(**overrides):
    fields = {
        "id": "act-1",
        "integration_id": "int-1",
        "action_key": "get_customer",
        "name": "Get Customer",
        "description": None,
        "category": "customers",
        "http_method": "GET",
        "endpoint": "/api/2.0/admin/customers/customer/{id}",
        "parameter_schema": {},
        "response_schema": {},
        "required_fields": ["id"],
        "optional_fields": [],
        "idempotent": True,
        "resource_type": "customer",
        "docs_url": None,
        "is_active": True,
        "usage_count": 0,
    }
    fields.update(overrides)
    return IntegrationAction(**fields)


def integration(id_="int-1", enabled=True, blob="blob"):
    return SimpleNamespace(
        id=id_,
        platform_type="splynx",
        is_enabled=enabled,
        credentials_encrypted=blob,
    )


@pytest.fixture
def vault():
    vault = MagicMock()
    vault.decrypt_json.return_value = {"api_key": "k", "api_secret": "s"}
    return vault


@pytest.fixture
def catalog(vault):
    with (
        patch("conduit.workflow.resolution.IntegrationRepository") as MockIntegrations,
        patch("conduit.workflow.resolution.IntegrationActionRepository") as MockActions,
    ):
        MockIntegrations.return_value.list_by_org = AsyncMock(return_value=[])
        MockIntegrations.return_value.get_for_org = AsyncMock(return_value=None)
        MockActions.return_value.get_by_key = AsyncMock(return_value=None)
        MockActions.return_value.record_use = AsyncMock()
        yield StoredActionCatalog(MagicMock(), vault)


class TestDefinitionFromRow:
    def test_rebuilds_contract(self):
        definition = definition_from_row(action_row())
        assert definition.key == "get_customer"
        assert definition.http_method.value == "GET"
        assert definition.required_fields == ["id"]
        assert definition.description == ""


class TestResolveAction:
    async def test_first_enabled_integration_with_action(self, catalog):
        catalog.integrations.list_by_org.return_value = [
            integration("int-0", enabled=False),
            integration("int-1"),
        ]
        catalog.actions.get_by_key.return_value = action_row()

        resolved = await catalog.resolve_action("org-1", Step(type="get_customer"))

        assert resolved.integration_id == "int-1"
        assert resolved.platform_type == "splynx"
        assert resolved.action.key == "get_customer"
        catalog.actions.get_by_key.assert_awaited_once_with("int-1", "get_customer")

    async def test_pinned_integration(self, catalog):
        catalog.integrations.get_for_org.return_value = integration("int-9")
        catalog.actions.get_by_key.return_value = action_row(integration_id="int-9")

        resolved = await catalog.resolve_action("org-1", Step(type="get_customer", integration_id="int-9"))

        assert resolved.integration_id == "int-9"
        catalog.integrations.get_for_org.assert_awaited_once_with("org-1", "int-9")
        catalog.integrations.list_by_org.assert_not_awaited()

    async def test_pinned_integration_of_other_org(self, catalog):
        resolved = await catalog.resolve_action("org-1", Step(type="get_customer", integration_id="int-x"))
        assert resolved is None

    async def test_inactive_action_is_unknown(self, catalog):
        catalog.integrations.list_by_org.return_value = [integration()]
        catalog.actions.get_by_key.return_value = action_row(is_active=False)
        assert await catalog.resolve_action("org-1", Step(type="get_customer")) is None

    async def test_no_integration_offers_action(self, catalog):
        catalog.integrations.list_by_org.return_value = [integration()]
        assert await catalog.resolve_action("org-1", Step(type="send_fax")) is None


class TestCredentials:
    async def test_decrypts_resolved_integration_blob(self, catalog, vault):
        catalog.integrations.list_by_org.return_value = [integration(blob="nonce:ct")]
        catalog.actions.get_by_key.return_value = action_row()
        resolved = await catalog.resolve_action("org-1", Step(type="get_customer"))

        credentials = await catalog.load_credentials(resolved)

        assert credentials == {"api_key": "k", "api_secret": "s"}
        vault.decrypt_json.assert_called_once_with("nonce:ct")

    async def test_missing_blob_is_credential_error(self, catalog):
        catalog.integrations.list_by_org.return_value = [integration(blob=None)]
        catalog.actions.get_by_key.return_value = action_row()
        resolved = await catalog.resolve_action("org-1", Step(type="get_customer"))

        with pytest.raises(CredentialError):
            await catalog.load_credentials(resolved)

    async def test_record_use_updates_row(self, catalog):
        row = action_row()
        catalog.integrations.list_by_org.return_value = [integration()]
        catalog.actions.get_by_key.return_value = row
        resolved = await catalog.resolve_action("org-1", Step(type="get_customer"))

        await catalog.record_use(resolved)

        catalog.actions.record_use.assert_awaited_once_with(row)
