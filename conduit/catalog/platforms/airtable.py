"""Airtable (spreadsheet-like data source) catalog.

Airtable has no outbound webhooks in this setup; new records are picked
up by polling.
"""

from conduit.catalog.models import (
    ActionDefinition,
    EventType,
    HttpMethod,
    PlatformCatalog,
    TriggerDefinition,
    schema,
)

DOCS = "https://airtable.com/developers/web/api"

TRIGGERS = (
    TriggerDefinition(
        key="record_created",
        name="Record Created",
        description="A new record appeared in a watched table",
        category="Records",
        event_type=EventType.POLLING,
        resource_type="record",
        available_fields=["id", "createdTime", "fields"],
        docs_url=f"{DOCS}/list-records",
    ),
    TriggerDefinition(
        key="record_updated",
        name="Record Updated",
        description="A record in a watched table changed",
        category="Records",
        event_type=EventType.POLLING,
        resource_type="record",
        available_fields=["id", "fields"],
        docs_url=f"{DOCS}/list-records",
    ),
)

ACTIONS = (
    ActionDefinition(
        key="list_records",
        name="List Records",
        description="List table records; 'filters' is translated into filterByFormula",
        category="Records",
        http_method=HttpMethod.GET,
        endpoint="/v0/{baseId}/{tableIdOrName}",
        parameter_schema=schema(
            required=["baseId", "tableIdOrName"],
            baseId=("string", "Base ID"),
            tableIdOrName=("string", "Table ID or name"),
            filters=("array", "Filter clauses [{field, operator, value}]"),
            pageSize=("number", "Records per page (max 100)"),
            offset=("string", "Pagination cursor"),
            view=("string", "View name or ID"),
        ),
        required_fields=["baseId", "tableIdOrName"],
        optional_fields=["filters", "pageSize", "offset", "view"],
        idempotent=True,
        resource_type="record",
        docs_url=f"{DOCS}/list-records",
    ),
    ActionDefinition(
        key="get_record",
        name="Get Record",
        description="Retrieve a single record",
        category="Records",
        http_method=HttpMethod.GET,
        endpoint="/v0/{baseId}/{tableIdOrName}/{recordId}",
        parameter_schema=schema(
            required=["baseId", "tableIdOrName", "recordId"],
            baseId="string",
            tableIdOrName="string",
            recordId="string",
        ),
        required_fields=["baseId", "tableIdOrName", "recordId"],
        idempotent=True,
        resource_type="record",
        docs_url=f"{DOCS}/get-record",
    ),
    ActionDefinition(
        key="create_record",
        name="Create Record",
        description="Create a record in a table",
        category="Records",
        http_method=HttpMethod.POST,
        endpoint="/v0/{baseId}/{tableIdOrName}",
        parameter_schema=schema(
            required=["baseId", "tableIdOrName", "fields"],
            baseId="string",
            tableIdOrName="string",
            fields=("object", "Field values keyed by field name"),
        ),
        required_fields=["baseId", "tableIdOrName", "fields"],
        resource_type="record",
        docs_url=f"{DOCS}/create-records",
    ),
    ActionDefinition(
        key="update_record",
        name="Update Record",
        description="Update selected fields of a record",
        category="Records",
        http_method=HttpMethod.PATCH,
        endpoint="/v0/{baseId}/{tableIdOrName}/{recordId}",
        parameter_schema=schema(
            required=["baseId", "tableIdOrName", "recordId", "fields"],
            baseId="string",
            tableIdOrName="string",
            recordId="string",
            fields=("object", "Field values keyed by field name"),
        ),
        required_fields=["baseId", "tableIdOrName", "recordId", "fields"],
        idempotent=True,
        resource_type="record",
        docs_url=f"{DOCS}/update-record",
    ),
)

CATALOG = PlatformCatalog(platform_type="airtable", triggers=TRIGGERS, actions=ACTIONS)
