"""Vapi (voice AI) catalog."""

from conduit.catalog.models import (
    ActionDefinition,
    EventType,
    HttpMethod,
    PlatformCatalog,
    TriggerDefinition,
    schema,
)

WEBHOOK_DOCS = "https://docs.vapi.ai/webhooks"

TRIGGERS = (
    TriggerDefinition(
        key="call_started",
        name="Call Started",
        description="Triggered when a voice AI call is initiated",
        category="Calls",
        event_type=EventType.WEBHOOK,
        resource_type="call",
        payload_schema=schema(
            callId="string",
            assistantId="string",
            phoneNumber="string",
            status="string",
        ),
        sample_payload={
            "callId": "call-123",
            "assistantId": "asst-456",
            "phoneNumber": "+1234567890",
            "status": "started",
        },
        available_fields=["callId", "assistantId", "phoneNumber", "status"],
        docs_url=WEBHOOK_DOCS,
    ),
    TriggerDefinition(
        key="call_ended",
        name="Call Ended",
        description="Triggered when a voice AI call completes",
        category="Calls",
        resource_type="call",
        payload_schema=schema(
            callId="string",
            duration="number",
            wasAutonomous="boolean",
            transcript="string",
        ),
        available_fields=["callId", "duration", "wasAutonomous", "transcript", "endedReason"],
        docs_url=WEBHOOK_DOCS,
    ),
    TriggerDefinition(
        key="end_of_call_report",
        name="End of Call Report",
        description="Triggered when comprehensive call analysis is ready",
        category="Calls",
        resource_type="call",
        available_fields=["call", "summary", "analysis", "recordingUrl", "cost"],
        docs_url=WEBHOOK_DOCS,
    ),
    TriggerDefinition(
        key="transcript_available",
        name="Transcript Available",
        description="Triggered when call transcript is ready",
        category="Calls",
        resource_type="call",
        available_fields=["callId", "transcript", "messages"],
        docs_url=WEBHOOK_DOCS,
    ),
)

ACTIONS = (
    ActionDefinition(
        key="create_assistant",
        name="Create Voice Assistant",
        description="Create a new voice AI assistant with custom configuration",
        category="Assistants",
        http_method=HttpMethod.POST,
        endpoint="/assistant",
        parameter_schema=schema(
            required=["name", "modelProvider", "voiceProvider"],
            name=("string", "Assistant name"),
            systemPrompt=("string", "System instructions"),
            modelProvider=("string", "AI model provider (openai, anthropic)"),
            voiceProvider=("string", "Voice provider (elevenlabs, playht)"),
        ),
        required_fields=["name", "modelProvider", "voiceProvider"],
        optional_fields=["systemPrompt"],
        resource_type="assistant",
        docs_url="https://docs.vapi.ai/api-reference/assistants/create",
    ),
    ActionDefinition(
        key="make_call",
        name="Make Outbound Call",
        description="Initiate an outbound voice AI call",
        category="Calls",
        http_method=HttpMethod.POST,
        endpoint="/call/phone",
        parameter_schema=schema(
            required=["phoneNumber", "assistantId"],
            phoneNumber=("string", "Customer phone number"),
            assistantId=("string", "Assistant to use for call"),
        ),
        required_fields=["phoneNumber", "assistantId"],
        resource_type="call",
        docs_url="https://docs.vapi.ai/api-reference/calls/create",
    ),
    ActionDefinition(
        key="get_call",
        name="Get Call Details",
        description="Retrieve details for a specific call",
        category="Calls",
        http_method=HttpMethod.GET,
        endpoint="/call/{callId}",
        parameter_schema=schema(required=["callId"], callId=("string", "Call ID")),
        required_fields=["callId"],
        idempotent=True,
        resource_type="call",
        docs_url="https://docs.vapi.ai/api-reference/calls/get",
    ),
    ActionDefinition(
        key="upload_knowledge_file",
        name="Upload Knowledge Base File",
        description="Upload a file to the voice AI knowledge base",
        category="Knowledge Base",
        http_method=HttpMethod.POST,
        endpoint="/file",
        parameter_schema=schema(
            required=["fileName", "fileContent"],
            fileName=("string", "File name"),
            fileContent=("string", "File content (base64 or text)"),
        ),
        required_fields=["fileName", "fileContent"],
        resource_type="file",
        docs_url="https://docs.vapi.ai/api-reference/files/upload",
    ),
)

CATALOG = PlatformCatalog(platform_type="vapi", triggers=TRIGGERS, actions=ACTIONS)
