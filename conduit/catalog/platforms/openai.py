"""OpenAI (LLM provider) catalog. Actions only."""

from conduit.catalog.models import ActionDefinition, HttpMethod, PlatformCatalog, schema

DOCS = "https://platform.openai.com/docs/api-reference"

ACTIONS = (
    ActionDefinition(
        key="chat_completion",
        name="Chat Completion",
        description="Generate a model response for a list of chat messages",
        category="Text",
        http_method=HttpMethod.POST,
        endpoint="/v1/chat/completions",
        parameter_schema=schema(
            required=["model", "messages"],
            model=("string", "Model name, e.g. gpt-4o-mini"),
            messages=("array", "[{role, content}]"),
            temperature=("number", "Sampling temperature"),
            max_tokens=("number", "Maximum tokens to generate"),
        ),
        response_schema=schema(id="string", choices="array", usage="object"),
        required_fields=["model", "messages"],
        optional_fields=["temperature", "max_tokens"],
        resource_type="completion",
        docs_url=f"{DOCS}/chat/create",
    ),
    ActionDefinition(
        key="create_embedding",
        name="Create Embedding",
        description="Embed a piece of text",
        category="Embeddings",
        http_method=HttpMethod.POST,
        endpoint="/v1/embeddings",
        parameter_schema=schema(
            required=["model", "input"],
            model=("string", "Embedding model"),
            input=("string", "Text to embed"),
        ),
        required_fields=["model", "input"],
        idempotent=True,
        resource_type="embedding",
        docs_url=f"{DOCS}/embeddings/create",
    ),
    ActionDefinition(
        key="list_models",
        name="List Models",
        description="List models available to the API key",
        category="Models",
        http_method=HttpMethod.GET,
        endpoint="/v1/models",
        idempotent=True,
        resource_type="model",
        docs_url=f"{DOCS}/models/list",
    ),
)

CATALOG = PlatformCatalog(platform_type="openai", actions=ACTIONS)
