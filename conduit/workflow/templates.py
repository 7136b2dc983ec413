"""Template resolution for step parameters.

A string that is exactly one ``{{path}}`` reference resolves to the
referenced value with its type intact. References embedded in longer
text are substituted as strings (JSON for objects and lists). Dicts and
lists are resolved recursively.
"""

import json
import re
from typing import Any

from conduit.exceptions import StepResolutionError
from conduit.workflow.context import ExecutionContext

REFERENCE = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")


def find_references(value: Any) -> list[str]:
    """All reference paths inside a (possibly nested) value."""
    if isinstance(value, str):
        return [m.group(1) for m in REFERENCE.finditer(value)]
    if isinstance(value, dict):
        return [ref for v in value.values() for ref in find_references(v)]
    if isinstance(value, list):
        return [ref for v in value for ref in find_references(v)]
    return []


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict | list):
        return json.dumps(value, default=str)
    return str(value)


def _lookup(path: str, context: ExecutionContext) -> Any:
    lookup = context.resolve(path)
    if not lookup.found:
        raise StepResolutionError(
            f"Unresolved reference '{{{{{path}}}}}'",
            kind="invalid_parameters",
        )
    return lookup.value


def resolve_value(value: Any, context: ExecutionContext) -> Any:
    """Resolve every reference inside ``value``.

    Raises:
        StepResolutionError: ``kind="invalid_parameters"`` for a path
            that does not exist in the context.
    """
    if isinstance(value, str):
        whole = REFERENCE.fullmatch(value.strip())
        if whole:
            return _lookup(whole.group(1), context)
        return REFERENCE.sub(lambda m: _stringify(_lookup(m.group(1), context)), value)
    if isinstance(value, dict):
        return {k: resolve_value(v, context) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_value(v, context) for v in value]
    return value


def resolve_parameters(config: dict[str, Any], context: ExecutionContext) -> dict[str, Any]:
    """Resolve a step's parameter map against the run context."""
    return {key: resolve_value(value, context) for key, value in config.items()}
