"""Run context and path resolution.

The context is the only channel through which a step's output reaches a
later step's parameters. It is private to one run and append-only:
each step index records at most one output.

Paths use dots and bracket indices, e.g. ``stepOutputs.0.customerId``
or ``trigger.items[2].sku``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

_TOKEN = re.compile(r"([^.\[\]]+)|\[(\d+)\]")


@dataclass(frozen=True)
class PathLookup:
    """Result of resolving a path: ``found`` is False when any segment is missing."""

    found: bool
    value: Any = None


NOT_FOUND = PathLookup(found=False)


def parse_path(path: str) -> list[str | int] | None:
    """Split a path into segments; None if the path is malformed."""
    path = path.strip()
    if not path:
        return None
    segments: list[str | int] = []
    position = 0
    for match in _TOKEN.finditer(path):
        gap = path[position : match.start()]
        if gap not in ("", "."):
            return None
        name, index = match.groups()
        segments.append(int(index) if index is not None else name.strip())
        position = match.end()
    if position != len(path) or not segments:
        return None
    return segments


def resolve_path(tree: Any, path: str) -> PathLookup:
    """Walk ``tree`` along ``path``. Never raises."""
    segments = parse_path(path)
    if segments is None:
        return NOT_FOUND

    current = tree
    for segment in segments:
        if isinstance(current, dict):
            key = str(segment)
            if key not in current:
                return NOT_FOUND
            current = current[key]
        elif isinstance(current, list | tuple):
            if isinstance(segment, str):
                if not segment.isdigit():
                    return NOT_FOUND
                segment = int(segment)
            if segment >= len(current):
                return NOT_FOUND
            current = current[segment]
        else:
            return NOT_FOUND
    return PathLookup(found=True, value=current)


@dataclass
class ExecutionContext:
    """Per-run data bag: trigger payload, actor and accumulated step outputs."""

    organization_id: str
    trigger_source: str
    actor_id: str | None = None
    trigger_payload: dict[str, Any] = field(default_factory=dict)
    step_outputs: dict[int, Any] = field(default_factory=dict)

    def record_output(self, step_index: int, output: Any) -> None:
        if step_index in self.step_outputs:
            raise ValueError(f"Output for step {step_index} already recorded")
        self.step_outputs[step_index] = output

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready copy for persistence on the run."""
        return {
            "organizationId": self.organization_id,
            "actorId": self.actor_id,
            "triggerSource": self.trigger_source,
            "triggerPayload": self.trigger_payload,
            "stepOutputs": {str(i): out for i, out in sorted(self.step_outputs.items())},
        }

    def to_tree(self) -> dict[str, Any]:
        """Tree that template paths resolve against (``trigger`` aliases ``triggerPayload``)."""
        tree = self.snapshot()
        tree["trigger"] = self.trigger_payload
        return tree

    def resolve(self, path: str) -> PathLookup:
        return resolve_path(self.to_tree(), path)
