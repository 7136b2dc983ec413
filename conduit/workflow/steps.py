"""Step, step result and status types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PARTIAL = "partial"


class StepStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Why a step failed."""

    UNKNOWN_ACTION = "unknown_action"  # Definition error; always halts the run
    INVALID_PARAMETERS = "invalid_parameters"  # Unresolved template or missing required field
    CREDENTIAL_ERROR = "credential_error"  # Stored credentials cannot be decrypted
    ADAPTER_ERROR = "adapter_error"  # Network failure or vendor error status
    TIMEOUT = "timeout"  # Vendor call exceeded the step timeout


class FailurePolicy(str, Enum):
    STOP = "stop"
    CONTINUE = "continue"


class Step(BaseModel):
    """One action invocation inside a workflow.

    ``type`` is the action key. ``config`` is the parameter map; its
    values may contain ``{{path}}`` references into the run context.
    ``integration_id`` pins the step to one integration; without it the
    first enabled integration of the organization offering the action
    is used.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    type: str
    name: str = ""
    config: dict[str, Any] = Field(default_factory=dict)
    integration_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("integration_id", "integrationId"),
    )
    on_failure: FailurePolicy = Field(
        default=FailurePolicy.STOP,
        validation_alias=AliasChoices("on_failure", "onFailure"),
    )
    required: bool = True

    @property
    def label(self) -> str:
        return self.name or self.type

    def halts_on_failure(self) -> bool:
        return self.required and self.on_failure == FailurePolicy.STOP

    def to_record(self) -> dict[str, Any]:
        """Serialized form stored on the workflow row."""
        record: dict[str, Any] = {
            "type": self.type,
            "name": self.name,
            "config": self.config,
            "onFailure": self.on_failure.value,
            "required": self.required,
        }
        if self.integration_id:
            record["integrationId"] = self.integration_id
        return record


def parse_step(raw: Any) -> Step:
    """Parse a stored step record.

    Records that do not validate become a step with an empty ``type``
    (named after the record) so the executor reports a definition error
    instead of dispatching the action with partial parameters.
    """
    if isinstance(raw, Step):
        return raw
    if not isinstance(raw, dict):
        return Step(type="")
    try:
        return Step.model_validate(raw)
    except ValueError:
        return Step(type="", name=str(raw.get("name") or raw.get("type") or ""))


def parse_steps(raw: Any) -> list[Step]:
    if not isinstance(raw, list):
        return []
    return [parse_step(item) for item in raw]


@dataclass
class StepResult:
    """Outcome of one executed step."""

    step_index: int
    step_name: str
    action_key: str
    status: StepStatus
    output: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    status_code: int | None = None
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == StepStatus.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "stepIndex": self.step_index,
            "stepName": self.step_name,
            "actionKey": self.action_key,
            "status": self.status.value,
            "durationMs": self.duration_ms,
        }
        if self.succeeded:
            result["output"] = self.output
        else:
            result["error"] = self.error
            result["errorKind"] = self.error_kind.value if self.error_kind else None
            if self.status_code is not None:
                result["statusCode"] = self.status_code
        return result
