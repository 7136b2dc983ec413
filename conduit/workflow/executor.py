"""Workflow executor.

Runs a workflow's steps strictly in order against one private
ExecutionContext. For each step it resolves the action from the
catalog, resolves templated parameters, validates required fields and
dispatches the call through the platform adapter under a timeout.

Continuation rules:
- an unknown action always halts the run;
- any other failure halts the run when the step is required and its
  ``on_failure`` policy is ``stop`` (the default);
- otherwise the run continues with the next step.

Overall status: a halted run is ``failed``, even when the step that
halted it was optional. Otherwise ``succeeded`` iff every required step
succeeded, and a run that kept going past failures is ``partial`` unless
nothing succeeded at all.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from conduit.adapters.registry import AdapterRegistry
from conduit.catalog.models import ActionDefinition
from conduit.exceptions import AdapterError, CredentialError, StepResolutionError
from conduit.workflow.context import ExecutionContext
from conduit.workflow.steps import ErrorKind, RunStatus, Step, StepResult, StepStatus
from conduit.workflow.templates import resolve_parameters

logger = logging.getLogger(__name__)


@dataclass
class ResolvedAction:
    """An action contract bound to the integration that will perform it."""

    action: ActionDefinition
    platform_type: str
    integration_id: str
    record: Any = None


class ActionCatalog(Protocol):
    """Where the executor looks up actions and their credentials."""

    async def resolve_action(self, organization_id: str, step: Step) -> ResolvedAction | None: ...

    async def load_credentials(self, resolved: ResolvedAction) -> dict[str, Any]: ...

    async def record_use(self, resolved: ResolvedAction) -> None: ...


StepCallback = Callable[[list[StepResult]], Awaitable[None]]


@dataclass
class ExecutionOutcome:
    status: RunStatus
    results: list[StepResult] = field(default_factory=list)
    halted: bool = False

    @property
    def first_failure(self) -> StepResult | None:
        return next((r for r in self.results if not r.succeeded), None)

    @property
    def error_message(self) -> str | None:
        failure = self.first_failure
        if failure is None:
            return None
        kind = failure.error_kind.value if failure.error_kind else "error"
        return f"Step {failure.step_index} ({failure.step_name}) failed [{kind}]: {failure.error}"


def missing_required(action: ActionDefinition, params: dict[str, Any]) -> list[str]:
    return [name for name in action.required_fields if params.get(name) in (None, "")]


def overall_status(steps: list[Step], results: list[StepResult], halted: bool) -> RunStatus:
    if halted:
        return RunStatus.FAILED
    succeeded = {r.step_index for r in results if r.succeeded}
    if all(i in succeeded for i, step in enumerate(steps) if step.required):
        return RunStatus.SUCCEEDED
    if not succeeded:
        return RunStatus.FAILED
    return RunStatus.PARTIAL


class WorkflowExecutor:
    """Executes workflow steps in order."""

    def __init__(self, catalog: ActionCatalog, adapters: AdapterRegistry, timeout: float = 30.0):
        self.catalog = catalog
        self.adapters = adapters
        self.timeout = timeout

    async def execute(
        self,
        steps: list[Step],
        context: ExecutionContext,
        on_step: StepCallback | None = None,
    ) -> ExecutionOutcome:
        """Run all steps.

        Args:
            steps: Parsed workflow steps
            context: The run's private context; successful outputs are appended
            on_step: Called with the results so far after each step

        Returns:
            ExecutionOutcome with the overall status and per-step results.
        """
        results: list[StepResult] = []
        halted = False

        for index, step in enumerate(steps):
            result = await self._run_step(index, step, context)
            results.append(result)

            if result.succeeded:
                context.record_output(index, result.output)
            else:
                logger.info(
                    "Step %d (%s) failed [%s]: %s",
                    index,
                    step.label,
                    result.error_kind.value if result.error_kind else "?",
                    result.error,
                )

            if on_step is not None:
                await on_step(list(results))

            if not result.succeeded and (
                result.error_kind == ErrorKind.UNKNOWN_ACTION or step.halts_on_failure()
            ):
                halted = True
                break

        return ExecutionOutcome(
            status=overall_status(steps, results, halted),
            results=results,
            halted=halted,
        )

    async def _run_step(self, index: int, step: Step, context: ExecutionContext) -> StepResult:
        start = time.perf_counter()

        def failed(kind: ErrorKind, error: str, status_code: int | None = None) -> StepResult:
            return StepResult(
                step_index=index,
                step_name=step.label,
                action_key=step.type,
                status=StepStatus.FAILED,
                error=error,
                error_kind=kind,
                status_code=status_code,
                duration_ms=_elapsed_ms(start),
            )

        resolved = await self.catalog.resolve_action(context.organization_id, step) if step.type else None
        if resolved is None:
            return failed(ErrorKind.UNKNOWN_ACTION, f"Unknown action '{step.type}'")

        try:
            params = resolve_parameters(step.config, context)
        except StepResolutionError as e:
            return failed(ErrorKind.INVALID_PARAMETERS, str(e))

        missing = missing_required(resolved.action, params)
        if missing:
            return failed(
                ErrorKind.INVALID_PARAMETERS,
                f"Missing required fields: {', '.join(missing)}",
            )

        adapter = self.adapters.get(resolved.platform_type)
        if adapter is None:
            return failed(ErrorKind.ADAPTER_ERROR, f"No adapter for platform '{resolved.platform_type}'")

        try:
            credentials = await self.catalog.load_credentials(resolved)
        except CredentialError as e:
            return failed(ErrorKind.CREDENTIAL_ERROR, str(e))

        await self.catalog.record_use(resolved)

        try:
            response = await asyncio.wait_for(
                adapter.execute(resolved.action, params, credentials),
                timeout=self.timeout,
            )
        except TimeoutError:
            return failed(ErrorKind.TIMEOUT, f"Timed out after {self.timeout:g}s")
        except StepResolutionError as e:
            return failed(ErrorKind.INVALID_PARAMETERS, str(e))
        except AdapterError as e:
            kind = ErrorKind.TIMEOUT if e.timeout else ErrorKind.ADAPTER_ERROR
            return failed(kind, str(e), e.status_code)

        if not response.success:
            return failed(ErrorKind.ADAPTER_ERROR, response.error or "Vendor call failed", response.status_code)

        return StepResult(
            step_index=index,
            step_name=step.label,
            action_key=step.type,
            status=StepStatus.SUCCEEDED,
            output=response.data,
            status_code=response.status_code,
            duration_ms=_elapsed_ms(start),
        )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
