"""Workflow runner: asynchronous run creation and execution.

``start()`` creates a pending WorkflowRun, commits it and hands the
execution to a background task it keeps a handle on. The caller gets
the run back immediately; the outcome is only observable through the
persisted run. Multiple runs of the same workflow may execute
concurrently, each with its own context.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from conduit.adapters.registry import AdapterRegistry
from conduit.dal.workflow_runs import WorkflowRunRepository
from conduit.dal.workflows import WorkflowRepository
from conduit.storage import get_session
from conduit.storage.entities.workflow import Workflow
from conduit.storage.entities.workflow_run import WorkflowRun
from conduit.vault import CredentialVault
from conduit.workflow.context import ExecutionContext
from conduit.workflow.executor import WorkflowExecutor
from conduit.workflow.resolution import StoredActionCatalog
from conduit.workflow.steps import RunStatus, StepResult, parse_steps

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dataclass(frozen=True)
class RunRequest:
    """Everything a background run needs, detached from any session."""

    workflow_id: str
    organization_id: str
    workflow_name: str
    steps: list[dict[str, Any]]
    trigger_source: str
    trigger_payload: dict[str, Any] = field(default_factory=dict)
    actor_id: str | None = None

    @classmethod
    def from_workflow(
        cls,
        workflow: Workflow,
        trigger_source: str,
        trigger_payload: dict[str, Any] | None = None,
        actor_id: str | None = None,
    ) -> RunRequest:
        return cls(
            workflow_id=workflow.id,
            organization_id=workflow.organization_id,
            workflow_name=workflow.name,
            steps=list(workflow.steps or []),
            trigger_source=trigger_source,
            trigger_payload=dict(trigger_payload or {}),
            actor_id=actor_id or workflow.assigned_user_id,
        )

    def new_context(self) -> ExecutionContext:
        return ExecutionContext(
            organization_id=self.organization_id,
            trigger_source=self.trigger_source,
            actor_id=self.actor_id,
            trigger_payload=self.trigger_payload,
        )


class WorkflowRunner:
    """Starts workflow runs and executes them in background tasks."""

    def __init__(
        self,
        vault: CredentialVault,
        adapters: AdapterRegistry,
        step_timeout: float = 30.0,
        session_factory: SessionFactory = get_session,
    ):
        self.vault = vault
        self.adapters = adapters
        self.step_timeout = step_timeout
        self._session_factory = session_factory
        self._tasks: set[asyncio.Task] = set()

    @property
    def active_runs(self) -> int:
        return len(self._tasks)

    async def start(self, request: RunRequest) -> WorkflowRun:
        """Create a pending run and schedule its execution.

        Returns:
            The committed WorkflowRun (status ``pending``).
        """
        steps = parse_steps(request.steps)
        async with self._session_factory() as session:
            run = await WorkflowRunRepository(session).create(
                workflow_id=request.workflow_id,
                organization_id=request.organization_id,
                workflow_name=request.workflow_name,
                trigger_source=request.trigger_source,
                total_steps=len(steps),
                context=request.new_context().snapshot(),
            )
            await session.commit()

        task = asyncio.create_task(self._execute(run.id, request), name=f"workflow-run-{run.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info(
            "Started run %s of workflow %s (%s)",
            run.id,
            request.workflow_id,
            request.trigger_source,
        )
        return run

    async def _execute(self, run_id: str, request: RunRequest) -> None:
        """Background body of one run. Every failure ends up on the run row."""
        try:
            await self.execute_run(run_id, request)
        except asyncio.CancelledError:
            logger.warning("Run %s cancelled before finishing", run_id)
            await asyncio.shield(self._mark_crashed(run_id, request, "Run cancelled at shutdown"))
            raise
        except Exception as e:
            logger.exception("Run %s crashed", run_id)
            await self._mark_crashed(run_id, request, f"{type(e).__name__}: {e}")

    async def execute_run(self, run_id: str, request: RunRequest) -> RunStatus:
        """Execute a created run to completion and persist the outcome."""
        steps = parse_steps(request.steps)
        context = request.new_context()

        async with self._session_factory() as session:
            runs = WorkflowRunRepository(session)
            await runs.mark_running(run_id)
            await session.commit()

            executor = WorkflowExecutor(
                StoredActionCatalog(session, self.vault),
                self.adapters,
                timeout=self.step_timeout,
            )

            async def on_step(results: list[StepResult]) -> None:
                await runs.update_progress(run_id, [r.to_dict() for r in results], context.snapshot())
                await session.commit()

            outcome = await executor.execute(steps, context, on_step=on_step)

            await runs.finalize(
                run_id,
                status=outcome.status.value,
                step_results=[r.to_dict() for r in outcome.results],
                context=context.snapshot(),
                error_message=outcome.error_message,
            )
            await WorkflowRepository(session).record_run(
                request.workflow_id,
                outcome.status.value,
                datetime.now(UTC),
            )
            await session.commit()

        logger.info("Run %s finished: %s", run_id, outcome.status.value)
        return outcome.status

    async def _mark_crashed(self, run_id: str, request: RunRequest, message: str) -> None:
        try:
            async with self._session_factory() as session:
                runs = WorkflowRunRepository(session)
                run = await runs.get(run_id)
                if run is None or run.is_terminal:
                    return
                await runs.finalize(
                    run_id,
                    status=RunStatus.FAILED.value,
                    step_results=list(run.step_results or []),
                    context=dict(run.context or {}),
                    error_message=message,
                )
                await WorkflowRepository(session).record_run(
                    request.workflow_id,
                    RunStatus.FAILED.value,
                    datetime.now(UTC),
                )
                await session.commit()
        except Exception:
            logger.exception("Could not record failure of run %s", run_id)

    async def shutdown(self, timeout: float = 30.0) -> None:
        """Wait for in-flight runs, cancelling whatever outlives the timeout."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        logger.info("Waiting for %d in-flight workflow runs", len(pending))
        _done, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
