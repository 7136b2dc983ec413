"""Workflow definition and execution."""

from conduit.workflow.context import ExecutionContext, PathLookup, resolve_path
from conduit.workflow.executor import ExecutionOutcome, ResolvedAction, WorkflowExecutor
from conduit.workflow.runner import RunRequest, WorkflowRunner
from conduit.workflow.steps import (
    ErrorKind,
    FailurePolicy,
    RunStatus,
    Step,
    StepResult,
    StepStatus,
    parse_steps,
)
from conduit.workflow.templates import resolve_parameters

__all__ = [
    "ErrorKind",
    "ExecutionContext",
    "ExecutionOutcome",
    "FailurePolicy",
    "PathLookup",
    "ResolvedAction",
    "RunRequest",
    "RunStatus",
    "Step",
    "StepResult",
    "StepStatus",
    "WorkflowExecutor",
    "WorkflowRunner",
    "parse_steps",
    "resolve_parameters",
    "resolve_path",
]
