"""Workflow execution engine.

Runs one workflow from its trigger step to completion:

    Pending ──► Running ──► Completed | PartiallyFailed
       └──────► Aborted   (inactive workflow, failed validation)

Traversal is depth-first over ``nextSteps`` in declaration order, one step
at a time. A condition gates its branch: ``True`` follows ``nextSteps``,
``False`` follows ``elseSteps``; entry steps of the branch not taken are
recorded Skipped unless something else reaches them. An action's result
never gates traversal. Each step runs at most once per run and the total
number of executed steps is capped.

The engine holds no per-run state between calls, so separate runs may
execute concurrently.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

import structlog

from core.constants import RunStatus, StepOutcome, TERMINAL_RUN_STATUSES
from core.exceptions import (
    EvaluationError,
    IllegalTransitionError,
    WorkflowInactiveError,
    WorkflowValidationError,
)
from workflow.actions import ActionExecutor
from workflow.conditions import ConditionEvaluator
from workflow.context import ExecutionContext
from workflow.models import ActionStep, ConditionStep, TriggerStep, Workflow
from workflow.validator import validate_workflow

logger = structlog.get_logger(__name__)

DEFAULT_MAX_STEPS = 500

BRANCH_NOT_TAKEN = "branch not taken"

_TRANSITIONS: dict[RunStatus, frozenset] = {
    RunStatus.PENDING: frozenset({RunStatus.RUNNING, RunStatus.ABORTED}),
    RunStatus.RUNNING: frozenset({RunStatus.COMPLETED, RunStatus.PARTIALLY_FAILED}),
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ExecutionResult:
    """Outcome of one visited step."""

    step_id: str
    outcome: StepOutcome
    detail: Optional[str] = None
    output: Any = None
    started_at: Optional[str] = None
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "step_id": self.step_id,
            "outcome": self.outcome.value,
            "detail": self.detail,
            "output": self.output,
            "started_at": self.started_at,
            "duration_ms": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExecutionResult":
        return cls(
            step_id=data["step_id"],
            outcome=StepOutcome(data["outcome"]),
            detail=data.get("detail"),
            output=data.get("output"),
            started_at=data.get("started_at"),
            duration_ms=data.get("duration_ms", 0),
        )


@dataclass
class ExecutionRun:
    """One execution of a workflow and its per-step results."""

    workflow_id: str
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: RunStatus = RunStatus.PENDING
    results: list[ExecutionResult] = field(default_factory=list)
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    error: Optional[str] = None

    def transition(self, target: RunStatus) -> None:
        if target not in _TRANSITIONS.get(self.status, frozenset()):
            raise IllegalTransitionError(self.status.value, RunStatus(target).value)
        self.status = target
        if target == RunStatus.RUNNING:
            self.started_at = _now_iso()
        elif target in TERMINAL_RUN_STATUSES:
            self.completed_at = _now_iso()

    def abort(self, reason: str) -> None:
        self.error = reason
        self.transition(RunStatus.ABORTED)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_RUN_STATUSES

    def result_for(self, step_id: str) -> Optional[ExecutionResult]:
        for result in self.results:
            if result.step_id == step_id:
                return result
        return None

    def outcomes(self) -> dict[str, StepOutcome]:
        return {r.step_id: r.outcome for r in self.results}

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "workflow_id": self.workflow_id,
            "status": self.status.value,
            "results": [r.to_dict() for r in self.results],
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExecutionRun":
        return cls(
            workflow_id=data["workflow_id"],
            run_id=data["run_id"],
            status=RunStatus(data["status"]),
            results=[ExecutionResult.from_dict(r) for r in data.get("results", [])],
            started_at=data.get("started_at"),
            completed_at=data.get("completed_at"),
            error=data.get("error"),
        )


StepCallback = Callable[[ExecutionRun, ExecutionResult], Awaitable[None]]


class WorkflowEngine:
    """Executes workflows against a condition evaluator and an action executor."""

    def __init__(
        self,
        evaluator: ConditionEvaluator,
        executor: ActionExecutor,
        max_steps: int = DEFAULT_MAX_STEPS,
        on_step_complete: Optional[StepCallback] = None,
    ):
        self._evaluator = evaluator
        self._executor = executor
        self._max_steps = max_steps
        self._on_step_complete = on_step_complete

    async def execute(
        self,
        workflow: Workflow,
        context: Optional[ExecutionContext] = None,
        run_id: Optional[str] = None,
    ) -> ExecutionRun:
        """Run the workflow once. Always returns a run in a terminal state."""
        context = context or ExecutionContext(
            project_id=workflow.project_id, organization_id=workflow.organization_id
        )
        run = ExecutionRun(workflow_id=workflow.id, run_id=run_id or str(uuid.uuid4()))
        structlog.contextvars.bind_contextvars(run_id=run.run_id, workflow_id=workflow.id)
        try:
            if not workflow.is_active:
                run.abort(WorkflowInactiveError(workflow.id).message)
                logger.info("Run aborted", reason="inactive")
                return run
            try:
                validate_workflow(workflow)
            except WorkflowValidationError as exc:
                run.abort(f"{exc.kind}: {exc.message}")
                logger.warning("Run aborted", reason="invalid", kind=exc.kind)
                return run

            run.transition(RunStatus.RUNNING)
            logger.info("Run started", steps=len(workflow.steps))
            truncated = False
            try:
                truncated = await self._traverse(workflow, context, run)
            except Exception as exc:
                logger.error("Run failed unexpectedly", error=str(exc), exc_info=True)
                run.error = f"{type(exc).__name__}: {exc}"
                truncated = True

            failed = any(r.outcome == StepOutcome.FAILED for r in run.results)
            run.transition(
                RunStatus.PARTIALLY_FAILED if failed or truncated else RunStatus.COMPLETED
            )
            logger.info("Run finished", status=run.status.value, results=len(run.results))
            return run
        finally:
            structlog.contextvars.unbind_contextvars("run_id", "workflow_id")

    async def _traverse(
        self, workflow: Workflow, context: ExecutionContext, run: ExecutionRun
    ) -> bool:
        """Depth-first walk from the trigger. Returns True if the step cap was hit."""
        stack = [workflow.trigger_step_id]
        visited: set[str] = set()
        not_taken: list[str] = []

        while stack:
            step_id = stack.pop()
            if step_id in visited:
                continue
            if len(visited) >= self._max_steps:
                run.error = f"Step limit of {self._max_steps} reached"
                logger.warning("Step limit reached", max_steps=self._max_steps)
                self._record_not_taken(run, visited, not_taken)
                return True
            visited.add(step_id)

            step = workflow.steps[step_id]
            result, follow, untaken = await self._run_step(step, context)
            run.results.append(result)
            not_taken.extend(untaken)
            await self._notify_step(run, result)

            stack.extend(reversed(follow))

        self._record_not_taken(run, visited, not_taken)
        return False

    @staticmethod
    def _record_not_taken(run: ExecutionRun, visited: set[str], not_taken: list[str]) -> None:
        for step_id in dict.fromkeys(not_taken):
            if step_id not in visited:
                run.results.append(
                    ExecutionResult(
                        step_id=step_id, outcome=StepOutcome.SKIPPED, detail=BRANCH_NOT_TAKEN
                    )
                )

    async def _run_step(
        self, step, context: ExecutionContext
    ) -> tuple[ExecutionResult, list[str], list[str]]:
        """Execute one step. Returns its result, the edges to follow and the edges not taken."""
        started_at = _now_iso()
        start = time.perf_counter()
        follow: list[str] = []
        untaken: list[str] = []
        output: Any = None

        if isinstance(step, TriggerStep):
            outcome, detail = StepOutcome.SUCCEEDED, "Trigger fired"
            follow = list(step.next_steps)

        elif isinstance(step, ConditionStep):
            try:
                passed = await self._evaluator.evaluate(step, context)
            except EvaluationError as exc:
                outcome, detail = StepOutcome.FAILED, exc.message
            else:
                output = {"result": passed}
                if passed:
                    outcome, detail = StepOutcome.SUCCEEDED, "Condition true"
                    follow, untaken = list(step.next_steps), list(step.else_steps)
                else:
                    outcome, detail = StepOutcome.SKIPPED, "Condition false"
                    follow, untaken = list(step.else_steps), list(step.next_steps)

        elif isinstance(step, ActionStep):
            action = await self._executor.execute(step, context)
            outcome = StepOutcome.SUCCEEDED if action.success else StepOutcome.FAILED
            detail = action.detail
            output = action.output
            if action.success:
                context.record_output(step.id, action.output)
            follow = list(step.next_steps)

        else:
            raise TypeError(f"Unknown step type: {type(step).__name__}")

        result = ExecutionResult(
            step_id=step.id,
            outcome=outcome,
            detail=detail,
            output=output,
            started_at=started_at,
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        logger.info(
            "Step finished",
            step_id=step.id,
            kind=step.kind,
            outcome=outcome.value,
            duration_ms=result.duration_ms,
        )
        return result, follow, untaken

    async def _notify_step(self, run: ExecutionRun, result: ExecutionResult) -> None:
        if self._on_step_complete is None:
            return
        try:
            await self._on_step_complete(run, result)
        except Exception as exc:
            logger.error("on_step_complete callback failed", step_id=result.step_id, error=str(exc))
