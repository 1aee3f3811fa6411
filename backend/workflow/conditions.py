"""Condition evaluation against task and project facts.

``evaluate`` returns a plain bool for a legitimate result and raises
``EvaluationError`` when the condition cannot be evaluated at all
(malformed config, failing facts provider). A task or project that does
not exist is a legitimate ``False``.
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

import structlog

from core.constants import UNARY_OPERATORS, ComparisonOperator
from core.exceptions import EvaluationError, StepConfigError
from workflow.context import ExecutionContext, resolve_value
from workflow.interfaces import FactsProvider, ProjectFacts, TaskFacts
from workflow.models import (
    ConditionStep,
    ProjectCompletionConfig,
    TaskAssigneeEmptyConfig,
    TaskDueDateConfig,
    TaskFieldEqualsConfig,
    ValueComparisonConfig,
)

logger = structlog.get_logger(__name__)

WEEK = timedelta(days=7)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_number(value: Any) -> Optional[float]:
    """Finite float for numeric input or numeric text, else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def compare_values(left: Any, operator: ComparisonOperator, right: Any) -> bool:
    """Numeric comparison when both sides are numbers, else case-sensitive text."""
    operator = ComparisonOperator(operator)
    if operator in UNARY_OPERATORS:
        empty = left is None or left == ""
        return empty if operator == ComparisonOperator.IS_EMPTY else not empty
    if operator == ComparisonOperator.CONTAINS:
        return _as_text(right) in _as_text(left)

    left_num, right_num = as_number(left), as_number(right)
    if left_num is not None and right_num is not None:
        lhs, rhs = left_num, right_num
    else:
        lhs, rhs = _as_text(left), _as_text(right)

    if operator == ComparisonOperator.EQUALS:
        return lhs == rhs
    if operator == ComparisonOperator.NOT_EQUALS:
        return lhs != rhs
    if operator == ComparisonOperator.GREATER_THAN:
        return lhs > rhs
    return lhs < rhs


class ConditionEvaluator:
    """Evaluates condition steps. Holds no per-run state."""

    def __init__(
        self,
        facts: FactsProvider,
        tz: str = "UTC",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._facts = facts
        self._tz = ZoneInfo(tz)
        self._clock = clock

    def now(self) -> datetime:
        return self._clock().astimezone(self._tz)

    async def evaluate(self, step: ConditionStep, context: ExecutionContext) -> bool:
        try:
            return await self._evaluate(step, context)
        except EvaluationError:
            raise
        except Exception as exc:
            raise EvaluationError(step.id, f"{type(exc).__name__}: {exc}") from exc

    async def _evaluate(self, step: ConditionStep, context: ExecutionContext) -> bool:
        try:
            config = step.condition_config(resolve_value(step.config, context))
        except StepConfigError as exc:
            raise EvaluationError(step.id, exc.message) from exc

        if isinstance(config, ValueComparisonConfig):
            result = compare_values(config.left_value, config.operator, config.right_value)
        elif isinstance(config, ProjectCompletionConfig):
            result = await self._project_completion(step.id, config, context)
        else:
            task = await self._resolve_task(step.id, config.task_id, context)
            result = False if task is None else self._task_condition(config, task)

        logger.debug(
            "Condition evaluated",
            step_id=step.id,
            condition_type=config.condition_type,
            result=result,
        )
        return result

    async def _resolve_task(
        self, step_id: str, task_id: Optional[str], context: ExecutionContext
    ) -> Optional[TaskFacts]:
        task_id = task_id or context.task_id
        if not task_id:
            return None
        try:
            return await self._facts.get_task(task_id)
        except Exception as exc:
            raise EvaluationError(step_id, f"task lookup failed: {exc}") from exc

    async def _project_completion(
        self, step_id: str, config: ProjectCompletionConfig, context: ExecutionContext
    ) -> bool:
        project_id = config.project_id or context.project_id
        if not project_id:
            return False
        try:
            project: Optional[ProjectFacts] = await self._facts.get_project(project_id)
        except Exception as exc:
            raise EvaluationError(step_id, f"project lookup failed: {exc}") from exc
        if project is None:
            return False
        if config.direction == "above":
            return project.progress > config.percentage
        return project.progress < config.percentage

    def _task_condition(self, config: Any, task: TaskFacts) -> bool:
        if isinstance(config, TaskFieldEqualsConfig):
            return getattr(task, config.field_name) == config.expected_value
        if isinstance(config, TaskAssigneeEmptyConfig):
            return not task.assignee
        if isinstance(config, TaskDueDateConfig):
            return self.due_date_matches(config.predicate, task.due_date)
        return False

    def due_date_matches(self, predicate: str, due: Any) -> bool:
        """Apply overdue / today / thisWeek to a date or datetime."""
        if due is None:
            return False
        now = self.now()

        if isinstance(due, datetime):
            if due.tzinfo is None:
                due = due.replace(tzinfo=self._tz)
            due = due.astimezone(self._tz)
            if predicate == "overdue":
                return due < now
            if predicate == "today":
                return due.date() == now.date()
            return now <= due <= now + WEEK

        if isinstance(due, date):
            today = now.date()
            if predicate == "overdue":
                return due < today
            if predicate == "today":
                return due == today
            return today <= due <= today + WEEK

        return False
