"""Action execution through the task and notification sinks.

``ActionExecutor.execute`` never raises: config problems and sink
exceptions become a failed ``ActionOutcome`` carrying the original error.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import structlog

from core.exceptions import StepConfigError
from workflow.context import ExecutionContext, resolve_value
from workflow.interfaces import NotificationSink, TaskSink
from workflow.models import (
    ActionStep,
    NotifyConfig,
    TaskAssignConfig,
    TaskCreateConfig,
    TaskUpdateConfig,
)

logger = structlog.get_logger(__name__)


@dataclass
class ActionOutcome:
    success: bool
    detail: str = ""
    output: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    exception: Optional[BaseException] = None

    @classmethod
    def succeeded(cls, detail: str, **output: Any) -> "ActionOutcome":
        return cls(success=True, detail=detail, output=output)

    @classmethod
    def failed(
        cls, error: str, exception: Optional[BaseException] = None, **output: Any
    ) -> "ActionOutcome":
        return cls(success=False, detail=error, error=error, exception=exception, output=output)


class ActionExecutor:
    """Applies action steps to the external sinks."""

    def __init__(self, task_sink: TaskSink, notification_sink: NotificationSink):
        self._tasks = task_sink
        self._notifications = notification_sink

    async def execute(self, step: ActionStep, context: ExecutionContext) -> ActionOutcome:
        try:
            config = step.action_config(resolve_value(step.config, context))
        except StepConfigError as exc:
            return ActionOutcome.failed(exc.message, exc)

        try:
            if isinstance(config, TaskCreateConfig):
                return await self._create_task(config, context)
            if isinstance(config, TaskUpdateConfig):
                return await self._update_task(config, context)
            if isinstance(config, TaskAssignConfig):
                return await self._assign_task(config, context)
            return await self._notify(step, config, context)
        except Exception as exc:
            logger.warning(
                "Action sink raised",
                step_id=step.id,
                action_type=config.action_type,
                error=str(exc),
                exc_info=True,
            )
            return ActionOutcome.failed(f"{type(exc).__name__}: {exc}", exc)

    async def _create_task(
        self, config: TaskCreateConfig, context: ExecutionContext
    ) -> ActionOutcome:
        data = config.task_data.model_dump()
        if not data.get("project_id"):
            data["project_id"] = context.project_id or None
        task_id = await self._tasks.create_task(data, context)
        return ActionOutcome.succeeded(
            f"Created task {task_id}", taskId=task_id, title=data["title"]
        )

    async def _update_task(
        self, config: TaskUpdateConfig, context: ExecutionContext
    ) -> ActionOutcome:
        task_id = config.task_data.task_id or context.task_id
        if not task_id:
            return ActionOutcome.failed("No task to update: set taskData.taskId or run with a task")
        changes = config.task_data.changes()
        if not await self._tasks.update_task(task_id, changes, context):
            return ActionOutcome.failed(f"Task {task_id} not found", taskId=task_id)
        return ActionOutcome.succeeded(
            f"Updated task {task_id}", taskId=task_id, updatedFields=sorted(changes)
        )

    async def _assign_task(
        self, config: TaskAssignConfig, context: ExecutionContext
    ) -> ActionOutcome:
        task_id = config.task_id or context.task_id
        if not task_id:
            return ActionOutcome.failed("No task to assign: set taskId or run with a task")
        if not await self._tasks.assign_task(task_id, config.assignee, context):
            return ActionOutcome.failed(f"Task {task_id} not found", taskId=task_id)
        return ActionOutcome.succeeded(
            f"Assigned task {task_id} to {config.assignee}",
            taskId=task_id,
            assignee=config.assignee,
        )

    async def _notify(
        self, step: ActionStep, config: NotifyConfig, context: ExecutionContext
    ) -> ActionOutcome:
        receipts = await self._notifications.notify(
            recipients=config.recipients,
            title=config.title,
            message=config.message,
            channel=config.channel,
            level=config.notification_type,
            metadata={
                "step_id": step.id,
                "project_id": context.project_id,
                "organization_id": context.organization_id,
            },
        )
        delivered = [r.recipient for r in receipts if r.success]
        failed = {r.recipient: r.error or "delivery failed" for r in receipts if not r.success}
        if failed:
            return ActionOutcome.failed(
                "Notification failed for " + ", ".join(sorted(failed)),
                delivered=delivered,
                failed=failed,
            )
        return ActionOutcome.succeeded(
            f"Notified {len(delivered)} recipient(s)", delivered=delivered
        )
