"""Task and project service — the facts provider and task sink for workflow runs."""

import logging
from datetime import date, datetime
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models.project import ProjectRecord
from db.models.task import TaskRecord
from services.base import BaseService
from workflow.interfaces import FactsProvider, ProjectFacts, TaskFacts, TaskSink
from workflow.models import coerce_due_date

logger = logging.getLogger(__name__)

TASK_FIELDS = ("title", "description", "status", "priority", "assignee", "due_date")
NULLABLE_FIELDS = ("assignee", "due_date")


def _due_date_text(value: Any) -> Optional[str]:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value or None


class TaskService(BaseService[TaskRecord], FactsProvider, TaskSink):
    """Reads and writes tasks and projects through one session."""

    def __init__(self, db: AsyncSession):
        super().__init__(TaskRecord, db)

    # ─── Facts provider ────────────────────────────────────

    async def get_task(self, task_id: str) -> Optional[TaskFacts]:
        task = await self.get_by_id(task_id)
        if task is None:
            return None
        return TaskFacts(
            id=task.id,
            status=task.status,
            priority=task.priority,
            assignee=task.assignee,
            due_date=coerce_due_date(task.due_date),
            project_id=task.project_id,
        )

    async def get_project(self, project_id: str) -> Optional[ProjectFacts]:
        project = await self.db.get(ProjectRecord, project_id)
        if project is None:
            return None
        return ProjectFacts(id=project.id, progress=project.progress)

    # ─── Task sink ─────────────────────────────────────────

    async def create_task(self, data: dict[str, Any], context: Any = None) -> str:
        values = {k: data[k] for k in TASK_FIELDS if k in data}
        values["due_date"] = _due_date_text(values.get("due_date"))
        values["project_id"] = data.get("project_id") or None
        values["created_by"] = getattr(context, "acting_user", "") or ""
        task = await self.create_record(values)
        logger.info("Task created: %s (%s)", task.id, task.title)
        return task.id

    async def update_task(self, task_id: str, changes: dict[str, Any], context: Any = None) -> bool:
        values = {
            k: v for k, v in changes.items()
            if k in TASK_FIELDS and (v is not None or k in NULLABLE_FIELDS)
        }
        if "due_date" in values:
            values["due_date"] = _due_date_text(values["due_date"])
        task = await self.update_record(task_id, values, skip_none=False)
        if task is None:
            return False
        logger.info("Task updated: %s fields=%s", task_id, sorted(values))
        return True

    async def assign_task(self, task_id: str, assignee: str, context: Any = None) -> bool:
        task = await self.update_record(task_id, {"assignee": assignee})
        if task is None:
            return False
        logger.info("Task %s assigned to %s", task_id, assignee)
        return True

    # ─── Projects ──────────────────────────────────────────

    async def create_project(
        self,
        name: str,
        organization_id: str = "",
        description: str = "",
        progress: float = 0.0,
        project_id: Optional[str] = None,
    ) -> ProjectRecord:
        project = ProjectRecord(
            name=name,
            organization_id=organization_id,
            description=description,
            progress=progress,
        )
        if project_id:
            project.id = project_id
        self.db.add(project)
        await self.db.flush()
        await self.db.refresh(project)
        return project

    async def set_progress(self, project_id: str, progress: float) -> Optional[ProjectRecord]:
        project = await self.db.get(ProjectRecord, project_id)
        if project is None:
            return None
        project.progress = max(0.0, min(100.0, progress))
        await self.db.flush()
        return project

    async def list_tasks(self, project_id: str) -> Sequence[TaskRecord]:
        result = await self.db.execute(
            select(TaskRecord)
            .where(TaskRecord.project_id == project_id)
            .order_by(TaskRecord.created_at)
        )
        return result.scalars().all()
