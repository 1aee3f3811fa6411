"""Workflow service — validated persistence, template instantiation and manual runs."""

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from core.exceptions import ConflictError, NotFoundError
from db.models.execution import ExecutionRecord
from db.models.workflow import WorkflowRecord
from notifications.sink import ManagerNotificationSink
from services.base import BaseService
from services.task_service import TaskService
from workflow.actions import ActionExecutor
from workflow.conditions import ConditionEvaluator
from workflow.context import ExecutionContext
from workflow.engine import ExecutionRun, WorkflowEngine
from workflow.interfaces import NotificationSink, WorkflowStore
from workflow.models import Workflow
from workflow.templates import TemplateCatalog, get_template_catalog, instantiate_workflow
from workflow.validator import validate_workflow

logger = logging.getLogger(__name__)

# Workflow fields a patch may change; everything else is owned by the service.
PATCHABLE_FIELDS = ("name", "description", "is_active", "steps", "trigger_step_id")


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class WorkflowService(BaseService[WorkflowRecord], WorkflowStore):
    """Stores workflows as validated graphs and runs them on demand."""

    def __init__(
        self,
        db: AsyncSession,
        notification_sink: Optional[NotificationSink] = None,
        catalog: Optional[TemplateCatalog] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(WorkflowRecord, db)
        self._notification_sink = notification_sink
        self._catalog = catalog
        self._settings = settings or get_settings()

    @property
    def catalog(self) -> TemplateCatalog:
        return self._catalog or get_template_catalog()

    # ─── Mapping ───────────────────────────────────────────

    @staticmethod
    def to_workflow(record: WorkflowRecord) -> Workflow:
        return Workflow(
            id=record.id,
            name=record.name,
            description=record.description,
            created_by=record.created_by,
            organization_id=record.organization_id,
            project_id=record.project_id,
            is_active=record.is_active,
            steps=record.steps or [],
            trigger_step_id=record.trigger_step_id,
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @staticmethod
    def _record_values(workflow: Workflow) -> dict[str, Any]:
        document = workflow.to_document()
        return {
            "name": workflow.name,
            "description": workflow.description,
            "created_by": workflow.created_by,
            "organization_id": workflow.organization_id,
            "project_id": workflow.project_id,
            "is_active": workflow.is_active,
            "trigger_step_id": workflow.trigger_step_id,
            "steps": list(document["steps"].values()),
        }

    # ─── Store ─────────────────────────────────────────────

    async def get(self, workflow_id: str, organization_id: Optional[str] = None) -> Optional[Workflow]:
        if organization_id:
            record = await self.get_by_id_and_org(workflow_id, organization_id)
        else:
            record = await self.get_by_id(workflow_id)
        return self.to_workflow(record) if record else None

    async def get_or_404(self, workflow_id: str, organization_id: Optional[str] = None) -> Workflow:
        workflow = await self.get(workflow_id, organization_id)
        if workflow is None:
            raise NotFoundError(f"Workflow {workflow_id} not found")
        return workflow

    async def create(self, draft: Workflow) -> Workflow:
        """Validate and insert a new workflow."""
        validate_workflow(draft)
        values = self._record_values(draft)
        if draft.id:
            if await self.get_by_id(draft.id) is not None:
                raise ConflictError(f"Workflow {draft.id} already exists")
            values["id"] = draft.id
        record = await self.create_record(values)
        logger.info("Workflow created: %s (%s)", record.id, record.name)
        return self.to_workflow(record)

    async def save(self, workflow: Workflow) -> Workflow:
        """Validate and persist a modified workflow, bumping its version."""
        validate_workflow(workflow)
        record = await self.get_by_id(workflow.id)
        if record is None:
            raise NotFoundError(f"Workflow {workflow.id} not found")
        for key, value in self._record_values(workflow).items():
            setattr(record, key, value)
        record.version = record.version + 1
        await self.db.flush()
        await self.db.refresh(record)
        return self.to_workflow(record)

    async def update(self, workflow_id: str, patch: dict[str, Any]) -> Optional[Workflow]:
        """Apply a partial change (camelCase or snake_case keys) after validation."""
        current = await self.get(workflow_id)
        if current is None:
            return None
        merged = current.model_dump()
        for key, value in Workflow.model_validate(patch).model_dump(exclude_unset=True).items():
            if key in PATCHABLE_FIELDS:
                merged[key] = value
        return await self.save(Workflow.model_validate(merged))

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow, its steps and its run history."""
        if await self.get_by_id(workflow_id) is None:
            return False
        await self.db.execute(
            delete(ExecutionRecord).where(ExecutionRecord.workflow_id == workflow_id)
        )
        await self.delete_record(workflow_id)
        logger.info("Workflow deleted: %s", workflow_id)
        return True

    async def list_by_project(
        self, project_id: str, organization_id: Optional[str] = None
    ) -> list[Workflow]:
        query = select(WorkflowRecord).where(WorkflowRecord.project_id == project_id)
        if organization_id:
            query = query.where(WorkflowRecord.organization_id == organization_id)
        result = await self.db.execute(query.order_by(WorkflowRecord.created_at))
        return [self.to_workflow(r) for r in result.scalars().all()]

    async def list_workflows(self, organization_id: Optional[str] = None) -> list[Workflow]:
        records, _ = await self.list_records(organization_id=organization_id, limit=500)
        return [self.to_workflow(r) for r in records]

    # ─── Templates ─────────────────────────────────────────

    async def create_from_template(
        self,
        template_id: str,
        organization_id: str = "",
        created_by: str = "",
        project_id: str = "",
        name: Optional[str] = None,
        is_active: bool = False,
    ) -> Workflow:
        template = self.catalog.get(template_id)
        draft = instantiate_workflow(
            template,
            name=name,
            created_by=created_by,
            organization_id=organization_id,
            project_id=project_id,
            is_active=is_active,
        )
        workflow = await self.create(draft)
        logger.info("Workflow %s created from template %s", workflow.id, template_id)
        return workflow

    # ─── Execution ─────────────────────────────────────────

    def build_engine(self) -> WorkflowEngine:
        tasks = TaskService(self.db)
        return WorkflowEngine(
            evaluator=ConditionEvaluator(tasks, tz=self._settings.TIMEZONE),
            executor=ActionExecutor(tasks, self._notification_sink or ManagerNotificationSink()),
            max_steps=self._settings.MAX_STEPS_PER_RUN,
        )

    async def execute(
        self,
        workflow_id: str,
        context: Optional[ExecutionContext] = None,
        organization_id: Optional[str] = None,
    ) -> ExecutionRun:
        """Run a workflow manually and record the run."""
        workflow = await self.get_or_404(workflow_id, organization_id)
        context = context or ExecutionContext()
        context.project_id = context.project_id or workflow.project_id
        context.organization_id = context.organization_id or workflow.organization_id

        record = ExecutionRecord(
            workflow_id=workflow.id,
            organization_id=context.organization_id,
            triggered_by=context.acting_user,
            context=context.to_dict(),
        )
        self.db.add(record)
        await self.db.flush()

        run = await self.build_engine().execute(workflow, context, run_id=record.id)

        record.status = run.status.value
        record.started_at = _parse_timestamp(run.started_at)
        record.completed_at = _parse_timestamp(run.completed_at)
        record.results = [r.to_dict() for r in run.results]
        record.error = run.error
        await self.db.flush()

        logger.info("Workflow %s run %s finished: %s", workflow.id, run.run_id, run.status.value)
        return run

    async def list_executions(self, workflow_id: str, limit: int = 50) -> Sequence[ExecutionRecord]:
        records, _ = await self._executions().list_records(
            limit=limit, filters={"workflow_id": workflow_id}
        )
        return records

    async def get_execution(self, execution_id: str) -> Optional[ExecutionRecord]:
        return await self._executions().get_by_id(execution_id)

    def _executions(self) -> BaseService[ExecutionRecord]:
        return BaseService(ExecutionRecord, self.db)
