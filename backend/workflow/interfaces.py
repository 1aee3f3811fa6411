"""Contracts for the collaborators the engine depends on.

The engine never touches storage or transport directly; the surrounding
application supplies implementations of these (see ``services/`` and
``notifications/sink.py``).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Union

from workflow.models import Workflow


@dataclass(frozen=True)
class TaskFacts:
    """Read-only projection of a task used by condition evaluation."""

    id: str
    status: Optional[str] = None
    priority: Optional[str] = None
    assignee: Optional[str] = None
    due_date: Optional[Union[date, datetime]] = None
    project_id: Optional[str] = None


@dataclass(frozen=True)
class ProjectFacts:
    """Read-only projection of a project used by condition evaluation."""

    id: str
    progress: float = 0.0


@dataclass
class DeliveryReceipt:
    """Outcome of delivering one notification to one recipient."""

    recipient: str
    success: bool
    channel: str = ""
    error: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


class FactsProvider(ABC):
    @abstractmethod
    async def get_task(self, task_id: str) -> Optional[TaskFacts]:
        """Return the task, or None when it does not exist."""

    @abstractmethod
    async def get_project(self, project_id: str) -> Optional[ProjectFacts]:
        """Return the project, or None when it does not exist."""


class TaskSink(ABC):
    @abstractmethod
    async def create_task(self, data: dict[str, Any], context: Any) -> str:
        """Create a task and return its id."""

    @abstractmethod
    async def update_task(self, task_id: str, changes: dict[str, Any], context: Any) -> bool:
        """Apply only the given fields. False when the task does not exist."""

    @abstractmethod
    async def assign_task(self, task_id: str, assignee: str, context: Any) -> bool:
        """Set the assignee and nothing else. False when the task does not exist."""


class NotificationSink(ABC):
    @abstractmethod
    async def notify(
        self,
        recipients: list[str],
        title: str,
        message: str,
        channel: str = "in_app",
        level: str = "info",
        metadata: Optional[dict[str, Any]] = None,
    ) -> list[DeliveryReceipt]:
        """Deliver to every recipient and report each delivery."""


class WorkflowStore(ABC):
    @abstractmethod
    async def get(self, workflow_id: str) -> Optional[Workflow]:
        ...

    @abstractmethod
    async def create(self, draft: Workflow) -> Workflow:
        """Validate and persist a new workflow."""

    @abstractmethod
    async def update(self, workflow_id: str, patch: dict[str, Any]) -> Optional[Workflow]:
        """Validate and persist a change. None when the workflow does not exist."""

    @abstractmethod
    async def delete(self, workflow_id: str) -> bool:
        ...

    @abstractmethod
    async def list_by_project(self, project_id: str) -> list[Workflow]:
        ...
