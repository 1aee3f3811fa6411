"""Shared pytest fixtures for the workflow automation test suite.

Provides:
- In-memory async SQLite database
- AsyncSession factory
- FastAPI test client (httpx.AsyncClient)
- In-memory facts provider, task sink and notification sink for engine tests
- Small workflow-building helpers
"""

import os
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Override settings BEFORE any app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("TIMEZONE", "UTC")

from db.base import Base  # noqa: E402
from workflow.actions import ActionExecutor  # noqa: E402
from workflow.conditions import ConditionEvaluator  # noqa: E402
from workflow.engine import WorkflowEngine  # noqa: E402
from workflow.interfaces import (  # noqa: E402
    DeliveryReceipt,
    FactsProvider,
    NotificationSink,
    ProjectFacts,
    TaskFacts,
    TaskSink,
)
from workflow.models import Workflow  # noqa: E402

# Fixed evaluation instant for due-date predicates: Wednesday 2026-10-14 12:00 UTC
FIXED_NOW = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------

class InMemoryFacts(FactsProvider):
    """Facts provider backed by plain dicts."""

    def __init__(self, tasks: dict = None, projects: dict = None, fail: bool = False):
        self.tasks: dict[str, TaskFacts] = dict(tasks or {})
        self.projects: dict[str, ProjectFacts] = dict(projects or {})
        self.fail = fail

    def add_task(self, task_id: str, **fields) -> TaskFacts:
        self.tasks[task_id] = TaskFacts(id=task_id, **fields)
        return self.tasks[task_id]

    def add_project(self, project_id: str, progress: float) -> ProjectFacts:
        self.projects[project_id] = ProjectFacts(id=project_id, progress=progress)
        return self.projects[project_id]

    async def get_task(self, task_id: str) -> Optional[TaskFacts]:
        if self.fail:
            raise ConnectionError("task store unavailable")
        return self.tasks.get(task_id)

    async def get_project(self, project_id: str) -> Optional[ProjectFacts]:
        if self.fail:
            raise ConnectionError("project store unavailable")
        return self.projects.get(project_id)


class RecordingTaskSink(TaskSink):
    """Task sink that records every call; optionally raises on a given operation."""

    def __init__(self, known_tasks: set = None, raise_on: Optional[str] = None):
        self.created: list[dict] = []
        self.updates: list[tuple[str, dict]] = []
        self.assignments: list[tuple[str, str]] = []
        self.known_tasks = set(known_tasks or ())
        self.raise_on = raise_on

    def _maybe_raise(self, operation: str) -> None:
        if self.raise_on == operation:
            raise RuntimeError(f"{operation} exploded")

    async def create_task(self, data: dict[str, Any], context: Any) -> str:
        self._maybe_raise("create")
        task_id = f"task-{len(self.created) + 1}"
        self.created.append(data)
        self.known_tasks.add(task_id)
        return task_id

    async def update_task(self, task_id: str, changes: dict[str, Any], context: Any) -> bool:
        self._maybe_raise("update")
        if task_id not in self.known_tasks:
            return False
        self.updates.append((task_id, changes))
        return True

    async def assign_task(self, task_id: str, assignee: str, context: Any) -> bool:
        self._maybe_raise("assign")
        if task_id not in self.known_tasks:
            return False
        self.assignments.append((task_id, assignee))
        return True


class RecordingNotificationSink(NotificationSink):
    """Notification sink that records deliveries; recipients in ``failing`` fail."""

    def __init__(self, failing: set = None):
        self.sent: list[dict] = []
        self.failing = set(failing or ())

    async def notify(self, recipients, title, message, channel="in_app", level="info", metadata=None):
        receipts = []
        for recipient in recipients:
            ok = recipient not in self.failing
            if ok:
                self.sent.append({"recipient": recipient, "title": title, "message": message,
                                  "channel": channel, "level": level})
            receipts.append(DeliveryReceipt(recipient=recipient, success=ok, channel=channel,
                                            error=None if ok else "mailbox full"))
        return receipts


@pytest.fixture
def facts() -> InMemoryFacts:
    return InMemoryFacts()


@pytest.fixture
def task_sink() -> RecordingTaskSink:
    return RecordingTaskSink(known_tasks={"T-1", "T-2"})


@pytest.fixture
def notification_sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def evaluator(facts) -> ConditionEvaluator:
    return ConditionEvaluator(facts, tz="UTC", clock=lambda: FIXED_NOW)


@pytest.fixture
def executor(task_sink, notification_sink) -> ActionExecutor:
    return ActionExecutor(task_sink, notification_sink)


@pytest.fixture
def engine(evaluator, executor) -> WorkflowEngine:
    return WorkflowEngine(evaluator, executor, max_steps=50)


# ---------------------------------------------------------------------------
# Workflow helpers
# ---------------------------------------------------------------------------

def trigger(step_id: str = "trigger", next_steps=None) -> dict:
    return {"id": step_id, "kind": "trigger", "config": {"triggerType": "manual"},
            "nextSteps": list(next_steps or [])}


def condition(step_id: str, config: dict, next_steps=None, else_steps=None) -> dict:
    return {"id": step_id, "kind": "condition", "config": config,
            "nextSteps": list(next_steps or []), "elseSteps": list(else_steps or [])}


def action(step_id: str, config: dict, next_steps=None) -> dict:
    return {"id": step_id, "kind": "action", "config": config,
            "nextSteps": list(next_steps or [])}


def make_workflow(*steps: dict, trigger_step_id: str = "trigger", is_active: bool = True, **fields) -> Workflow:
    return Workflow(
        id=fields.pop("id", "wf-1"),
        steps=list(steps),
        trigger_step_id=trigger_step_id,
        is_active=is_active,
        **fields,
    )


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_engine():
    """Create an async engine on a private in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    # Import all models so Base.metadata knows about them
    import db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide a DB session that commits at the end of the test."""
    async with session_factory() as session:
        yield session
        await session.commit()


# ---------------------------------------------------------------------------
# App / HTTP client fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(db_engine, session_factory):
    """Create a FastAPI app instance wired to the test database."""
    import db.database as db_mod
    import notifications.manager as manager_mod

    original_engine = db_mod.engine
    original_session = db_mod.AsyncSessionLocal
    original_manager = manager_mod._manager

    db_mod.engine = db_engine
    db_mod.AsyncSessionLocal = session_factory
    manager_mod._manager = None

    from app.main import create_app
    test_app = create_app()

    yield test_app

    db_mod.engine = original_engine
    db_mod.AsyncSessionLocal = original_session
    manager_mod._manager = original_manager


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client acting for a fixed organization and user."""
    transport = ASGITransport(app=app)
    headers = {"X-Organization-Id": "org-1", "X-User-Id": "user-1"}
    async with AsyncClient(
        transport=transport, base_url="http://test", follow_redirects=True, headers=headers
    ) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Test data fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def test_project(db_session):
    """Create a project at 40% with one unassigned task."""
    from db.models.project import ProjectRecord
    from db.models.task import TaskRecord

    project = ProjectRecord(
        id=str(uuid4()),
        organization_id="org-1",
        name="Test Project",
        progress=40.0,
    )
    db_session.add(project)
    await db_session.flush()

    task = TaskRecord(
        id=str(uuid4()),
        project_id=project.id,
        title="Unassigned task",
        status="To Do",
        priority="Low",
    )
    db_session.add(task)
    await db_session.flush()
    await db_session.commit()
    return project, task
