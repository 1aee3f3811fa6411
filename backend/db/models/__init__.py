"""Database models for the workflow automation engine.

This module imports all models to ensure they are registered
with SQLAlchemy's declarative base.
"""

from db.models.workflow import WorkflowRecord
from db.models.execution import ExecutionRecord
from db.models.project import ProjectRecord
from db.models.task import TaskRecord

__all__ = [
    "WorkflowRecord",
    "ExecutionRecord",
    "ProjectRecord",
    "TaskRecord",
]
