"""Task table."""

from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import TaskPriority, TaskStatus
from db.base import BaseModel


class TaskRecord(BaseModel):
    """A project task.

    Attributes:
        project_id: Owning project (None for loose tasks)
        title / description: Free text
        status: To Do, In Progress, Review or Completed
        priority: Low, Medium or High
        assignee: Assigned user id, None when unassigned
        due_date: ISO date ("2026-10-20") or datetime, as entered
        created_by: User (or workflow run) that created the task
    """

    __tablename__ = "tasks"

    project_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    title: Mapped[str] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(nullable=False, default="")
    status: Mapped[str] = mapped_column(default=TaskStatus.TODO.value, index=True)
    priority: Mapped[str] = mapped_column(default=TaskPriority.MEDIUM.value)
    assignee: Mapped[Optional[str]] = mapped_column(nullable=True, index=True)
    due_date: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    created_by: Mapped[str] = mapped_column(nullable=False, default="")

    project: Mapped[Optional["ProjectRecord"]] = relationship(
        "ProjectRecord", back_populates="tasks", lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<TaskRecord(id={self.id}, title={self.title}, status={self.status})>"
