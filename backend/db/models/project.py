"""Project table."""

from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import BaseModel


class ProjectRecord(BaseModel):
    """A project whose tasks workflows act on.

    Attributes:
        organization_id: Owning organization
        name: Project name
        description: Project description
        progress: Completion percentage, 0-100
    """

    __tablename__ = "projects"

    organization_id: Mapped[str] = mapped_column(nullable=False, default="", index=True)
    name: Mapped[str] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(nullable=False, default="")
    progress: Mapped[float] = mapped_column(default=0.0)

    tasks: Mapped[list["TaskRecord"]] = relationship(
        "TaskRecord",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<ProjectRecord(id={self.id}, name={self.name}, progress={self.progress})>"
