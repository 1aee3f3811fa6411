"""FastAPI dependency injection functions."""

import logging
from dataclasses import dataclass
from typing import AsyncGenerator

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from db import database
from notifications.manager import NotificationManager, get_notification_manager
from notifications.sink import ManagerNotificationSink
from services.workflow_service import WorkflowService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Organization and user a request acts for. Authentication happens upstream."""

    organization_id: str
    user_id: str


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a database session for API endpoints.

    Yields an async SQLAlchemy session that is automatically
    committed on success or rolled back on error.
    """
    async with database.AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error("Database error: %s", e)
            await session.rollback()
            raise


async def get_actor(
    x_organization_id: str = Header(default=""),
    x_user_id: str = Header(default=""),
) -> Actor:
    return Actor(organization_id=x_organization_id, user_id=x_user_id)


def get_configured_notification_manager() -> NotificationManager:
    """The shared manager, configured from settings on first use."""
    manager = get_notification_manager()
    if not manager.get_status()["initialized"]:
        manager.configure_channels(get_settings().notification_channels)
    return manager


async def get_workflow_service(
    db: AsyncSession = Depends(get_db),
    manager: NotificationManager = Depends(get_configured_notification_manager),
) -> WorkflowService:
    return WorkflowService(db, notification_sink=ManagerNotificationSink(manager))
