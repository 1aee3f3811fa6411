"""Database seed script — creates a demo project with tasks and one workflow per built-in template.

Safe to re-run: existing demo rows are left as they are.

Run: python -m scripts.seed
"""

import asyncio
import os
import sys
from datetime import date, timedelta

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DEMO_ORG_ID = "demo-org"
DEMO_PROJECT_ID = "demo-project"
DEMO_USER = "demo-user"


async def seed():
    """Seed the database with demo data."""
    from db.database import AsyncSessionLocal, init_db
    from db.models.project import ProjectRecord
    from services.task_service import TaskService
    from services.workflow_service import WorkflowService
    from workflow.templates import get_template_catalog

    await init_db()

    async with AsyncSessionLocal() as db:
        tasks = TaskService(db)

        # 1. Demo project
        project = await db.get(ProjectRecord, DEMO_PROJECT_ID)
        if project is None:
            project = await tasks.create_project(
                name="Website Relaunch",
                organization_id=DEMO_ORG_ID,
                description="Demo project for workflow automation",
                progress=40.0,
                project_id=DEMO_PROJECT_ID,
            )
            print(f"[seed] Created project: {project.name} ({project.id})")

            # 2. Demo tasks
            today = date.today()
            task_defs = [
                {"title": "Draft homepage copy", "status": "Completed", "priority": "Medium",
                 "assignee": DEMO_USER, "due_date": today - timedelta(days=3)},
                {"title": "Review navigation design", "status": "Review", "priority": "High",
                 "assignee": DEMO_USER, "due_date": today},
                {"title": "Migrate blog posts", "status": "In Progress", "priority": "Low",
                 "assignee": None, "due_date": today - timedelta(days=1)},
                {"title": "Set up analytics", "status": "To Do", "priority": "Medium",
                 "assignee": None, "due_date": today + timedelta(days=5)},
            ]
            for data in task_defs:
                task_id = await tasks.create_task({**data, "project_id": project.id})
                print(f"[seed] Created task: {data['title']} ({task_id})")
        else:
            print(f"[seed] Project exists: {project.name}")

        # 3. One workflow per template
        workflows = WorkflowService(db)
        existing = {wf.name for wf in await workflows.list_by_project(DEMO_PROJECT_ID)}
        for template in get_template_catalog().list():
            if template.name in existing:
                print(f"[seed] Workflow exists: {template.name}")
                continue
            workflow = await workflows.create_from_template(
                template.id,
                organization_id=DEMO_ORG_ID,
                created_by=DEMO_USER,
                project_id=DEMO_PROJECT_ID,
                is_active=True,
            )
            print(f"[seed] Created workflow: {workflow.name} ({workflow.id})")

        await db.commit()

    print("[seed] Done")


if __name__ == "__main__":
    asyncio.run(seed())
