"""
Built-in workflow template library.

Templates cover the common project-management automations: task follow-ups,
triage of unassigned work, overdue escalation, project milestones and review
handoffs. Step ids here are placeholders; instantiation replaces them.

Steps act on the task implied by the run (``ExecutionContext.task_id``)
unless a config names one explicitly.
"""

BUILTIN_TEMPLATES = [
    # ═══════════════════════════════════════════════════════════════════
    # TASK MANAGEMENT
    # ═══════════════════════════════════════════════════════════════════
    {
        "id": "tpl-task-follow-up",
        "name": "Task Follow-up",
        "description": "When a task is completed, create a follow-up task for the person who ran the workflow and tell them about it.",
        "category": "task-management",
        "tags": ["tasks", "follow-up"],
        "triggerStepId": "step-1",
        "steps": [
            {"id": "step-1", "kind": "trigger", "name": "Task completed", "config": {"triggerType": "task.completed"}, "nextSteps": ["step-2"]},
            {"id": "step-2", "kind": "action", "name": "Create follow-up", "config": {"actionType": "task.create", "taskData": {"title": "Follow up on completed work", "description": "Check the outcome of the completed task and plan next steps.", "assignee": "{{ context.acting_user }}", "priority": "Medium"}}, "nextSteps": ["step-3"]},
            {"id": "step-3", "kind": "action", "name": "Notify owner", "config": {"actionType": "notify", "recipients": ["{{ context.acting_user }}"], "title": "Follow-up created", "message": "Follow-up task {{ steps.step-2.taskId }} was created for you."}},
        ],
    },
    {
        "id": "tpl-unassigned-task-triage",
        "name": "Unassigned Task Triage",
        "description": "When a task is created without an assignee, assign it to the workflow runner and notify them.",
        "category": "task-management",
        "tags": ["tasks", "assignment", "triage"],
        "triggerStepId": "step-1",
        "steps": [
            {"id": "step-1", "kind": "trigger", "name": "Task created", "config": {"triggerType": "task.created"}, "nextSteps": ["step-2"]},
            {"id": "step-2", "kind": "condition", "name": "Has no assignee?", "config": {"conditionType": "task.assignee.empty"}, "nextSteps": ["step-3"], "elseSteps": []},
            {"id": "step-3", "kind": "action", "name": "Assign to runner", "config": {"actionType": "task.assign", "assignee": "{{ context.acting_user }}"}, "nextSteps": ["step-4"]},
            {"id": "step-4", "kind": "action", "name": "Notify new assignee", "config": {"actionType": "notify", "recipients": ["{{ context.acting_user }}"], "title": "Task assigned", "message": "Task {{ context.task_id }} had no assignee and was assigned to you."}},
        ],
    },
    {
        "id": "tpl-review-handoff",
        "name": "Review Handoff",
        "description": "When a task moves to Review, hand it to the reviewer and let them know. Set the reviewer with the 'reviewer' run variable.",
        "category": "task-management",
        "tags": ["tasks", "review", "handoff"],
        "triggerStepId": "step-1",
        "steps": [
            {"id": "step-1", "kind": "trigger", "name": "Task updated", "config": {"triggerType": "task.updated"}, "nextSteps": ["step-2"]},
            {"id": "step-2", "kind": "condition", "name": "In review?", "config": {"conditionType": "task.status.equals", "expectedValue": "Review"}, "nextSteps": ["step-3"], "elseSteps": []},
            {"id": "step-3", "kind": "action", "name": "Assign reviewer", "config": {"actionType": "task.assign", "assignee": "{{ variables.reviewer }}"}, "nextSteps": ["step-4"]},
            {"id": "step-4", "kind": "action", "name": "Notify reviewer", "config": {"actionType": "notify", "recipients": ["{{ variables.reviewer }}"], "title": "Review requested", "message": "Task {{ context.task_id }} is ready for your review."}},
        ],
    },
    # ═══════════════════════════════════════════════════════════════════
    # NOTIFICATIONS
    # ═══════════════════════════════════════════════════════════════════
    {
        "id": "tpl-overdue-escalation",
        "name": "Overdue Task Escalation",
        "description": "Daily check: raise an overdue task to High priority and alert its assignee. Tasks due today get a reminder instead.",
        "category": "notifications",
        "tags": ["tasks", "due-date", "escalation", "reminders"],
        "triggerStepId": "step-1",
        "steps": [
            {"id": "step-1", "kind": "trigger", "name": "Every day", "config": {"triggerType": "scheduled.daily"}, "nextSteps": ["step-2"]},
            {"id": "step-2", "kind": "condition", "name": "Overdue?", "config": {"conditionType": "task.dueDate.overdue"}, "nextSteps": ["step-3"], "elseSteps": ["step-5"]},
            {"id": "step-3", "kind": "action", "name": "Raise priority", "config": {"actionType": "task.update", "taskData": {"priority": "High"}}, "nextSteps": ["step-4"]},
            {"id": "step-4", "kind": "action", "name": "Alert about overdue task", "config": {"actionType": "notify", "recipients": ["{{ context.acting_user }}"], "title": "Task overdue", "message": "Task {{ context.task_id }} is overdue and was escalated to High priority.", "type": "warning"}},
            {"id": "step-5", "kind": "condition", "name": "Due today?", "config": {"conditionType": "task.dueDate.today"}, "nextSteps": ["step-6"], "elseSteps": []},
            {"id": "step-6", "kind": "action", "name": "Send reminder", "config": {"actionType": "notify", "recipients": ["{{ context.acting_user }}"], "title": "Task due today", "message": "Task {{ context.task_id }} is due today."}},
        ],
    },
    # ═══════════════════════════════════════════════════════════════════
    # PROJECT TRACKING
    # ═══════════════════════════════════════════════════════════════════
    {
        "id": "tpl-project-milestone",
        "name": "Project Milestone Watch",
        "description": "When a project changes, celebrate passing 75% completion or flag a project still below 25%.",
        "category": "project-tracking",
        "tags": ["projects", "progress", "milestones"],
        "triggerStepId": "step-1",
        "steps": [
            {"id": "step-1", "kind": "trigger", "name": "Project updated", "config": {"triggerType": "project.updated"}, "nextSteps": ["step-2"]},
            {"id": "step-2", "kind": "condition", "name": "Above 75%?", "config": {"conditionType": "project.completion.above", "percentage": 75}, "nextSteps": ["step-3"], "elseSteps": ["step-4"]},
            {"id": "step-3", "kind": "action", "name": "Announce milestone", "config": {"actionType": "notify", "recipients": ["{{ context.acting_user }}"], "title": "Milestone reached", "message": "Project {{ context.project_id }} is more than 75% complete.", "type": "success"}},
            {"id": "step-4", "kind": "condition", "name": "Below 25%?", "config": {"conditionType": "project.completion.below", "percentage": 25}, "nextSteps": ["step-5"], "elseSteps": []},
            {"id": "step-5", "kind": "action", "name": "Flag slow project", "config": {"actionType": "notify", "recipients": ["{{ context.acting_user }}"], "title": "Project at risk", "message": "Project {{ context.project_id }} is still below 25% complete.", "type": "warning"}},
        ],
    },
]
