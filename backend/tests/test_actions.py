"""Tests for action execution and placeholder resolution."""

from datetime import date

import pytest

from conftest import RecordingNotificationSink, RecordingTaskSink, action
from core.exceptions import StepConfigError
from workflow.actions import ActionExecutor, ActionOutcome
from workflow.context import ExecutionContext, resolve_value
from workflow.models import parse_step


def _step(config: dict, step_id: str = "act"):
    return parse_step(action(step_id, config))


@pytest.mark.unit
class TestPlaceholders:

    @pytest.fixture
    def ctx(self):
        ctx = ExecutionContext(
            project_id="P-1", organization_id="org-1", acting_user="ana", task_id="T-1",
            variables={"owner": "lee", "limit": 5, "tags": ["a", "b"], "empty": None},
        )
        ctx.record_output("create", {"taskId": "T-7", "title": "Follow up"})
        return ctx

    def test_whole_string_keeps_type(self, ctx):
        assert resolve_value("{{ variables.limit }}", ctx) == 5
        assert resolve_value("{{variables.tags}}", ctx) == ["a", "b"]

    def test_embedded_is_text(self, ctx):
        assert resolve_value("Limit {{ variables.limit }} for {{ context.acting_user }}", ctx) == "Limit 5 for ana"

    def test_step_outputs(self, ctx):
        assert resolve_value("{{ steps.create.taskId }}", ctx) == "T-7"

    def test_list_index(self, ctx):
        assert resolve_value("{{ variables.tags.1 }}", ctx) == "b"

    def test_unresolved_left_as_written(self, ctx):
        assert resolve_value("{{ variables.nobody }}", ctx) == "{{ variables.nobody }}"
        assert resolve_value("Hi {{ steps.ghost.taskId }}", ctx) == "Hi {{ steps.ghost.taskId }}"

    def test_none_embeds_as_empty(self, ctx):
        assert resolve_value("[{{ variables.empty }}]", ctx) == "[]"
        assert resolve_value("{{ variables.empty }}", ctx) is None

    def test_nested_structures(self, ctx):
        resolved = resolve_value(
            {"taskData": {"taskId": "{{ context.task_id }}", "labels": ["{{ variables.owner }}", 3]}}, ctx
        )
        assert resolved == {"taskData": {"taskId": "T-1", "labels": ["lee", 3]}}

    def test_non_strings_untouched(self, ctx):
        assert resolve_value(42, ctx) == 42
        assert resolve_value("plain text", ctx) == "plain text"


@pytest.mark.unit
class TestActionExecutor:

    async def test_create_task(self, executor, task_sink):
        ctx = ExecutionContext(project_id="P-1", acting_user="ana")
        outcome = await executor.execute(
            _step({"actionType": "task.create", "taskData": {"title": "Follow up", "dueDate": "2026-10-20"}}), ctx
        )
        assert outcome.success
        assert outcome.output == {"taskId": "task-1", "title": "Follow up"}
        created = task_sink.created[0]
        assert created["title"] == "Follow up"
        assert created["project_id"] == "P-1"
        assert created["due_date"] == date(2026, 10, 20)
        assert created["priority"] == "Medium"

    async def test_create_task_defaults(self, executor, task_sink):
        outcome = await executor.execute(_step({"actionType": "task.create"}), ExecutionContext())
        assert outcome.success
        assert task_sink.created[0]["title"] == "New Task"
        assert task_sink.created[0]["status"] == "To Do"

    async def test_update_applies_only_given_fields(self, executor, task_sink):
        outcome = await executor.execute(
            _step({"actionType": "task.update", "taskData": {"taskId": "T-1", "priority": "High", "assignee": None}}),
            ExecutionContext(),
        )
        assert outcome.success
        assert task_sink.updates == [("T-1", {"priority": "High", "assignee": None})]
        assert outcome.output["updatedFields"] == ["assignee", "priority"]

    async def test_update_uses_context_task(self, executor, task_sink):
        outcome = await executor.execute(
            _step({"actionType": "task.update", "taskData": {"status": "Review"}}), ExecutionContext(task_id="T-2")
        )
        assert outcome.success
        assert task_sink.updates == [("T-2", {"status": "Review"})]

    async def test_update_without_task(self, executor, task_sink):
        outcome = await executor.execute(
            _step({"actionType": "task.update", "taskData": {"status": "Review"}}), ExecutionContext()
        )
        assert not outcome.success
        assert "No task" in outcome.error
        assert task_sink.updates == []

    async def test_update_unknown_task(self, executor):
        outcome = await executor.execute(
            _step({"actionType": "task.update", "taskData": {"taskId": "T-404", "status": "Review"}}),
            ExecutionContext(),
        )
        assert not outcome.success
        assert outcome.error == "Task T-404 not found"

    async def test_assign_with_placeholder(self, executor, task_sink):
        outcome = await executor.execute(
            _step({"actionType": "task.assign", "assignee": "{{ variables.reviewer }}"}),
            ExecutionContext(task_id="T-1", variables={"reviewer": "kim"}),
        )
        assert outcome.success
        assert outcome.output == {"taskId": "T-1", "assignee": "kim"}
        assert task_sink.assignments == [("T-1", "kim")]

    async def test_assign_unresolved_placeholder_is_literal(self, executor, task_sink):
        outcome = await executor.execute(
            _step({"actionType": "task.assign", "assignee": "{{ variables.reviewer }}"}),
            ExecutionContext(task_id="T-1"),
        )
        assert outcome.success
        assert task_sink.assignments == [("T-1", "{{ variables.reviewer }}")]

    async def test_notify(self, executor, notification_sink):
        outcome = await executor.execute(
            _step({"actionType": "notify", "recipients": ["ana", "lee"], "title": "Heads up",
                   "message": "Task {{ context.task_id }} moved", "type": "warning"}),
            ExecutionContext(task_id="T-1"),
        )
        assert outcome.success
        assert outcome.output == {"delivered": ["ana", "lee"]}
        assert notification_sink.sent[0]["message"] == "Task T-1 moved"
        assert notification_sink.sent[0]["level"] == "warning"

    async def test_notify_partial_failure(self, task_sink):
        executor = ActionExecutor(task_sink, RecordingNotificationSink(failing={"lee"}))
        outcome = await executor.execute(
            _step({"actionType": "notify", "recipients": ["ana", "lee"], "message": "hi"}), ExecutionContext()
        )
        assert not outcome.success
        assert outcome.output["delivered"] == ["ana"]
        assert outcome.output["failed"] == {"lee": "mailbox full"}

    async def test_legacy_notify(self, executor, notification_sink):
        outcome = await executor.execute(
            _step({"actionType": "notification.send", "recipient": "ana", "message": "hi"}), ExecutionContext()
        )
        assert outcome.success
        assert notification_sink.sent[0]["recipient"] == "ana"

    async def test_sink_exception_becomes_failure(self, notification_sink):
        executor = ActionExecutor(RecordingTaskSink(raise_on="create"), notification_sink)
        outcome = await executor.execute(_step({"actionType": "task.create"}), ExecutionContext())
        assert not outcome.success
        assert isinstance(outcome.exception, RuntimeError)
        assert "create exploded" in outcome.error

    async def test_bad_config_becomes_failure(self, executor):
        outcome = await executor.execute(_step({"actionType": "task.teleport"}), ExecutionContext())
        assert not outcome.success
        assert isinstance(outcome.exception, StepConfigError)


@pytest.mark.unit
class TestActionOutcome:

    def test_succeeded(self):
        outcome = ActionOutcome.succeeded("ok", taskId="T-1")
        assert outcome.success and outcome.output == {"taskId": "T-1"} and outcome.error is None

    def test_failed(self):
        outcome = ActionOutcome.failed("nope")
        assert not outcome.success
        assert outcome.detail == outcome.error == "nope"
