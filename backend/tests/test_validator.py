"""Tests for structural workflow validation."""

import pytest

from conftest import action, condition, make_workflow, trigger
from core.exceptions import (
    DanglingEdgeError,
    EdgeIntoTriggerError,
    MissingTriggerError,
    MultipleTriggersError,
    OrphanTriggerReferenceError,
    WorkflowValidationError,
)
from workflow.validator import is_valid, validate_workflow


@pytest.mark.unit
class TestValidateWorkflow:

    def test_valid_linear_workflow(self):
        wf = make_workflow(trigger(next_steps=["a"]), action("a", {}))
        assert validate_workflow(wf) is wf
        assert is_valid(wf)

    def test_missing_trigger(self):
        wf = make_workflow(action("a", {}), trigger_step_id="a")
        with pytest.raises(MissingTriggerError) as exc_info:
            validate_workflow(wf)
        assert exc_info.value.kind == "MissingTrigger"

    def test_empty_workflow_has_no_trigger(self):
        wf = make_workflow(trigger_step_id=None)
        with pytest.raises(MissingTriggerError):
            validate_workflow(wf)

    def test_multiple_triggers(self):
        wf = make_workflow(trigger("t1"), trigger("t2"), trigger_step_id="t1")
        with pytest.raises(MultipleTriggersError) as exc_info:
            validate_workflow(wf)
        assert exc_info.value.trigger_ids == ["t1", "t2"]

    def test_dangling_next_edge(self):
        wf = make_workflow(trigger(next_steps=["ghost"]))
        with pytest.raises(DanglingEdgeError) as exc_info:
            validate_workflow(wf)
        assert (exc_info.value.step_id, exc_info.value.target_id) == ("trigger", "ghost")

    def test_dangling_else_edge(self):
        wf = make_workflow(trigger(next_steps=["c"]), condition("c", {}, else_steps=["ghost"]))
        with pytest.raises(DanglingEdgeError):
            validate_workflow(wf)

    def test_edge_into_trigger(self):
        wf = make_workflow(trigger(next_steps=["a"]), action("a", {}, next_steps=["trigger"]))
        with pytest.raises(EdgeIntoTriggerError) as exc_info:
            validate_workflow(wf)
        assert exc_info.value.kind == "EdgeIntoTrigger"

    def test_trigger_reference_must_match(self):
        wf = make_workflow(trigger(), trigger_step_id="elsewhere")
        with pytest.raises(OrphanTriggerReferenceError):
            validate_workflow(wf)

    def test_trigger_reference_must_be_set(self):
        wf = make_workflow(trigger(), trigger_step_id=None)
        with pytest.raises(OrphanTriggerReferenceError):
            validate_workflow(wf)

    def test_checks_run_in_order(self):
        """A draft breaking several rules reports the earliest check."""
        wf = make_workflow(
            trigger("t1", next_steps=["ghost"]),
            trigger("t2"),
            trigger_step_id="nope",
        )
        with pytest.raises(MultipleTriggersError):
            validate_workflow(wf)

        wf = make_workflow(
            trigger(next_steps=["ghost"]),
            action("a", {}, next_steps=["trigger"]),
            trigger_step_id="nope",
        )
        with pytest.raises(DanglingEdgeError):
            validate_workflow(wf)

    def test_cycles_between_non_trigger_steps_allowed(self):
        wf = make_workflow(
            trigger(next_steps=["a"]),
            action("a", {}, next_steps=["b"]),
            action("b", {}, next_steps=["a"]),
        )
        assert is_valid(wf)

    def test_is_valid_false(self):
        assert not is_valid(make_workflow(trigger(next_steps=["ghost"])))

    def test_all_errors_share_base(self):
        for exc in (MissingTriggerError(), OrphanTriggerReferenceError(None, "t")):
            assert isinstance(exc, WorkflowValidationError)
            assert exc.status_code == 422
