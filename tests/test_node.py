# tests/test_node.py
from dataclasses import FrozenInstanceError

import pytest

from workflow_builder.domain import InvalidTransitionError, NodeStatus, NodeType, StepNode, ValidationError


def test_create_assigns_fresh_id_and_defaults():
    a = StepNode.create(NodeType.start, "Submit")
    b = StepNode.create(label="Review")
    assert a.id.startswith("node_") and b.id.startswith("node_")
    assert a.id != b.id
    assert b.node_type == NodeType.process
    assert a.status == NodeStatus.pending
    assert a.completed_at is None


@pytest.mark.parametrize("label", ["", "   ", None])
def test_create_rejects_empty_label(label):
    with pytest.raises(ValidationError):
        StepNode.create(NodeType.process, label)


def test_create_in_terminal_status_stamps_completed_at():
    node = StepNode.create(NodeType.end, "Closed", initial_status=NodeStatus.completed)
    assert node.completed_at is not None


def test_completed_at_not_allowed_while_pending():
    done = StepNode.create(label="x", initial_status=NodeStatus.completed)
    with pytest.raises(ValidationError):
        StepNode(id="n1", label="x", status=NodeStatus.pending, completed_at=done.completed_at)


def test_happy_path_pending_in_progress_completed():
    node = StepNode.create(label="Review")
    node.set_status(NodeStatus.in_progress)
    assert node.completed_at is None
    node.set_status(NodeStatus.completed)
    assert node.status == NodeStatus.completed
    assert node.completed_at is not None


def test_direct_rejection_from_pending():
    node = StepNode.create(label="Review")
    node.set_status(NodeStatus.rejected)
    assert node.status == NodeStatus.rejected
    assert node.completed_at is not None


def test_in_progress_cannot_regress_to_pending():
    node = StepNode.create(label="Review")
    node.set_status(NodeStatus.in_progress)
    with pytest.raises(InvalidTransitionError):
        node.set_status(NodeStatus.pending)
    assert node.status == NodeStatus.in_progress


def test_pending_cannot_jump_to_completed():
    node = StepNode.create(label="Review")
    with pytest.raises(InvalidTransitionError):
        node.set_status(NodeStatus.completed)
    assert node.status == NodeStatus.pending


@pytest.mark.parametrize("terminal", [NodeStatus.completed, NodeStatus.rejected])
@pytest.mark.parametrize("target", list(NodeStatus))
def test_terminal_statuses_reject_every_transition(terminal, target):
    node = StepNode.create(label="Review")
    node.set_status(NodeStatus.in_progress)
    node.set_status(terminal)
    stamped = node.completed_at
    with pytest.raises(InvalidTransitionError):
        node.set_status(target)
    assert node.status == terminal
    assert node.completed_at == stamped


def test_id_cannot_be_reassigned():
    node = StepNode(id="A", label="Submit")
    with pytest.raises(FrozenInstanceError):
        node.id = "Z"
    assert node.id == "A"
    node.label = "Submit form"
    assert node.label == "Submit form"


def test_unknown_status_strings_raise_validation_error():
    node = StepNode.create(label="Review")
    with pytest.raises(ValidationError):
        node.set_status("done")
    with pytest.raises(ValidationError):
        node.can_transition_to("done")
    with pytest.raises(ValidationError):
        StepNode(id="A", label="Submit", node_type="milestone")
    assert node.status == NodeStatus.pending


def test_status_strings_are_accepted():
    node = StepNode.create(label="Review")
    node.set_status("in_progress")
    assert node.status == NodeStatus.in_progress
