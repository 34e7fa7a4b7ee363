"""
Step Node
A vertex of the workflow graph: one stage of an approval process with its
own lifecycle status.

Status state machine:
    pending -> in_progress -> completed
    pending -> in_progress -> rejected
    pending -> rejected
completed and rejected are terminal.
"""

from dataclasses import FrozenInstanceError, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..util.clock import utcnow
from ..util.ids import new_id
from .enums import NodeStatus, NodeType, parse_enum
from .errors import InvalidTransitionError, ValidationError


def allowed_node_transitions(status: NodeStatus) -> frozenset:
    """Statuses reachable in one step from ``status``."""
    match status:
        case NodeStatus.pending:
            return frozenset({NodeStatus.in_progress, NodeStatus.rejected})
        case NodeStatus.in_progress:
            return frozenset({NodeStatus.completed, NodeStatus.rejected})
        case NodeStatus.completed | NodeStatus.rejected:
            return frozenset()


def is_terminal_node_status(status: NodeStatus) -> bool:
    match status:
        case NodeStatus.completed | NodeStatus.rejected:
            return True
        case NodeStatus.pending | NodeStatus.in_progress:
            return False


@dataclass
class StepNode:
    """
    Workflow step.

    ``metadata`` carries collaborator payloads (condition groups, selected
    template ids) verbatim; the graph never looks inside it. ``id`` is
    fixed once the node exists.
    """

    id: str
    label: str
    node_type: NodeType = NodeType.process
    status: NodeStatus = NodeStatus.pending
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    completed_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = field(default=None)

    def __post_init__(self):
        if not self.id or not self.id.strip():
            raise ValidationError("node id must not be empty")
        self.node_type = parse_enum(NodeType, self.node_type, "node type")
        self.status = parse_enum(NodeStatus, self.status, "node status")
        _require_label(self.label)
        if self.completed_at is not None and not is_terminal_node_status(self.status):
            raise ValidationError(
                f"node {self.id}: completedAt must be absent while status is {self.status.value}"
            )

    def __setattr__(self, name, value):
        if name == "id" and "id" in self.__dict__:
            raise FrozenInstanceError(f"node {self.id}: id cannot be reassigned")
        super().__setattr__(name, value)

    @classmethod
    def create(
        cls,
        node_type: NodeType = NodeType.process,
        label: str = "",
        initial_status: NodeStatus = NodeStatus.pending,
        description: Optional[str] = None,
        assigned_to: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "StepNode":
        """New node with a fresh id. Raises ValidationError on an empty label."""
        _require_label(label)
        initial_status = parse_enum(NodeStatus, initial_status, "node status")
        return cls(
            id=new_id("node_"),
            label=label.strip(),
            node_type=parse_enum(NodeType, node_type, "node type"),
            status=initial_status,
            description=description,
            assigned_to=assigned_to,
            completed_at=utcnow() if is_terminal_node_status(initial_status) else None,
            metadata=metadata,
        )

    @property
    def is_terminal(self) -> bool:
        return is_terminal_node_status(self.status)

    def can_transition_to(self, new_status: NodeStatus) -> bool:
        return parse_enum(NodeStatus, new_status, "node status") in allowed_node_transitions(self.status)

    def set_status(self, new_status: NodeStatus) -> "StepNode":
        """Apply one state machine step; the node is left untouched on failure."""
        new_status = parse_enum(NodeStatus, new_status, "node status")
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"node {self.id}: cannot move from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
        self.completed_at = utcnow() if is_terminal_node_status(new_status) else None
        return self


def _require_label(label: Optional[str]) -> None:
    if label is None or not str(label).strip():
        raise ValidationError("node label must not be empty")
