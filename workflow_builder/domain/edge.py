"""
Approval Edge
Directed, role-scoped connection between two steps. A gated edge
(``approval_required=True``) holds a single-shot decision:
pending -> approved | rejected. Ungated edges are informational, always
traversable, and stay ``pending``.
"""

from dataclasses import FrozenInstanceError, dataclass
from datetime import datetime
from typing import Optional

from ..util.clock import utcnow
from ..util.ids import new_id
from .enums import Decision, EdgeStatus, parse_enum
from .errors import InvalidTransitionError, ValidationError


def is_decided(status: EdgeStatus) -> bool:
    match status:
        case EdgeStatus.approved | EdgeStatus.rejected:
            return True
        case EdgeStatus.pending:
            return False


@dataclass
class ApprovalEdge:
    id: str
    source: str
    target: str
    role: str
    approval_required: bool = True
    role_id: Optional[str] = None
    status: EdgeStatus = EdgeStatus.pending
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    comments: Optional[str] = None

    def __post_init__(self):
        if not self.id or not self.id.strip():
            raise ValidationError("edge id must not be empty")
        self.status = parse_enum(EdgeStatus, self.status, "edge status")
        _check_endpoints(self.source, self.target)
        _require_role(self.role)
        decided = is_decided(self.status)
        if not self.approval_required and decided:
            raise ValidationError(f"edge {self.id}: ungated edge must stay pending")
        if decided != (self.approved_at is not None) or decided != (self.approved_by is not None):
            raise ValidationError(
                f"edge {self.id}: approvedAt/approvedBy must be set exactly when the edge is decided"
            )

    def __setattr__(self, name, value):
        if name == "id" and "id" in self.__dict__:
            raise FrozenInstanceError(f"edge {self.id}: id cannot be reassigned")
        super().__setattr__(name, value)

    @classmethod
    def create(
        cls,
        source: str,
        target: str,
        role: str,
        approval_required: bool = True,
        role_id: Optional[str] = None,
    ) -> "ApprovalEdge":
        """New pending edge with a fresh id. Raises ValidationError on a self-loop."""
        _check_endpoints(source, target)
        _require_role(role)
        return cls(
            id=new_id("edge_"),
            source=source,
            target=target,
            role=role.strip(),
            approval_required=approval_required,
            role_id=role_id,
        )

    @property
    def is_traversable(self) -> bool:
        if not self.approval_required:
            return True
        return self.status == EdgeStatus.approved

    def decide(
        self,
        decision: Decision,
        approver_id: str,
        comments: Optional[str] = None,
    ) -> "ApprovalEdge":
        """Record the approval decision. Only a pending, gated edge can be decided."""
        decision = parse_enum(Decision, decision, "decision")
        if not self.approval_required:
            raise InvalidTransitionError(f"edge {self.id} has no approval gate")
        if self.status != EdgeStatus.pending:
            raise InvalidTransitionError(
                f"edge {self.id} already {self.status.value}; decisions are final"
            )
        if not approver_id or not approver_id.strip():
            raise ValidationError("approver id must not be empty")

        match decision:
            case Decision.approved:
                self.status = EdgeStatus.approved
            case Decision.rejected:
                self.status = EdgeStatus.rejected
        self.approved_at = utcnow()
        self.approved_by = approver_id
        self.comments = comments
        return self


def _check_endpoints(source: str, target: str) -> None:
    if not source or not target:
        raise ValidationError("edge source and target must not be empty")
    if source == target:
        raise ValidationError(f"self-loop on node {source} is not allowed")


def _require_role(role: Optional[str]) -> None:
    if role is None or not str(role).strip():
        raise ValidationError("edge role must not be empty")
