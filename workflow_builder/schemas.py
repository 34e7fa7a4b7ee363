"""
Wire DTOs
Serialized form of a Workflow Document. Field names are camelCase on the
wire (``nodeType``, ``approvalRequired``, ``createdBy`` ...) and snake_case in
Python; both spellings are accepted on input.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .domain.enums import Decision, EdgeStatus, NodeStatus, NodeType, WorkflowStatus


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Graph ---

class StepNodeDTO(WireModel):
    id: str
    label: str
    node_type: NodeType = NodeType.process
    status: NodeStatus = NodeStatus.pending
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    completed_at: Optional[datetime] = None
    # Opaque collaborator payload (condition groups, template ids)
    metadata: Optional[Dict[str, Any]] = None


class ApprovalEdgeDTO(WireModel):
    id: str
    source: str
    target: str
    role: str
    role_id: Optional[str] = None
    approval_required: bool = True
    status: EdgeStatus = EdgeStatus.pending
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    comments: Optional[str] = None


# --- Workflows ---

class WorkflowDocumentDTO(WireModel):
    """Full document: metadata plus ordered nodes and edges"""
    id: Optional[str] = None
    name: str
    description: str = ""
    version: str = "1.0"
    status: WorkflowStatus = WorkflowStatus.draft
    created_by: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    nodes: List[StepNodeDTO] = Field(default_factory=list)
    edges: List[ApprovalEdgeDTO] = Field(default_factory=list)


class WorkflowListItem(WireModel):
    """Workflow summary for list view"""
    id: str
    name: str
    description: str
    version: str
    status: WorkflowStatus
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    node_count: int = 0
    edge_count: int = 0


class WorkflowSummary(WireModel):
    total: int
    draft: int
    published: int
    archived: int


# --- Status / decisions ---

class NodeStatusRequest(WireModel):
    status: NodeStatus


class DecisionRequest(WireModel):
    decision: Decision
    approver_id: str
    comments: Optional[str] = None


class PendingApproval(WireModel):
    workflow_id: str
    workflow_name: str
    edge_id: str
    source: str
    target: str
    role: str
    role_id: Optional[str] = None


# --- Validation / projection ---

class ValidationIssue(WireModel):
    path: str
    msg: str
    code: str
    level: str = "error"


class ValidationResult(WireModel):
    valid: bool
    issues: List[ValidationIssue]


class NodeProgress(WireModel):
    id: str
    label: str
    status: NodeStatus
    progress: float


class EdgeTraversal(WireModel):
    id: str
    traversable: bool


class WorkflowProgress(WireModel):
    nodes: List[NodeProgress]
    edges: List[EdgeTraversal]
    progress: float
    unblocked: List[str] = Field(default_factory=list)
