from .enums import Decision, EdgeStatus, NodeStatus, NodeType, WorkflowStatus
from .errors import (
    DanglingReferenceError,
    DuplicateIdError,
    InvalidDocumentError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    SessionNotReadyError,
    ValidationError,
    WorkflowError,
)
from .node import StepNode
from .edge import ApprovalEdge
from .graph import WorkflowGraph
from .document import WorkflowDocument
from .projector import progress, project_graph

__all__ = [
    "Decision", "EdgeStatus", "NodeStatus", "NodeType", "WorkflowStatus",
    "WorkflowError", "ValidationError", "DuplicateIdError", "NotFoundError",
    "DanglingReferenceError", "InvalidTransitionError", "InvalidDocumentError",
    "PersistenceError", "SessionNotReadyError",
    "StepNode", "ApprovalEdge", "WorkflowGraph", "WorkflowDocument",
    "progress", "project_graph",
]
