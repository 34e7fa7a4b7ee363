"""
Domain Errors
Taxonomy raised by the workflow graph model. The API layer maps each class
to an HTTP status; nothing in the domain swallows them.
"""

from typing import Any, Dict, List, Optional


class WorkflowError(Exception):
    """Base class for every workflow domain error."""

    code = "WORKFLOW_ERROR"

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def to_issue(self) -> Dict[str, Any]:
        """Issue entry as exposed by the validate endpoint."""
        return {"path": self.path or "", "msg": self.message, "code": self.code}


class ValidationError(WorkflowError):
    """Malformed input to a constructor (empty label, self-loop, ...)."""

    code = "VALIDATION"


class DuplicateIdError(WorkflowError):
    """ID collision when adding a node or an edge."""

    code = "DUPLICATE_ID"

    def __init__(self, kind: str, entity_id: str, path: Optional[str] = None):
        super().__init__(f"{kind} id already present: {entity_id}", path)
        self.kind = kind
        self.entity_id = entity_id


class NotFoundError(WorkflowError):
    """Reference to a node, edge or document that does not exist."""

    code = "NOT_FOUND"

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class DanglingReferenceError(WorkflowError):
    """Edge endpoint names a node missing from the graph."""

    code = "DANGLING_REFERENCE"

    def __init__(self, edge_id: str, endpoint: str, node_id: str, path: Optional[str] = None):
        super().__init__(f"edge {edge_id} {endpoint} references missing node {node_id}", path)
        self.edge_id = edge_id
        self.endpoint = endpoint
        self.node_id = node_id


class InvalidTransitionError(WorkflowError):
    """Illegal status or decision transition."""

    code = "INVALID_TRANSITION"


class InvalidDocumentError(WorkflowError):
    """A loaded or submitted document failed structural validation."""

    code = "INVALID_DOCUMENT"

    def __init__(self, violations: List[WorkflowError]):
        super().__init__(f"workflow graph has {len(violations)} violation(s)")
        self.violations = list(violations)


class PersistenceError(WorkflowError):
    """Save or load against the persistence service failed."""

    code = "PERSISTENCE"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SessionNotReadyError(WorkflowError):
    """Editing session has no editable document yet."""

    code = "SESSION_NOT_READY"
