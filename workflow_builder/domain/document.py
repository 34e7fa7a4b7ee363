"""
Workflow Document
Versioned, persisted unit: workflow metadata plus the graph it owns.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import WorkflowStatus
from .errors import InvalidTransitionError, ValidationError
from .graph import WorkflowGraph


@dataclass
class WorkflowDocument:
    name: str
    created_by: str
    description: str = ""
    version: str = "1.0"
    status: WorkflowStatus = WorkflowStatus.draft
    graph: WorkflowGraph = field(default_factory=WorkflowGraph)
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("workflow name must not be empty")
        self.status = WorkflowStatus(self.status)

    @classmethod
    def new(
        cls,
        name: str,
        created_by: str,
        description: str = "",
        version: str = "1.0",
    ) -> "WorkflowDocument":
        """Fresh draft with an empty graph."""
        return cls(name=name, created_by=created_by, description=description, version=version)

    @property
    def is_editable(self) -> bool:
        """Only drafts accept structural edits."""
        return self.status == WorkflowStatus.draft

    def publish(self) -> "WorkflowDocument":
        match self.status:
            case WorkflowStatus.draft:
                self.status = WorkflowStatus.published
            case WorkflowStatus.published | WorkflowStatus.archived:
                raise InvalidTransitionError(f"cannot publish a {self.status.value} workflow")
        return self

    def archive(self) -> "WorkflowDocument":
        match self.status:
            case WorkflowStatus.draft | WorkflowStatus.published:
                self.status = WorkflowStatus.archived
            case WorkflowStatus.archived:
                raise InvalidTransitionError("workflow is already archived")
        return self
