"""
Database Models
One row per workflow document plus one row per step and per edge. Steps and
edges keep their position so the serialized order survives a round trip.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class WorkflowTable(SQLModel, table=True):
    __tablename__ = "workflows"

    id: str = Field(primary_key=True)
    name: str
    description: str = ""
    version: str = "1.0"
    status: str = Field(default="draft", index=True)  # draft | published | archived
    created_by: str = ""
    created_at: datetime
    updated_at: datetime


class StepTable(SQLModel, table=True):
    """Workflow step (graph node)"""
    __tablename__ = "steps"

    pk: Optional[int] = Field(default=None, primary_key=True)
    workflow_id: str = Field(foreign_key="workflows.id", index=True)
    position: int
    node_id: str  # Stable node identifier within the graph
    label: str
    node_type: str
    status: str
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    completed_at: Optional[datetime] = None
    metadata_json: Optional[str] = None  # JSON serialized collaborator payload


class EdgeTable(SQLModel, table=True):
    """Approval edge between two steps"""
    __tablename__ = "edges"

    pk: Optional[int] = Field(default=None, primary_key=True)
    workflow_id: str = Field(foreign_key="workflows.id", index=True)
    position: int
    edge_id: str
    source: str
    target: str
    role: str
    role_id: Optional[str] = None
    approval_required: bool = True
    status: str = Field(default="pending", index=True)
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    comments: Optional[str] = None
