"""
Repository Layer
Handles all database operations for workflow documents, steps and edges.
Every graph is revalidated on the way in and on the way out.
"""

import json
import logging
from collections import Counter
from datetime import datetime, UTC
from typing import Dict, List, Optional

from sqlalchemy import Engine, func
from sqlmodel import Session, SQLModel, select

from .converters import load_document
from .domain.document import WorkflowDocument
from .domain.enums import WorkflowStatus
from .domain.errors import InvalidDocumentError, InvalidTransitionError, NotFoundError
from .domain.graph import WorkflowGraph
from .domain.traversal import pending_approvals
from .models import EdgeTable, StepTable, WorkflowTable
from .schemas import (
    ApprovalEdgeDTO,
    PendingApproval,
    StepNodeDTO,
    WorkflowDocumentDTO,
    WorkflowListItem,
    WorkflowSummary,
)
from .util.clock import utcnow
from .util.ids import new_id

logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands datetimes back without tzinfo
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


class WorkflowRepository:
    """Repository for workflow document CRUD operations"""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_schema(self):
        """Create all database tables"""
        SQLModel.metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create(self, document: WorkflowDocument) -> WorkflowDocument:
        """
        Persist a new document as a draft.

        Raises:
            InvalidDocumentError: if the graph has structural violations
        """
        self._require_valid(document.graph)
        workflow_id = new_id("wf_")
        now = utcnow()

        with Session(self.engine) as session:
            session.add(WorkflowTable(
                id=workflow_id,
                name=document.name,
                description=document.description,
                version=document.version,
                status=WorkflowStatus.draft.value,
                created_by=document.created_by,
                created_at=now,
                updated_at=now,
            ))
            self._write_graph(session, workflow_id, document.graph)
            session.commit()

        logger.info("workflow created id=%s name=%s", workflow_id, document.name)
        return self.get(workflow_id)

    def get(self, workflow_id: str) -> Optional[WorkflowDocument]:
        """Load and revalidate a document, or None when it does not exist"""
        with Session(self.engine) as session:
            record = session.get(WorkflowTable, workflow_id)
            if not record:
                return None
            dto = self._to_dto(session, record)
        return load_document(dto)

    def list(self) -> List[WorkflowListItem]:
        """List all workflows"""
        with Session(self.engine) as session:
            records = session.exec(select(WorkflowTable).order_by(WorkflowTable.created_at)).all()
            node_counts = self._counts(session, StepTable)
            edge_counts = self._counts(session, EdgeTable)
            return [
                WorkflowListItem(
                    id=r.id,
                    name=r.name,
                    description=r.description,
                    version=r.version,
                    status=r.status,
                    created_by=r.created_by,
                    created_at=_as_utc(r.created_at),
                    updated_at=_as_utc(r.updated_at),
                    node_count=node_counts.get(r.id, 0),
                    edge_count=edge_counts.get(r.id, 0),
                )
                for r in records
            ]

    def update(self, workflow_id: str, document: WorkflowDocument) -> Optional[WorkflowDocument]:
        """
        Replace metadata and graph of a draft. Status, author and creation
        time stay as stored; status changes go through publish/archive.

        Raises:
            InvalidTransitionError: if the stored workflow is not a draft
            InvalidDocumentError: if the new graph has structural violations
        """
        with Session(self.engine) as session:
            record = session.get(WorkflowTable, workflow_id)
            if not record:
                return None
            if record.status != WorkflowStatus.draft.value:
                raise InvalidTransitionError(f"{record.status} workflows are immutable")
            self._require_valid(document.graph)

            record.name = document.name
            record.description = document.description
            record.version = document.version
            record.updated_at = utcnow()
            self._write_graph(session, workflow_id, document.graph)
            session.add(record)
            session.commit()

        logger.info("workflow updated id=%s", workflow_id)
        return self.get(workflow_id)

    def save_state(self, document: WorkflowDocument) -> WorkflowDocument:
        """
        Store status changes of an existing document: workflow lifecycle,
        node progress and edge decisions.
        """
        self._require_valid(document.graph)
        with Session(self.engine) as session:
            record = session.get(WorkflowTable, document.id)
            if not record:
                raise NotFoundError("workflow", str(document.id))
            record.status = document.status.value
            record.updated_at = utcnow()
            self._write_graph(session, record.id, document.graph)
            session.add(record)
            session.commit()
        return self.get(document.id)

    def delete(self, workflow_id: str) -> bool:
        """Delete workflow and all related rows"""
        with Session(self.engine) as session:
            record = session.get(WorkflowTable, workflow_id)
            if not record:
                return False
            self._delete_graph(session, workflow_id)
            session.delete(record)
            session.commit()
        logger.info("workflow deleted id=%s", workflow_id)
        return True

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def summary(self) -> WorkflowSummary:
        with Session(self.engine) as session:
            statuses = Counter(session.exec(select(WorkflowTable.status)).all())
        return WorkflowSummary(
            total=sum(statuses.values()),
            draft=statuses.get(WorkflowStatus.draft.value, 0),
            published=statuses.get(WorkflowStatus.published.value, 0),
            archived=statuses.get(WorkflowStatus.archived.value, 0),
        )

    def pending_approvals(self, role: Optional[str] = None) -> List[PendingApproval]:
        """Gated edges waiting for a decision across every non-archived workflow"""
        with Session(self.engine) as session:
            ids = session.exec(
                select(WorkflowTable.id)
                .where(WorkflowTable.status != WorkflowStatus.archived.value)
                .order_by(WorkflowTable.created_at)
            ).all()

        result = []
        for workflow_id in ids:
            document = self.get(workflow_id)
            for edge in pending_approvals(document.graph):
                if role is not None and edge.role != role:
                    continue
                result.append(PendingApproval(
                    workflow_id=workflow_id,
                    workflow_name=document.name,
                    edge_id=edge.id,
                    source=edge.source,
                    target=edge.target,
                    role=edge.role,
                    role_id=edge.role_id,
                ))
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _require_valid(graph: WorkflowGraph) -> None:
        violations = graph.validate()
        if violations:
            raise InvalidDocumentError(violations)

    @staticmethod
    def _counts(session: Session, table) -> Dict[str, int]:
        rows = session.exec(
            select(table.workflow_id, func.count()).group_by(table.workflow_id)
        ).all()
        return {workflow_id: count for workflow_id, count in rows}

    @staticmethod
    def _write_graph(session: Session, workflow_id: str, graph: WorkflowGraph) -> None:
        """Replace all step and edge rows of a workflow"""
        WorkflowRepository._delete_graph(session, workflow_id)

        for position, node in enumerate(graph.nodes):
            session.add(StepTable(
                workflow_id=workflow_id,
                position=position,
                node_id=node.id,
                label=node.label,
                node_type=node.node_type.value,
                status=node.status.value,
                description=node.description,
                assigned_to=node.assigned_to,
                completed_at=node.completed_at,
                metadata_json=json.dumps(node.metadata) if node.metadata is not None else None,
            ))

        for position, edge in enumerate(graph.edges):
            session.add(EdgeTable(
                workflow_id=workflow_id,
                position=position,
                edge_id=edge.id,
                source=edge.source,
                target=edge.target,
                role=edge.role,
                role_id=edge.role_id,
                approval_required=edge.approval_required,
                status=edge.status.value,
                approved_at=edge.approved_at,
                approved_by=edge.approved_by,
                comments=edge.comments,
            ))

    @staticmethod
    def _to_dto(session: Session, record: WorkflowTable) -> WorkflowDocumentDTO:
        steps = session.exec(
            select(StepTable).where(StepTable.workflow_id == record.id).order_by(StepTable.position)
        ).all()
        edges = session.exec(
            select(EdgeTable).where(EdgeTable.workflow_id == record.id).order_by(EdgeTable.position)
        ).all()

        return WorkflowDocumentDTO(
            id=record.id,
            name=record.name,
            description=record.description,
            version=record.version,
            status=record.status,
            created_by=record.created_by,
            created_at=_as_utc(record.created_at),
            updated_at=_as_utc(record.updated_at),
            nodes=[
                StepNodeDTO(
                    id=s.node_id,
                    label=s.label,
                    node_type=s.node_type,
                    status=s.status,
                    description=s.description,
                    assigned_to=s.assigned_to,
                    completed_at=_as_utc(s.completed_at),
                    metadata=json.loads(s.metadata_json) if s.metadata_json else None,
                )
                for s in steps
            ],
            edges=[
                ApprovalEdgeDTO(
                    id=e.edge_id,
                    source=e.source,
                    target=e.target,
                    role=e.role,
                    role_id=e.role_id,
                    approval_required=e.approval_required,
                    status=e.status,
                    approved_at=_as_utc(e.approved_at),
                    approved_by=e.approved_by,
                    comments=e.comments,
                )
                for e in edges
            ],
        )

    @staticmethod
    def _delete_graph(session: Session, workflow_id: str) -> None:
        for step in session.exec(select(StepTable).where(StepTable.workflow_id == workflow_id)):
            session.delete(step)
        for edge in session.exec(select(EdgeTable).where(EdgeTable.workflow_id == workflow_id)):
            session.delete(edge)
