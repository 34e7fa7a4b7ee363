"""
Format Converters
Translates between the wire form (WorkflowDocumentDTO) and the domain model
(WorkflowDocument + WorkflowGraph).

Deserialization never stops at the first bad entity: invalid nodes or edges
are collected as violations and handed to the graph so that validate()
reports every problem at once.
"""

from typing import Any, Dict, List

from .domain.document import WorkflowDocument
from .domain.edge import ApprovalEdge
from .domain.errors import InvalidDocumentError, ValidationError, WorkflowError
from .domain.graph import WorkflowGraph
from .domain.node import StepNode
from .schemas import ApprovalEdgeDTO, StepNodeDTO, WorkflowDocumentDTO


def node_to_dto(node: StepNode) -> StepNodeDTO:
    return StepNodeDTO(
        id=node.id,
        label=node.label,
        node_type=node.node_type,
        status=node.status,
        description=node.description,
        assigned_to=node.assigned_to,
        completed_at=node.completed_at,
        metadata=node.metadata,
    )


def edge_to_dto(edge: ApprovalEdge) -> ApprovalEdgeDTO:
    return ApprovalEdgeDTO(
        id=edge.id,
        source=edge.source,
        target=edge.target,
        role=edge.role,
        role_id=edge.role_id,
        approval_required=edge.approval_required,
        status=edge.status,
        approved_at=edge.approved_at,
        approved_by=edge.approved_by,
        comments=edge.comments,
    )


def document_to_dto(document: WorkflowDocument) -> WorkflowDocumentDTO:
    """Serialize a document; nodes and edges keep graph insertion order."""
    return WorkflowDocumentDTO(
        id=document.id,
        name=document.name,
        description=document.description,
        version=document.version,
        status=document.status,
        created_by=document.created_by,
        created_at=document.created_at,
        updated_at=document.updated_at,
        nodes=[node_to_dto(n) for n in document.graph.nodes],
        edges=[edge_to_dto(e) for e in document.graph.edges],
    )


def document_to_payload(document: WorkflowDocument) -> Dict[str, Any]:
    """JSON-ready dict in wire (camelCase) spelling."""
    return document_to_dto(document).model_dump(by_alias=True, mode="json")


def graph_from_dtos(nodes: List[StepNodeDTO], edges: List[ApprovalEdgeDTO]) -> WorkflowGraph:
    """Hydrate a graph; entity-level failures become violations instead of exceptions."""
    violations: List[WorkflowError] = []
    step_nodes: List[StepNode] = []
    for index, dto in enumerate(nodes):
        try:
            step_nodes.append(StepNode(
                id=dto.id,
                label=dto.label,
                node_type=dto.node_type,
                status=dto.status,
                description=dto.description,
                assigned_to=dto.assigned_to,
                completed_at=dto.completed_at,
                metadata=dto.metadata,
            ))
        except ValidationError as exc:
            exc.path = f"nodes[{index}]"
            violations.append(exc)

    approval_edges: List[ApprovalEdge] = []
    for index, dto in enumerate(edges):
        try:
            approval_edges.append(ApprovalEdge(
                id=dto.id,
                source=dto.source,
                target=dto.target,
                role=dto.role,
                approval_required=dto.approval_required,
                role_id=dto.role_id,
                status=dto.status,
                approved_at=dto.approved_at,
                approved_by=dto.approved_by,
                comments=dto.comments,
            ))
        except ValidationError as exc:
            exc.path = f"edges[{index}]"
            violations.append(exc)

    return WorkflowGraph.hydrate(step_nodes, approval_edges, violations)


def dto_to_document(dto: WorkflowDocumentDTO) -> WorkflowDocument:
    """Deserialize without validating the graph; see load_document()."""
    return WorkflowDocument(
        id=dto.id,
        name=dto.name,
        description=dto.description,
        version=dto.version,
        status=dto.status,
        created_by=dto.created_by,
        created_at=dto.created_at,
        updated_at=dto.updated_at,
        graph=graph_from_dtos(dto.nodes, dto.edges),
    )


def load_document(data: Any) -> WorkflowDocument:
    """
    Deserialize and revalidate a document before it becomes editable.

    Args:
        data: WorkflowDocumentDTO or a dict in wire form

    Raises:
        InvalidDocumentError: with every violation found in the graph
    """
    dto = data if isinstance(data, WorkflowDocumentDTO) else WorkflowDocumentDTO.model_validate(data)
    document = dto_to_document(dto)
    violations = document.graph.validate()
    if violations:
        raise InvalidDocumentError(violations)
    return document
