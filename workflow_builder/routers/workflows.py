from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..converters import document_to_dto, dto_to_document, edge_to_dto, node_to_dto
from ..deps import RepoDep, auth_bearer
from ..domain.document import WorkflowDocument
from ..domain.enums import WorkflowStatus
from ..domain.errors import InvalidTransitionError, NotFoundError
from ..domain.projector import project_graph
from ..domain.traversal import unblocked_nodes
from ..repository import WorkflowRepository
from ..schemas import (
    ApprovalEdgeDTO,
    DecisionRequest,
    NodeStatusRequest,
    StepNodeDTO,
    ValidationIssue,
    ValidationResult,
    WorkflowDocumentDTO,
    WorkflowListItem,
    WorkflowProgress,
    WorkflowSummary,
)

router = APIRouter()


def _load(repo: WorkflowRepository, workflow_id: str) -> WorkflowDocument:
    document = repo.get(workflow_id)
    if document is None:
        raise NotFoundError("workflow", workflow_id)
    return document


def _load_for_progress(repo: WorkflowRepository, workflow_id: str) -> WorkflowDocument:
    document = _load(repo, workflow_id)
    if document.status == WorkflowStatus.archived:
        raise InvalidTransitionError("archived workflows are read-only")
    return document


def _validation_result(document: WorkflowDocument) -> ValidationResult:
    issues = [ValidationIssue(**v.to_issue()) for v in document.graph.validate()]
    return ValidationResult(valid=not issues, issues=issues)


# --- Documents ---

@router.post("/workflows", response_model=WorkflowDocumentDTO, status_code=status.HTTP_201_CREATED)
def create_workflow(body: WorkflowDocumentDTO, user: str = Depends(auth_bearer), repo: WorkflowRepository = RepoDep):
    document = dto_to_document(body)
    if not document.created_by:
        document.created_by = user
    return document_to_dto(repo.create(document))


@router.get("/workflows", response_model=List[WorkflowListItem])
def list_workflows(user: str = Depends(auth_bearer), repo: WorkflowRepository = RepoDep):
    return repo.list()


@router.get("/workflows/summary", response_model=WorkflowSummary)
def workflow_summary(user: str = Depends(auth_bearer), repo: WorkflowRepository = RepoDep):
    """Counts of workflows by lifecycle status"""
    return repo.summary()


@router.post("/workflows:validate", response_model=ValidationResult)
def validate_document(body: WorkflowDocumentDTO, user: str = Depends(auth_bearer)):
    """Check a document before saving it; every violation is reported"""
    return _validation_result(dto_to_document(body))


@router.get("/workflows/{workflow_id}", response_model=WorkflowDocumentDTO)
def get_workflow(workflow_id: str, user: str = Depends(auth_bearer), repo: WorkflowRepository = RepoDep):
    return document_to_dto(_load(repo, workflow_id))


@router.put("/workflows/{workflow_id}", response_model=WorkflowDocumentDTO)
def update_workflow(
    workflow_id: str,
    body: WorkflowDocumentDTO,
    user: str = Depends(auth_bearer),
    repo: WorkflowRepository = RepoDep,
):
    updated = repo.update(workflow_id, dto_to_document(body))
    if updated is None:
        raise NotFoundError("workflow", workflow_id)
    return document_to_dto(updated)


@router.delete("/workflows/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workflow(workflow_id: str, user: str = Depends(auth_bearer), repo: WorkflowRepository = RepoDep):
    if not repo.delete(workflow_id):
        raise HTTPException(status_code=404, detail="Workflow not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/workflows/{workflow_id}:publish", response_model=WorkflowDocumentDTO)
def publish_workflow(workflow_id: str, user: str = Depends(auth_bearer), repo: WorkflowRepository = RepoDep):
    document = _load(repo, workflow_id).publish()
    return document_to_dto(repo.save_state(document))


@router.post("/workflows/{workflow_id}:archive", response_model=WorkflowDocumentDTO)
def archive_workflow(workflow_id: str, user: str = Depends(auth_bearer), repo: WorkflowRepository = RepoDep):
    document = _load(repo, workflow_id).archive()
    return document_to_dto(repo.save_state(document))


@router.post("/workflows/{workflow_id}:validate", response_model=ValidationResult)
def validate_workflow(workflow_id: str, user: str = Depends(auth_bearer), repo: WorkflowRepository = RepoDep):
    return _validation_result(_load(repo, workflow_id))


# --- Progress ---

@router.post("/workflows/{workflow_id}/nodes/{node_id}/status", response_model=StepNodeDTO)
def update_node_status(
    workflow_id: str,
    node_id: str,
    body: NodeStatusRequest,
    user: str = Depends(auth_bearer),
    repo: WorkflowRepository = RepoDep,
):
    document = _load_for_progress(repo, workflow_id)
    document.graph.update_node_status(node_id, body.status)
    saved = repo.save_state(document)
    return node_to_dto(saved.graph.get_node(node_id))


@router.post("/workflows/{workflow_id}/edges/{edge_id}/decision", response_model=ApprovalEdgeDTO)
def decide_edge(
    workflow_id: str,
    edge_id: str,
    body: DecisionRequest,
    user: str = Depends(auth_bearer),
    repo: WorkflowRepository = RepoDep,
):
    document = _load_for_progress(repo, workflow_id)
    document.graph.decide_edge(edge_id, body.decision, body.approver_id, body.comments)
    saved = repo.save_state(document)
    return edge_to_dto(saved.graph.get_edge(edge_id))


@router.get("/workflows/{workflow_id}/progress", response_model=WorkflowProgress)
def workflow_progress(workflow_id: str, user: str = Depends(auth_bearer), repo: WorkflowRepository = RepoDep):
    graph = _load(repo, workflow_id).graph
    return WorkflowProgress(**project_graph(graph), unblocked=unblocked_nodes(graph))
