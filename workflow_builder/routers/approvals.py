from typing import List, Optional

from fastapi import APIRouter, Depends

from ..deps import RepoDep, auth_bearer
from ..repository import WorkflowRepository
from ..schemas import PendingApproval

router = APIRouter()


@router.get("/approvals/pending", response_model=List[PendingApproval])
def list_pending_approvals(
    role: Optional[str] = None,
    user: str = Depends(auth_bearer),
    repo: WorkflowRepository = RepoDep,
):
    """Approval gates still waiting for a decision, optionally for one role"""
    return repo.pending_approvals(role=role)
