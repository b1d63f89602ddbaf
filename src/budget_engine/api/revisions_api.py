"""
Revisions API - FastAPI router for the revision lifecycle, markup and promotion.
"""
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..errors import (
    AlreadyLinked,
    InvalidTransition,
    LinkError,
    NotApproved,
    ProjectCreationError,
    RevisionNotFound,
    SequenceError,
    ValidationError,
)
from ..revisions import (
    Budget,
    BudgetRevision,
    BudgetSummary,
    RevisionAction,
    RevisionStatus,
    blocked_reason,
    permissions,
)
from .state import engine

router = APIRouter(prefix="/api", tags=["revisions"])


# Pydantic models for API
class RevisionCreate(BaseModel):
    """Request model for branching a new revision."""
    created_by: Optional[str] = None
    source_revision_id: Optional[str] = None


class TransitionRequest(BaseModel):
    target_status: RevisionStatus
    user_id: Optional[str] = None


class MarkupUpdate(BaseModel):
    markup_pct: float
    allow_per_wbs: Optional[bool] = None


class BudgetPayload(BaseModel):
    id: str
    client_id: str
    site_name: str
    location: Optional[str] = None


class SummaryPayload(BaseModel):
    subtotal_cost: float = 0.0
    markup_pct: float = 0.0
    sell_price: float = 0.0


class PromoteRequest(BaseModel):
    budget: BudgetPayload
    summary: Optional[SummaryPayload] = None


class RetryLinkRequest(BaseModel):
    project_id: str


def _revision_payload(revision: BudgetRevision) -> dict:
    data = asdict(revision)
    data["status"] = revision.status.value
    data["permissions"] = _permissions_payload(revision.status, revision.projeto_id)
    return data


def _permissions_payload(status: RevisionStatus, projeto_id: Optional[str] = None) -> dict:
    perms = permissions(status, projeto_id)
    return {
        "status": status.value,
        "is_locked": perms.is_locked,
        "can_edit": perms.can_edit,
        "can_send": perms.can_send,
        "can_approve": perms.can_approve,
        "can_reject": perms.can_reject,
        "can_cancel": perms.can_cancel,
        "can_create_project": perms.can_create_project,
        "can_create_new_revision": perms.can_create_new_revision,
        "lock_reason": perms.lock_reason,
    }


def _get_revision(revision_id: str) -> BudgetRevision:
    try:
        return engine.revisions.get(revision_id)
    except RevisionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


# Endpoints

@router.get("/revisions/permissions/{status}")
async def get_permissions(status: RevisionStatus, projeto_id: Optional[str] = None):
    """Permission matrix for a status."""
    return _permissions_payload(status, projeto_id)


@router.get("/budgets/{budget_id}/revisions")
async def list_revisions(budget_id: str):
    """List revisions of a budget, newest first."""
    return [_revision_payload(r) for r in engine.revisions.list_revisions(budget_id)]


@router.post("/budgets/{budget_id}/revisions")
async def create_revision(budget_id: str, data: RevisionCreate):
    """Create the next DRAFT revision, optionally branched from another one."""
    try:
        revision = engine.revisions.create_revision(
            budget_id,
            created_by=data.created_by,
            source_revision_id=data.source_revision_id,
        )
    except RevisionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _revision_payload(revision)


@router.get("/revisions/{revision_id}")
async def get_revision(revision_id: str):
    return _revision_payload(_get_revision(revision_id))


@router.post("/revisions/{revision_id}/transition")
async def transition_revision(revision_id: str, req: TransitionRequest):
    """Move a revision to another status."""
    try:
        revision = engine.revisions.change_status(revision_id, req.target_status, req.user_id)
    except RevisionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail={
            "error": "invalid_transition",
            "message": str(e),
            "current": e.current.value,
            "requested": e.requested.value,
        })
    return _revision_payload(revision)


@router.get("/revisions/{revision_id}/markup")
async def get_markup(revision_id: str):
    _get_revision(revision_id)
    rule = engine.markup.get(revision_id)
    if rule is None:
        raise HTTPException(status_code=404, detail=f"No markup for revision '{revision_id}'")
    return asdict(rule)


@router.put("/revisions/{revision_id}/markup")
async def upsert_markup(revision_id: str, data: MarkupUpdate):
    """Save markup; only editable (DRAFT) revisions accept changes."""
    revision = _get_revision(revision_id)
    reason = blocked_reason(revision.status, RevisionAction.EDIT, revision.projeto_id)
    if reason:
        raise HTTPException(status_code=409, detail=reason)

    try:
        rule = engine.markup.upsert(revision_id, data.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"errors": e.errors})
    return asdict(rule)


@router.post("/revisions/{revision_id}/promote")
async def promote_revision(revision_id: str, req: PromoteRequest):
    """Create a project from an approved revision."""
    revision = _get_revision(revision_id)
    budget = Budget(**req.budget.model_dump())
    summary = BudgetSummary(revision_id=revision_id, **req.summary.model_dump()) if req.summary else None

    try:
        project = engine.promotion.promote(budget, revision, summary)
    except RevisionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (NotApproved, AlreadyLinked) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SequenceError as e:
        raise HTTPException(status_code=502, detail={"error": "sequence_error", "message": str(e)})
    except ProjectCreationError as e:
        raise HTTPException(status_code=502, detail={
            "error": "project_creation_error",
            "message": str(e),
            "order_number": e.order_number,
        })
    except LinkError as e:
        raise HTTPException(status_code=502, detail={
            "error": "link_error",
            "message": str(e),
            "project_id": e.project.id,
            "order_number": e.project.order_number,
        })
    return asdict(project)


@router.post("/revisions/{revision_id}/promote/retry-link")
async def retry_link(revision_id: str, req: RetryLinkRequest):
    """Finish a promotion whose link step failed."""
    revision = _get_revision(revision_id)
    project = engine.project_store.get(req.project_id)
    if project is None:
        raise HTTPException(status_code=404, detail=f"Project '{req.project_id}' not found")
    if project.revision_id != revision_id:
        raise HTTPException(status_code=400, detail="Project was created for another revision")

    try:
        linked = engine.promotion.retry_link(revision, project)
    except (NotApproved, AlreadyLinked) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LinkError as e:
        raise HTTPException(status_code=502, detail={"error": "link_error", "message": str(e)})
    return _revision_payload(linked)
