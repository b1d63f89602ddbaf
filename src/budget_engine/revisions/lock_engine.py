"""
Revision Lock Engine - what may be done to a revision in its current status.

State machine:
    DRAFT -> SENT -> APPROVED
      |        |---> REJECTED
      |        '---> CANCELED
      '------------> CANCELED

APPROVED, REJECTED and CANCELED accept no transitions. A locked revision is
edited by branching a new DRAFT revision from it, which is always allowed.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, assert_never

from ..errors import InvalidTransition
from .models import BudgetRevision, RevisionStatus

logger = logging.getLogger(__name__)


class RevisionAction(str, Enum):
    EDIT = "edit"
    SEND = "send"
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    CREATE_PROJECT = "create_project"
    CREATE_NEW_REVISION = "create_new_revision"


@dataclass(frozen=True)
class PermissionSet:
    """Actions allowed on a revision, plus why it is locked (if it is)."""
    status: RevisionStatus
    can_edit: bool = False
    can_send: bool = False
    can_approve: bool = False
    can_reject: bool = False
    can_cancel: bool = False
    can_create_project: bool = False
    can_create_new_revision: bool = True
    lock_reason: str = ""

    @property
    def is_locked(self) -> bool:
        return not self.can_edit

    def allows(self, action: RevisionAction) -> bool:
        return getattr(self, f"can_{action.value}")


def permissions(status: RevisionStatus, projeto_id: Optional[str] = None) -> PermissionSet:
    """Permission matrix for a status; pure, no side effects."""
    match status:
        case RevisionStatus.DRAFT:
            return PermissionSet(status, can_edit=True, can_send=True, can_cancel=True)
        case RevisionStatus.SENT:
            return PermissionSet(
                status, can_approve=True, can_reject=True, can_cancel=True,
                lock_reason=lock_reason(status),
            )
        case RevisionStatus.APPROVED:
            return PermissionSet(
                status, can_create_project=projeto_id is None,
                lock_reason=lock_reason(status),
            )
        case RevisionStatus.REJECTED | RevisionStatus.CANCELED:
            return PermissionSet(status, lock_reason=lock_reason(status))
        case _:
            assert_never(status)


def lock_reason(status: RevisionStatus) -> str:
    """Why a revision in this status cannot be edited ('' when it can)."""
    match status:
        case RevisionStatus.DRAFT:
            return ""
        case RevisionStatus.SENT:
            return "Revision was sent for approval. Create a new revision to edit."
        case RevisionStatus.APPROVED:
            return "Revision was approved. Create a new revision to edit."
        case RevisionStatus.REJECTED:
            return "Revision was rejected. Create a new revision to edit."
        case RevisionStatus.CANCELED:
            return "Revision was canceled. Create a new revision to edit."
        case _:
            assert_never(status)


def blocked_reason(
    status: RevisionStatus,
    action: RevisionAction,
    projeto_id: Optional[str] = None,
) -> Optional[str]:
    """Human-readable reason an action is blocked, or None if it is allowed."""
    perms = permissions(status, projeto_id)
    if perms.allows(action):
        return None

    if action == RevisionAction.EDIT:
        return perms.lock_reason
    if action == RevisionAction.CREATE_PROJECT:
        if status == RevisionStatus.APPROVED:
            return "Revision is already linked to a project."
        return f"Only approved revisions can become projects (status is {status.value})."
    if action == RevisionAction.SEND:
        return f"Only draft revisions can be sent (status is {status.value})."
    if action == RevisionAction.APPROVE:
        return f"Only sent revisions can be approved (status is {status.value})."
    if action == RevisionAction.REJECT:
        return f"Only sent revisions can be rejected (status is {status.value})."
    if action == RevisionAction.CANCEL:
        return f"A {status.value.lower()} revision can no longer be canceled."
    return f"Action '{action.value}' is not allowed while {status.value}."


def allowed_targets(status: RevisionStatus) -> frozenset[RevisionStatus]:
    """Statuses reachable from `status` in one step."""
    match status:
        case RevisionStatus.DRAFT:
            return frozenset({RevisionStatus.SENT, RevisionStatus.CANCELED})
        case RevisionStatus.SENT:
            return frozenset({
                RevisionStatus.APPROVED, RevisionStatus.REJECTED, RevisionStatus.CANCELED,
            })
        case RevisionStatus.APPROVED | RevisionStatus.REJECTED | RevisionStatus.CANCELED:
            return frozenset()
        case _:
            assert_never(status)


def transition(revision: BudgetRevision, target: RevisionStatus) -> BudgetRevision:
    """
    Return a copy of the revision moved to `target`.

    Raises InvalidTransition naming both statuses when the edge does not exist.
    The input revision is never modified; persisting the copy is the caller's job.
    """
    if target not in allowed_targets(revision.status):
        raise InvalidTransition(revision.status, target)
    logger.debug("Revision %s: %s -> %s", revision.id, revision.status.value, target.value)
    return replace(revision, status=target)
