import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from budget_engine.errors import InvalidTransition
from budget_engine.revisions import (
    BudgetRevision,
    RevisionAction,
    RevisionStatus,
    allowed_targets,
    blocked_reason,
    permissions,
    transition,
)

S = RevisionStatus

# status -> (edit, send, approve, reject, cancel, create_project)
MATRIX = {
    S.DRAFT: (True, True, False, False, True, False),
    S.SENT: (False, False, True, True, True, False),
    S.APPROVED: (False, False, False, False, False, True),
    S.REJECTED: (False, False, False, False, False, False),
    S.CANCELED: (False, False, False, False, False, False),
}

REACHABLE = {
    S.DRAFT: {S.SENT, S.CANCELED},
    S.SENT: {S.APPROVED, S.REJECTED, S.CANCELED},
    S.APPROVED: set(),
    S.REJECTED: set(),
    S.CANCELED: set(),
}


def revision(status=S.DRAFT, projeto_id=None):
    return BudgetRevision(id="rev-1", budget_id="b-1", revision_number=0, status=status, projeto_id=projeto_id)


@pytest.mark.parametrize("status", list(S))
def test_permission_matrix(status):
    perms = permissions(status)
    actual = (
        perms.can_edit, perms.can_send, perms.can_approve,
        perms.can_reject, perms.can_cancel, perms.can_create_project,
    )
    assert actual == MATRIX[status]
    assert perms.can_create_new_revision is True
    assert perms.is_locked == (status != S.DRAFT)


def test_approved_linked_revision_cannot_create_project():
    assert permissions(S.APPROVED, projeto_id="p-1").can_create_project is False


@pytest.mark.parametrize("status", list(S))
def test_every_locked_status_has_reason(status):
    reason = permissions(status).lock_reason
    if status == S.DRAFT:
        assert reason == ""
    else:
        assert "new revision" in reason


@pytest.mark.parametrize("source", list(S))
@pytest.mark.parametrize("target", list(S))
def test_transitions(source, target):
    rev = revision(source)
    if target in REACHABLE[source]:
        moved = transition(rev, target)
        assert moved.status == target
        assert rev.status == source, "input revision must not be modified"
    else:
        with pytest.raises(InvalidTransition) as exc:
            transition(rev, target)
        assert exc.value.current == source
        assert exc.value.requested == target


def test_sent_back_to_draft_is_invalid():
    with pytest.raises(InvalidTransition, match="SENT to DRAFT"):
        transition(revision(S.SENT), S.DRAFT)


def test_allowed_targets_match_state_machine():
    for status in S:
        assert set(allowed_targets(status)) == REACHABLE[status]


def test_blocked_reasons_come_from_status():
    assert blocked_reason(S.DRAFT, RevisionAction.EDIT) is None
    assert "sent for approval" in blocked_reason(S.SENT, RevisionAction.EDIT)
    assert "approved" in blocked_reason(S.DRAFT, RevisionAction.CREATE_PROJECT)
    assert "already linked" in blocked_reason(S.APPROVED, RevisionAction.CREATE_PROJECT, "p-1")
    assert "draft" in blocked_reason(S.SENT, RevisionAction.SEND)
    assert blocked_reason(S.REJECTED, RevisionAction.APPROVE) is not None
    assert blocked_reason(S.CANCELED, RevisionAction.CANCEL) is not None


@pytest.mark.parametrize("status", list(S))
def test_new_revision_is_never_blocked(status):
    assert blocked_reason(status, RevisionAction.CREATE_NEW_REVISION) is None
