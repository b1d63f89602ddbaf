"""
Revision Service - creates revisions and applies status transitions.

Every status change goes through lock_engine.transition(); this service only
adds the persistence and the sent/approved timestamps.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from ..errors import RevisionNotFound
from ..revisions.lock_engine import transition
from ..revisions.models import BudgetRevision, RevisionStatus
from .stores import RevisionStore

logger = logging.getLogger(__name__)


class RevisionService:
    """Service for the budget revision lifecycle."""

    def __init__(self, store: RevisionStore):
        self.store = store

    def get(self, revision_id: str) -> BudgetRevision:
        revision = self.store.get(revision_id)
        if revision is None:
            raise RevisionNotFound(revision_id)
        return revision

    def list_revisions(self, budget_id: str) -> list[BudgetRevision]:
        """Revisions of a budget, newest first."""
        return self.store.list_for_budget(budget_id)

    def create_revision(
        self,
        budget_id: str,
        created_by: Optional[str] = None,
        source_revision_id: Optional[str] = None,
    ) -> BudgetRevision:
        """
        Create the next DRAFT revision of a budget.

        Numbers start at 0 and increase by one per budget. Any existing revision,
        whatever its status, may serve as the source.
        """
        if source_revision_id is not None:
            source = self.get(source_revision_id)
            if source.budget_id != budget_id:
                raise ValueError(
                    f"Revision '{source_revision_id}' belongs to budget '{source.budget_id}'"
                )

        existing = self.store.list_for_budget(budget_id)
        next_number = max((r.revision_number for r in existing), default=-1) + 1

        revision = self.store.create(BudgetRevision(
            id=str(uuid.uuid4()),
            budget_id=budget_id,
            revision_number=next_number,
            status=RevisionStatus.DRAFT,
            created_by=created_by,
            created_at=datetime.now(timezone.utc),
            source_revision_id=source_revision_id,
        ))
        logger.info("Created revision %d of budget %s", next_number, budget_id)
        return revision

    def change_status(
        self,
        revision_id: str,
        target: RevisionStatus,
        user_id: Optional[str] = None,
    ) -> BudgetRevision:
        """Validate the transition, then persist status and its timestamps."""
        current = self.get(revision_id)
        moved = transition(current, target)

        fields = {'status': moved.status}
        now = datetime.now(timezone.utc)
        if target == RevisionStatus.SENT:
            fields['sent_at'] = now
        elif target == RevisionStatus.APPROVED:
            fields['approved_at'] = now
            fields['approved_by'] = user_id

        updated = self.store.update(revision_id, **fields)
        logger.info(
            "Revision %s moved %s -> %s", revision_id, current.status.value, target.value
        )
        return updated

    def send(self, revision_id: str) -> BudgetRevision:
        return self.change_status(revision_id, RevisionStatus.SENT)

    def approve(self, revision_id: str, user_id: Optional[str] = None) -> BudgetRevision:
        return self.change_status(revision_id, RevisionStatus.APPROVED, user_id=user_id)

    def reject(self, revision_id: str) -> BudgetRevision:
        return self.change_status(revision_id, RevisionStatus.REJECTED)

    def cancel(self, revision_id: str) -> BudgetRevision:
        return self.change_status(revision_id, RevisionStatus.CANCELED)
