"""
Project Promotion Workflow - turns an approved revision into a project.

Steps run in order with no transaction around them:
1. Allocate an order number (allocate-once, never retried here)
2. Create the project record
3. Link the revision to the project

If step 3 fails the project already exists and the revision is unlinked.
LinkError carries that orphan project; retry_link() finishes the job without
creating a second project or burning another order number. No automatic
compensation (deleting the orphan) is attempted.

Whatever a collaborator raises inside a step comes back as that step's
typed error: SequenceError, ProjectCreationError or LinkError.
"""
import logging
from typing import Optional

from ..errors import (
    AlreadyLinked,
    LinkError,
    NotApproved,
    ProjectCreationError,
    RevisionNotFound,
    SequenceError,
)
from ..revisions.lock_engine import RevisionAction, permissions
from ..revisions.models import Budget, BudgetRevision, BudgetSummary, Project, RevisionStatus
from .stores import ProjectStore, RevisionStore, SequenceGenerator

logger = logging.getLogger(__name__)


class ProjectPromotionWorkflow:

    def __init__(
        self,
        sequence: SequenceGenerator,
        projects: ProjectStore,
        revisions: RevisionStore,
    ):
        self.sequence = sequence
        self.projects = projects
        self.revisions = revisions

    def check(self, revision: BudgetRevision) -> None:
        """Raise NotApproved / AlreadyLinked if the revision cannot be promoted."""
        if permissions(revision.status, revision.projeto_id).allows(RevisionAction.CREATE_PROJECT):
            return
        if revision.status != RevisionStatus.APPROVED:
            raise NotApproved(revision.id, revision.status)
        raise AlreadyLinked(revision.id, revision.projeto_id)

    def promote(
        self,
        budget: Budget,
        revision: BudgetRevision,
        summary: Optional[BudgetSummary] = None,
    ) -> Project:
        """Create the project for an approved revision and link it back."""
        self.check(revision)
        stored = self.revisions.get(revision.id)
        if stored is None:
            raise RevisionNotFound(revision.id)
        self.check(stored)

        try:
            order_number = self.sequence.next_order_number()
        except Exception as e:
            raise SequenceError(f"Could not allocate order number: {e}") from e
        if not order_number:
            raise SequenceError("Sequence generator returned an empty order number")
        logger.info("Allocated order number %s for revision %s", order_number, revision.id)

        try:
            project = self.projects.create(
                order_number=order_number,
                company_id=budget.client_id,
                name=budget.site_name,
                contract_value=summary.sell_price if summary else 0.0,
                location=budget.location,
                revision_id=revision.id,
                status="planned",
                approved=False,
            )
        except Exception as e:
            logger.error(
                "Order number %s allocated but project insert failed: %s", order_number, e
            )
            raise ProjectCreationError(f"Could not create project: {e}", order_number) from e

        try:
            self.revisions.update(revision.id, projeto_id=project.id)
        except Exception as e:
            logger.warning(
                "Project %s (%s) created but revision %s is not linked: %s",
                project.id, project.order_number, revision.id, e,
            )
            raise LinkError(
                f"Project {project.order_number} created but linking failed: {e}",
                project=project,
                revision_id=revision.id,
            ) from e

        revision.projeto_id = project.id
        logger.info(
            "Revision %s promoted to project %s (%s)", revision.id, project.id, project.order_number
        )
        return project

    def retry_link(self, revision: BudgetRevision, project: Project) -> BudgetRevision:
        """
        Link a revision to an already-created project.

        Idempotent: re-linking to the same project succeeds; a revision linked
        to a different project raises AlreadyLinked.
        """
        current = self.revisions.get(revision.id) or revision
        if current.projeto_id == project.id:
            return current
        if current.projeto_id:
            raise AlreadyLinked(current.id, current.projeto_id)
        if current.status != RevisionStatus.APPROVED:
            raise NotApproved(current.id, current.status)

        try:
            linked = self.revisions.update(revision.id, projeto_id=project.id)
        except Exception as e:
            raise LinkError(
                f"Linking project {project.order_number} failed again: {e}",
                project=project,
                revision_id=revision.id,
            ) from e

        revision.projeto_id = project.id
        logger.info("Revision %s linked to project %s on retry", revision.id, project.id)
        return linked
