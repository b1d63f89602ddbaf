"""
Typed failures raised by the budget engine.

Price lookups that find nothing are NOT errors: the resolver returns a
PriceNotFound value instead (see engine.models).
"""
from typing import Optional


class BudgetEngineError(Exception):
    """Base class for every failure the engine raises on purpose."""


class StoreError(BudgetEngineError):
    """Opaque failure reported by an external store or generator."""


class RevisionNotFound(BudgetEngineError):
    def __init__(self, revision_id: str):
        self.revision_id = revision_id
        super().__init__(f"Revision '{revision_id}' not found")


class InvalidTransition(BudgetEngineError):
    """Requested status change is not an edge of the revision state machine."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move revision from {current.value} to {requested.value}"
        )


class ValidationError(BudgetEngineError):
    """Bad input rejected before anything is persisted."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class NotApproved(BudgetEngineError):
    def __init__(self, revision_id: str, status):
        self.revision_id = revision_id
        self.status = status
        super().__init__(
            f"Only approved revisions can become projects "
            f"(revision {revision_id} is {status.value})"
        )


class AlreadyLinked(BudgetEngineError):
    def __init__(self, revision_id: str, projeto_id: str):
        self.revision_id = revision_id
        self.projeto_id = projeto_id
        super().__init__(
            f"Revision {revision_id} is already linked to project {projeto_id}"
        )


class SequenceError(BudgetEngineError):
    """Order number allocation failed; nothing was created."""


class ProjectCreationError(BudgetEngineError):
    """Order number was allocated but the project insert failed."""

    def __init__(self, message: str, order_number: str):
        self.order_number = order_number
        super().__init__(message)


class LinkError(BudgetEngineError):
    """
    Project exists but the revision could not be linked to it.

    The orphan project is attached so the caller can retry the link step
    (ProjectPromotionWorkflow.retry_link) instead of promoting again.
    """

    def __init__(self, message: str, project, revision_id: Optional[str] = None):
        self.project = project
        self.revision_id = revision_id
        super().__init__(message)
