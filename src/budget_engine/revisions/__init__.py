"""Revisions subpackage - revision records and the status lock."""
from .lock_engine import (
    PermissionSet,
    RevisionAction,
    allowed_targets,
    blocked_reason,
    lock_reason,
    permissions,
    transition,
)
from .models import Budget, BudgetRevision, BudgetSummary, MarkupRule, Project, RevisionStatus

__all__ = [
    'PermissionSet', 'RevisionAction', 'allowed_targets', 'blocked_reason',
    'lock_reason', 'permissions', 'transition',
    'Budget', 'BudgetRevision', 'BudgetSummary', 'MarkupRule', 'Project', 'RevisionStatus',
]
