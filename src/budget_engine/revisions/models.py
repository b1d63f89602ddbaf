"""
Data models for budgets, revisions, markup and promoted projects.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class RevisionStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"


@dataclass
class Budget:
    """The budget a revision belongs to (only the fields promotion needs)."""
    id: str
    client_id: str
    site_name: str
    location: Optional[str] = None


@dataclass
class BudgetRevision:
    """One numbered version of a budget."""
    id: str
    budget_id: str
    revision_number: int
    status: RevisionStatus = RevisionStatus.DRAFT
    projeto_id: Optional[str] = None  # write-once, set by promotion

    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    source_revision_id: Optional[str] = None


@dataclass
class BudgetSummary:
    """Totals computed by the summary aggregation for a revision."""
    revision_id: str
    subtotal_cost: float = 0.0
    markup_pct: float = 0.0
    sell_price: float = 0.0


@dataclass
class MarkupRule:
    """Markup applied on top of cost for one revision."""
    revision_id: str
    markup_pct: float  # fraction, 0.25 = 25%
    allow_per_wbs: bool = False
    updated_at: Optional[datetime] = None


@dataclass
class Project:
    """Project record created when an approved revision is promoted."""
    id: str
    order_number: str
    company_id: str
    name: str
    contract_value: float
    revision_id: str
    location: Optional[str] = None
    status: str = "planned"
    approved: bool = False
