"""
Persistence collaborators used by the services.

The engine never talks to a database directly. Each collaborator is a small
Protocol; failures are reported as StoreError. In-memory implementations back
the API and the tests, and CsvMarkupStore keeps markup rules in a CSV file.
"""
import csv
import itertools
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from ..errors import RevisionNotFound, StoreError
from ..revisions.models import BudgetRevision, MarkupRule, Project


class RevisionStore(Protocol):
    def get(self, revision_id: str) -> Optional[BudgetRevision]: ...

    def list_for_budget(self, budget_id: str) -> list[BudgetRevision]: ...

    def create(self, revision: BudgetRevision) -> BudgetRevision: ...

    def update(self, revision_id: str, **fields) -> BudgetRevision: ...


class MarkupStore(Protocol):
    def get(self, revision_id: str) -> Optional[MarkupRule]: ...

    def upsert(self, rule: MarkupRule) -> MarkupRule: ...


class ProjectStore(Protocol):
    def create(self, **fields) -> Project: ...

    def get(self, project_id: str) -> Optional[Project]: ...


class SequenceGenerator(Protocol):
    def next_order_number(self) -> str: ...


# =============================================
# In-memory implementations
# =============================================

class InMemoryRevisionStore:
    def __init__(self):
        self._revisions: dict[str, BudgetRevision] = {}

    def get(self, revision_id: str) -> Optional[BudgetRevision]:
        revision = self._revisions.get(revision_id)
        return replace(revision) if revision else None

    def list_for_budget(self, budget_id: str) -> list[BudgetRevision]:
        revisions = [replace(r) for r in self._revisions.values() if r.budget_id == budget_id]
        return sorted(revisions, key=lambda r: r.revision_number, reverse=True)

    def create(self, revision: BudgetRevision) -> BudgetRevision:
        if revision.id in self._revisions:
            raise StoreError(f"Revision '{revision.id}' already exists")
        for existing in self._revisions.values():
            if (existing.budget_id == revision.budget_id
                    and existing.revision_number == revision.revision_number):
                raise StoreError(
                    f"Budget '{revision.budget_id}' already has revision {revision.revision_number}"
                )
        self._revisions[revision.id] = replace(revision)
        return replace(revision)

    def update(self, revision_id: str, **fields) -> BudgetRevision:
        revision = self._revisions.get(revision_id)
        if revision is None:
            raise RevisionNotFound(revision_id)
        updated = replace(revision, **fields)
        self._revisions[revision_id] = updated
        return replace(updated)


class InMemoryMarkupStore:
    def __init__(self):
        self._rules: dict[str, MarkupRule] = {}

    def get(self, revision_id: str) -> Optional[MarkupRule]:
        rule = self._rules.get(revision_id)
        return replace(rule) if rule else None

    def upsert(self, rule: MarkupRule) -> MarkupRule:
        self._rules[rule.revision_id] = replace(rule)
        return replace(rule)


class InMemoryProjectStore:
    def __init__(self):
        self._projects: dict[str, Project] = {}

    def create(self, **fields) -> Project:
        project = Project(id=str(uuid.uuid4()), **fields)
        self._projects[project.id] = project
        return replace(project)

    def get(self, project_id: str) -> Optional[Project]:
        project = self._projects.get(project_id)
        return replace(project) if project else None

    def list_projects(self) -> list[Project]:
        return [replace(p) for p in self._projects.values()]


class InMemorySequenceGenerator:
    """Allocates OS numbers once each: OS-00001, OS-00002, ..."""

    def __init__(self, prefix: str = "OS-", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_order_number(self) -> str:
        with self._lock:
            return f"{self.prefix}{next(self._counter):05d}"


# =============================================
# CSV-backed markup store
# =============================================

class CsvMarkupStore:
    """Markup rules kept in a CSV file, one row per revision."""

    CSV_COLUMNS = ['revision_id', 'markup_pct', 'allow_per_wbs', 'updated_at']

    def __init__(self, csv_path: Path):
        self.csv_path = csv_path
        self._lock = threading.Lock()

    def _read_rules(self) -> dict[str, MarkupRule]:
        rules = {}
        if not self.csv_path.exists():
            return rules
        try:
            with open(self.csv_path, 'r', encoding='utf-8') as f:
                reader = csv.DictReader(f)
                for row in reader:
                    if not row.get('revision_id'):
                        continue
                    rules[row['revision_id']] = MarkupRule(
                        revision_id=row['revision_id'],
                        markup_pct=float(row.get('markup_pct') or 0),
                        allow_per_wbs=(row.get('allow_per_wbs', 'false').lower() == 'true'),
                        updated_at=(
                            datetime.fromisoformat(row['updated_at'])
                            if row.get('updated_at') else None
                        ),
                    )
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read markup rules from {self.csv_path}: {e}") from e
        return rules

    def _write_rules(self, rules: dict[str, MarkupRule]):
        try:
            self.csv_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.csv_path, 'w', encoding='utf-8', newline='') as f:
                writer = csv.DictWriter(f, fieldnames=self.CSV_COLUMNS)
                writer.writeheader()
                for rule in rules.values():
                    writer.writerow({
                        'revision_id': rule.revision_id,
                        'markup_pct': repr(rule.markup_pct),
                        'allow_per_wbs': 'true' if rule.allow_per_wbs else 'false',
                        'updated_at': rule.updated_at.isoformat() if rule.updated_at else '',
                    })
        except OSError as e:
            raise StoreError(f"Cannot write markup rules to {self.csv_path}: {e}") from e

    def get(self, revision_id: str) -> Optional[MarkupRule]:
        return self._read_rules().get(revision_id)

    def upsert(self, rule: MarkupRule) -> MarkupRule:
        with self._lock:
            rules = self._read_rules()
            rules[rule.revision_id] = rule
            self._write_rules(rules)
        return rule
