import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from budget_engine.errors import (
    AlreadyLinked,
    LinkError,
    NotApproved,
    ProjectCreationError,
    RevisionNotFound,
    SequenceError,
    StoreError,
)
from budget_engine.revisions import Budget, BudgetRevision, BudgetSummary, RevisionStatus
from budget_engine.services import (
    InMemoryProjectStore,
    InMemoryRevisionStore,
    InMemorySequenceGenerator,
    ProjectPromotionWorkflow,
)


class CountingSequence(InMemorySequenceGenerator):
    def __init__(self, fail=False, value=None):
        super().__init__(prefix="OS-")
        self.calls = 0
        self.fail = fail
        self.value = value

    def next_order_number(self):
        self.calls += 1
        if self.fail:
            raise StoreError("sequence unavailable")
        if self.value is not None:
            return self.value
        return super().next_order_number()


class FailingProjectStore(InMemoryProjectStore):
    def create(self, **fields):
        raise StoreError("insert failed")


class FlakyRevisionStore(InMemoryRevisionStore):
    """Fails the next `failures` updates."""

    def __init__(self, failures=0):
        super().__init__()
        self.failures = failures

    def update(self, revision_id, **fields):
        if self.failures:
            self.failures -= 1
            raise StoreError("update failed")
        return super().update(revision_id, **fields)


BUDGET = Budget(id="b-1", client_id="EMP-A", site_name="Substation North", location="Campinas/SP")


def make(status=RevisionStatus.APPROVED, projeto_id=None, sequence=None, projects=None, link_failures=0):
    revisions = FlakyRevisionStore(failures=link_failures)
    revision = revisions.create(BudgetRevision(
        id="rev-1", budget_id="b-1", revision_number=0, status=status, projeto_id=projeto_id,
    ))
    workflow = ProjectPromotionWorkflow(
        sequence=sequence or CountingSequence(),
        projects=projects or InMemoryProjectStore(),
        revisions=revisions,
    )
    return workflow, revision


def test_promote_approved_revision():
    workflow, revision = make()
    summary = BudgetSummary(revision_id="rev-1", subtotal_cost=800.0, markup_pct=0.25, sell_price=1000.0)

    project = workflow.promote(BUDGET, revision, summary)

    assert project.order_number == "OS-00001"
    assert project.company_id == "EMP-A"
    assert project.name == "Substation North"
    assert project.location == "Campinas/SP"
    assert project.contract_value == 1000.0
    assert project.status == "planned"
    assert project.approved is False
    assert project.revision_id == "rev-1"
    assert revision.projeto_id == project.id
    assert workflow.revisions.get("rev-1").projeto_id == project.id


def test_contract_value_zero_without_summary():
    workflow, revision = make()
    assert workflow.promote(BUDGET, revision, None).contract_value == 0.0


def test_second_promote_is_already_linked():
    sequence = CountingSequence()
    workflow, revision = make(sequence=sequence)
    workflow.promote(BUDGET, revision)

    with pytest.raises(AlreadyLinked):
        workflow.promote(BUDGET, revision)
    assert sequence.calls == 1


def test_stale_copy_cannot_promote_twice():
    workflow, revision = make()
    stale = workflow.revisions.get("rev-1")
    workflow.promote(BUDGET, revision)
    with pytest.raises(AlreadyLinked):
        workflow.promote(BUDGET, stale)


@pytest.mark.parametrize("status", [
    RevisionStatus.DRAFT, RevisionStatus.SENT, RevisionStatus.REJECTED, RevisionStatus.CANCELED,
])
def test_not_approved(status):
    sequence = CountingSequence()
    workflow, revision = make(status=status, sequence=sequence)
    with pytest.raises(NotApproved):
        workflow.promote(BUDGET, revision)
    assert sequence.calls == 0


def test_not_approved_checked_before_link():
    """A non-approved revision that somehow has a project reports NotApproved first."""
    workflow, revision = make(status=RevisionStatus.SENT, projeto_id="p-9")
    with pytest.raises(NotApproved):
        workflow.promote(BUDGET, revision)


def test_sequence_failure_has_no_side_effects():
    projects = InMemoryProjectStore()
    workflow, revision = make(sequence=CountingSequence(fail=True), projects=projects)
    with pytest.raises(SequenceError):
        workflow.promote(BUDGET, revision)
    assert projects.list_projects() == []
    assert workflow.revisions.get("rev-1").projeto_id is None


def test_empty_order_number_is_sequence_error():
    projects = InMemoryProjectStore()
    workflow, revision = make(sequence=CountingSequence(value=""), projects=projects)
    with pytest.raises(SequenceError):
        workflow.promote(BUDGET, revision)
    assert projects.list_projects() == []


def test_project_insert_failure_reports_order_number():
    workflow, revision = make(projects=FailingProjectStore())
    with pytest.raises(ProjectCreationError) as exc:
        workflow.promote(BUDGET, revision)
    assert exc.value.order_number == "OS-00001"
    assert workflow.revisions.get("rev-1").projeto_id is None


def test_link_failure_then_retry_link():
    """Link fails after insert: LinkError carries the orphan, retry links it without a new project."""
    sequence = CountingSequence()
    projects = InMemoryProjectStore()
    workflow, revision = make(sequence=sequence, projects=projects, link_failures=1)

    with pytest.raises(LinkError) as exc:
        workflow.promote(BUDGET, revision)
    orphan = exc.value.project
    assert revision.projeto_id is None
    assert len(projects.list_projects()) == 1

    linked = workflow.retry_link(revision, orphan)
    assert linked.projeto_id == orphan.id
    assert revision.projeto_id == orphan.id

    # Idempotent
    assert workflow.retry_link(revision, orphan).projeto_id == orphan.id
    assert sequence.calls == 1
    assert len(projects.list_projects()) == 1


def test_link_error_is_distinct_from_sequence_error():
    assert not issubclass(LinkError, SequenceError)
    assert not issubclass(SequenceError, LinkError)


def test_retry_link_to_other_project_is_refused():
    workflow, revision = make()
    project = workflow.promote(BUDGET, revision)
    other = InMemoryProjectStore().create(
        order_number="OS-99999", company_id="X", name="X", contract_value=0.0, revision_id="rev-1",
    )
    with pytest.raises(AlreadyLinked):
        workflow.retry_link(revision, other)
    assert workflow.revisions.get("rev-1").projeto_id == project.id


def test_retry_link_failing_again():
    workflow, revision = make(link_failures=2)
    with pytest.raises(LinkError) as exc:
        workflow.promote(BUDGET, revision)
    with pytest.raises(LinkError):
        workflow.retry_link(revision, exc.value.project)


def test_revision_missing_from_store_allocates_nothing():
    sequence = CountingSequence()
    projects = InMemoryProjectStore()
    workflow = ProjectPromotionWorkflow(sequence=sequence, projects=projects, revisions=InMemoryRevisionStore())
    ghost = BudgetRevision(id="ghost", budget_id="b-1", revision_number=0, status=RevisionStatus.APPROVED)

    with pytest.raises(RevisionNotFound):
        workflow.promote(BUDGET, ghost)
    assert sequence.calls == 0
    assert projects.list_projects() == []


class DownSequence(CountingSequence):
    def next_order_number(self):
        self.calls += 1
        raise ConnectionError("db down")


class DownProjectStore(InMemoryProjectStore):
    def create(self, **fields):
        raise ConnectionError("db down")


class DownRevisionStore(InMemoryRevisionStore):
    def update(self, revision_id, **fields):
        raise ConnectionError("db down")


def test_driver_failure_in_sequence_is_sequence_error():
    projects = InMemoryProjectStore()
    workflow, revision = make(sequence=DownSequence(), projects=projects)
    with pytest.raises(SequenceError) as exc:
        workflow.promote(BUDGET, revision)
    assert isinstance(exc.value.__cause__, ConnectionError)
    assert projects.list_projects() == []


def test_driver_failure_in_project_insert_is_project_creation_error():
    workflow, revision = make(projects=DownProjectStore())
    with pytest.raises(ProjectCreationError) as exc:
        workflow.promote(BUDGET, revision)
    assert exc.value.order_number == "OS-00001"


def test_driver_failure_in_link_is_link_error():
    revisions = DownRevisionStore()
    revision = revisions.create(BudgetRevision(
        id="rev-1", budget_id="b-1", revision_number=0, status=RevisionStatus.APPROVED,
    ))
    projects = InMemoryProjectStore()
    workflow = ProjectPromotionWorkflow(
        sequence=CountingSequence(), projects=projects, revisions=revisions,
    )

    with pytest.raises(LinkError) as exc:
        workflow.promote(BUDGET, revision)
    assert exc.value.project.order_number == "OS-00001"
    assert projects.list_projects() == [exc.value.project]

    with pytest.raises(LinkError):
        workflow.retry_link(revision, exc.value.project)
