"""
Shared engine state for the API routers.

One catalog, resolver and set of stores per process; the stores are in memory
unless a markup CSV path is configured.
"""
import logging

from ..config.settings import get_settings
from ..engine import PricebookCatalog, PriceResolver, load_catalog
from ..services import (
    CsvMarkupStore,
    InMemoryMarkupStore,
    InMemoryProjectStore,
    InMemoryRevisionStore,
    InMemorySequenceGenerator,
    MarkupService,
    ProjectPromotionWorkflow,
    RevisionService,
)

logger = logging.getLogger(__name__)

settings = get_settings()


def build_catalog() -> PricebookCatalog:
    """Load pricebooks from the data directory (empty catalog if not exported yet)."""
    if not settings.pricebooks_csv.exists():
        logger.warning("No pricebooks at %s; starting with an empty catalog", settings.pricebooks_csv)
        return PricebookCatalog()
    return load_catalog(
        settings.pricebooks_csv,
        settings.price_items_csv,
        default_currency=settings.default_currency,
    )


class EngineState:
    def __init__(self):
        self.catalog = build_catalog()
        self.resolver = PriceResolver(self.catalog)

        self.revision_store = InMemoryRevisionStore()
        self.project_store = InMemoryProjectStore()
        markup_store = (
            CsvMarkupStore(settings.markup_csv) if settings.markup_csv else InMemoryMarkupStore()
        )

        self.revisions = RevisionService(self.revision_store)
        self.markup = MarkupService(markup_store)
        self.promotion = ProjectPromotionWorkflow(
            sequence=InMemorySequenceGenerator(prefix=settings.order_number_prefix),
            projects=self.project_store,
            revisions=self.revision_store,
        )

    def reload_catalog(self):
        """Reload pricebooks from disk; stores are kept."""
        self.catalog = build_catalog()
        self.resolver = PriceResolver(self.catalog)


engine = EngineState()
