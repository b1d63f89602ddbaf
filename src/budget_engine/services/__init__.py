"""Services subpackage - revision lifecycle, markup and project promotion."""
from .markup_service import MarkupService, ValidationResult
from .promotion_workflow import ProjectPromotionWorkflow
from .revision_service import RevisionService
from .stores import (
    CsvMarkupStore,
    InMemoryMarkupStore,
    InMemoryProjectStore,
    InMemoryRevisionStore,
    InMemorySequenceGenerator,
)

__all__ = [
    'MarkupService', 'ValidationResult', 'ProjectPromotionWorkflow', 'RevisionService',
    'CsvMarkupStore', 'InMemoryMarkupStore', 'InMemoryProjectStore',
    'InMemoryRevisionStore', 'InMemorySequenceGenerator',
]
