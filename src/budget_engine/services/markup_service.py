"""
Markup Service - one markup rule per revision, used to derive sell price.

Does not check the revision lock: callers must confirm `can_edit` before
calling upsert().
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from ..errors import ValidationError
from ..revisions.models import MarkupRule
from .stores import MarkupStore

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of markup validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class MarkupService:
    """Service for reading and saving revision markup."""

    def __init__(self, store: MarkupStore):
        self.store = store

    def get(self, revision_id: str) -> Optional[MarkupRule]:
        """Markup rule for the revision, or None if none was saved."""
        return self.store.get(revision_id)

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate markup form data before saving."""
        result = ValidationResult(valid=True)

        if 'markup_pct' not in data or data['markup_pct'] is None:
            result.errors.append("markup_pct is required")
            result.valid = False
        if isinstance(data['markup_pct'], bool):
            result.errors.append("markup_pct must be a number")
            result.valid = False
            return result

        try:
            pct = float(data['markup_pct'])
        except (TypeError, ValueError):
            result.errors.append("markup_pct must be a number")
            result.valid = False
            return result

        if math.isnan(pct) or math.isinf(pct):
            result.errors.append("markup_pct must be a finite number")
            result.valid = False
        elif pct < 0:
            result.errors.append("markup_pct cannot be negative")
            result.valid = False
        elif pct > 1:
            # Fractions are expected; 25 most likely meant 0.25
            result.warnings.append(f"markup_pct {pct} is above 100%")

        allow = data.get('allow_per_wbs')
        if allow is not None and not isinstance(allow, bool):
            result.errors.append("allow_per_wbs must be true or false")
            result.valid = False

        return result

    def upsert(self, revision_id: str, data: dict[str, Any]) -> MarkupRule:
        """
        Create or replace the revision's markup rule.

        A second call for the same revision replaces the first one's fields.
        Invalid data raises ValidationError and nothing is written.
        """
        if not revision_id:
            raise ValidationError(["revision_id is required"])

        validation = self.validate(data)
        if not validation.valid:
            raise ValidationError(validation.errors)
        for warning in validation.warnings:
            logger.warning("Markup for revision %s: %s", revision_id, warning)

        allow_per_wbs = data.get('allow_per_wbs')
        if allow_per_wbs is None:
            existing = self.store.get(revision_id)
            allow_per_wbs = existing.allow_per_wbs if existing else False

        rule = MarkupRule(
            revision_id=revision_id,
            markup_pct=float(data['markup_pct']),
            allow_per_wbs=allow_per_wbs,
            updated_at=datetime.now(timezone.utc),
        )
        saved = self.store.upsert(rule)
        logger.info("Saved markup %.4f for revision %s", saved.markup_pct, revision_id)
        return saved

    def sell_price(self, revision_id: str, subtotal_cost: float) -> float:
        """Cost plus the revision's markup (no markup when no rule exists)."""
        rule = self.get(revision_id)
        markup_pct = rule.markup_pct if rule else 0.0
        return subtotal_cost * (1 + markup_pct)
