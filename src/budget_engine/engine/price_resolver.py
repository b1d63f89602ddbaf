"""
Price Resolver - picks the effective unit price of a material or labor function.

Resolution order:
1. Collect entries for the item from active pricebooks of the item's type
   (materials: requested manufacturer or wildcard entries only)
2. Drop entries whose effective window (entry ∩ pricebook) misses the as-of date
3. Classify each remaining pricebook: EMPRESA_REGIAO > EMPRESA > REGIAO > GLOBAL
4. Keep the most specific class, then break ties by exact manufacturer,
   lowest priority, latest start, latest update, lowest pricebook id, lowest entry id
"""
import logging
from datetime import date, datetime
from typing import Iterable, Optional, Union

from .catalog import PricebookCatalog
from .models import (
    EffectivePrice,
    ItemRef,
    Pricebook,
    PriceListEntry,
    PriceNotFound,
    PricebookType,
    ResolutionContext,
    TraceStep,
)
from .scope import classify

logger = logging.getLogger(__name__)

ResolveResult = Union[EffectivePrice, PriceNotFound]


def _later(a: Optional[date], b: Optional[date]) -> Optional[date]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def _earlier(a: Optional[date], b: Optional[date]) -> Optional[date]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def effective_window(entry: PriceListEntry, pricebook: Pricebook) -> tuple[Optional[date], Optional[date]]:
    """Intersection of the entry's and its pricebook's validity windows."""
    return (
        _later(entry.valid_from, pricebook.valid_from),
        _earlier(entry.valid_to, pricebook.valid_to),
    )


def is_applicable(entry: PriceListEntry, pricebook: Pricebook, as_of: date) -> bool:
    """Both bounds inclusive; a missing bound is open on that side."""
    start, end = effective_window(entry, pricebook)
    if start is not None and as_of < start:
        return False
    if end is not None and as_of > end:
        return False
    return True


def _recency(value: Optional[Union[date, datetime]]) -> tuple:
    # Sorts most recent first; unknown dates last
    if value is None:
        return (1, 0.0)
    if isinstance(value, datetime):
        return (0, -value.timestamp())
    return (0, -value.toordinal())


class _Candidate:
    __slots__ = ('entry', 'pricebook', 'origin', 'exact_manufacturer')

    def __init__(self, entry, pricebook, origin, exact_manufacturer):
        self.entry = entry
        self.pricebook = pricebook
        self.origin = origin
        self.exact_manufacturer = exact_manufacturer

    def tie_break_key(self) -> tuple:
        start, _ = effective_window(self.entry, self.pricebook)
        return (
            0 if self.exact_manufacturer else 1,
            self.pricebook.priority,
            _recency(start),
            _recency(self.entry.updated_at),
            self.pricebook.id,
            self.entry.id,
        )


class PriceResolver:
    """
    Resolves effective prices against a catalog snapshot.

    Stateless apart from the catalog reference; resolve() has no side effects
    and may be called concurrently.
    """

    def __init__(self, catalog: PricebookCatalog):
        self.catalog = catalog

    def resolve(self, item_ref: ItemRef, context: ResolutionContext) -> ResolveResult:
        """Return the single effective price for the item, or PriceNotFound."""
        not_found = PriceNotFound(item_ref=item_ref, context=context)
        not_found.trace.append(TraceStep("Item", "Resolving price", str(item_ref)))

        wants_manufacturer = (
            item_ref.type == PricebookType.MATERIAL and context.manufacturer_id is not None
        )

        candidates: list[_Candidate] = []
        skipped_window = 0
        skipped_scope = 0
        for entry, pricebook in self.catalog.candidates_for(item_ref.item_id, item_ref.type):
            exact = False
            if wants_manufacturer:
                if entry.manufacturer_id == context.manufacturer_id:
                    exact = True
                elif entry.manufacturer_id is not None:
                    continue

            if not is_applicable(entry, pricebook, context.as_of):
                skipped_window += 1
                continue

            origin = classify(pricebook, context)
            if origin is None:
                skipped_scope += 1
                continue

            candidates.append(_Candidate(entry, pricebook, origin, exact))

        if skipped_window:
            not_found.trace.append(TraceStep(
                "Validity", f"Entries outside their window on {context.as_of.isoformat()}",
                str(skipped_window),
            ))
        if skipped_scope:
            not_found.trace.append(TraceStep(
                "Scope", "Entries scoped to another company/region", str(skipped_scope),
            ))

        if not candidates:
            not_found.reason = f"No applicable price for {item_ref} on {context.as_of.isoformat()}"
            logger.debug(not_found.reason)
            return not_found

        best_origin = max(c.origin for c in candidates)
        in_class = [c for c in candidates if c.origin == best_origin]
        in_class.sort(key=_Candidate.tie_break_key)
        chosen = in_class[0]

        entry, pricebook = chosen.entry, chosen.pricebook
        result = EffectivePrice(
            item_id=item_ref.item_id,
            price=entry.price,
            currency=entry.currency,
            pricebook_id=pricebook.id,
            pricebook_name=pricebook.name,
            origin=best_origin,
            entry_id=entry.id,
            manufacturer_id=entry.manufacturer_id,
            productivity_value=entry.productivity_value,
            productivity_type=entry.productivity_type,
            productivity_unit=entry.productivity_unit,
        )
        result.trace.extend(not_found.trace)
        result.add_trace("Scope", f"Most specific class ({pricebook.scope_label})", best_origin.value)
        if len(in_class) > 1:
            result.add_trace(
                "Tie-break",
                f"{len(in_class)} candidates in class, chose priority {pricebook.priority}",
                pricebook.id,
            )
        if wants_manufacturer:
            result.add_trace(
                "Manufacturer",
                "Exact manufacturer match" if chosen.exact_manufacturer else "Wildcard manufacturer entry",
                entry.manufacturer_id,
            )
        result.add_trace("Price", f"From pricebook '{pricebook.name}'", f"{entry.price:.2f} {entry.currency}")
        return result

    def resolve_many(
        self,
        item_refs: Iterable[ItemRef],
        context: ResolutionContext,
    ) -> dict[str, ResolveResult]:
        """Resolve several items against the same context, keyed by item id."""
        return {ref.item_id: self.resolve(ref, context) for ref in item_refs}
