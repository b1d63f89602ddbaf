"""
Pricebook scope specificity.

Each pricebook is classified against a resolution context into exactly one
PriceOrigin (or none, when it is scoped to another company/region). Origins
are totally ordered: EMPRESA_REGIAO > EMPRESA > REGIAO > GLOBAL.
"""
from enum import Enum
from functools import total_ordering
from typing import Optional

from .models import Pricebook, ResolutionContext


@total_ordering
class PriceOrigin(Enum):
    EMPRESA_REGIAO = "EMPRESA_REGIAO"
    EMPRESA = "EMPRESA"
    REGIAO = "REGIAO"
    GLOBAL = "GLOBAL"

    @property
    def specificity(self) -> int:
        return _SPECIFICITY[self]

    def __lt__(self, other):
        if not isinstance(other, PriceOrigin):
            return NotImplemented
        return self.specificity < other.specificity

    def matches(self, pricebook: Pricebook, context: ResolutionContext) -> bool:
        """True when the pricebook's scope belongs to this origin class."""
        return _PREDICATES[self](pricebook, context)


def _matches_company_region(pb: Pricebook, ctx: ResolutionContext) -> bool:
    return (
        pb.company_id is not None and pb.region_id is not None
        and pb.company_id == ctx.company_id
        and pb.region_id == ctx.region_id
    )


def _matches_company(pb: Pricebook, ctx: ResolutionContext) -> bool:
    return (
        pb.company_id is not None and pb.region_id is None
        and pb.company_id == ctx.company_id
    )


def _matches_region(pb: Pricebook, ctx: ResolutionContext) -> bool:
    return (
        pb.region_id is not None and pb.company_id is None
        and pb.region_id == ctx.region_id
    )


def _matches_global(pb: Pricebook, ctx: ResolutionContext) -> bool:
    return pb.company_id is None and pb.region_id is None


_SPECIFICITY = {
    PriceOrigin.GLOBAL: 0,
    PriceOrigin.REGIAO: 1,
    PriceOrigin.EMPRESA: 2,
    PriceOrigin.EMPRESA_REGIAO: 3,
}

_PREDICATES = {
    PriceOrigin.EMPRESA_REGIAO: _matches_company_region,
    PriceOrigin.EMPRESA: _matches_company,
    PriceOrigin.REGIAO: _matches_region,
    PriceOrigin.GLOBAL: _matches_global,
}


def classify(pricebook: Pricebook, context: ResolutionContext) -> Optional[PriceOrigin]:
    """Return the origin class of a pricebook for this context, most specific first."""
    for origin in sorted(PriceOrigin, reverse=True):
        if origin.matches(pricebook, context):
            return origin
    return None
