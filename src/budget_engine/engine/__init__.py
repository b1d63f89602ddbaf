"""Engine subpackage - pricebook catalog and effective price resolution."""
from .catalog import PricebookCatalog, load_catalog
from .models import (
    EffectivePrice,
    ItemRef,
    Pricebook,
    PriceListEntry,
    PriceNotFound,
    PricebookType,
    ResolutionContext,
)
from .price_resolver import PriceResolver
from .scope import PriceOrigin

__all__ = [
    'PricebookCatalog', 'load_catalog', 'PriceResolver', 'PriceOrigin',
    'EffectivePrice', 'ItemRef', 'Pricebook', 'PriceListEntry', 'PriceNotFound',
    'PricebookType', 'ResolutionContext',
]
