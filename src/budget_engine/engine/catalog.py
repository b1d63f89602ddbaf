"""
Pricebook Catalog - in-memory set of pricebooks and their price list entries.

The resolver only needs one query from it: every candidate entry for an item,
paired with its pricebook. Catalogs can be built in code or loaded from the
CSV exports of the pricebook admin screens.
"""
import logging
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from .models import Pricebook, PriceListEntry, PricebookType, ProductivityType

logger = logging.getLogger(__name__)


class PricebookCatalog:
    """Queryable snapshot of pricebooks and entries."""

    def __init__(
        self,
        pricebooks: Iterable[Pricebook] = (),
        entries: Iterable[PriceListEntry] = (),
    ):
        self._pricebooks: dict[str, Pricebook] = {}
        self._entries_by_item: dict[str, list[PriceListEntry]] = {}
        for pricebook in pricebooks:
            self.add_pricebook(pricebook)
        for entry in entries:
            self.add_entry(entry)

    def __len__(self) -> int:
        return len(self._pricebooks)

    @property
    def pricebooks(self) -> list[Pricebook]:
        return list(self._pricebooks.values())

    def get_pricebook(self, pricebook_id: str) -> Optional[Pricebook]:
        return self._pricebooks.get(pricebook_id)

    def add_pricebook(self, pricebook: Pricebook) -> Pricebook:
        if pricebook.id in self._pricebooks:
            raise ValueError(f"Pricebook '{pricebook.id}' already exists")
        if pricebook.valid_from and pricebook.valid_to and pricebook.valid_from > pricebook.valid_to:
            raise ValueError(f"Pricebook '{pricebook.id}' starts after it ends")
        self._pricebooks[pricebook.id] = pricebook
        return pricebook

    def add_entry(self, entry: PriceListEntry) -> PriceListEntry:
        if entry.pricebook_id not in self._pricebooks:
            raise ValueError(
                f"Entry '{entry.id}' references unknown pricebook '{entry.pricebook_id}'"
            )
        self._entries_by_item.setdefault(entry.item_id, []).append(entry)
        return entry

    def deactivate(self, pricebook_id: str) -> Pricebook:
        """Turn a pricebook off; its entries stop being candidates."""
        return self.update_validity(pricebook_id, active=False)

    def update_validity(self, pricebook_id: str, **changes) -> Pricebook:
        """Admin edit of active/valid_from/valid_to; other fields are immutable."""
        allowed = {'active', 'valid_from', 'valid_to'}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Pricebook fields {sorted(unknown)} cannot be changed")
        pricebook = self._pricebooks.get(pricebook_id)
        if pricebook is None:
            raise ValueError(f"Pricebook '{pricebook_id}' not found")
        updated = replace(pricebook, **changes)
        self._pricebooks[pricebook_id] = updated
        return updated

    def candidates_for(
        self,
        item_id: str,
        item_type: Optional[PricebookType] = None,
    ) -> list[tuple[PriceListEntry, Pricebook]]:
        """All entries for an item whose pricebook is active (and of the right type)."""
        found = []
        for entry in self._entries_by_item.get(item_id, []):
            pricebook = self._pricebooks[entry.pricebook_id]
            if not pricebook.active:
                continue
            if item_type is not None and pricebook.type != item_type:
                continue
            found.append((entry, pricebook))
        return found


# =============================================
# CSV loading
# =============================================

def _load_csv(path: Path) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str).fillna('')
    df.columns = [c.strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df


def _opt(value: str) -> Optional[str]:
    return value or None


def _opt_date(value: str) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _opt_datetime(value: str) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _opt_float(value: str) -> Optional[float]:
    return float(value) if value else None


def parse_bool(value: str) -> bool:
    """Parse a boolean from CSV string."""
    return value.lower() in ('true', '1', 'yes', 'on', 'sim')


def load_catalog(pricebooks_csv: Path, items_csv: Path, default_currency: str = 'BRL') -> PricebookCatalog:
    """
    Build a catalog from the pricebook and price item CSV exports.

    pricebooks.csv columns: id, name, type, company_id, region_id,
    valid_from, valid_to, priority, active
    price_items.csv columns: id, pricebook_id, item_id, manufacturer_id, price,
    currency, valid_from, valid_to, source, updated_at, updated_by,
    productivity_value, productivity_type, productivity_unit
    """
    if not pricebooks_csv.exists():
        raise FileNotFoundError(f"Pricebooks file not found at {pricebooks_csv}")

    catalog = PricebookCatalog()

    for row in _load_csv(pricebooks_csv).to_dict(orient='records'):
        catalog.add_pricebook(Pricebook(
            id=row['id'],
            name=row.get('name') or row['id'],
            type=PricebookType(row['type'].upper()),
            company_id=_opt(row.get('company_id', '')),
            region_id=_opt(row.get('region_id', '')),
            valid_from=_opt_date(row.get('valid_from', '')),
            valid_to=_opt_date(row.get('valid_to', '')),
            priority=int(row.get('priority') or 0),
            active=parse_bool(row.get('active') or 'true'),
        ))

    if not items_csv.exists():
        logger.warning("Price items file not found at %s; catalog has no entries", items_csv)
        return catalog

    skipped = 0
    for row in _load_csv(items_csv).to_dict(orient='records'):
        if not row.get('item_id') or not row.get('price'):
            skipped += 1
            continue
        productivity_type = row.get('productivity_type', '')
        catalog.add_entry(PriceListEntry(
            id=row['id'],
            pricebook_id=row['pricebook_id'],
            item_id=row['item_id'],
            price=float(row['price']),
            manufacturer_id=_opt(row.get('manufacturer_id', '')),
            currency=row.get('currency') or default_currency,
            valid_from=_opt_date(row.get('valid_from', '')),
            valid_to=_opt_date(row.get('valid_to', '')),
            source=row.get('source', ''),
            updated_at=_opt_datetime(row.get('updated_at', '')),
            updated_by=_opt(row.get('updated_by', '')),
            productivity_value=_opt_float(row.get('productivity_value', '')),
            productivity_type=ProductivityType(productivity_type) if productivity_type else None,
            productivity_unit=_opt(row.get('productivity_unit', '')),
        ))

    if skipped:
        logger.warning("Skipped %d price rows without item_id or price", skipped)
    logger.info("Loaded %d pricebooks from %s", len(catalog), pricebooks_csv)
    return catalog
