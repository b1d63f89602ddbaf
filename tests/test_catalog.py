import pytest
import sys
import os
from datetime import date
from pathlib import Path

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from budget_engine.engine import (
    ItemRef,
    Pricebook,
    PricebookCatalog,
    PriceListEntry,
    PriceOrigin,
    PricebookType,
    PriceResolver,
    ResolutionContext,
    load_catalog,
)
from budget_engine.engine.models import ProductivityType

DATA_DIR = Path(__file__).parent.parent / 'data'


@pytest.fixture
def sample_catalog():
    return load_catalog(DATA_DIR / 'pricebooks.csv', DATA_DIR / 'price_items.csv')


def test_sample_data_loads(sample_catalog):
    assert len(sample_catalog) == 6
    labor = sample_catalog.candidates_for("ELETRICISTA", PricebookType.LABOR)
    assert len(labor) == 2
    entry, _ = labor[0]
    assert entry.productivity_type == ProductivityType.HH_PER_UNIT


def test_sample_data_resolution(sample_catalog):
    """Company A in SP on 2024-06-01: the company+region promo expired in May."""
    resolver = PriceResolver(sample_catalog)
    ctx = ResolutionContext(as_of=date(2024, 6, 1), company_id="EMP-A", region_id="SP")
    result = resolver.resolve(ItemRef(PricebookType.MATERIAL, "CAB-2.5"), ctx)
    assert result.origin == PriceOrigin.EMPRESA
    assert result.price == 4.02

    in_april = resolver.resolve(
        ItemRef(PricebookType.MATERIAL, "CAB-2.5"),
        ResolutionContext(as_of=date(2024, 4, 1), company_id="EMP-A", region_id="SP"),
    )
    assert in_april.origin == PriceOrigin.EMPRESA_REGIAO
    assert in_april.price == 3.95


def test_load_from_tmp_csv(tmp_path):
    books = tmp_path / 'pricebooks.csv'
    items = tmp_path / 'price_items.csv'
    books.write_text(
        "id,name,type,company_id,region_id,valid_from,valid_to,priority,active\n"
        "P1, Global ,material,,,2024-01-01,,0,true\n"
        "P2,Off,MATERIAL,X,,,,1,false\n",
        encoding='utf-8',
    )
    items.write_text(
        "id,pricebook_id,item_id,manufacturer_id,price,currency,valid_from,valid_to,source,updated_at\n"
        "E1,P1,ITEM,,9.5,,,,,\n"
        "E2,P1,,,1.0,,,,,\n"
        "E3,P2,ITEM,,8.0,USD,,,,\n",
        encoding='utf-8',
    )
    catalog = load_catalog(books, items, default_currency='BRL')

    p1 = catalog.get_pricebook("P1")
    assert p1.name == "Global"
    assert p1.valid_from == date(2024, 1, 1)
    assert not catalog.get_pricebook("P2").active

    candidates = catalog.candidates_for("ITEM")
    assert [e.id for e, _ in candidates] == ["E1"]
    assert candidates[0][0].currency == 'BRL'


def test_missing_pricebooks_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalog(tmp_path / 'nope.csv', tmp_path / 'nope_items.csv')


def test_entry_requires_known_pricebook():
    catalog = PricebookCatalog()
    with pytest.raises(ValueError):
        catalog.add_entry(PriceListEntry(id="e", pricebook_id="missing", item_id="X", price=1.0))


def test_duplicate_and_inverted_pricebooks_rejected():
    catalog = PricebookCatalog([Pricebook(id="P", name="P", type=PricebookType.MATERIAL)])
    with pytest.raises(ValueError):
        catalog.add_pricebook(Pricebook(id="P", name="P", type=PricebookType.MATERIAL))
    with pytest.raises(ValueError):
        catalog.add_pricebook(Pricebook(
            id="Q", name="Q", type=PricebookType.MATERIAL,
            valid_from=date(2024, 2, 1), valid_to=date(2024, 1, 1),
        ))


def test_admin_edits_limited_to_validity_and_active():
    catalog = PricebookCatalog([Pricebook(id="P", name="P", type=PricebookType.MATERIAL)])
    catalog.add_entry(PriceListEntry(id="e", pricebook_id="P", item_id="X", price=1.0))

    catalog.update_validity("P", valid_to=date(2024, 12, 31))
    assert catalog.get_pricebook("P").valid_to == date(2024, 12, 31)

    with pytest.raises(ValueError):
        catalog.update_validity("P", priority=5)

    catalog.deactivate("P")
    assert catalog.candidates_for("X") == []
