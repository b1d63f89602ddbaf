#!/usr/bin/env python
"""
Resolve one price from the CSV exports and print the resolution trace.

Usage:
    python scripts/debug_price.py MATERIAL CAB-2.5 --company EMP-A --region SP --date 2024-06-01
"""
import argparse
import sys
from datetime import date
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from budget_engine.config import configure_logging, get_settings
from budget_engine.engine import ItemRef, PricebookType, PriceResolver, ResolutionContext, load_catalog


def debug():
    parser = argparse.ArgumentParser(description="Debug effective price resolution")
    parser.add_argument('item_type', choices=[t.value for t in PricebookType])
    parser.add_argument('item_id')
    parser.add_argument('--company')
    parser.add_argument('--region')
    parser.add_argument('--manufacturer')
    parser.add_argument('--date', type=date.fromisoformat, default=date.today())
    args = parser.parse_args()

    configure_logging('DEBUG')
    settings = get_settings()
    catalog = load_catalog(settings.pricebooks_csv, settings.price_items_csv, settings.default_currency)

    print("Loaded Pricebooks:")
    for pb in sorted(catalog.pricebooks, key=lambda p: (p.type.value, p.priority, p.id)):
        state = "active" if pb.active else "inactive"
        print(f"  {pb.id:<12} {pb.type.value:<9} {pb.scope_label:<30} prio={pb.priority} {state}")

    context = ResolutionContext(
        as_of=args.date,
        company_id=args.company,
        region_id=args.region,
        manufacturer_id=args.manufacturer,
    )
    result = PriceResolver(catalog).resolve(ItemRef(PricebookType(args.item_type), args.item_id), context)

    print("\n--- Resolution ---")
    for step in result.trace:
        suffix = f" = {step.value}" if step.value else ""
        print(f"→ {step.step}: {step.description}{suffix}")

    if not result:
        print(f"\nNO PRICE AVAILABLE: {result.reason}")
        sys.exit(1)
    print(f"\nEffective price: {result.price:.2f} {result.currency} ({result.origin.value})")


if __name__ == "__main__":
    debug()
