#!/usr/bin/env python
"""
Build pipeline - loads the pricebook exports, reports coverage, runs tests.

Usage:
    python scripts/build_all.py
"""
import sys
from collections import Counter
from datetime import date
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from budget_engine.config import get_settings
from budget_engine.engine import PriceOrigin, ResolutionContext, load_catalog
from budget_engine.engine.scope import classify


def main():
    print("=" * 60)
    print("BUDGET ENGINE BUILD PIPELINE")
    print("=" * 60)
    print()

    settings = get_settings()

    print("[1/2] Loading pricebooks...")
    try:
        catalog = load_catalog(settings.pricebooks_csv, settings.price_items_csv, settings.default_currency)
    except (FileNotFoundError, ValueError) as e:
        print("\n❌ BUILD FAILED")
        print(f"  ERROR: {e}")
        sys.exit(1)

    # Scope of each pricebook as seen by a context matching it exactly
    scopes = Counter()
    for pb in catalog.pricebooks:
        ctx = ResolutionContext(as_of=date.today(), company_id=pb.company_id, region_id=pb.region_id)
        scopes[classify(pb, ctx)] += 1
    inactive = sum(1 for pb in catalog.pricebooks if not pb.active)

    print()
    print("[2/2] Running tests...")

    import subprocess
    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests', '-v', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ BUILD COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    print(f"  Pricebooks: {len(catalog)} ({inactive} inactive)")
    print()
    print("Scope Coverage:")
    for origin in sorted(PriceOrigin, reverse=True):
        print(f"  {origin.value}: {scopes.get(origin, 0)}")


if __name__ == "__main__":
    main()
