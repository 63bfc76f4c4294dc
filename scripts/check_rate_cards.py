#!/usr/bin/env python
"""
Rate card check - loads the rate card CSV into a scratch customer store
and reports rows that would be rejected.

Usage:
    python scripts/check_rate_cards.py [path/to/rate_cards.csv]
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from epoxiron.config.settings import get_settings
from epoxiron.data.rate_cards import seed_customers
from epoxiron.services.customer_service import CustomerService


def main():
    settings = get_settings()
    csv_path = Path(sys.argv[1]) if len(sys.argv) > 1 else settings.rate_cards_csv

    print("=" * 60)
    print("RATE CARD CHECK")
    print("=" * 60)
    print(f"Source: {csv_path}")
    print()

    service = CustomerService()
    report = seed_customers(service, csv_path, verbose=True)

    if report["errors"]:
        print()
        for error in report["errors"]:
            print(f"  ERROR: {error}")

    print()
    print(f"Customers loaded: {len(report['created'])}")
    for customer in service.list_customers():
        rates = customer.rates
        print(
            f"  {customer.name}: {rates.price_per_linear_meter} €/ml, "
            f"{rates.price_per_square_meter} €/m2, min {rates.minimum_rate} €, "
            f"{len(rates.special_pieces)} special piece(s)"
        )

    if report["status"] != "success":
        print("\n❌ CHECK FAILED")
        sys.exit(1)

    print("\n✅ RATE CARDS OK")


if __name__ == "__main__":
    main()
