"""
Rate card import - loads customers and their rates from a CSV file.

Expected columns (one row per customer):
    name, email, phone, address, price_per_linear_meter,
    price_per_square_meter, minimum_rate, special_pieces

`special_pieces` is a `;`-separated list of `name:price` pairs, e.g.
`Corner:15;Bracket:7.5`.
"""
from pathlib import Path

import pandas as pd

from ..engine.models import RateConfig, SpecialPiece, to_decimal
from ..services.customer_service import Customer, CustomerService
from ..utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_COLUMNS = ['name', 'price_per_linear_meter', 'price_per_square_meter', 'minimum_rate']


def parse_special_pieces(value: str) -> tuple[SpecialPiece, ...]:
    """Parse `Corner:15;Bracket:7.5` into special pieces, keeping order."""
    pieces = []
    for chunk in str(value or '').split(';'):
        chunk = chunk.strip()
        if not chunk:
            continue
        if ':' not in chunk:
            raise ValueError(f"Special piece '{chunk}' must look like name:price")
        name, price = chunk.rsplit(':', 1)
        pieces.append(SpecialPiece(name=name.strip(), price=to_decimal(price.strip(), 'price')))
    return tuple(pieces)


def read_rate_card_frame(csv_path: Path) -> pd.DataFrame:
    """Read the rate card CSV as stripped strings, checking required columns."""
    if not csv_path.exists():
        raise FileNotFoundError(f"Rate card file not found at {csv_path}")

    df = pd.read_csv(csv_path, dtype=str).fillna('')
    df.columns = [c.strip().lower() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Rate card file is missing columns: {', '.join(missing)}")
    return df


def row_to_customer(row: pd.Series) -> Customer:
    """Build an unsaved Customer from one rate card row."""
    rates = RateConfig(
        price_per_linear_meter=to_decimal(row['price_per_linear_meter'] or 0, 'price_per_linear_meter'),
        price_per_square_meter=to_decimal(row['price_per_square_meter'] or 0, 'price_per_square_meter'),
        minimum_rate=to_decimal(row['minimum_rate'] or 0, 'minimum_rate'),
        special_pieces=parse_special_pieces(row.get('special_pieces', '')),
    )
    return Customer(
        id='',
        name=row['name'],
        email=row.get('email') or None,
        phone=row.get('phone') or None,
        address=row.get('address') or None,
        rates=rates,
    )


def load_rate_cards(csv_path: Path) -> list[Customer]:
    """Read the rate card CSV into unsaved Customer records."""
    df = read_rate_card_frame(csv_path)
    return [row_to_customer(row) for _, row in df.iterrows()]


def seed_customers(service: CustomerService, csv_path: Path, clear: bool = False, verbose: bool = False) -> dict:
    """
    Create customers from a rate card file.

    Returns a report dict with status, created ids and per-row errors. A row
    with an unreadable number or an invalid customer is reported on its own
    and the remaining rows are still loaded.
    """
    report = {
        "status": "success",
        "source": str(csv_path),
        "created": [],
        "errors": [],
    }

    try:
        df = read_rate_card_frame(csv_path)
    except (FileNotFoundError, ValueError) as e:
        report["status"] = "failed"
        report["errors"].append(str(e))
        return report

    if clear:
        service.store.clear()

    for row_number, (_, row) in enumerate(df.iterrows(), start=2):
        try:
            created = service.create_customer(row_to_customer(row))
        except ValueError as e:
            report["errors"].append(f"Row {row_number} ({row['name'] or 'unnamed'}): {e}")
            continue
        report["created"].append(created.id)
        if verbose:
            print(f"  + {created.name} ({created.id})")

    if report["errors"]:
        report["status"] = "partial" if report["created"] else "failed"

    logger.info("Seeded %d customer(s) from %s", len(report["created"]), csv_path)
    return report

