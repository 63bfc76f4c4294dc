"""
Rate card import and delivery note export.
"""
import sys
import os
from datetime import date
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from epoxiron.config.settings import Settings
from epoxiron.data.note_export import EXPORT_COLUMNS, export_note, note_to_dataframe
from epoxiron.data.rate_cards import load_rate_cards, parse_special_pieces, seed_customers
from epoxiron.services.customer_service import CustomerService
from epoxiron.services.delivery_note_service import DeliveryNoteService

SAMPLE_RATE_CARDS = Path(__file__).parent.parent / 'data' / 'rate_cards.csv'


def write_csv(path: Path, text: str) -> Path:
    path.write_text(text, encoding='utf-8')
    return path


def test_parse_special_pieces():
    pieces = parse_special_pieces("Corner:15; Railing post:22.5")
    assert [(p.name, p.price) for p in pieces] == [("Corner", Decimal("15")), ("Railing post", Decimal("22.5"))]
    assert parse_special_pieces("") == ()


def test_parse_special_pieces_rejects_missing_price():
    with pytest.raises(ValueError):
        parse_special_pieces("Corner")


def test_load_sample_rate_cards():
    customers = load_rate_cards(SAMPLE_RATE_CARDS)
    assert len(customers) == 3
    first = customers[0]
    assert first.rates.price_per_linear_meter == Decimal("12.50")
    assert first.rates.find_special_piece("Bracket").price == Decimal("7.50")
    assert customers[2].rates.special_pieces == ()


def test_seed_reports_bad_rows(tmp_path):
    csv_path = write_csv(tmp_path / "cards.csv", (
        "name,price_per_linear_meter,price_per_square_meter,minimum_rate,special_pieces\n"
        "Good Customer,10,20,5,Corner:15\n"
        "X,10,20,5,\n"
    ))
    service = CustomerService()
    report = seed_customers(service, csv_path)

    assert report["status"] == "partial"
    assert len(report["created"]) == 1
    assert "Row 3" in report["errors"][0]


def test_seed_reports_unreadable_numbers_per_row(tmp_path):
    csv_path = write_csv(tmp_path / "cards.csv", (
        "name,price_per_linear_meter,price_per_square_meter,minimum_rate,special_pieces\n"
        "Good Customer,10,20,5,Corner:15\n"
        "Typo Customer,ten,20,5,\n"
        "Bad Piece Customer,10,20,5,Corner:abc\n"
        "Another Customer,11,21,0,\n"
    ))
    service = CustomerService()
    report = seed_customers(service, csv_path)

    assert report["status"] == "partial"
    assert len(report["created"]) == 2
    assert len(report["errors"]) == 2
    assert report["errors"][0].startswith("Row 3 (Typo Customer)")
    assert report["errors"][1].startswith("Row 4 (Bad Piece Customer)")
    assert [c.name for c in service.list_customers()] == ["Another Customer", "Good Customer"]


def test_seed_missing_columns(tmp_path):
    csv_path = write_csv(tmp_path / "cards.csv", "name,price_per_linear_meter\nA Customer,10\n")
    report = seed_customers(CustomerService(), csv_path)
    assert report["status"] == "failed"
    assert "missing columns" in report["errors"][0]


def test_seed_missing_file(tmp_path):
    report = seed_customers(CustomerService(), tmp_path / "nope.csv")
    assert report["status"] == "failed"


@pytest.fixture
def note(tmp_path):
    customers = CustomerService()
    seed_customers(customers, SAMPLE_RATE_CARDS)
    customer = next(c for c in customers.list_customers() if c.name.startswith("Talleres"))
    service = DeliveryNoteService(
        customers,
        settings=Settings(project_root=tmp_path, data_dir=tmp_path, exports_dir=tmp_path),
    )
    return service.create_note(customer.id, [
        {"name": "Beam", "color": "RAL7016", "quantity": 2, "measurements": {"linearMeters": 4}},
        {"name": "Corner", "quantity": 1, "hasPrimer": True},
    ], note_date=date(2026, 5, 4))


def test_note_to_dataframe(note):
    df = note_to_dataframe(note)
    assert list(df.columns) == EXPORT_COLUMNS
    assert df['Name'].tolist() == ["Beam", "Corner"]
    assert df['Unit Price'].tolist() == [50.0, 30.0]
    assert df['Total'].sum() == pytest.approx(130.0)
    assert df['Primer'].tolist() == ["No", "Yes"]


def test_export_csv(note, tmp_path):
    path = export_note(note, tmp_path / "out" / "note.csv")
    df = pd.read_csv(path)
    assert df['Total'].tolist() == [100.0, 30.0]


def test_export_xlsx(note, tmp_path):
    path = export_note(note, tmp_path / "note.xlsx")
    summary = pd.read_excel(path, sheet_name='Summary')
    assert summary.loc[summary['Field'] == 'Number', 'Value'].iloc[0] == note.number


def test_export_defaults_to_exports_dir(note, tmp_path):
    settings = Settings(project_root=tmp_path, data_dir=tmp_path, exports_dir=tmp_path / 'exports')
    path = export_note(note, fmt='csv', settings=settings)
    assert path == tmp_path / 'exports' / f"{note.number}.csv"
    assert pd.read_csv(path)['Name'].tolist() == ["Beam", "Corner"]


def test_export_unknown_format(note, tmp_path):
    with pytest.raises(ValueError):
        export_note(note, tmp_path / "note.pdf")
