"""
Delivery note export to CSV / Excel.
"""
import io
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import Settings, get_settings
from ..services.delivery_note_service import DeliveryNote

EXPORT_COLUMNS = [
    'Line', 'Name', 'Description', 'Color', 'Linear m', 'Square m',
    'Primer', 'Quantity', 'Unit Price', 'Total',
]


def note_to_dataframe(note: DeliveryNote) -> pd.DataFrame:
    """One row per line, in note order."""
    rows = []
    for position, item in enumerate(note.items, start=1):
        measurement = item.to_request().to_dict()['measurements']
        rows.append({
            'Line': position,
            'Name': item.name,
            'Description': item.description,
            'Color': item.color,
            'Linear m': measurement.get('linearMeters'),
            'Square m': measurement.get('squareMeters'),
            'Primer': 'Yes' if item.has_primer else 'No',
            'Quantity': item.quantity,
            'Unit Price': float(item.unit_price),
            'Total': float(item.total_price),
        })
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def _summary_frame(note: DeliveryNote) -> pd.DataFrame:
    return pd.DataFrame([
        {'Field': 'Number', 'Value': note.number},
        {'Field': 'Customer', 'Value': note.customer_name},
        {'Field': 'Date', 'Value': note.date.isoformat()},
        {'Field': 'Status', 'Value': note.status},
        {'Field': 'Subtotal', 'Value': float(note.subtotal)},
        {'Field': 'Total', 'Value': float(note.total_amount)},
    ])


def note_to_csv_bytes(note: DeliveryNote) -> bytes:
    return note_to_dataframe(note).to_csv(index=False).encode('utf-8')


def note_to_excel_bytes(note: DeliveryNote) -> bytes:
    """Workbook with a Lines sheet and a Summary sheet."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        note_to_dataframe(note).to_excel(writer, sheet_name='Lines', index=False)
        _summary_frame(note).to_excel(writer, sheet_name='Summary', index=False)
    return buffer.getvalue()


def export_note(
    note: DeliveryNote,
    path: Optional[Path] = None,
    fmt: str = 'xlsx',
    settings: Optional[Settings] = None,
) -> Path:
    """
    Write the note to `path`; the suffix (.csv or .xlsx) picks the format.

    Without a path the file goes to the configured exports directory as
    `<number>.<fmt>`.
    """
    if path is None:
        settings = settings or get_settings()
        path = settings.exports_dir / f"{note.number}.{fmt}"
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == '.csv':
        data = note_to_csv_bytes(note)
    elif suffix == '.xlsx':
        data = note_to_excel_bytes(note)
    else:
        raise ValueError(f"Unsupported export format '{suffix}'. Use .csv or .xlsx")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path
