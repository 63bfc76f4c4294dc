"""
Delivery Note Service - albaranes: creation, pricing, numbering and workflow.

Business rules:
- Every note belongs to an existing customer and is priced with that
  customer's rates at creation (and again whenever its items change)
- Numbers are sequential per calendar year: ALB-26-001, ALB-26-002, ...
- Status flow: draft → validated → finalized; validated notes can be
  reopened, finalized notes are immutable
- Only drafts can be edited or deleted
"""
import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from ..config.settings import Settings, get_settings
from ..engine import LineItemRequest, PricedLineItem, PricedNote, PricingEngine, PricingError
from ..storage.kv_store import InMemoryStore, KeyValueStore, RecordNotFound
from ..utils.logger import get_logger
from .customer_service import CustomerService, gen_id

logger = get_logger(__name__)

STATUSES = ('draft', 'validated', 'finalized')

# Allowed (from, to) status moves
TRANSITIONS = {
    ('draft', 'validated'),
    ('validated', 'finalized'),
    ('validated', 'draft'),
}


class DeliveryNoteStateError(ValueError):
    """The requested change is not allowed in the note's current status."""


@dataclass
class DeliveryNote:
    """A stored delivery note with its priced lines."""
    id: str
    number: str
    customer_id: str
    customer_name: str
    date: date
    status: str
    items: list[PricedLineItem]
    subtotal: Decimal
    total_amount: Decimal
    minimum_rate: Decimal
    minimum_applied: bool = False
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def is_editable(self) -> bool:
        return self.status == 'draft'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'number': self.number,
            'customerId': self.customer_id,
            'customerName': self.customer_name,
            'date': self.date.isoformat(),
            'status': self.status,
            'items': [item.to_dict() for item in self.items],
            'subtotal': float(self.subtotal),
            'totalAmount': float(self.total_amount),
            'minimumRate': float(self.minimum_rate),
            'minimumApplied': self.minimum_applied,
            'notes': self.notes,
            'createdAt': self.created_at.isoformat(),
            'updatedAt': self.updated_at.isoformat(),
        }


def parse_items(raw_items: Iterable) -> list[LineItemRequest]:
    """Parse wire items, tagging any pricing error with the item's position."""
    items = []
    for index, raw in enumerate(raw_items):
        if isinstance(raw, LineItemRequest):
            items.append(raw)
            continue
        try:
            items.append(LineItemRequest.from_dict(raw))
        except PricingError as e:
            e.item_index = index
            raise
    return items


class DeliveryNoteService:
    """Service for managing delivery notes."""

    def __init__(
        self,
        customers: CustomerService,
        store: Optional[KeyValueStore] = None,
        engine: Optional[PricingEngine] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.customers = customers
        self.store = store if store is not None else InMemoryStore()
        self.engine = engine or PricingEngine(self.settings)
        self._number_lock = threading.Lock()

    def list_notes(self, customer_id: Optional[str] = None, status: Optional[str] = None) -> list[DeliveryNote]:
        """List notes, newest first, optionally filtered by customer and status."""
        if status is not None and status not in STATUSES:
            raise ValueError(f"Invalid status '{status}'")

        notes = self.store.values()
        if customer_id:
            notes = [n for n in notes if n.customer_id == customer_id]
        if status:
            notes = [n for n in notes if n.status == status]
        return sorted(notes, key=lambda n: (n.date, n.created_at), reverse=True)

    def get_note(self, note_id: str) -> Optional[DeliveryNote]:
        return self.store.get(note_id)

    def require_note(self, note_id: str) -> DeliveryNote:
        note = self.store.get(note_id)
        if note is None:
            raise RecordNotFound(f"Delivery note '{note_id}' not found")
        return note

    def next_number(self, note_date: Optional[date] = None) -> str:
        """
        Next sequential number for the year of `note_date` (e.g. ALB-26-004).

        Follows the highest number already issued for that year, so numbers
        freed by deleted drafts are never handed out again while a later
        note still holds its own.
        """
        year_prefix = f"{self.settings.note_number_prefix}-{str((note_date or date.today()).year)[-2:]}-"
        highest = 0
        for note in self.store.values():
            if not note.number.startswith(year_prefix):
                continue
            sequence = note.number[len(year_prefix):]
            if sequence.isdigit():
                highest = max(highest, int(sequence))
        return f"{year_prefix}{highest + 1:03d}"

    def preview(self, customer_id: str, raw_items: Iterable) -> PricedNote:
        """Price items for a customer without storing anything."""
        customer = self.customers.require_customer(customer_id)
        return self.engine.price_note(parse_items(raw_items), customer.rates)

    def create_note(
        self,
        customer_id: str,
        raw_items: Iterable,
        note_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> DeliveryNote:
        """Price and store a new draft note."""
        customer = self.customers.require_customer(customer_id)
        priced = self.engine.price_note(parse_items(raw_items), customer.rates)
        note_date = note_date or date.today()

        with self._number_lock:
            note = DeliveryNote(
                id=gen_id("alb"),
                number=self.next_number(note_date),
                customer_id=customer.id,
                customer_name=customer.name,
                date=note_date,
                status='draft',
                items=priced.lines,
                subtotal=priced.subtotal,
                total_amount=priced.total_amount,
                minimum_rate=priced.minimum_rate,
                minimum_applied=priced.minimum_applied,
                notes=notes,
            )
            self.store.create(note.id, note)

        logger.info(
            "Created delivery note %s for %s: %d item(s), total %s",
            note.number, customer.name, len(note.items), note.total_amount,
        )
        return note

    def update_note(self, note_id: str, updates: dict) -> DeliveryNote:
        """
        Update a draft note.

        Accepts `customer_id`, `date`, `notes` and `items`. Changing the
        customer or the items re-prices the whole note. Moving the date
        into another year renumbers the note in that year's sequence.
        """
        note = self.require_note(note_id)
        if not note.is_editable():
            raise DeliveryNoteStateError(f"Delivery note {note.number} is {note.status} and cannot be edited")

        changes = {}
        if updates.get('date') is not None:
            changes['date'] = updates['date']
        if 'notes' in updates:
            changes['notes'] = updates['notes']

        customer_id = updates.get('customer_id') or note.customer_id
        if customer_id != note.customer_id or updates.get('items') is not None:
            customer = self.customers.require_customer(customer_id)
            if updates.get('items') is not None:
                items = parse_items(updates['items'])
            else:
                items = [line.to_request() for line in note.items]
            priced = self.engine.price_note(items, customer.rates)
            changes.update(
                customer_id=customer.id,
                customer_name=customer.name,
                items=priced.lines,
                subtotal=priced.subtotal,
                total_amount=priced.total_amount,
                minimum_rate=priced.minimum_rate,
                minimum_applied=priced.minimum_applied,
            )

        with self._number_lock:
            new_date = changes.get('date')
            if new_date is not None and new_date.year != note.date.year:
                changes['number'] = self.next_number(new_date)
            updated = replace(note, **changes, updated_at=datetime.now())
            self.store.update(note_id, updated)

        if 'number' in changes:
            logger.info("Delivery note %s renumbered to %s", note.number, updated.number)
        logger.info("Updated delivery note %s: %s", updated.number, ", ".join(sorted(changes)) or "no changes")
        return updated

    def delete_note(self, note_id: str) -> bool:
        """Delete a note. Only drafts can be deleted."""
        note = self.require_note(note_id)
        if not note.is_editable():
            raise DeliveryNoteStateError("Can only delete draft delivery notes")
        self.store.delete(note_id)
        logger.info("Deleted delivery note %s", note.number)
        return True

    def change_status(self, note_id: str, status: str) -> DeliveryNote:
        """Move a note along the draft → validated → finalized workflow."""
        if status not in STATUSES:
            raise DeliveryNoteStateError(f"Invalid status '{status}'")

        note = self.require_note(note_id)
        if status == note.status:
            return note

        if (note.status, status) not in TRANSITIONS:
            raise DeliveryNoteStateError(f"Cannot change status from {note.status} to {status}")
        if status == 'validated' and not note.items:
            raise DeliveryNoteStateError("Cannot validate a delivery note without items")

        updated = replace(note, status=status, updated_at=datetime.now())
        self.store.update(note_id, updated)
        logger.info("Delivery note %s: %s → %s", note.number, note.status, status)
        return updated

    def validate(self, note_id: str) -> DeliveryNote:
        return self.change_status(note_id, 'validated')

    def finalize(self, note_id: str) -> DeliveryNote:
        return self.change_status(note_id, 'finalized')

    def reopen(self, note_id: str) -> DeliveryNote:
        return self.change_status(note_id, 'draft')
