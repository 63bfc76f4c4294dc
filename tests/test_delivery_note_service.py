"""
Delivery note service: pricing on create/update, numbering and the
draft → validated → finalized workflow.
"""
import sys
import os
from datetime import date
from decimal import Decimal

import pytest

src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from epoxiron.config.settings import Settings
from epoxiron.engine import RateConfig, SpecialPiece, UnknownSpecialPiece
from epoxiron.services.customer_service import Customer, CustomerService
from epoxiron.services.delivery_note_service import DeliveryNoteService, DeliveryNoteStateError
from epoxiron.storage.kv_store import RecordNotFound


PRIMER_ITEMS = [
    {
        "name": "Linear Item",
        "description": "Item with primer",
        "color": "RAL9010",
        "quantity": 1,
        "measurements": {"linearMeters": 2},
        "hasPrimer": True,
    },
    {
        "name": "Corner",
        "description": "Special piece with primer",
        "color": "RAL9010",
        "quantity": 1,
        "hasPrimer": True,
    },
]


@pytest.fixture
def settings(tmp_path):
    return Settings(project_root=tmp_path, data_dir=tmp_path, exports_dir=tmp_path / 'exports')


@pytest.fixture
def customers():
    return CustomerService()


@pytest.fixture
def customer(customers):
    return customers.create_customer(Customer(
        id='',
        name='Primer Test Customer',
        rates=RateConfig(
            price_per_linear_meter=Decimal("10"),
            price_per_square_meter=Decimal("20"),
            minimum_rate=Decimal("5"),
            special_pieces=(SpecialPiece("Corner", Decimal("15")),),
        ),
    ))


@pytest.fixture
def service(customers, settings):
    return DeliveryNoteService(customers, settings=settings)


def test_create_note_prices_items(service, customer):
    note = service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2026, 3, 2))

    assert [item.unit_price for item in note.items] == [Decimal("40"), Decimal("30")]
    assert note.total_amount == Decimal("70")
    assert note.status == 'draft'
    assert note.customer_name == 'Primer Test Customer'
    assert note.number == 'ALB-26-001'


def test_numbers_are_sequential_per_year(service, customer):
    first = service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2026, 1, 10))
    second = service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2026, 2, 10))
    other_year = service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2027, 1, 5))

    assert first.number == 'ALB-26-001'
    assert second.number == 'ALB-26-002'
    assert other_year.number == 'ALB-27-001'


def test_deleting_a_draft_does_not_reuse_numbers(service, customer):
    first = service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2026, 1, 10))
    second = service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2026, 1, 11))
    service.delete_note(first.id)
    third = service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2026, 1, 12))

    numbers = [n.number for n in service.list_notes()]
    assert len(numbers) == len(set(numbers))
    assert second.number == 'ALB-26-002'
    assert third.number == 'ALB-26-003'


def test_moving_a_note_to_another_year_renumbers_it(service, customer):
    note = service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2026, 12, 30))
    service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2027, 1, 2))

    moved = service.update_note(note.id, {"date": date(2027, 1, 3)})
    assert moved.number == 'ALB-27-002'
    assert service.get_note(note.id).number == 'ALB-27-002'

    same_year = service.update_note(note.id, {"date": date(2027, 2, 1)})
    assert same_year.number == 'ALB-27-002'


def test_create_note_unknown_customer(service):
    with pytest.raises(RecordNotFound):
        service.create_note('cus_missing', PRIMER_ITEMS)


def test_create_note_pricing_failure_stores_nothing(service, customer):
    items = PRIMER_ITEMS + [{"name": "Gate", "quantity": 1}]
    with pytest.raises(UnknownSpecialPiece) as exc:
        service.create_note(customer.id, items)
    assert exc.value.item_index == 2
    assert service.list_notes() == []


def test_preview_does_not_store(service, customer):
    priced = service.preview(customer.id, PRIMER_ITEMS)
    assert priced.total_amount == Decimal("70")
    assert len(service.store) == 0


def test_list_notes_filters(service, customers, customer):
    other = customers.create_customer(Customer(
        id='', name='Other Workshop', rates=RateConfig(price_per_linear_meter=Decimal("5")),
    ))
    note_a = service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2026, 1, 1))
    note_b = service.create_note(customer.id, PRIMER_ITEMS, note_date=date(2026, 2, 1))
    service.create_note(other.id, [{"name": "Beam", "measurements": {"linearMeters": 1}}])
    service.validate(note_a.id)

    by_customer = service.list_notes(customer_id=customer.id)
    assert [n.id for n in by_customer] == [note_b.id, note_a.id]

    validated = service.list_notes(status='validated')
    assert [n.id for n in validated] == [note_a.id]


def test_update_items_reprices(service, customer):
    note = service.create_note(customer.id, PRIMER_ITEMS)
    updated = service.update_note(note.id, {
        "items": [{"name": "Door", "quantity": 2, "measurements": {"squareMeters": 1.5}}],
        "notes": "Second coat",
    })

    assert len(updated.items) == 1
    assert updated.items[0].unit_price == Decimal("30.00")
    assert updated.total_amount == Decimal("60.00")
    assert updated.notes == "Second coat"
    assert service.get_note(note.id).total_amount == Decimal("60.00")


def test_update_with_bad_items_keeps_note(service, customer):
    note = service.create_note(customer.id, PRIMER_ITEMS)
    with pytest.raises(UnknownSpecialPiece):
        service.update_note(note.id, {"items": [{"name": "Gate"}]})
    assert service.get_note(note.id).total_amount == Decimal("70")


def test_changing_customer_reprices_existing_items(service, customers, customer):
    cheaper = customers.create_customer(Customer(
        id='',
        name='Cheaper Customer',
        rates=RateConfig(
            price_per_linear_meter=Decimal("5"),
            special_pieces=(SpecialPiece("Corner", Decimal("10")),),
        ),
    ))
    note = service.create_note(customer.id, PRIMER_ITEMS)
    updated = service.update_note(note.id, {"customer_id": cheaper.id})

    assert updated.customer_name == 'Cheaper Customer'
    assert updated.total_amount == Decimal("40")


def test_status_workflow(service, customer):
    note = service.create_note(customer.id, PRIMER_ITEMS)

    assert service.validate(note.id).status == 'validated'
    assert service.reopen(note.id).status == 'draft'
    service.validate(note.id)
    assert service.finalize(note.id).status == 'finalized'

    with pytest.raises(DeliveryNoteStateError):
        service.reopen(note.id)


def test_cannot_finalize_a_draft(service, customer):
    note = service.create_note(customer.id, PRIMER_ITEMS)
    with pytest.raises(DeliveryNoteStateError):
        service.finalize(note.id)


def test_cannot_validate_empty_note(service, customer):
    note = service.create_note(customer.id, [])
    with pytest.raises(DeliveryNoteStateError):
        service.validate(note.id)


def test_only_drafts_are_editable(service, customer):
    note = service.create_note(customer.id, PRIMER_ITEMS)
    service.validate(note.id)

    with pytest.raises(DeliveryNoteStateError):
        service.update_note(note.id, {"notes": "too late"})
    with pytest.raises(DeliveryNoteStateError):
        service.delete_note(note.id)


def test_delete_draft(service, customer):
    note = service.create_note(customer.id, PRIMER_ITEMS)
    assert service.delete_note(note.id) is True
    assert service.get_note(note.id) is None

    with pytest.raises(RecordNotFound):
        service.delete_note(note.id)


def test_invalid_status_rejected(service, customer):
    note = service.create_note(customer.id, PRIMER_ITEMS)
    with pytest.raises(DeliveryNoteStateError):
        service.change_status(note.id, 'archived')
