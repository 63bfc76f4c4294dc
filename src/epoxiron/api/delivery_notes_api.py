"""
Delivery Notes API - FastAPI router for albaranes.

Pricing errors come back as 422 with the failing item's position so the
client can point at the offending line.
"""
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from ..data.note_export import note_to_csv_bytes, note_to_excel_bytes
from ..engine import PricingError
from ..services.delivery_note_service import DeliveryNoteStateError
from ..storage.kv_store import RecordNotFound
from .state import note_service

router = APIRouter(prefix="/api/delivery-notes", tags=["delivery-notes"])


# Pydantic models for API
class MeasurementsModel(BaseModel):
    linearMeters: Optional[float] = None
    squareMeters: Optional[float] = None


class ItemModel(BaseModel):
    """A requested line; prices are always computed server-side."""
    name: str = ""
    description: str = ""
    color: str = ""
    quantity: int = 1
    measurements: MeasurementsModel = Field(default_factory=MeasurementsModel)
    hasPrimer: bool = False


class DeliveryNoteCreate(BaseModel):
    customerId: str
    note_date: Optional[date] = Field(default=None, alias="date")
    items: list[ItemModel]
    notes: Optional[str] = None


class DeliveryNoteUpdate(BaseModel):
    customerId: Optional[str] = None
    note_date: Optional[date] = Field(default=None, alias="date")
    items: Optional[list[ItemModel]] = None
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: Literal['draft', 'validated', 'finalized']


class PreviewRequest(BaseModel):
    customerId: str
    items: list[ItemModel]


def _pricing_error(e: PricingError) -> HTTPException:
    return HTTPException(status_code=422, detail=e.to_dict())


def _items_payload(items: list[ItemModel]) -> list[dict]:
    return [item.model_dump() for item in items]


# Endpoints

@router.get("")
async def list_delivery_notes(customer_id: Optional[str] = None, status: Optional[str] = None):
    """List delivery notes, optionally filtered by customer or status."""
    try:
        notes = note_service.list_notes(customer_id=customer_id, status=status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [n.to_dict() for n in notes]


@router.post("/preview")
async def preview_delivery_note(request: PreviewRequest):
    """Price items for a customer without saving a note."""
    try:
        priced = note_service.preview(request.customerId, _items_payload(request.items))
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PricingError as e:
        raise _pricing_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "items": [line.to_dict() for line in priced.lines],
        "subtotal": float(priced.subtotal),
        "totalAmount": float(priced.total_amount),
        "minimumRate": float(priced.minimum_rate),
        "minimumApplied": priced.minimum_applied,
    }


@router.get("/{note_id}")
async def get_delivery_note(note_id: str):
    """Get a single delivery note by ID."""
    note = note_service.get_note(note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Delivery note not found")
    return note.to_dict()


@router.post("", status_code=201)
async def create_delivery_note(data: DeliveryNoteCreate):
    """Create a draft delivery note priced with the customer's rates."""
    try:
        note = note_service.create_note(
            data.customerId,
            _items_payload(data.items),
            note_date=data.note_date,
            notes=data.notes,
        )
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PricingError as e:
        raise _pricing_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return note.to_dict()


@router.put("/{note_id}")
async def update_delivery_note(note_id: str, updates: DeliveryNoteUpdate):
    """Update a draft note; new items are re-priced."""
    body = updates.model_dump(exclude_unset=True)
    update_dict = {}
    if 'customerId' in body:
        update_dict['customer_id'] = body['customerId']
    if "note_date" in body:
        update_dict["date"] = body["note_date"]
    if 'notes' in body:
        update_dict['notes'] = body['notes']
    if body.get('items') is not None:
        update_dict['items'] = body['items']

    try:
        note = note_service.update_note(note_id, update_dict)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PricingError as e:
        raise _pricing_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return note.to_dict()


@router.patch("/{note_id}/status")
async def update_delivery_note_status(note_id: str, update: StatusUpdate):
    """Move a note through draft → validated → finalized (or reopen it)."""
    try:
        note = note_service.change_status(note_id, update.status)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DeliveryNoteStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return note.to_dict()


@router.delete("/{note_id}", status_code=204)
async def delete_delivery_note(note_id: str):
    """Delete a draft delivery note."""
    try:
        note_service.delete_note(note_id)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DeliveryNoteStateError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{note_id}/export")
async def export_delivery_note(note_id: str, fmt: Literal['csv', 'xlsx'] = 'csv'):
    """Download a note as CSV or Excel."""
    note = note_service.get_note(note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Delivery note not found")

    filename = f"{note.number}.{fmt}"
    if fmt == 'xlsx':
        content = note_to_excel_bytes(note)
        media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    else:
        content = note_to_csv_bytes(note)
        media_type = "text/csv"

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
