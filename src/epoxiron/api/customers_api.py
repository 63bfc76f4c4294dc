"""
Customers API - FastAPI router for customer and rate management.
"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Optional

from ..engine.models import RateConfig
from ..services.customer_service import Customer
from ..storage.kv_store import RecordNotFound
from .state import customer_service

router = APIRouter(prefix="/api/customers", tags=["customers"])


# Pydantic models for API
class SpecialPieceModel(BaseModel):
    name: str
    price: float = Field(ge=0)


class CustomerCreate(BaseModel):
    """Request model for creating a customer."""
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    pricePerLinearMeter: float = Field(default=0, ge=0)
    pricePerSquareMeter: float = Field(default=0, ge=0)
    minimumRate: float = Field(default=0, ge=0)
    specialPieces: list[SpecialPieceModel] = []


class CustomerUpdate(BaseModel):
    """Request model for updating a customer."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    pricePerLinearMeter: Optional[float] = Field(default=None, ge=0)
    pricePerSquareMeter: Optional[float] = Field(default=None, ge=0)
    minimumRate: Optional[float] = Field(default=None, ge=0)
    specialPieces: Optional[list[SpecialPieceModel]] = None


class CustomerResponse(BaseModel):
    """Response model for a customer."""
    id: str
    name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    notes: Optional[str]
    pricePerLinearMeter: float
    pricePerSquareMeter: float
    minimumRate: float
    specialPieces: list[SpecialPieceModel]
    createdAt: str
    updatedAt: str


RATE_FIELDS = ('pricePerLinearMeter', 'pricePerSquareMeter', 'minimumRate', 'specialPieces')


# Endpoints

@router.get("", response_model=list[CustomerResponse])
async def list_customers():
    """List all customers."""
    return [c.to_dict() for c in customer_service.list_customers()]


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: str):
    """Get a single customer by ID."""
    customer = customer_service.get_customer(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail=f"Customer '{customer_id}' not found")
    return customer.to_dict()


@router.get("/{customer_id}/rates")
async def get_customer_rates(customer_id: str):
    """Get the pricing configuration of a customer."""
    try:
        return customer_service.get_rates(customer_id).to_dict()
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(data: CustomerCreate):
    """Create a new customer with its rates."""
    payload = data.model_dump()
    customer = Customer(
        id='',
        name=payload['name'],
        email=payload['email'],
        phone=payload['phone'],
        address=payload['address'],
        notes=payload['notes'],
        rates=RateConfig.from_dict({k: payload[k] for k in RATE_FIELDS}),
    )
    try:
        created = customer_service.create_customer(customer)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return created.to_dict()


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(customer_id: str, updates: CustomerUpdate):
    """Update an existing customer. Only fields present in the body change."""
    update_dict = updates.model_dump(exclude_unset=True)

    rate_updates = {k: update_dict.pop(k) for k in RATE_FIELDS if k in update_dict}
    if rate_updates:
        update_dict['rates'] = rate_updates

    try:
        updated = customer_service.update_customer(customer_id, update_dict)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return updated.to_dict()


@router.delete("/{customer_id}", status_code=204)
async def delete_customer(customer_id: str):
    """Delete a customer."""
    try:
        customer_service.delete_customer(customer_id)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
