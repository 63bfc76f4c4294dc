"""
Customer Service - CRUD operations for workshop customers and their rates.
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from ..engine.models import RateConfig
from ..storage.kv_store import InMemoryStore, KeyValueStore, RecordNotFound
from ..utils.logger import get_logger

logger = get_logger(__name__)

UPDATABLE_FIELDS = ('name', 'email', 'phone', 'address', 'notes', 'rates')


def gen_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


@dataclass
class Customer:
    """A workshop customer with its pricing configuration."""
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    rates: RateConfig = field(default_factory=RateConfig)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'notes': self.notes,
            'createdAt': self.created_at.isoformat(),
            'updatedAt': self.updated_at.isoformat(),
        }
        data.update(self.rates.to_dict())
        return data


@dataclass
class ValidationResult:
    """Result of customer validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class CustomerService:
    """Service for managing customers."""

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store if store is not None else InMemoryStore()

    def list_customers(self) -> list[Customer]:
        """List customers sorted by name."""
        return sorted(self.store.values(), key=lambda c: c.name.lower())

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self.store.get(customer_id)

    def require_customer(self, customer_id: str) -> Customer:
        customer = self.store.get(customer_id)
        if customer is None:
            raise RecordNotFound(f"Customer '{customer_id}' not found")
        return customer

    def validate_customer(self, customer: Customer) -> ValidationResult:
        """Validate a customer before saving."""
        result = ValidationResult(valid=True)

        name = (customer.name or '').strip()
        if not name:
            result.errors.append("Name is required")
        elif len(name) < 2:
            result.errors.append("Name must be at least 2 characters long")

        result.errors.extend(customer.rates.validate())

        if customer.rates.price_per_linear_meter == 0 and customer.rates.price_per_square_meter == 0:
            result.warnings.append("No linear or square meter price set; only special pieces can be priced")

        result.valid = not result.errors
        return result

    def create_customer(self, customer: Customer) -> Customer:
        """Create a new customer. Raises ValueError when validation fails."""
        if not customer.id:
            customer.id = gen_id("cus")
        customer.name = (customer.name or '').strip()

        validation = self.validate_customer(customer)
        if not validation.valid:
            raise ValueError("; ".join(validation.errors))

        self.store.create(customer.id, customer)
        logger.info("Created customer %s (%s)", customer.id, customer.name)
        return customer

    def update_customer(self, customer_id: str, updates: dict) -> Customer:
        """Update an existing customer with the given fields."""
        customer = self.require_customer(customer_id)

        changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
        if isinstance(changes.get('rates'), dict):
            merged = customer.rates.to_dict()
            merged.update(changes['rates'])
            changes['rates'] = RateConfig.from_dict(merged)
        if 'name' in changes:
            changes['name'] = (changes['name'] or '').strip()

        updated = replace(customer, **changes, updated_at=datetime.now())

        validation = self.validate_customer(updated)
        if not validation.valid:
            raise ValueError("; ".join(validation.errors))

        self.store.update(customer_id, updated)
        logger.info("Updated customer %s: %s", customer_id, ", ".join(sorted(changes)) or "no changes")
        return updated

    def delete_customer(self, customer_id: str) -> bool:
        if not self.store.delete(customer_id):
            raise RecordNotFound(f"Customer '{customer_id}' not found")
        logger.info("Deleted customer %s", customer_id)
        return True

    def get_rates(self, customer_id: str) -> RateConfig:
        return self.require_customer(customer_id).rates
