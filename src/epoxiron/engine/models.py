"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
Monetary values and measurements are Decimals; wire values (floats, ints,
strings) are converted on the way in by `to_decimal`.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from .errors import AmbiguousMeasurement, InvalidMeasurement, InvalidQuantity


def to_decimal(value, field_name: str = "value") -> Decimal:
    """Convert a wire number to Decimal without going through binary float noise."""
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number, got {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{field_name} must be a number, got {value!r}")
    if not result.is_finite():
        raise ValueError(f"{field_name} must be a finite number, got {value!r}")
    return result


@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class SpecialPiece:
    """A named piece with a customer-specific flat price."""
    name: str
    price: Decimal

    @classmethod
    def from_dict(cls, data: dict) -> 'SpecialPiece':
        return cls(
            name=str(data.get('name', '')).strip(),
            price=to_decimal(data.get('price', 0), 'price'),
        )

    def to_dict(self) -> dict:
        return {"name": self.name, "price": float(self.price)}


@dataclass(frozen=True)
class RateConfig:
    """A customer's pricing configuration, immutable for one pricing call."""
    price_per_linear_meter: Decimal = Decimal("0")
    price_per_square_meter: Decimal = Decimal("0")
    minimum_rate: Decimal = Decimal("0")
    special_pieces: tuple[SpecialPiece, ...] = ()

    def find_special_piece(self, name: str) -> Optional[SpecialPiece]:
        """Exact, case-sensitive lookup by name."""
        for piece in self.special_pieces:
            if piece.name == name:
                return piece
        return None

    def validate(self) -> list[str]:
        """Return configuration errors (empty list when the config is usable)."""
        errors = []
        if self.price_per_linear_meter < 0:
            errors.append("Price per linear meter cannot be negative")
        if self.price_per_square_meter < 0:
            errors.append("Price per square meter cannot be negative")
        if self.minimum_rate < 0:
            errors.append("Minimum rate cannot be negative")

        seen = set()
        for piece in self.special_pieces:
            if not piece.name:
                errors.append("Special piece name is required")
                continue
            if piece.name in seen:
                errors.append(f"Duplicate special piece '{piece.name}'")
            seen.add(piece.name)
            if piece.price < 0:
                errors.append(f"Special piece '{piece.name}' cannot have a negative price")
        return errors

    @classmethod
    def from_dict(cls, data: dict) -> 'RateConfig':
        """Build from the camelCase wire format used by the API and rate cards."""
        pieces = data.get('specialPieces') or []
        return cls(
            price_per_linear_meter=to_decimal(data.get('pricePerLinearMeter', 0), 'pricePerLinearMeter'),
            price_per_square_meter=to_decimal(data.get('pricePerSquareMeter', 0), 'pricePerSquareMeter'),
            minimum_rate=to_decimal(data.get('minimumRate', 0), 'minimumRate'),
            special_pieces=tuple(
                p if isinstance(p, SpecialPiece) else SpecialPiece.from_dict(p)
                for p in pieces
            ),
        )

    def to_dict(self) -> dict:
        return {
            "pricePerLinearMeter": float(self.price_per_linear_meter),
            "pricePerSquareMeter": float(self.price_per_square_meter),
            "minimumRate": float(self.minimum_rate),
            "specialPieces": [p.to_dict() for p in self.special_pieces],
        }


@dataclass(frozen=True)
class LinearMeasurement:
    linear_meters: Decimal

    def to_dict(self) -> dict:
        return {"linearMeters": float(self.linear_meters)}


@dataclass(frozen=True)
class SquareMeasurement:
    square_meters: Decimal

    def to_dict(self) -> dict:
        return {"squareMeters": float(self.square_meters)}


Measurement = Union[LinearMeasurement, SquareMeasurement]


def measurement_from(linear_meters=None, square_meters=None) -> Optional[Measurement]:
    """
    Build the measurement variant from the two optional wire fields.

    Returns None when neither is given; the item is then priced as a
    special piece.
    """
    if linear_meters is not None and square_meters is not None:
        raise AmbiguousMeasurement(
            "Item has both linear and square meters; supply only one"
        )

    if linear_meters is not None:
        value = to_decimal(linear_meters, 'linearMeters')
        if value <= 0:
            raise InvalidMeasurement(f"Linear meters must be greater than 0, got {value}")
        return LinearMeasurement(value)

    if square_meters is not None:
        value = to_decimal(square_meters, 'squareMeters')
        if value <= 0:
            raise InvalidMeasurement(f"Square meters must be greater than 0, got {value}")
        return SquareMeasurement(value)

    return None


@dataclass(frozen=True)
class LineItemRequest:
    """A requested line on a delivery note, before pricing."""
    name: str
    description: str = ""
    color: str = ""
    quantity: int = 1
    measurement: Optional[Measurement] = None
    has_primer: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'LineItemRequest':
        """
        Parse the wire format:

            {"name": "Viga 5m", "description": "...", "color": "RAL9016",
             "quantity": 2, "measurements": {"linearMeters": 5},
             "hasPrimer": true}
        """
        measurements = data.get('measurements') or {}
        quantity = data.get('quantity', 1)
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantity(f"Quantity must be a whole number, got {quantity!r}")

        return cls(
            name=str(data.get('name') or '').strip(),
            description=str(data.get('description') or ''),
            color=str(data.get('color') or ''),
            quantity=quantity,
            measurement=measurement_from(
                measurements.get('linearMeters'),
                measurements.get('squareMeters'),
            ),
            has_primer=bool(data.get('hasPrimer', False)),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "quantity": self.quantity,
            "measurements": self.measurement.to_dict() if self.measurement else {},
            "hasPrimer": self.has_primer,
        }


@dataclass
class PricedLineItem:
    """A single priced line on a delivery note."""
    name: str
    description: str
    color: str
    quantity: int
    measurement: Optional[Measurement]
    has_primer: bool
    unit_price: Decimal
    total_price: Decimal
    basis: str  # "linear", "square" or "special_piece"
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this line item."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_request(self) -> LineItemRequest:
        return LineItemRequest(
            name=self.name,
            description=self.description,
            color=self.color,
            quantity=self.quantity,
            measurement=self.measurement,
            has_primer=self.has_primer,
        )

    def to_dict(self) -> dict:
        data = self.to_request().to_dict()
        data.update({
            "unitPrice": float(self.unit_price),
            "totalPrice": float(self.total_price),
            "basis": self.basis,
        })
        return data


@dataclass
class PricedNote:
    """Priced lines of a delivery note plus its totals."""
    lines: list[PricedLineItem]
    subtotal: Decimal
    total_amount: Decimal
    minimum_rate: Decimal
    minimum_applied: bool = False
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the note-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)
