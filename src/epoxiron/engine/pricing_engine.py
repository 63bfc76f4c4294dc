"""
Pricing Engine - delivery-note line pricing with traceability.

Resolution per line:
1. Pricing basis: linear meters, square meters, or special-piece lookup by name
2. Optional minimum-rate floor on measured items (item policy only)
3. Primer surcharge doubles the price
4. Unit price rounded half-up to cents, total = unit price × quantity

Note totals are the rounded sum of line totals, optionally floored at the
customer's minimum rate (note policy).

Everything here is a pure function of its arguments; the engine holds no
state besides its settings.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from ..config.settings import MINIMUM_RATE_POLICIES, Settings, get_settings
from ..utils.logger import get_logger
from .errors import InvalidQuantity, MissingPricingBasis, PricingError, UnknownSpecialPiece
from .models import (
    LinearMeasurement,
    LineItemRequest,
    PricedLineItem,
    PricedNote,
    RateConfig,
    SquareMeasurement,
)

logger = get_logger(__name__)

CENT = Decimal("0.01")
PRIMER_MULTIPLIER = 2


def round_money(value: Decimal) -> Decimal:
    """Round to 2 decimals, halves away from zero."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _money(value: Decimal) -> str:
    return f"€{value:.2f}"


def _check_policy(minimum_rate_policy: str):
    if minimum_rate_policy not in MINIMUM_RATE_POLICIES:
        raise ValueError(f"Unknown minimum rate policy '{minimum_rate_policy}'")


def price_item(item: LineItemRequest, rates: RateConfig, minimum_rate_policy: str = 'none') -> PricedLineItem:
    """
    Price a single line item against a customer's rates.

    Raises a PricingError subclass when the item cannot be priced; an
    unpriceable item never comes back as a zero price.
    """
    _check_policy(minimum_rate_policy)
    if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity <= 0:
        raise InvalidQuantity(f"Quantity must be at least 1, got {item.quantity!r}")

    line = PricedLineItem(
        name=item.name,
        description=item.description,
        color=item.color,
        quantity=item.quantity,
        measurement=item.measurement,
        has_primer=item.has_primer,
        unit_price=Decimal("0"),
        total_price=Decimal("0"),
        basis="",
    )

    measurement = item.measurement
    if isinstance(measurement, LinearMeasurement):
        base = rates.price_per_linear_meter * measurement.linear_meters
        line.basis = "linear"
        line.add_trace(
            "Linear Meters",
            f"{measurement.linear_meters} m × {_money(rates.price_per_linear_meter)}/m",
            _money(base),
        )
    elif isinstance(measurement, SquareMeasurement):
        base = rates.price_per_square_meter * measurement.square_meters
        line.basis = "square"
        line.add_trace(
            "Square Meters",
            f"{measurement.square_meters} m² × {_money(rates.price_per_square_meter)}/m²",
            _money(base),
        )
    elif measurement is None:
        if not item.name:
            raise MissingPricingBasis("Item has no measurement and no name to look up as a special piece")
        if not rates.special_pieces:
            raise MissingPricingBasis(
                f"Item '{item.name}' has no measurement and the customer has no special pieces configured"
            )
        piece = rates.find_special_piece(item.name)
        if piece is None:
            raise UnknownSpecialPiece(f"Special piece '{item.name}' is not in the customer's price list")
        base = piece.price
        line.basis = "special_piece"
        line.add_trace("Special Piece", f"Matched '{piece.name}'", _money(base))
    else:
        raise MissingPricingBasis(f"Unsupported measurement {measurement!r}")

    if (
        minimum_rate_policy == 'item'
        and line.basis != "special_piece"
        and 0 < base < rates.minimum_rate
    ):
        line.add_trace("Minimum Rate", f"{_money(base)} below minimum", _money(rates.minimum_rate))
        base = rates.minimum_rate

    unit_price = round_money(base)
    if item.has_primer:
        unit_price = unit_price * PRIMER_MULTIPLIER
        line.add_trace("Primer", f"Price × {PRIMER_MULTIPLIER} for primer coat", _money(unit_price))

    line.unit_price = unit_price
    line.total_price = round_money(unit_price * item.quantity)
    line.add_trace("Extension", f"Quantity {item.quantity} × {_money(unit_price)}", _money(line.total_price))

    return line


def price_note(
    items: Iterable[LineItemRequest],
    rates: RateConfig,
    minimum_rate_policy: str = 'none',
) -> PricedNote:
    """
    Price every line of a note, preserving order.

    Fails on the first unpriceable line; the raised error carries the
    line's position in `item_index`.
    """
    _check_policy(minimum_rate_policy)

    lines = []
    for index, item in enumerate(items):
        try:
            lines.append(price_item(item, rates, minimum_rate_policy))
        except PricingError as e:
            e.item_index = index
            raise

    subtotal = round_money(sum((line.total_price for line in lines), Decimal("0")))
    note = PricedNote(
        lines=lines,
        subtotal=subtotal,
        total_amount=subtotal,
        minimum_rate=rates.minimum_rate,
    )
    note.add_trace("Subtotal", f"{len(lines)} line(s)", _money(subtotal))

    if minimum_rate_policy == 'note' and lines and subtotal < rates.minimum_rate:
        note.total_amount = round_money(rates.minimum_rate)
        note.minimum_applied = True
        note.add_trace("Minimum Rate", f"{_money(subtotal)} below minimum", _money(note.total_amount))

    return note


class PricingEngine:
    """
    Prices delivery notes with the minimum-rate policy taken from settings.

    The engine itself is stateless, so one instance can serve concurrent
    requests.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def minimum_rate_policy(self) -> str:
        return self.settings.minimum_rate_policy

    def price_item(self, item: LineItemRequest, rates: RateConfig) -> PricedLineItem:
        return price_item(item, rates, self.minimum_rate_policy)

    def price_note(self, items: Iterable[LineItemRequest], rates: RateConfig) -> PricedNote:
        """Price a whole note; logs and re-raises pricing failures."""
        try:
            note = price_note(items, rates, self.minimum_rate_policy)
        except PricingError as e:
            logger.warning("Pricing failed at item %s: %s", e.item_index, e.message)
            raise

        logger.debug(
            "Priced %d line(s): subtotal=%s total=%s (policy=%s)",
            len(note.lines), note.subtotal, note.total_amount, self.minimum_rate_policy,
        )
        return note
