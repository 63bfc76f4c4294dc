"""
Pricing errors.

Every error is deterministic bad input: nothing here is worth retrying.
`code` is the stable identifier the API hands back to clients.
"""
from typing import Optional


class PricingError(ValueError):
    """Base class for all line-item pricing failures."""
    code = "pricing_error"

    def __init__(self, message: str, item_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.item_index = item_index

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "item_index": self.item_index}


class MissingPricingBasis(PricingError):
    """Neither a measurement nor a usable special-piece name."""
    code = "missing_pricing_basis"


class UnknownSpecialPiece(MissingPricingBasis):
    """The item name is not in the customer's special-piece list."""
    code = "unknown_special_piece"


class AmbiguousMeasurement(PricingError):
    """Both linear and square meters were supplied."""
    code = "ambiguous_measurement"


class InvalidQuantity(PricingError):
    code = "invalid_quantity"


class InvalidMeasurement(PricingError):
    code = "invalid_measurement"
