"""Engine subpackage - delivery-note pricing."""
from .pricing_engine import PricingEngine, price_item, price_note, round_money
from .models import (
    LinearMeasurement,
    LineItemRequest,
    PricedLineItem,
    PricedNote,
    RateConfig,
    SpecialPiece,
    SquareMeasurement,
    measurement_from,
)
from .errors import (
    AmbiguousMeasurement,
    InvalidMeasurement,
    InvalidQuantity,
    MissingPricingBasis,
    PricingError,
    UnknownSpecialPiece,
)

__all__ = [
    'PricingEngine', 'price_item', 'price_note', 'round_money',
    'LinearMeasurement', 'LineItemRequest', 'PricedLineItem', 'PricedNote',
    'RateConfig', 'SpecialPiece', 'SquareMeasurement', 'measurement_from',
    'AmbiguousMeasurement', 'InvalidMeasurement', 'InvalidQuantity',
    'MissingPricingBasis', 'PricingError', 'UnknownSpecialPiece',
]
