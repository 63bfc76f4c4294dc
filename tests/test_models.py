import sys
import os
from decimal import Decimal

import pytest

src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from epoxiron.engine import (
    AmbiguousMeasurement,
    InvalidMeasurement,
    InvalidQuantity,
    LinearMeasurement,
    LineItemRequest,
    RateConfig,
    SpecialPiece,
    SquareMeasurement,
    measurement_from,
)


def test_measurement_from_linear():
    assert measurement_from(linear_meters=2.5) == LinearMeasurement(Decimal("2.5"))


def test_measurement_from_square():
    assert measurement_from(square_meters="4") == SquareMeasurement(Decimal("4"))


def test_measurement_from_nothing_is_special_piece():
    assert measurement_from() is None


def test_both_measurements_are_ambiguous():
    with pytest.raises(AmbiguousMeasurement):
        measurement_from(linear_meters=1, square_meters=2)


@pytest.mark.parametrize("value", [0, -3])
def test_non_positive_measurement_rejected(value):
    with pytest.raises(InvalidMeasurement):
        measurement_from(linear_meters=value)


def test_line_item_from_wire_format():
    item = LineItemRequest.from_dict({
        "name": "Viga 5m",
        "description": "Steel beam",
        "color": "RAL7016",
        "quantity": 3,
        "measurements": {"linearMeters": 5},
        "hasPrimer": True,
    })
    assert item.name == "Viga 5m"
    assert item.quantity == 3
    assert item.measurement == LinearMeasurement(Decimal("5"))
    assert item.has_primer is True


def test_line_item_wire_format_ambiguous():
    with pytest.raises(AmbiguousMeasurement):
        LineItemRequest.from_dict({"name": "X", "measurements": {"linearMeters": 1, "squareMeters": 1}})


def test_line_item_rejects_fractional_quantity():
    with pytest.raises(InvalidQuantity):
        LineItemRequest.from_dict({"name": "Corner", "quantity": 1.5})


def test_float_wire_values_keep_decimal_digits():
    rates = RateConfig.from_dict({"pricePerLinearMeter": 12.1, "specialPieces": [{"name": "Corner", "price": 0.1}]})
    assert rates.price_per_linear_meter == Decimal("12.1")
    assert rates.special_pieces[0].price == Decimal("0.1")


def test_rate_config_validation():
    rates = RateConfig(
        price_per_linear_meter=Decimal("-1"),
        minimum_rate=Decimal("-5"),
        special_pieces=(
            SpecialPiece("Corner", Decimal("15")),
            SpecialPiece("Corner", Decimal("16")),
            SpecialPiece("Bracket", Decimal("-2")),
        ),
    )
    errors = rates.validate()
    assert "Price per linear meter cannot be negative" in errors
    assert "Minimum rate cannot be negative" in errors
    assert "Duplicate special piece 'Corner'" in errors
    assert "Special piece 'Bracket' cannot have a negative price" in errors


def test_valid_rate_config_has_no_errors():
    rates = RateConfig.from_dict({
        "pricePerLinearMeter": 10,
        "pricePerSquareMeter": 20,
        "minimumRate": 5,
        "specialPieces": [{"name": "Corner", "price": 15}],
    })
    assert rates.validate() == []
    assert rates.find_special_piece("Corner").price == Decimal("15")
    assert rates.to_dict()["specialPieces"] == [{"name": "Corner", "price": 15.0}]
