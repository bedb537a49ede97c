from __future__ import annotations

import pytest

from app.domain.exceptions import ValidationError
from app.enums.common import AreaUnit, DoseUnit
from app.services.application.calculator_service import irrigation_volume, pesticide_mix


def test_per_hectare_dose():
    mix = pesticide_mix(2.5, AreaUnit.HECTARE, 2, DoseUnit.KG_PER_HA, 400)

    assert mix.total_product == pytest.approx(5.0)
    assert mix.product_unit == "kg"
    assert mix.total_mix_liters == pytest.approx(1000.0)


def test_square_meters_are_converted():
    mix = pesticide_mix(5000, AreaUnit.SQUARE_METER, 3, DoseUnit.L_PER_HA)

    assert mix.area_hectares == pytest.approx(0.5)
    assert mix.total_product == pytest.approx(1.5)
    assert mix.product_unit == "l"


@pytest.mark.parametrize("spray_volume", [None, 0])
def test_mix_total_unknown_without_spray_volume(spray_volume):
    assert pesticide_mix(1, AreaUnit.HECTARE, 2, DoseUnit.KG_PER_HA, spray_volume).total_mix_liters is None


def test_concentration_dose():
    mix = pesticide_mix(1.5, AreaUnit.HECTARE, 50, DoseUnit.ML_PER_100L, 400)

    assert mix.total_mix_liters == pytest.approx(600.0)
    assert mix.total_product == pytest.approx(300.0)
    assert mix.product_unit == "ml"


@pytest.mark.parametrize("spray_volume", [None, 0])
def test_concentration_dose_needs_spray_volume(spray_volume):
    with pytest.raises(ValidationError):
        pesticide_mix(1, AreaUnit.HECTARE, 50, DoseUnit.ML_PER_100L, spray_volume)


def test_negative_inputs_rejected():
    with pytest.raises(ValidationError):
        pesticide_mix(-1, AreaUnit.HECTARE, 2, DoseUnit.KG_PER_HA)
    with pytest.raises(ValidationError):
        irrigation_volume(1, AreaUnit.HECTARE, -5)


def test_results_are_rounded():
    data = pesticide_mix(1, AreaUnit.SQUARE_METER, 1, DoseUnit.KG_PER_HA, 1).to_dict()

    assert data == {"area_hectares": 0.0001, "total_product": 0.0, "product_unit": "kg", "total_mix_liters": 0.0}


@pytest.mark.parametrize(
    "area, unit, depth, cubic_meters",
    [
        (1, AreaUnit.HECTARE, 25, 250.0),
        (200, AreaUnit.SQUARE_METER, 10, 2.0),
        (0.5, "هکتار", 30, 150.0),
    ],
)
def test_irrigation_volume(area, unit, depth, cubic_meters):
    volume = irrigation_volume(area, unit, depth)

    assert volume.cubic_meters == pytest.approx(cubic_meters)
    assert volume.liters == pytest.approx(cubic_meters * 1000)
