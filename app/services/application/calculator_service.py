"""
Agricultural calculators: pesticide mix quantities and irrigation volumes.

Pure arithmetic with no storage or backend; the API validates the inputs and
these functions only enforce the rules that depend on a combination of them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from app.domain.exceptions import ValidationError
from app.enums.common import AreaUnit, DoseUnit

logger = logging.getLogger(__name__)

SQUARE_METERS_PER_HECTARE = 10_000

# Unit of the total product for each dose unit
PRODUCT_UNITS = {
    DoseUnit.KG_PER_HA: "kg",
    DoseUnit.L_PER_HA: "l",
    DoseUnit.ML_PER_100L: "ml",
}


@dataclass(frozen=True, slots=True)
class PesticideMix:
    area_hectares: float
    total_product: float
    product_unit: str
    total_mix_liters: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "area_hectares": round(self.area_hectares, 4),
            "total_product": round(self.total_product, 2),
            "product_unit": self.product_unit,
            "total_mix_liters": None if self.total_mix_liters is None else round(self.total_mix_liters, 2),
        }


@dataclass(frozen=True, slots=True)
class IrrigationVolume:
    area_square_meters: float
    cubic_meters: float
    liters: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "area_square_meters": round(self.area_square_meters, 2),
            "cubic_meters": round(self.cubic_meters, 2),
            "liters": round(self.liters, 2),
        }


def area_in_hectares(area: float, unit: AreaUnit) -> float:
    return area if AreaUnit(unit) is AreaUnit.HECTARE else area / SQUARE_METERS_PER_HECTARE


def area_in_square_meters(area: float, unit: AreaUnit) -> float:
    return area if AreaUnit(unit) is AreaUnit.SQUARE_METER else area * SQUARE_METERS_PER_HECTARE


def pesticide_mix(
    area: float,
    area_unit: AreaUnit,
    dose: float,
    dose_unit: DoseUnit,
    spray_volume: float | None = None,
) -> PesticideMix:
    """Product and tank-mix quantities for treating *area*.

    ``spray_volume`` is the application rate in litres per hectare. It is
    optional for per-hectare doses (the mix total is then unknown) and
    required for ``ml_100l`` doses, which are a concentration in the tank.

    Raises:
        ValidationError: a negative input, or ``ml_100l`` without a positive spray volume
    """
    if area < 0 or dose < 0 or (spray_volume is not None and spray_volume < 0):
        raise ValidationError("Area, dose and spray volume must not be negative")

    dose_unit = DoseUnit(dose_unit)
    hectares = area_in_hectares(area, area_unit)
    has_volume = spray_volume is not None and spray_volume > 0
    total_mix = hectares * spray_volume if has_volume else None

    if dose_unit is DoseUnit.ML_PER_100L:
        if total_mix is None:
            raise ValidationError("A spray volume above zero is required for doses in ml per 100 l")
        total_product = total_mix / 100 * dose
    else:
        total_product = hectares * dose

    logger.debug("Pesticide mix for %.4f ha at %s %s: %.2f", hectares, dose, dose_unit.value, total_product)
    return PesticideMix(hectares, total_product, PRODUCT_UNITS[dose_unit], total_mix)


def irrigation_volume(area: float, area_unit: AreaUnit, depth_mm: float) -> IrrigationVolume:
    """Water needed to apply *depth_mm* millimetres over *area*."""
    if area < 0 or depth_mm < 0:
        raise ValidationError("Area and water depth must not be negative")

    square_meters = area_in_square_meters(area, area_unit)
    cubic_meters = square_meters * depth_mm / 1000
    return IrrigationVolume(square_meters, cubic_meters, cubic_meters * 1000)
