"""
Calculator Schemas
==================

Request schemas for the pesticide and irrigation calculators.
Defaults match the values the calculator form starts with.
"""

from pydantic import BaseModel, ConfigDict, Field

from app.enums.common import AreaUnit, DoseUnit


class PesticideRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    area: float = Field(..., ge=0, allow_inf_nan=False, description="Treated area, in area_unit")
    area_unit: AreaUnit = Field(default=AreaUnit.HECTARE, alias="areaUnit")
    dose: float = Field(..., ge=0, allow_inf_nan=False, description="Label dose, in dose_unit")
    dose_unit: DoseUnit = Field(default=DoseUnit.KG_PER_HA, alias="doseUnit")
    spray_volume: float | None = Field(
        default=None, ge=0, allow_inf_nan=False, alias="sprayVolume", description="Application rate in litres per hectare"
    )


class IrrigationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    area: float = Field(..., ge=0, allow_inf_nan=False)
    area_unit: AreaUnit = Field(default=AreaUnit.HECTARE, alias="areaUnit")
    depth_mm: float = Field(
        ..., ge=0, allow_inf_nan=False, alias="depthMm", description="Water depth to apply, in millimetres"
    )
