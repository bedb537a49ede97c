"""
Calculators API
===============

Stateless agricultural calculators: pesticide quantities and irrigation volume.
"""
from __future__ import annotations

from flask import Blueprint

from app.blueprints.api._common import get_json, parse_model, success as _success
from app.schemas.calculators import IrrigationRequest, PesticideRequest
from app.services.application.calculator_service import irrigation_volume, pesticide_mix
from app.utils.http import safe_route

calculators_api = Blueprint("calculators_api", __name__)


@calculators_api.post("/pesticide")
@safe_route("Failed to calculate pesticide mix")
def calculate_pesticide():
    body = parse_model(PesticideRequest, get_json())
    result = pesticide_mix(body.area, body.area_unit, body.dose, body.dose_unit, body.spray_volume)
    return _success(result.to_dict())


@calculators_api.post("/irrigation")
@safe_route("Failed to calculate irrigation volume")
def calculate_irrigation():
    body = parse_model(IrrigationRequest, get_json())
    return _success(irrigation_volume(body.area, body.area_unit, body.depth_mm).to_dict())
