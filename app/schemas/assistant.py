"""
Assistant Schemas
=================

Request schemas for the location-aware assistant endpoints. Geolocation is
resolved by the client; the server only checks the coordinates are sane.
"""

from datetime import date

from pydantic import BaseModel, Field


class GeoPosition(BaseModel):
    """Latitude/longitude in decimal degrees."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class WeatherAlertsRequest(GeoPosition):
    pass


class CropCalendarRequest(GeoPosition):
    """Request schema for generating a crop calendar."""

    crop: str = Field(..., min_length=1, max_length=100, description="Crop name, e.g. tomato")
    planting_date: date = Field(..., description="Planting day (YYYY-MM-DD)")


class DiagnoseRequestOptions(BaseModel):
    scope: str = Field(default="default", min_length=1, max_length=64, description="Client view issuing the request")
