"""Pydantic schemas for incidents and the category legend."""

import datetime

from pydantic import BaseModel

from incident_map.models import LocationInterpretation
from incident_map.services.classification import Severity


class Coordinates(BaseModel):
    """Geographic coordinates."""

    latitude: float
    longitude: float


class IncidentOut(BaseModel):
    """Incident response schema with derived display fields."""

    index: int  # Position in the dataset; stable for a dataset version
    case_number: str
    date: str
    time: int | None = None
    offense_type: str
    offense_category: str

    coordinates: Coordinates
    location: str
    formatted_address: str
    google_maps_uri: str
    place_types: str
    location_interpretation: LocationInterpretation

    report_date_slug: str | None = None
    police_record_date: str | None = None

    # Derived
    incident_date: datetime.date | None = None
    report_date: datetime.date | None = None
    severity: Severity
    marker_color: str


class IncidentsResponse(BaseModel):
    """Filtered incidents."""

    incidents: list[IncidentOut]
    total: int
    dataset_total: int
    dataset_version: int


class CategoryOut(BaseModel):
    """One legend entry."""

    label: str
    severity: Severity
    color: str
    incident_count: int
