"""Pydantic schemas for API request/response validation."""

from incident_map.schemas.incident import (
    CategoryOut,
    Coordinates,
    IncidentOut,
    IncidentsResponse,
)
from incident_map.schemas.map_config import MapConfigOut, SearchBounds

__all__ = [
    "CategoryOut",
    "Coordinates",
    "IncidentOut",
    "IncidentsResponse",
    "MapConfigOut",
    "SearchBounds",
]
