"""Pydantic schemas for the map widget configuration."""

from pydantic import BaseModel, Field

from incident_map.schemas.incident import Coordinates


class SearchBounds(BaseModel):
    """Bounding box used to bias address autocomplete."""

    north: float = Field(..., ge=-90, le=90)
    south: float = Field(..., ge=-90, le=90)
    east: float = Field(..., ge=-180, le=180)
    west: float = Field(..., ge=-180, le=180)


class MapConfigOut(BaseModel):
    """Everything the front end needs to boot the map and search widgets."""

    api_key: str
    map_id: str
    default_center: Coordinates
    default_zoom: int
    search_zoom: int
    search_bounds: SearchBounds
    country: str
