"""Map widget configuration endpoint."""

from fastapi import APIRouter

from incident_map.config import get_settings
from incident_map.schemas.incident import Coordinates
from incident_map.schemas.map_config import MapConfigOut, SearchBounds

router = APIRouter(prefix="/map", tags=["map"])

MISSING_KEY_MESSAGE = (
    "Error: Google Maps API Key is missing. "
    "Please set GOOGLE_MAPS_API_KEY in your environment or .env file."
)


class MapCredentialMissingError(Exception):
    """The map service API key is not configured; the map cannot be shown."""

    def __init__(self, message: str = MISSING_KEY_MESSAGE):
        super().__init__(message)
        self.message = message


@router.get("/config", response_model=MapConfigOut)
async def get_map_config() -> MapConfigOut:
    """
    Configuration for the map and address-search widgets.

    Without an API key the whole map view is replaced by an error message,
    so this answers 503 with that message instead of a config.
    """
    settings = get_settings()
    if not settings.google_maps_api_key:
        raise MapCredentialMissingError()

    return MapConfigOut(
        api_key=settings.google_maps_api_key,
        map_id=settings.map_id,
        default_center=Coordinates(
            latitude=settings.map_default_lat,
            longitude=settings.map_default_lng,
        ),
        default_zoom=settings.map_default_zoom,
        search_zoom=settings.map_search_zoom,
        search_bounds=SearchBounds(
            north=settings.search_bounds_north,
            south=settings.search_bounds_south,
            east=settings.search_bounds_east,
            west=settings.search_bounds_west,
        ),
        country=settings.map_country,
    )
