"""API routers."""

from incident_map.routers.health import router as health_router
from incident_map.routers.incidents import router as incidents_router
from incident_map.routers.map_config import router as map_router

__all__ = ["health_router", "incidents_router", "map_router"]
