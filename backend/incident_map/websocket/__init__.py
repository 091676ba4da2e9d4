"""WebSocket module for interactive map sessions."""

from incident_map.websocket.manager import ConnectionManager
from incident_map.websocket.router import router as websocket_router

__all__ = ["ConnectionManager", "websocket_router"]
