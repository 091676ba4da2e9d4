"""WebSocket connection manager holding one map session per client."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from fastapi import WebSocket

from incident_map.config import get_settings
from incident_map.dataset import IncidentStore
from incident_map.services.engine import IncidentEngine, get_engine
from incident_map.websocket.schemas import ClientEvent, ViewUpdateMessage
from incident_map.websocket.state import MapViewState, reduce_event, render_view, sync_dataset

logger = logging.getLogger(__name__)


@dataclass
class MapSession:
    """A connected map client and its current view state."""

    websocket: WebSocket
    store: IncidentStore
    state: MapViewState = field(default_factory=MapViewState)
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class ConnectionManager:
    """
    Owns the session state store and pushes re-rendered views.

    Every client event is applied with the pure reducer and answered with a
    full view; dataset reloads re-render every session.
    """

    def __init__(self, engine: IncidentEngine | None = None):
        self._sessions: dict[WebSocket, MapSession] = {}
        self._lock = asyncio.Lock()
        self._engine = engine

    @property
    def engine(self) -> IncidentEngine:
        return self._engine or get_engine()

    @property
    def connection_count(self) -> int:
        """Number of active connections."""
        return len(self._sessions)

    async def connect(self, websocket: WebSocket, store: IncidentStore) -> MapSession:
        """Accept a new WebSocket connection with a fresh session."""
        await websocket.accept()
        session = MapSession(websocket=websocket, store=store)
        async with self._lock:
            self._sessions[websocket] = session
        logger.info(f"WebSocket connected. Total connections: {self.connection_count}")
        return session

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a disconnected WebSocket; its session state is discarded."""
        async with self._lock:
            if websocket in self._sessions:
                del self._sessions[websocket]
        logger.info(f"WebSocket disconnected. Total connections: {self.connection_count}")

    def render(self, session: MapSession) -> ViewUpdateMessage:
        """Render a session against the current dataset snapshot."""
        dataset = session.store.current
        session.state = sync_dataset(session.state, dataset)
        return render_view(session.state, dataset, self.engine)

    async def dispatch(self, websocket: WebSocket, event: ClientEvent) -> ViewUpdateMessage | None:
        """Apply a client event to its session and send the new view."""
        async with self._lock:
            session = self._sessions.get(websocket)
            if session is None:
                return None
            session.state = reduce_event(
                session.state, event, search_zoom=get_settings().map_search_zoom
            )
            view = self.render(session)
        await self._send_safe(websocket, view)
        logger.debug(f"Applied {event.type}: {view.visible_count}/{view.total_count} visible")
        return view

    async def send_view(self, websocket: WebSocket) -> ViewUpdateMessage | None:
        """Send the current view without changing state (initial render)."""
        async with self._lock:
            session = self._sessions.get(websocket)
            if session is None:
                return None
            view = self.render(session)
        await self._send_safe(websocket, view)
        return view

    async def refresh_all(self) -> None:
        """Re-render every session, e.g. after a dataset reload."""
        async with self._lock:
            if not self._sessions:
                return
            views = [(ws, self.render(session)) for ws, session in self._sessions.items()]

        await asyncio.gather(
            *(self._send_safe(ws, view) for ws, view in views), return_exceptions=True
        )
        logger.info(f"Refreshed {len(views)} map sessions")

    async def _send_safe(self, websocket: WebSocket, message: ViewUpdateMessage) -> None:
        """Send message to websocket, handling errors gracefully."""
        try:
            await websocket.send_json(message.model_dump(mode="json"))
        except Exception as e:
            logger.warning(f"Failed to send to websocket: {e}")
            # Schedule disconnect (don't do it here to avoid deadlock)
            asyncio.create_task(self.disconnect(websocket))


# Global singleton instance
manager = ConnectionManager()
