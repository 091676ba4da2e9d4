"""WebSocket router for interactive map sessions."""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from incident_map.dataset import IncidentStore, get_store
from incident_map.websocket.manager import manager
from incident_map.websocket.schemas import EVENT_TYPES, ErrorMessage, PongMessage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/map")
async def websocket_map(
    websocket: WebSocket,
    store: Annotated[IncidentStore, Depends(get_store)],
):
    """
    WebSocket endpoint for one interactive map session.

    Protocol:
    - Client connects, server sends the initial view
    - Client sends filter, click and search events
    - Server answers every event with the full re-rendered view
    - Server pushes a fresh view to every session after a dataset reload

    Message formats:
    Client -> Server:
        {"type": "set_date_filter", "field": "incident_start", "value": "2025-02-01"}
        {"type": "toggle_category", "category": "Theft", "checked": true}
        {"type": "clear_filters"}
        {"type": "marker_click", "index": 12}
        {"type": "search_marker_click"}
        {"type": "place_selected", "name": "...", "formatted_address": "...",
         "position": {"latitude": 37.44, "longitude": -122.16}}
        {"type": "map_click"}
        {"type": "close_info_window", "target": "incident"}
        {"type": "ping"}

    Server -> Client:
        {"type": "view", "markers": [...], "legend": [...], "info_window": {...}, ...}
        {"type": "pong"}
        {"type": "error", "message": "..."}
    """
    await manager.connect(websocket, store)

    try:
        await manager.send_view(websocket)

        while True:
            raw_message = await websocket.receive_text()

            try:
                data = json.loads(raw_message)
                msg_type = data.get("type") if isinstance(data, dict) else None
                if not isinstance(msg_type, str):
                    msg_type = None

                if msg_type == "ping":
                    await websocket.send_json(PongMessage().model_dump())

                elif msg_type in EVENT_TYPES:
                    event = EVENT_TYPES[msg_type].model_validate(data)
                    await manager.dispatch(websocket, event)

                else:
                    error = ErrorMessage(message=f"Unknown message type: {msg_type}")
                    await websocket.send_json(error.model_dump())

            except json.JSONDecodeError:
                error = ErrorMessage(message="Invalid JSON")
                await websocket.send_json(error.model_dump())
            except ValidationError as e:
                error = ErrorMessage(
                    message=f"Invalid {msg_type} message: {e.error_count()} error(s)"
                )
                await websocket.send_json(error.model_dump())

    except WebSocketDisconnect:
        await manager.disconnect(websocket)
    except Exception as e:
        logger.exception(f"WebSocket error: {e}")
        await manager.disconnect(websocket)
