"""Tests for map sessions: reducer, renderer, connection manager and endpoint."""

import asyncio
from dataclasses import replace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from incident_map.dataset import get_store
from incident_map.main import app
from incident_map.schemas.incident import Coordinates
from incident_map.services.classification import TIER_COLORS, ColorTier
from incident_map.websocket.manager import ConnectionManager
from incident_map.websocket.schemas import (
    ClearFiltersMessage,
    CloseInfoWindowMessage,
    MapClickMessage,
    MarkerClickMessage,
    PingMessage,
    PlaceSelectedMessage,
    SearchMarkerClickMessage,
    SetDateFilterMessage,
    ToggleCategoryMessage,
)
from incident_map.websocket.state import (
    PLACE_SEARCH_URL,
    FilterInputs,
    MapViewState,
    reduce_event,
    render_view,
    sync_dataset,
)

from conftest import make_record

UNIVERSITY_AVE = Coordinates(latitude=37.4449, longitude=-122.1614)


def place_event(**overrides) -> PlaceSelectedMessage:
    fields = {
        "name": "University Ave",
        "formatted_address": "University Ave, Palo Alto, CA, USA",
        "position": UNIVERSITY_AVE,
    }
    fields.update(overrides)
    return PlaceSelectedMessage(**fields)


@pytest.fixture
def mock_websocket() -> AsyncMock:
    websocket = AsyncMock()
    websocket.accept = AsyncMock()
    websocket.send_json = AsyncMock()
    return websocket


class TestReduceEvent:
    """Tests for the session reducer."""

    def test_set_date_filter(self):
        state = reduce_event(
            MapViewState(), SetDateFilterMessage(field="incident_start", value="2025-02-01")
        )

        assert state.filters.incident_start == "2025-02-01"
        assert state.filters.incident_end == ""

    def test_toggle_category(self):
        state = reduce_event(MapViewState(), ToggleCategoryMessage(category="Theft", checked=True))
        state = reduce_event(state, ToggleCategoryMessage(category="Fraud", checked=True))
        state = reduce_event(state, ToggleCategoryMessage(category="Theft", checked=False))

        assert state.filters.categories == frozenset({"Fraud"})

    def test_clear_filters_keeps_selection(self):
        state = MapViewState(
            filters=FilterInputs(incident_start="2025-01-01", categories=frozenset({"Theft"})),
            selected_incident=2,
        )

        state = reduce_event(state, ClearFiltersMessage())

        assert state.filters == FilterInputs()
        assert state.selected_incident == 2

    def test_state_not_mutated(self):
        state = MapViewState()

        reduce_event(state, ToggleCategoryMessage(category="Theft", checked=True))

        assert state == MapViewState()

    def test_marker_click_replaces_place_window(self):
        state = reduce_event(MapViewState(), place_event())

        state = reduce_event(state, MarkerClickMessage(index=3))

        assert state.selected_incident == 3
        assert state.selected_place is None
        assert state.search_position == UNIVERSITY_AVE

    def test_place_selected_pins_and_moves_camera(self):
        state = reduce_event(
            MapViewState(selected_incident=1), place_event(), search_zoom=16
        )

        assert state.search_position == UNIVERSITY_AVE
        assert state.selected_place == state.pinned_place
        assert state.selected_incident is None
        assert state.camera.center == UNIVERSITY_AVE
        assert state.camera.zoom == 16

    def test_camera_is_one_shot(self):
        state = reduce_event(MapViewState(), place_event())

        state = reduce_event(state, MapClickMessage())

        assert state.camera is None
        assert state.search_position == UNIVERSITY_AVE

    def test_incomplete_place_closes_window_only(self):
        state = reduce_event(MapViewState(), place_event())

        state = reduce_event(state, place_event(position=None))

        assert state.selected_place is None
        assert state.search_position == UNIVERSITY_AVE
        assert state.pinned_place is not None

    def test_search_marker_click_reopens_place(self):
        state = reduce_event(MapViewState(), place_event())
        state = reduce_event(state, MarkerClickMessage(index=0))

        state = reduce_event(state, SearchMarkerClickMessage())

        assert state.selected_place == state.pinned_place
        assert state.selected_incident is None

    def test_search_marker_click_without_marker(self):
        state = MapViewState(selected_incident=0)

        assert reduce_event(state, SearchMarkerClickMessage()) == state

    def test_map_click_closes_everything(self):
        state = replace(reduce_event(MapViewState(), place_event()), selected_incident=2)

        state = reduce_event(state, MapClickMessage())

        assert state.selected_incident is None
        assert state.selected_place is None

    def test_close_info_window(self):
        state = MapViewState(selected_incident=1)

        closed = reduce_event(state, CloseInfoWindowMessage(target="incident"))
        untouched = reduce_event(state, CloseInfoWindowMessage(target="place"))

        assert closed.selected_incident is None
        assert untouched.selected_incident == 1

    def test_sync_dataset_drops_stale_selection(self, dataset):
        state = MapViewState(selected_incident=2, dataset_version=dataset.version - 1)

        state = sync_dataset(state, dataset)

        assert state.selected_incident is None
        assert state.dataset_version == dataset.version
        assert sync_dataset(state, dataset) is state


class TestRenderView:
    """Tests for render_view."""

    def test_initial_view(self, dataset, engine):
        view = render_view(MapViewState(), dataset, engine)

        assert view.type == "view"
        assert view.visible_count == view.total_count == 5
        assert [marker.index for marker in view.markers] == [0, 1, 2, 3, 4]
        assert [entry.label for entry in view.legend] == [
            "Violent Crime",
            "Theft",
            "Traffic Violation",
            "Lost Property",
        ]
        assert not any(entry.selected for entry in view.legend)
        assert view.info_window is None
        assert view.search_marker is None

    def test_marker_colors(self, dataset, engine):
        view = render_view(MapViewState(), dataset, engine)

        assert view.markers[0].color == TIER_COLORS[ColorTier.HIGH]
        assert view.markers[2].color == TIER_COLORS[ColorTier.TRAFFIC]

    def test_filtered_view(self, dataset, engine):
        state = MapViewState(
            filters=FilterInputs(incident_start="2025-02-01", categories=frozenset({"Theft"}))
        )

        view = render_view(state, dataset, engine)

        assert [marker.case_number for marker in view.markers] == ["25-001240"]
        assert view.total_count == 5
        assert view.filters.incident_start == "2025-02-01"
        assert [entry.label for entry in view.legend if entry.selected] == ["Theft"]

    def test_incident_info_window(self, dataset, engine):
        view = render_view(MapViewState(selected_incident=0), dataset, engine)

        window = view.info_window
        assert window.kind == "incident"
        assert window.title == "PC 211 ROBBERY"
        assert window.incident_index == 0
        assert window.accent_color == TIER_COLORS[ColorTier.HIGH]
        assert window.link_url == "https://maps.google.com/?cid=1"
        lines = {line.label: line.value for line in window.lines}
        assert lines["Case"] == "25-001234"
        assert lines["Date"] == "1/15/2025"
        assert lines["Report Date"] == "January 16, 2025"
        assert lines["Category"] == "Violent Crime"
        assert lines["Type"] == "SPECIFIC_ADDRESS"

    def test_incident_window_without_optional_fields(self, dataset, engine):
        """No map link, no category and no report date lines when absent."""
        view = render_view(MapViewState(selected_incident=4), dataset, engine)

        labels = [line.label for line in view.info_window.lines]
        assert "Category" not in labels
        assert "Report Date" not in labels
        no_link = render_view(MapViewState(selected_incident=3), dataset, engine)
        assert no_link.info_window.link_url is None

    def test_hidden_incident_has_no_window(self, dataset, engine):
        state = MapViewState(
            selected_incident=0, filters=FilterInputs(categories=frozenset({"Theft"}))
        )

        assert render_view(state, dataset, engine).info_window is None

    def test_place_info_window(self, dataset, engine):
        state = reduce_event(MapViewState(), place_event())

        view = render_view(state, dataset, engine)

        assert view.search_marker == UNIVERSITY_AVE
        assert view.camera.center == UNIVERSITY_AVE
        assert view.info_window.kind == "place"
        assert view.info_window.title == "University Ave"
        assert view.info_window.link_url == (
            PLACE_SEARCH_URL + "University%20Ave%2C%20Palo%20Alto%2C%20CA%2C%20USA"
        )

    def test_single_info_window(self, dataset, engine):
        state = reduce_event(MapViewState(), place_event())
        state = reduce_event(state, MarkerClickMessage(index=1))

        view = render_view(state, dataset, engine)

        assert view.info_window.kind == "incident"
        assert view.search_marker == UNIVERSITY_AVE


class TestConnectionManager:
    """Tests for ConnectionManager."""

    @pytest.mark.asyncio
    async def test_connect(self, mock_websocket, incident_store, engine):
        manager = ConnectionManager(engine=engine)

        await manager.connect(mock_websocket, incident_store)

        assert manager.connection_count == 1
        mock_websocket.accept.assert_called_once()

    @pytest.mark.asyncio
    async def test_disconnect(self, mock_websocket, incident_store, engine):
        manager = ConnectionManager(engine=engine)
        await manager.connect(mock_websocket, incident_store)

        await manager.disconnect(mock_websocket)

        assert manager.connection_count == 0

    @pytest.mark.asyncio
    async def test_send_view(self, mock_websocket, incident_store, engine):
        manager = ConnectionManager(engine=engine)
        await manager.connect(mock_websocket, incident_store)

        view = await manager.send_view(mock_websocket)

        assert view.visible_count == 5
        sent = mock_websocket.send_json.call_args[0][0]
        assert sent["type"] == "view"
        assert len(sent["markers"]) == 5

    @pytest.mark.asyncio
    async def test_dispatch_updates_session(self, mock_websocket, incident_store, engine):
        manager = ConnectionManager(engine=engine)
        await manager.connect(mock_websocket, incident_store)

        view = await manager.dispatch(
            mock_websocket, ToggleCategoryMessage(category="Traffic Violation", checked=True)
        )

        assert [marker.case_number for marker in view.markers] == ["25-001251"]
        sent = mock_websocket.send_json.call_args[0][0]
        assert sent["filters"]["categories"] == ["Traffic Violation"]

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self, incident_store, engine):
        manager = ConnectionManager(engine=engine)
        ws1, ws2 = AsyncMock(), AsyncMock()
        await manager.connect(ws1, incident_store)
        await manager.connect(ws2, incident_store)

        await manager.dispatch(ws1, ToggleCategoryMessage(category="Theft", checked=True))
        view = await manager.send_view(ws2)

        assert view.visible_count == 5

    @pytest.mark.asyncio
    async def test_dispatch_unknown_socket(self, mock_websocket, engine):
        manager = ConnectionManager(engine=engine)

        assert await manager.dispatch(mock_websocket, MapClickMessage()) is None
        mock_websocket.send_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_all_after_reload(self, incident_store, engine):
        manager = ConnectionManager(engine=engine)
        ws1, ws2 = AsyncMock(), AsyncMock()
        await manager.connect(ws1, incident_store)
        await manager.connect(ws2, incident_store)
        await manager.dispatch(ws1, MarkerClickMessage(index=0))

        incident_store.load_records([make_record("new", offense_category="Fraud")])
        await manager.refresh_all()

        for ws in (ws1, ws2):
            sent = ws.send_json.call_args[0][0]
            assert sent["total_count"] == 1
            assert sent["dataset_version"] == incident_store.current.version
            assert sent["info_window"] is None

    @pytest.mark.asyncio
    async def test_send_failure_disconnects(self, incident_store, engine):
        manager = ConnectionManager(engine=engine)
        websocket = AsyncMock()
        websocket.send_json = AsyncMock(side_effect=RuntimeError("closed"))
        await manager.connect(websocket, incident_store)

        await manager.send_view(websocket)
        await asyncio.sleep(0)

        assert manager.connection_count == 0


class TestMapEndpoint:
    """Tests for the /ws/map endpoint."""

    @pytest.fixture
    def ws_client(self, incident_store):
        app.dependency_overrides[get_store] = lambda: incident_store
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_initial_view_and_events(self, ws_client):
        with ws_client.websocket_connect("/ws/map") as websocket:
            initial = websocket.receive_json()
            assert initial["type"] == "view"
            assert initial["visible_count"] == 5

            websocket.send_json(
                {"type": "set_date_filter", "field": "incident_start", "value": "2025-02-01"}
            )
            view = websocket.receive_json()
            assert view["visible_count"] == 3

            websocket.send_json({"type": "marker_click", "index": 1})
            view = websocket.receive_json()
            assert view["info_window"]["incident_index"] == 1

    def test_ping(self, ws_client):
        with ws_client.websocket_connect("/ws/map") as websocket:
            websocket.receive_json()
            websocket.send_json(PingMessage().model_dump())

            assert websocket.receive_json() == {"type": "pong"}

    def test_errors(self, ws_client):
        with ws_client.websocket_connect("/ws/map") as websocket:
            websocket.receive_json()

            websocket.send_text("not json")
            assert websocket.receive_json() == {"type": "error", "message": "Invalid JSON"}

            websocket.send_json({"type": "teleport"})
            assert websocket.receive_json()["message"] == "Unknown message type: teleport"

            websocket.send_json({"type": "marker_click", "index": "first"})
            error = websocket.receive_json()
            assert error["type"] == "error"
            assert "marker_click" in error["message"]

    def test_non_string_type_keeps_session_open(self, ws_client):
        with ws_client.websocket_connect("/ws/map") as websocket:
            websocket.receive_json()

            websocket.send_json({"type": ["ping"]})
            assert websocket.receive_json() == {
                "type": "error",
                "message": "Unknown message type: None",
            }

            websocket.send_json({"type": {"kind": "ping"}})
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"type": "ping"})
            assert websocket.receive_json() == {"type": "pong"}

    def test_separate_connections_separate_state(self, ws_client):
        with ws_client.websocket_connect("/ws/map") as first:
            first.receive_json()
            first.send_json({"type": "toggle_category", "category": "Theft", "checked": True})
            assert first.receive_json()["visible_count"] == 1

            with ws_client.websocket_connect("/ws/map") as second:
                assert second.receive_json()["visible_count"] == 5

