"""WebSocket message schemas for map sessions."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from incident_map.schemas.incident import Coordinates
from incident_map.services.classification import Severity

DateField = Literal["incident_start", "incident_end", "report_start", "report_end"]


# Client -> server


class SetDateFilterMessage(BaseModel):
    """A date-bound input changed. ``value`` is the raw calendar-input text."""

    type: Literal["set_date_filter"] = "set_date_filter"
    field: DateField
    value: str = ""


class ToggleCategoryMessage(BaseModel):
    """A category checkbox changed."""

    type: Literal["toggle_category"] = "toggle_category"
    category: str
    checked: bool


class ClearFiltersMessage(BaseModel):
    type: Literal["clear_filters"] = "clear_filters"


class MarkerClickMessage(BaseModel):
    """An incident marker was clicked."""

    type: Literal["marker_click"] = "marker_click"
    index: int


class SearchMarkerClickMessage(BaseModel):
    type: Literal["search_marker_click"] = "search_marker_click"


class PlaceSelectedMessage(BaseModel):
    """
    The address search resolved a place.

    The autocomplete widget may emit an incomplete place (no geometry) when
    the user presses enter on free text; that only closes the place window.
    """

    type: Literal["place_selected"] = "place_selected"
    name: str | None = None
    formatted_address: str | None = None
    position: Coordinates | None = None


class MapClickMessage(BaseModel):
    """Click on the map background."""

    type: Literal["map_click"] = "map_click"


class CloseInfoWindowMessage(BaseModel):
    type: Literal["close_info_window"] = "close_info_window"
    target: Literal["incident", "place"]


class PingMessage(BaseModel):
    """Ping message for keep-alive."""

    type: Literal["ping"] = "ping"


ClientEvent = (
    SetDateFilterMessage
    | ToggleCategoryMessage
    | ClearFiltersMessage
    | MarkerClickMessage
    | SearchMarkerClickMessage
    | PlaceSelectedMessage
    | MapClickMessage
    | CloseInfoWindowMessage
)

EVENT_TYPES: dict[str, type[BaseModel]] = {
    "set_date_filter": SetDateFilterMessage,
    "toggle_category": ToggleCategoryMessage,
    "clear_filters": ClearFiltersMessage,
    "marker_click": MarkerClickMessage,
    "search_marker_click": SearchMarkerClickMessage,
    "place_selected": PlaceSelectedMessage,
    "map_click": MapClickMessage,
    "close_info_window": CloseInfoWindowMessage,
}


# Server -> client


class PlaceDetails(BaseModel):
    """A searched place."""

    model_config = ConfigDict(frozen=True)

    name: str
    formatted_address: str


class MarkerOut(BaseModel):
    """One incident marker."""

    index: int
    case_number: str
    position: Coordinates
    color: str


class LegendEntry(BaseModel):
    """One category in the filter panel / legend."""

    label: str
    severity: Severity
    color: str
    selected: bool


class InfoLine(BaseModel):
    label: str
    value: str


class InfoWindowOut(BaseModel):
    """The single open info window."""

    kind: Literal["incident", "place"]
    position: Coordinates
    title: str
    lines: list[InfoLine]
    link_url: str | None = None
    link_text: str = "View on Google Maps"
    accent_color: str | None = None
    incident_index: int | None = None


class CameraMove(BaseModel):
    """One-shot pan/zoom instruction."""

    model_config = ConfigDict(frozen=True)

    center: Coordinates
    zoom: int


class FilterEcho(BaseModel):
    """Current raw filter inputs, so a reconnecting client can redraw controls."""

    incident_start: str
    incident_end: str
    report_start: str
    report_end: str
    categories: list[str]


class ViewUpdateMessage(BaseModel):
    """Full re-rendered view for one session."""

    type: Literal["view"] = "view"
    dataset_version: int
    markers: list[MarkerOut]
    legend: list[LegendEntry]
    filters: FilterEcho
    search_marker: Coordinates | None = None
    info_window: InfoWindowOut | None = None
    camera: CameraMove | None = None
    visible_count: int
    total_count: int


class PongMessage(BaseModel):
    """Pong response for keep-alive."""

    type: Literal["pong"] = "pong"


class ErrorMessage(BaseModel):
    """Error message from server."""

    type: Literal["error"] = "error"
    message: str
