"""
Map session state and its pure reducer/renderer.

The session state is only ever replaced, never mutated: ``reduce_event``
returns the next state for an event and ``render_view`` derives everything
the map widget draws from a state and a dataset snapshot.
"""

from dataclasses import dataclass, field, replace
from urllib.parse import quote

from incident_map.dataset import IncidentDataset
from incident_map.models import Incident
from incident_map.schemas.incident import Coordinates
from incident_map.services.dates import ParsedDate, resolve_report_date
from incident_map.services.engine import IncidentEngine
from incident_map.services.filtering import FilterPredicates
from incident_map.websocket.schemas import (
    CameraMove,
    ClearFiltersMessage,
    ClientEvent,
    CloseInfoWindowMessage,
    FilterEcho,
    InfoLine,
    InfoWindowOut,
    LegendEntry,
    MapClickMessage,
    MarkerClickMessage,
    MarkerOut,
    PlaceDetails,
    PlaceSelectedMessage,
    SearchMarkerClickMessage,
    SetDateFilterMessage,
    ToggleCategoryMessage,
    ViewUpdateMessage,
)

PLACE_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query="


@dataclass(frozen=True)
class FilterInputs:
    """Raw values of the filter controls."""

    incident_start: str = ""
    incident_end: str = ""
    report_start: str = ""
    report_end: str = ""
    categories: frozenset[str] = field(default_factory=frozenset)

    def to_predicates(self) -> FilterPredicates:
        return FilterPredicates.from_raw(
            incident_start=self.incident_start,
            incident_end=self.incident_end,
            report_start=self.report_start,
            report_end=self.report_end,
            categories=self.categories,
        )


@dataclass(frozen=True)
class MapViewState:
    """Everything one map client has selected or typed."""

    filters: FilterInputs = field(default_factory=FilterInputs)
    selected_incident: int | None = None
    search_position: Coordinates | None = None
    pinned_place: PlaceDetails | None = None  # Last successful search (marker)
    selected_place: PlaceDetails | None = None  # Place whose window is open
    camera: CameraMove | None = None
    dataset_version: int = 0


def reduce_event(state: MapViewState, event: ClientEvent, search_zoom: int = 15) -> MapViewState:
    """Next state after ``event``. Camera moves last for a single render."""
    state = replace(state, camera=None)

    if isinstance(event, SetDateFilterMessage):
        filters = replace(state.filters, **{event.field: event.value})
        return replace(state, filters=filters)

    if isinstance(event, ToggleCategoryMessage):
        categories = set(state.filters.categories)
        if event.checked:
            categories.add(event.category)
        else:
            categories.discard(event.category)
        filters = replace(state.filters, categories=frozenset(categories))
        return replace(state, filters=filters)

    if isinstance(event, ClearFiltersMessage):
        return replace(state, filters=FilterInputs())

    if isinstance(event, MarkerClickMessage):
        return replace(state, selected_incident=event.index, selected_place=None)

    if isinstance(event, SearchMarkerClickMessage):
        if state.search_position is None:
            return state
        return replace(state, selected_place=state.pinned_place, selected_incident=None)

    if isinstance(event, PlaceSelectedMessage):
        if event.position is None or not event.name or not event.formatted_address:
            # Keep the pinned marker, only close the place window
            return replace(state, selected_place=None)
        place = PlaceDetails(name=event.name, formatted_address=event.formatted_address)
        return replace(
            state,
            search_position=event.position,
            pinned_place=place,
            selected_place=place,
            selected_incident=None,
            camera=CameraMove(center=event.position, zoom=search_zoom),
        )

    if isinstance(event, MapClickMessage):
        return replace(state, selected_incident=None, selected_place=None)

    if isinstance(event, CloseInfoWindowMessage):
        if event.target == "incident":
            return replace(state, selected_incident=None)
        return replace(state, selected_place=None)

    return state


def sync_dataset(state: MapViewState, dataset: IncidentDataset) -> MapViewState:
    """Drop the incident selection when the dataset (and its indices) changed."""
    if state.dataset_version == dataset.version:
        return state
    return replace(state, selected_incident=None, dataset_version=dataset.version)


def _incident_window(index: int, incident: Incident, color: str) -> InfoWindowOut:
    lines = [
        InfoLine(label="Case", value=incident.case_number),
        InfoLine(label="Date", value=incident.date),
    ]
    report_date = resolve_report_date(incident)
    if isinstance(report_date, ParsedDate):
        lines.append(InfoLine(label="Report Date", value=report_date.value.strftime("%B %d, %Y")))
    if incident.offense_category:
        lines.append(InfoLine(label="Category", value=incident.offense_category))
    lines.append(
        InfoLine(label="Address", value=incident.formatted_address or incident.location)
    )
    lines.append(InfoLine(label="Type", value=incident.location_interpretation.value))

    return InfoWindowOut(
        kind="incident",
        position=Coordinates(latitude=incident.latitude, longitude=incident.longitude),
        title=incident.offense_type,
        lines=lines,
        link_url=incident.google_maps_uri or None,
        accent_color=color,
        incident_index=index,
    )


def _place_window(place: PlaceDetails, position: Coordinates) -> InfoWindowOut:
    return InfoWindowOut(
        kind="place",
        position=position,
        title=place.name,
        lines=[InfoLine(label="Address", value=place.formatted_address)],
        link_url=PLACE_SEARCH_URL + quote(place.formatted_address, safe=""),
    )


def render_view(
    state: MapViewState, dataset: IncidentDataset, engine: IncidentEngine
) -> ViewUpdateMessage:
    """Derive the full map view for a session."""
    predicates = state.filters.to_predicates()
    color_map = engine.color_map(dataset)
    visible = engine.filter(dataset, predicates)

    markers = []
    for index, incident in visible:
        markers.append(
            MarkerOut(
                index=index,
                case_number=incident.case_number,
                position=Coordinates(latitude=incident.latitude, longitude=incident.longitude),
                color=engine.marker_color(dataset, incident),
            )
        )

    legend = [
        LegendEntry(
            label=label,
            severity=engine.classify(label).severity,
            color=color_map[label],
            selected=label in state.filters.categories,
        )
        for label in engine.categories(dataset)
    ]

    info_window = None
    visible_indices = set(engine.filtered_indices(dataset, predicates))
    if state.selected_incident is not None and state.selected_incident in visible_indices:
        incident = dataset.incidents[state.selected_incident]
        info_window = _incident_window(
            state.selected_incident, incident, engine.marker_color(dataset, incident)
        )
    elif state.selected_place is not None and state.search_position is not None:
        info_window = _place_window(state.selected_place, state.search_position)

    return ViewUpdateMessage(
        dataset_version=dataset.version,
        markers=markers,
        legend=legend,
        filters=FilterEcho(
            incident_start=state.filters.incident_start,
            incident_end=state.filters.incident_end,
            report_start=state.filters.report_start,
            report_end=state.filters.report_end,
            categories=sorted(state.filters.categories),
        ),
        search_marker=state.search_position,
        info_window=info_window,
        camera=state.camera,
        visible_count=len(markers),
        total_count=len(dataset.incidents),
    )
