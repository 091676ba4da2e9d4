"""API routes for filtering incidents and the category legend."""

import logging
from collections import Counter
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from incident_map.dataset import IncidentDataset, IncidentStore, get_store
from incident_map.models import Incident
from incident_map.rate_limit import RATE_LIMIT, limiter
from incident_map.schemas.incident import (
    CategoryOut,
    Coordinates,
    IncidentOut,
    IncidentsResponse,
)
from incident_map.services.dates import as_date, parse_incident_date, resolve_report_date
from incident_map.services.engine import IncidentEngine, get_engine
from incident_map.services.filtering import FilterPredicates

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/incidents", tags=["incidents"])


def to_incident_out(
    index: int, incident: Incident, dataset: IncidentDataset, engine: IncidentEngine
) -> IncidentOut:
    """Build the response schema for one incident."""
    return IncidentOut(
        index=index,
        case_number=incident.case_number,
        date=incident.date,
        time=incident.time,
        offense_type=incident.offense_type,
        offense_category=incident.offense_category,
        coordinates=Coordinates(latitude=incident.latitude, longitude=incident.longitude),
        location=incident.location,
        formatted_address=incident.formatted_address,
        google_maps_uri=incident.google_maps_uri,
        place_types=incident.place_types,
        location_interpretation=incident.location_interpretation,
        report_date_slug=incident.report_date_slug,
        police_record_date=incident.police_record_date,
        incident_date=as_date(parse_incident_date(incident.date)),
        report_date=as_date(resolve_report_date(incident)),
        severity=engine.classify(incident.offense_category).severity,
        marker_color=engine.marker_color(dataset, incident),
    )


@router.get("", response_model=IncidentsResponse)
@limiter.limit(RATE_LIMIT)
async def list_incidents(
    request: Request,
    store: Annotated[IncidentStore, Depends(get_store)],
    engine: Annotated[IncidentEngine, Depends(get_engine)],
    start_date: str | None = Query(None, description="Incident date on or after (YYYY-MM-DD)"),
    end_date: str | None = Query(None, description="Incident date on or before (YYYY-MM-DD)"),
    report_start_date: str | None = Query(None, description="Report date on or after (YYYY-MM-DD)"),
    report_end_date: str | None = Query(None, description="Report date on or before (YYYY-MM-DD)"),
    category: list[str] | None = Query(None, description="Offense categories (none = all)"),
) -> IncidentsResponse:
    """
    List incidents matching the filter controls, in dataset order.

    Date bounds are inclusive. An unparseable bound excludes every incident
    from its date group instead of failing the request. No category means no
    category restriction.
    """
    dataset = store.current
    predicates = FilterPredicates.from_raw(
        incident_start=start_date,
        incident_end=end_date,
        report_start=report_start_date,
        report_end=report_end_date,
        categories=category,
    )

    incidents = [
        to_incident_out(index, incident, dataset, engine)
        for index, incident in engine.filter(dataset, predicates)
    ]

    return IncidentsResponse(
        incidents=incidents,
        total=len(incidents),
        dataset_total=len(dataset.incidents),
        dataset_version=dataset.version,
    )


@router.get("/categories", response_model=list[CategoryOut])
async def list_categories(
    store: Annotated[IncidentStore, Depends(get_store)],
    engine: Annotated[IncidentEngine, Depends(get_engine)],
) -> list[CategoryOut]:
    """Get the category legend, most severe first."""
    dataset = store.current
    counts = Counter(incident.offense_category for incident in dataset.incidents)
    color_map = engine.color_map(dataset)

    legend = []
    for label in engine.categories(dataset):
        legend.append(
            CategoryOut(
                label=label,
                severity=engine.classify(label).severity,
                color=color_map[label],
                incident_count=counts[label],
            )
        )
    return legend


@router.get("/{case_number}", response_model=IncidentOut)
async def get_incident(
    case_number: str,
    store: Annotated[IncidentStore, Depends(get_store)],
    engine: Annotated[IncidentEngine, Depends(get_engine)],
) -> IncidentOut:
    """Get a specific incident by case number."""
    dataset = store.current
    for index, incident in enumerate(dataset.incidents):
        if incident.case_number == case_number:
            return to_incident_out(index, incident, dataset, engine)

    raise HTTPException(status_code=404, detail="Incident not found")
