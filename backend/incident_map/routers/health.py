"""Health and dataset status endpoints."""

import logging
from datetime import UTC, date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from incident_map.config import get_settings
from incident_map.dataset import DatasetError, IncidentStore, get_store
from incident_map.services.dates import ParsedDate, parse_incident_date
from incident_map.services.engine import IncidentEngine, get_engine

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


class DatasetStatus(BaseModel):
    """Status of the loaded dataset."""

    version: int
    source: str | None
    loaded_at: datetime | None
    record_count: int
    skipped_records: int
    category_count: int
    unparseable_dates: int
    date_range: list[str] | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    map_configured: bool
    dataset: DatasetStatus


class ReloadResult(BaseModel):
    """Result of a manual dataset reload."""

    version: int
    record_count: int
    message: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    store: Annotated[IncidentStore, Depends(get_store)],
    engine: Annotated[IncidentEngine, Depends(get_engine)],
) -> HealthResponse:
    """
    Health check endpoint with dataset status.

    Reports record counts, the incident date range and how many incident
    dates could not be parsed.
    """
    dataset = store.current

    parsed: list[date] = []
    unparseable = 0
    for incident in dataset.incidents:
        result = parse_incident_date(incident.date)
        if isinstance(result, ParsedDate):
            parsed.append(result.value)
        else:
            unparseable += 1

    date_range = None
    if parsed:
        date_range = [str(min(parsed)), str(max(parsed))]

    dataset_status = DatasetStatus(
        version=dataset.version,
        source=dataset.source,
        loaded_at=dataset.loaded_at,
        record_count=len(dataset.incidents),
        skipped_records=dataset.skipped,
        category_count=len(engine.categories(dataset)),
        unparseable_dates=unparseable,
        date_range=date_range,
    )

    return HealthResponse(
        status="healthy" if dataset.version > 0 else "loading",
        timestamp=datetime.now(UTC),
        map_configured=bool(get_settings().google_maps_api_key),
        dataset=dataset_status,
    )


@router.post("/dataset/reload", response_model=ReloadResult)
async def reload_dataset(
    store: Annotated[IncidentStore, Depends(get_store)],
) -> ReloadResult:
    """
    Force a reload of the dataset file.

    The previous snapshot stays published if the file cannot be read.
    """
    from incident_map.websocket.manager import manager as ws_manager

    try:
        dataset = store.load()
    except DatasetError as e:
        logger.error(f"Dataset reload failed: {e}")
        raise HTTPException(status_code=503, detail=str(e)) from e

    await ws_manager.refresh_all()

    return ReloadResult(
        version=dataset.version,
        record_count=len(dataset.incidents),
        message=f"Loaded {len(dataset.incidents)} incidents",
    )


@router.get("/ready")
async def readiness_check() -> dict:
    """Simple readiness probe for container orchestration."""
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> dict:
    """Simple liveness probe for container orchestration."""
    return {"status": "alive"}
