"""Pytest fixtures for incident map backend tests."""

import json
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from incident_map.config import Settings
from incident_map.dataset import IncidentDataset, IncidentStore, get_store
from incident_map.main import app
from incident_map.models import Incident
from incident_map.rate_limit import limiter
from incident_map.services.engine import IncidentEngine, get_engine


def make_record(case_number: str, **overrides: Any) -> dict[str, Any]:
    """Raw dataset record with sensible defaults."""
    record = {
        "case_number": case_number,
        "date": "4/6/2025",
        "time": 1200,
        "offense_type": "TEST OFFENSE",
        "offense_category": "Theft",
        "location": "100 BLK EMERSON ST",
        "latitude": 37.4440,
        "longitude": -122.1600,
        "formatted_address": "100 Emerson St, Palo Alto, CA 94301, USA",
        "google_maps_uri": "https://maps.google.com/?cid=1",
        "place_types": "street_address",
        "location_interpretation": "SPECIFIC_ADDRESS",
    }
    record.update(overrides)
    return record


def make_incident(case_number: str = "25-000001", **overrides: Any) -> Incident:
    return Incident.model_validate(make_record(case_number, **overrides))


@pytest.fixture(autouse=True)
def disable_rate_limit():
    """The limiter keeps global in-memory counters; keep it out of unit tests."""
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults."""
    return Settings(
        dataset_path="/nonexistent/incidents.json",
        google_maps_api_key="test_key",
        dataset_reload_interval_minutes=0,
        debug=True,
    )


@pytest.fixture
def sample_incident_records() -> list[dict[str, Any]]:
    """Sample records as produced by the geocoding pipeline."""
    return [
        make_record(
            "25-001234",
            date="1/15/2025",
            offense_type="PC 211 ROBBERY",
            offense_category="Violent Crime",
            report_date_slug="january-16-2025",
            police_record_date="January 16, 2025",
        ),
        make_record(
            "25-001240",
            date="3/1/2025",
            offense_type="PC 487 GRAND THEFT",
            offense_category="Theft",
            location_interpretation="INTERSECTION",
            report_date_slug="march-03-2025",
        ),
        make_record(
            "25-001251",
            date="3/5/2025",
            offense_type="VC 22350 UNSAFE SPEED",
            offense_category="Traffic Violation",
            location_interpretation="ROUTE",
            report_date_slug="march-06-2025",
        ),
        make_record(
            "25-001263",
            date="4/8/2025",
            offense_type="LOST PROPERTY",
            offense_category="Lost Property",
            google_maps_uri="",
            location_interpretation="GENERAL_AREA",
            report_date_slug="april-07-2025",
        ),
        make_record(
            "25-001277",
            date="2/30/2024",  # Not a real date
            offense_type="WELFARE CHECK",
            offense_category="",
        ),
    ]


@pytest.fixture
def incident_store(sample_incident_records) -> IncidentStore:
    """Store loaded with the sample records."""
    store = IncidentStore()
    store.load_records(sample_incident_records, source="test")
    return store


@pytest.fixture
def dataset(incident_store) -> IncidentDataset:
    return incident_store.current


@pytest.fixture
def engine() -> IncidentEngine:
    return IncidentEngine()


@pytest.fixture
def dataset_file(tmp_path: Path, sample_incident_records) -> Path:
    """Sample records written to a JSON file."""
    path = tmp_path / "incidents.json"
    path.write_text(json.dumps(sample_incident_records), encoding="utf-8")
    return path


@pytest_asyncio.fixture
async def client(incident_store, engine) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with the sample dataset."""
    app.dependency_overrides[get_store] = lambda: incident_store
    app.dependency_overrides[get_engine] = lambda: engine

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
