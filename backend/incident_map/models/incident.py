"""Incident model for records in the geocoded police report log dataset."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class LocationInterpretation(str, Enum):
    """How the geocoder interpreted the raw location string."""

    SPECIFIC_ADDRESS = "SPECIFIC_ADDRESS"
    INTERSECTION = "INTERSECTION"
    ROUTE = "ROUTE"
    GENERAL_AREA = "GENERAL_AREA"
    UNRECOGNIZED = "UNRECOGNIZED"


class Incident(BaseModel):
    """
    One entry from the Palo Alto Police Report Log.

    Records are produced upstream (PDF extraction + geocoding) and are
    immutable once loaded. Fields the core reads are parsed defensively;
    dates stay as the raw strings found in the log.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    case_number: str
    date: str = ""  # M/D/YYYY as printed in the log
    time: int | None = None  # Time-of-day code, e.g. 1430
    offense_type: str = ""
    offense_category: str = ""

    # Location
    location: str = ""
    latitude: float
    longitude: float
    formatted_address: str = ""
    google_maps_uri: str = ""
    place_types: str = ""
    location_interpretation: LocationInterpretation = LocationInterpretation.UNRECOGNIZED

    # Source log document
    report_date_slug: str | None = None  # e.g. "april-07-2025"
    police_record_date: str | None = None  # e.g. "April 7, 2025"

    @field_validator("case_number", mode="before")
    @classmethod
    def _coerce_case_number(cls, value: Any) -> Any:
        if isinstance(value, int | float):
            return str(value)
        return value

    @field_validator(
        "date",
        "offense_type",
        "offense_category",
        "location",
        "formatted_address",
        "google_maps_uri",
        "place_types",
        mode="before",
    )
    @classmethod
    def _blank_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return str(value)

    @field_validator("time", mode="before")
    @classmethod
    def _coerce_time(cls, value: Any) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @field_validator("location_interpretation", mode="before")
    @classmethod
    def _coerce_interpretation(cls, value: Any) -> LocationInterpretation:
        try:
            return LocationInterpretation(str(value).strip().upper())
        except ValueError:
            return LocationInterpretation.UNRECOGNIZED

    @field_validator("report_date_slug", "police_record_date", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def __repr__(self) -> str:
        return f"<Incident {self.case_number}: {self.offense_category or '-'}>"
