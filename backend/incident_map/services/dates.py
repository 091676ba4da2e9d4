"""
Date parsing for incident and report dates.

Every parser is total: it returns either ``ParsedDate`` or ``Unparseable``
and never raises. Callers must treat ``Unparseable`` as "does not match any
date range", never as "unbounded".
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache

from incident_map.models import Incident

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 3000

MONTHS: dict[str, int] = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}
MONTHS.update({name[:3]: number for name, number in list(MONTHS.items())})
MONTHS["sept"] = 9

# Formats seen in the human readable report date of the log PDFs
RECORD_DATE_FORMATS = [
    "%B %d, %Y",
    "%b %d, %Y",
    "%A, %B %d, %Y",
    "%Y-%m-%d",
]


@dataclass(frozen=True)
class ParsedDate:
    """A successfully parsed calendar date."""

    value: date


@dataclass(frozen=True)
class Unparseable:
    """A date string that was rejected, with the reason."""

    raw: str
    reason: str


DateResult = ParsedDate | Unparseable


def _reject(raw: str, reason: str) -> Unparseable:
    logger.debug(f"Rejected date {raw!r}: {reason}")
    return Unparseable(raw=raw, reason=reason)


def _build_date(raw: str, year: int, month: int, day: int) -> DateResult:
    """Range-check the components and build the date without rollover."""
    if not 1 <= month <= 12:
        return _reject(raw, f"month {month} out of range")
    if not 1 <= day <= 31:
        return _reject(raw, f"day {day} out of range")
    if not MIN_YEAR <= year <= MAX_YEAR:
        return _reject(raw, f"year {year} out of range")
    try:
        value = date(year, month, day)
    except ValueError:
        return _reject(raw, f"no day {day} in {year}-{month:02d}")
    return ParsedDate(value)


def _is_digits(text: str) -> bool:
    return text.isascii() and text.isdigit()


def _numeric_fields(text: str, separator: str) -> list[int] | None:
    parts = text.split(separator)
    if len(parts) != 3 or not all(_is_digits(part) for part in parts):
        return None
    return [int(part) for part in parts]


@lru_cache(maxsize=8192)
def parse_incident_date(text: str | None) -> DateResult:
    """
    Parse an incident date from the log (month/day/year, e.g. ``4/7/2025``).

    Exactly three numeric ``/``-separated fields are required. Feb 30 and
    other impossible dates are rejected rather than rolled over.
    """
    raw = (text or "").strip()
    if not raw:
        return _reject(raw, "empty")
    fields = _numeric_fields(raw, "/")
    if fields is None:
        return _reject(raw, "expected M/D/YYYY")
    month, day, year = fields
    return _build_date(raw, year, month, day)


@lru_cache(maxsize=1024)
def parse_filter_date(text: str | None) -> DateResult:
    """Parse a calendar-input value (``YYYY-MM-DD``) from a filter control."""
    raw = (text or "").strip()
    if not raw:
        return _reject(raw, "empty")
    fields = _numeric_fields(raw, "-")
    if fields is None:
        return _reject(raw, "expected YYYY-MM-DD")
    year, month, day = fields
    return _build_date(raw, year, month, day)


@lru_cache(maxsize=1024)
def parse_report_slug(text: str | None) -> DateResult:
    """Parse a report date slug such as ``april-07-2025``."""
    raw = (text or "").strip()
    if not raw:
        return _reject(raw, "empty")
    parts = raw.lower().split("-")
    if len(parts) != 3:
        return _reject(raw, "expected monthname-dd-yyyy")
    month_name, day_text, year_text = parts
    month = MONTHS.get(month_name)
    if month is None:
        return _reject(raw, f"unknown month {month_name!r}")
    if not (_is_digits(day_text) and _is_digits(year_text)):
        return _reject(raw, "day and year must be numeric")
    return _build_date(raw, int(year_text), month, int(day_text))


@lru_cache(maxsize=1024)
def parse_record_date(text: str | None) -> DateResult:
    """Parse the human formatted report date (``April 7, 2025`` and friends)."""
    raw = (text or "").strip()
    if not raw:
        return _reject(raw, "empty")

    numeric = parse_incident_date(raw)
    if isinstance(numeric, ParsedDate):
        return numeric

    for fmt in RECORD_DATE_FORMATS:
        try:
            parsed = datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
        return _build_date(raw, parsed.year, parsed.month, parsed.day)

    return _reject(raw, "unrecognized report date format")


def resolve_report_date(incident: Incident) -> DateResult:
    """Report date of an incident, preferring the formatted field over the slug."""
    if incident.police_record_date:
        result = parse_record_date(incident.police_record_date)
        if isinstance(result, ParsedDate):
            return result
    if incident.report_date_slug:
        return parse_report_slug(incident.report_date_slug)
    return Unparseable(raw="", reason="no report date")


def as_date(result: DateResult | None) -> date | None:
    """Unwrap a result for display; ``None`` when there is no date."""
    if isinstance(result, ParsedDate):
        return result.value
    return None
