"""Client-side style filtering of incidents by date ranges and category."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from incident_map.models import Incident
from incident_map.services.dates import (
    DateResult,
    ParsedDate,
    Unparseable,
    parse_filter_date,
    parse_incident_date,
    resolve_report_date,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterPredicates:
    """
    Active filter state.

    A bound is ``None`` when unset. A bound that was supplied but could not be
    parsed is kept as ``Unparseable`` and makes its whole date group exclude
    every incident. An empty category set means no category restriction.
    """

    incident_start: DateResult | None = None
    incident_end: DateResult | None = None
    report_start: DateResult | None = None
    report_end: DateResult | None = None
    categories: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_raw(
        cls,
        incident_start: str | None = None,
        incident_end: str | None = None,
        report_start: str | None = None,
        report_end: str | None = None,
        categories: Iterable[str] | None = None,
    ) -> "FilterPredicates":
        """Build predicates from raw filter-control values (``YYYY-MM-DD``)."""
        return cls(
            incident_start=_bound("incident_start", incident_start),
            incident_end=_bound("incident_end", incident_end),
            report_start=_bound("report_start", report_start),
            report_end=_bound("report_end", report_end),
            categories=frozenset(label for label in categories or () if label),
        )

    @property
    def incident_range_active(self) -> bool:
        return self.incident_start is not None or self.incident_end is not None

    @property
    def report_range_active(self) -> bool:
        return self.report_start is not None or self.report_end is not None

    @property
    def is_active(self) -> bool:
        return self.incident_range_active or self.report_range_active or bool(self.categories)


NO_FILTERS = FilterPredicates()


def _bound(name: str, raw: str | None) -> DateResult | None:
    if raw is None or not raw.strip():
        return None
    result = parse_filter_date(raw)
    if isinstance(result, Unparseable):
        logger.warning(
            f"Invalid {name} filter value {raw!r} ({result.reason}); group matches nothing"
        )
    return result


def _within(value: DateResult, start: DateResult | None, end: DateResult | None) -> bool:
    """Inclusive range check; unparseable values or bounds never match."""
    if not isinstance(value, ParsedDate):
        return False
    if start is not None:
        if not isinstance(start, ParsedDate) or value.value < start.value:
            return False
    if end is not None:
        if not isinstance(end, ParsedDate) or value.value > end.value:
            return False
    return True


def matches(incident: Incident, predicates: FilterPredicates) -> bool:
    """Whether an incident satisfies every active predicate group."""
    if predicates.incident_range_active and not _within(
        parse_incident_date(incident.date),
        predicates.incident_start,
        predicates.incident_end,
    ):
        return False

    if predicates.report_range_active and not _within(
        resolve_report_date(incident),
        predicates.report_start,
        predicates.report_end,
    ):
        return False

    if predicates.categories and incident.offense_category not in predicates.categories:
        return False

    return True


def filter_incidents(
    incidents: Iterable[Incident], predicates: FilterPredicates
) -> list[Incident]:
    """Incidents matching ``predicates``, in their original order."""
    return [incident for incident in incidents if matches(incident, predicates)]
