#!/usr/bin/env python3
"""
Inspect an incidents.json build artifact before deploying it.

Prints the derived category legend, dates that fail to parse, and a
month/day ambiguity check for the incident dates (the log is assumed to be
month/day/year; a first field above 12 means that assumption is wrong for
that record).
"""

import sys
from collections import Counter
from pathlib import Path

from incident_map.dataset import DatasetError, IncidentStore
from incident_map.services.dates import Unparseable, parse_incident_date, resolve_report_date
from incident_map.services.engine import IncidentEngine


def log(msg):
    """Print with flush for immediate output."""
    print(msg, flush=True)


def first_field(value: str) -> int | None:
    """Leading numeric field of a slash date, if any."""
    head = value.split("/", 1)[0].strip()
    return int(head) if head.isascii() and head.isdigit() else None


def inspect(path: str) -> int:
    store = IncidentStore(path)
    try:
        dataset = store.load()
    except DatasetError as e:
        log(f"Error: {e}")
        return 1

    engine = IncidentEngine()
    incidents = dataset.incidents

    log(f"Dataset: {path}")
    log(f"  Incidents: {len(incidents):,}")
    log(f"  Skipped records: {dataset.skipped:,}")

    counts = Counter(incident.offense_category for incident in incidents)
    log("\nLegend:")
    for label in engine.categories(dataset):
        classification = engine.classify(label)
        log(
            f"  {classification.severity.value:<14} {classification.color}  "
            f"{label} ({counts[label]:,})"
        )
    if counts[""]:
        log(f"  (no category: {counts['']:,})")

    bad_incident_dates = [
        incident for incident in incidents
        if isinstance(parse_incident_date(incident.date), Unparseable)
    ]
    bad_report_dates = [
        incident for incident in incidents
        if isinstance(resolve_report_date(incident), Unparseable)
    ]
    log(f"\nUnparseable incident dates: {len(bad_incident_dates):,}")
    for incident in bad_incident_dates[:20]:
        log(f"  {incident.case_number}: {incident.date!r}")
    log(f"Unresolvable report dates: {len(bad_report_dates):,}")

    day_first = [
        incident for incident in incidents
        if (first_field(incident.date) or 0) > 12
    ]
    log(f"\nDates whose first field exceeds 12 (day/month order?): {len(day_first):,}")
    for incident in day_first[:20]:
        log(f"  {incident.case_number}: {incident.date!r}")

    return 0


if __name__ == "__main__":
    dataset_path = sys.argv[1] if len(sys.argv) > 1 else "data/incidents.json"

    if not Path(dataset_path).exists():
        log(f"Error: dataset file not found: {dataset_path}")
        sys.exit(1)

    sys.exit(inspect(dataset_path))
