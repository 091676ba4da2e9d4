"""In-memory incident dataset loaded from the static JSON build artifact."""

import json
import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from incident_map.config import get_settings
from incident_map.models import Incident
from incident_map.services.dates import Unparseable, parse_incident_date

logger = logging.getLogger(__name__)


class DatasetError(Exception):
    """Raised when the dataset file cannot be read at all."""

    pass


@dataclass(frozen=True)
class IncidentDataset:
    """Immutable snapshot of the loaded incidents."""

    version: int
    incidents: tuple[Incident, ...] = ()
    source: str | None = None
    loaded_at: datetime | None = None
    skipped: int = 0
    mtime: float | None = field(default=None, compare=False)
    token: str = field(default_factory=lambda: uuid.uuid4().hex, compare=False)


def parse_records(records: Iterable[Any]) -> tuple[list[Incident], int]:
    """
    Validate raw records into incidents.

    Records that fail validation (no case number, no coordinates, ...) are
    skipped and counted rather than failing the whole load.
    """
    incidents: list[Incident] = []
    skipped = 0
    for position, record in enumerate(records):
        try:
            incidents.append(Incident.model_validate(record))
        except ValidationError as e:
            skipped += 1
            logger.warning(f"Skipping record {position}: {e.error_count()} validation error(s)")
    return incidents, skipped


class IncidentStore:
    """
    Holds the current dataset snapshot.

    Features:
    - Wholesale load of the JSON array at startup
    - Reload when the file changes (new snapshot, new version)
    - Never mutates a published snapshot
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else None
        self._dataset = IncidentDataset(version=0)

    @property
    def current(self) -> IncidentDataset:
        """The latest snapshot (empty, version 0, before the first load)."""
        return self._dataset

    def _read(self) -> tuple[Any, float]:
        if self.path is None:
            raise DatasetError("No dataset path configured")
        try:
            mtime = self.path.stat().st_mtime
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f), mtime
        except FileNotFoundError as e:
            raise DatasetError(f"Dataset file not found: {self.path}") from e
        except json.JSONDecodeError as e:
            raise DatasetError(f"Invalid JSON in dataset file {self.path}: {e}") from e
        except OSError as e:
            raise DatasetError(f"Cannot read dataset file {self.path}: {e}") from e

    def load(self) -> IncidentDataset:
        """Load (or reload) the dataset file and publish a new snapshot."""
        document, mtime = self._read()
        if not isinstance(document, list):
            logger.error(f"Dataset {self.path} is not a JSON array; treating as empty")
            document = []
        return self._publish(document, source=str(self.path), mtime=mtime)

    def load_records(self, records: Iterable[Any], source: str = "memory") -> IncidentDataset:
        """Publish a snapshot built from in-memory records."""
        return self._publish(records, source=source, mtime=None)

    def reload_if_changed(self) -> bool:
        """
        Reload the file if its modification time changed.

        Returns:
            True when a new snapshot was published
        """
        if self.path is None:
            return False
        try:
            mtime = self.path.stat().st_mtime
        except OSError as e:
            logger.warning(f"Cannot stat dataset file {self.path}: {e}")
            return False
        if self._dataset.mtime is not None and mtime == self._dataset.mtime:
            return False
        self.load()
        return True

    def _publish(
        self, records: Iterable[Any], source: str, mtime: float | None
    ) -> IncidentDataset:
        incidents, skipped = parse_records(records)
        dataset = IncidentDataset(
            version=self._dataset.version + 1,
            incidents=tuple(incidents),
            source=source,
            loaded_at=datetime.now(UTC),
            skipped=skipped,
            mtime=mtime,
        )
        self._dataset = dataset
        logger.info(
            f"Loaded {len(incidents)} incidents from {source} "
            f"(version {dataset.version}, skipped {skipped})"
        )
        _log_diagnostics(dataset)
        return dataset


def count_unparseable_dates(incidents: Iterable[Incident]) -> int:
    """Number of incidents whose incident date does not parse."""
    return sum(
        1 for incident in incidents if isinstance(parse_incident_date(incident.date), Unparseable)
    )


def _log_diagnostics(dataset: IncidentDataset) -> None:
    """Summarise data quality problems for operators."""
    bad_dates = count_unparseable_dates(dataset.incidents)
    if bad_dates:
        logger.warning(
            f"{bad_dates} incident(s) have unparseable dates and are excluded "
            "whenever an incident date filter is active"
        )
    uncategorized = sum(1 for incident in dataset.incidents if not incident.offense_category)
    if uncategorized:
        logger.info(f"{uncategorized} incident(s) have no offense category")


@lru_cache
def get_store() -> IncidentStore:
    """Get the process-wide incident store."""
    return IncidentStore(get_settings().dataset_path)
