"""Memoizing facade over classification and filtering."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from cachetools import LRUCache

from incident_map.models import Incident
from incident_map.services.classification import (
    Classification,
    SeverityClassifier,
    build_color_map,
    color_for,
    derive_categories,
)
from incident_map.services.filtering import FilterPredicates, matches

if TYPE_CHECKING:
    from incident_map.dataset import IncidentDataset

logger = logging.getLogger(__name__)


class IncidentEngine:
    """
    Derives categories, colors and filtered views for a dataset snapshot.

    Results depend only on (dataset snapshot, predicates), so they are cached:
    categories and the color map change only with the snapshot, the filtered
    set with the snapshot or the predicates.
    """

    def __init__(self, classifier: SeverityClassifier | None = None, cache_size: int = 64):
        self.classifier = classifier or SeverityClassifier()
        self.cache_size = cache_size
        self._legend_token: str | None = None
        self._categories: list[str] = []
        self._color_map: dict[str, str] = {}
        self._filtered: LRUCache[tuple[str, FilterPredicates], tuple[int, ...]] = LRUCache(
            maxsize=cache_size
        )

    def _refresh_legend(self, dataset: IncidentDataset) -> None:
        if self._legend_token == dataset.token:
            return
        self._categories = derive_categories(dataset.incidents, self.classifier)
        self._color_map = build_color_map(self._categories, self.classifier)
        self._legend_token = dataset.token
        self._filtered.clear()
        logger.debug(
            f"Derived {len(self._categories)} categories for dataset version {dataset.version}"
        )

    def categories(self, dataset: IncidentDataset) -> list[str]:
        """Distinct categories in legend order."""
        self._refresh_legend(dataset)
        return list(self._categories)

    def color_map(self, dataset: IncidentDataset) -> dict[str, str]:
        """Category -> color for every derived category."""
        self._refresh_legend(dataset)
        return dict(self._color_map)

    def classify(self, label: str | None) -> Classification:
        return self.classifier.classify(label)

    def marker_color(self, dataset: IncidentDataset, incident: Incident) -> str:
        self._refresh_legend(dataset)
        return color_for(incident.offense_category, self._color_map)

    def filtered_indices(
        self, dataset: IncidentDataset, predicates: FilterPredicates
    ) -> tuple[int, ...]:
        """Dataset positions of the incidents matching ``predicates``."""
        self._refresh_legend(dataset)
        key = (dataset.token, predicates)
        cached = self._filtered.get(key)
        if cached is not None:
            return cached

        indices = tuple(
            index
            for index, incident in enumerate(dataset.incidents)
            if matches(incident, predicates)
        )
        self._filtered[key] = indices
        return indices

    def filter(
        self, dataset: IncidentDataset, predicates: FilterPredicates
    ) -> list[tuple[int, Incident]]:
        """Matching incidents with their dataset positions, in dataset order."""
        return [
            (index, dataset.incidents[index])
            for index in self.filtered_indices(dataset, predicates)
        ]


@lru_cache
def get_engine() -> IncidentEngine:
    """Get the process-wide engine instance."""
    return IncidentEngine()
