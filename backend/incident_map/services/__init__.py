"""Classification, date parsing and filtering services."""

from incident_map.services.classification import SeverityClassifier
from incident_map.services.engine import IncidentEngine, get_engine
from incident_map.services.filtering import FilterPredicates, filter_incidents

__all__ = [
    "FilterPredicates",
    "IncidentEngine",
    "SeverityClassifier",
    "filter_incidents",
    "get_engine",
]
