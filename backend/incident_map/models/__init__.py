"""Domain models."""

from incident_map.models.incident import Incident, LocationInterpretation

__all__ = [
    "Incident",
    "LocationInterpretation",
]
