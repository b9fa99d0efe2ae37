"""
Area resolution for pricing event scoping.

Event matching depends only on the LocationClassifier protocol, so the
bounding boxes below can be swapped for real geofencing.
"""

from typing import NamedTuple, Optional, Protocol, Sequence, runtime_checkable
from pricing_backend.app.schemas.pricing import Location

FALLBACK_AREA = "suburban"


@runtime_checkable
class LocationClassifier(Protocol):
    def classify(self, location: Optional[Location]) -> str:
        ...


class AreaBox(NamedTuple):
    area: str
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, location: Location) -> bool:
        return (
            self.min_lat <= location.latitude <= self.max_lat
            and self.min_lng <= location.longitude <= self.max_lng
        )


DEFAULT_AREA_BOXES = (
    AreaBox("downtown", 40.7, 40.8, -74.0, -73.9),
    AreaBox("airport", 40.6, 40.7, -73.8, -73.7),
    AreaBox("midtown", 40.7, 40.8, -73.9, -73.8),
)


class BoundingBoxLocationClassifier:
    """
    First matching box wins; anything outside every box is the fallback area.

    downtown and midtown share the -73.9 meridian, so a point exactly on it
    resolves to downtown.
    """

    def __init__(self, boxes: Sequence[AreaBox] = DEFAULT_AREA_BOXES, fallback: str = FALLBACK_AREA):
        self.boxes = tuple(boxes)
        self.fallback = fallback

    def classify(self, location: Optional[Location]) -> str:
        if location is None:
            return self.fallback
        for box in self.boxes:
            if box.contains(location):
                return box.area
        return self.fallback
