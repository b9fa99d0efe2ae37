"""
Trip context passed to multiplier and event rules.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from pricing_backend.app.schemas.pricing import Location


@dataclass(frozen=True)
class TripContext:
    departure_time: datetime
    pickup_location: Optional[Location] = None
    dropoff_location: Optional[Location] = None
    weather: Optional[Any] = None
