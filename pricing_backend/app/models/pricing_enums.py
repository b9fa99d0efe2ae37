"""
Pricing enumerations.
"""

import enum


class MultiplierType(str, enum.Enum):
    """Rule-based multiplier categories."""
    PEAK_HOUR = "peak_hour"  # 7-9 AM and 5-7 PM
    WEEKEND = "weekend"  # Saturday and Sunday
    HOLIDAY = "holiday"
    WEATHER = "weather"
    DEMAND = "demand"


class PricingEventType(str, enum.Enum):
    """Pricing event categories."""
    SEASONAL = "seasonal"
    HOLIDAY = "holiday"
    SPECIAL_EVENT = "special_event"
    DEMAND_SURGE = "demand_surge"


class MultiplierSource(str, enum.Enum):
    """Where an entry of the fare chain came from."""
    MULTIPLIER = "multiplier"
    EVENT = "event"


# Sentinel meaning "every vehicle type" / "every area"
ALL = "all"


class ExportType(str, enum.Enum):
    """Slices of pricing data that can be exported."""
    VEHICLE_TYPES = "vehicle-types"
    MULTIPLIERS = "multipliers"
    EVENTS = "events"
    CALCULATIONS = "calculations"
    ALL = "all"


class BulkOperation(str, enum.Enum):
    UPDATE = "update"
    DELETE = "delete"
