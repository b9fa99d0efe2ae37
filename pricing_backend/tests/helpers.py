"""
Shared test data and builders.
"""

from datetime import datetime, timedelta, timezone
from sqlalchemy import select, func

from pricing_backend.app.domain.pricing.fare_calculator import FareCalculator
from pricing_backend.app.models.pricing_enums import PricingEventType
from pricing_backend.app.models.pricing_event import PricingEvent
from pricing_backend.app.schemas.pricing import Location

# Fixed instants: 2025-01-15 is a Wednesday, 2025-01-18 a Saturday
WEEKDAY_NOON = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
WEEKDAY_MORNING_PEAK = datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc)
SATURDAY_MORNING_PEAK = datetime(2025, 1, 18, 8, 0, tzinfo=timezone.utc)

# Inside the default "downtown" box
DOWNTOWN = {"latitude": 40.75, "longitude": -73.95}
# Inside the default "airport" box
AIRPORT = {"latitude": 40.65, "longitude": -73.75}


async def calculate(db, vehicle_type, distance, departure_time=WEEKDAY_NOON, calculator=None, **kwargs):
    calculator = calculator or FareCalculator()
    return await calculator.calculate_fare(
        db,
        distance=distance,
        vehicle_type_id=vehicle_type.id,
        departure_time=departure_time,
        pickup_location=kwargs.pop("pickup_location", Location(**DOWNTOWN)),
        dropoff_location=kwargs.pop("dropoff_location", Location(**AIRPORT)),
        **kwargs
    )


async def add_event(db, multiplier=2.0, start=None, end=None, vehicle_types=None, areas=None,
                    is_active=True, name="Surge", event_type=PricingEventType.DEMAND_SURGE):
    event = PricingEvent(
        event_name=name,
        event_type=event_type,
        start_date=start or WEEKDAY_NOON - timedelta(hours=1),
        end_date=end or WEEKDAY_NOON + timedelta(hours=1),
        pricing_multiplier=multiplier,
        affected_vehicle_types=vehicle_types if vehicle_types is not None else ["all"],
        affected_areas=areas if areas is not None else ["all"],
        is_active=is_active,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def count_rows(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()
