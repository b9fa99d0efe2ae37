"""
Database seeding script for the default pricing catalog.

Creates the standard vehicle types with their per-km rates and fare bounds,
plus peak-hour and weekend multipliers for each.
Safe to run repeatedly: vehicle types that already exist (by name) are left alone.
"""

import asyncio
import logging
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_backend.app.core.config import settings
from pricing_backend.app.core.observability import configure_logging
from pricing_backend.app.db.session import Database
from pricing_backend.app.models.pricing_enums import MultiplierType
from pricing_backend.app.models.pricing_multiplier import PricingMultiplier
from pricing_backend.app.models.vehicle_type import VehicleType

# Register the remaining tables with Base before create_all
from pricing_backend.app.models.audit_log import AuditLog
from pricing_backend.app.models.pricing_event import PricingEvent
from pricing_backend.app.models.pricing_calculation import PricingCalculation
from pricing_backend.app.models.pricing_event_application import PricingEventApplication

logger = logging.getLogger("fare_engine.seed")

DEFAULT_VEHICLE_TYPES = [
    {"name": "Sedan", "description": "Standard sedan for 1-4 passengers",
     "per_km_charges": 2.50, "minimum_fare": 5.00, "maximum_fare": 100.00},
    {"name": "SUV", "description": "Sports utility vehicle for 1-7 passengers",
     "per_km_charges": 3.00, "minimum_fare": 6.00, "maximum_fare": 120.00},
    {"name": "Hatchback", "description": "Compact hatchback for 1-4 passengers",
     "per_km_charges": 2.00, "minimum_fare": 4.00, "maximum_fare": 80.00},
    {"name": "Van", "description": "Large van for groups or luggage",
     "per_km_charges": 3.50, "minimum_fare": 7.00, "maximum_fare": 150.00},
    {"name": "Pickup", "description": "Pickup truck for cargo and passengers",
     "per_km_charges": 3.25, "minimum_fare": 6.50, "maximum_fare": 130.00},
]

# (peak_hour, weekend) per vehicle type name
DEFAULT_MULTIPLIERS = {
    "Sedan": (1.25, 1.15),
    "SUV": (1.30, 1.20),
    "Hatchback": (1.20, 1.10),
    "Van": (1.35, 1.25),
    "Pickup": (1.30, 1.20),
}


async def seed_pricing_catalog(db: AsyncSession) -> Dict[str, int]:
    """
    Insert missing default vehicle types and their multipliers.

    Returns:
        Counts of created vehicle types and multipliers
    """
    result = await db.execute(select(VehicleType.name))
    existing = set(result.scalars().all())

    created_types = 0
    created_multipliers = 0

    for defaults in DEFAULT_VEHICLE_TYPES:
        if defaults["name"] in existing:
            logger.info("Vehicle type already exists, skipping", extra={"vehicle_type": defaults["name"]})
            continue

        vehicle_type = VehicleType(**defaults, is_active=True)
        db.add(vehicle_type)
        await db.flush()
        created_types += 1

        peak_hour, weekend = DEFAULT_MULTIPLIERS[defaults["name"]]
        for multiplier_type, value in (
            (MultiplierType.PEAK_HOUR, peak_hour),
            (MultiplierType.WEEKEND, weekend),
        ):
            db.add(PricingMultiplier(
                vehicle_type_id=vehicle_type.id,
                multiplier_type=multiplier_type,
                multiplier_value=value,
                is_active=True,
            ))
            created_multipliers += 1

    await db.commit()

    logger.info(
        "Pricing catalog seeded",
        extra={"vehicle_types_created": created_types, "multipliers_created": created_multipliers}
    )
    return {"vehicle_types": created_types, "multipliers": created_multipliers}


async def main():
    configure_logging(settings.log_level)
    database = Database.from_settings(settings)
    try:
        await database.create_all()
        async with database.session_factory() as db:
            await seed_pricing_catalog(db)
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(main())
