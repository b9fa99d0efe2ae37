"""
Fare Calculator (Domain Logic).

Computes a fully itemized fare for a trip and, when a trip id is given,
records it in the ledger.

Flow:
1. Validate input, resolve an active vehicle type
2. Base fare = distance x per-km rate
3. Compound qualifying rule multipliers (storage order)
4. Compound qualifying pricing events (same chain, after the rules)
5. Clamp to [minimum_fare, maximum_fare]
6. Round half-up to cents
7. Persist (trip id only) - a failed write fails the whole calculation
"""

import logging
import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_backend.app.core.exceptions import ValidationError
from pricing_backend.app.db.errors import persistence_guard
from pricing_backend.app.domain.pricing.event_catalog import PricingEventCatalog
from pricing_backend.app.domain.pricing.ledger import PricingCalculationLedger
from pricing_backend.app.domain.pricing.location import LocationClassifier, BoundingBoxLocationClassifier
from pricing_backend.app.domain.pricing.multiplier_rules import MultiplierRuleSet
from pricing_backend.app.domain.pricing.trip_context import TripContext
from pricing_backend.app.domain.pricing.vehicle_types import VehicleTypeCatalog
from pricing_backend.app.models.pricing_enums import MultiplierSource
from pricing_backend.app.schemas.pricing import (
    AppliedEvent, AppliedMultiplier, BaseCalculation, CalculationDetails, EventPricing,
    FareCalculationResult, FareConstraints, Location, TripDetails, VehicleTypeSummary
)

logger = logging.getLogger("fare_engine.pricing")

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    # str() first so 2.5 becomes Decimal("2.5"), not its binary expansion
    return Decimal(str(value))


def round_fare(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class FareCalculator:

    def __init__(
        self,
        rule_set: Optional[MultiplierRuleSet] = None,
        location_classifier: Optional[LocationClassifier] = None
    ):
        self.rule_set = rule_set or MultiplierRuleSet()
        self.location_classifier = location_classifier or BoundingBoxLocationClassifier()

    async def calculate_fare(
        self,
        db: AsyncSession,
        distance: float,
        vehicle_type_id: str,
        departure_time: datetime,
        pickup_location: Location,
        dropoff_location: Location,
        weather: Optional[Any] = None,
        trip_id: Optional[str] = None
    ) -> FareCalculationResult:
        """
        Calculate the fare for a trip.

        Args:
            db: Database session
            distance: Trip distance in km, must be positive
            vehicle_type_id: ID of an active vehicle type
            departure_time: Departure instant; hour/weekday rules read its wall clock
            pickup_location: Resolved to an area tag for event scoping
            dropoff_location: Echoed into the calculation details
            weather: Free-form context for the weather rule
            trip_id: When present, the result is written to the ledger

        Returns:
            Itemized FareCalculationResult

        Raises:
            ValidationError: Non-positive or non-finite distance, or missing vehicle type id
            ResourceNotFoundError / InactiveResourceError: Vehicle type unusable
            PersistenceError: Any store failure, including the ledger write
        """
        if distance is None or not math.isfinite(distance) or distance <= 0:
            raise ValidationError("Invalid distance provided", field="distance")
        if not vehicle_type_id:
            raise ValidationError("Vehicle type ID is required", field="vehicleTypeId")

        context = TripContext(
            departure_time=departure_time,
            pickup_location=pickup_location,
            dropoff_location=dropoff_location,
            weather=weather,
        )

        async with persistence_guard(db, "fare catalog read"):
            vehicle_type = await VehicleTypeCatalog.get_active(db, vehicle_type_id)
            multipliers = await self.rule_set.get_applicable_multipliers(db, vehicle_type.id, context)
            events = await PricingEventCatalog.find_active_events(
                db,
                departure_time,
                location=pickup_location,
                vehicle_type_name=vehicle_type.name,
                classifier=self.location_classifier,
            )

        # 1. Base fare
        base_fare = to_decimal(distance) * to_decimal(vehicle_type.per_km_charges)
        running_fare = base_fare
        chain = []

        # 2. Rule multipliers
        for multiplier in multipliers:
            running_fare *= to_decimal(multiplier.multiplier_value)
            chain.append(AppliedMultiplier(
                id=multiplier.id,
                source=MultiplierSource.MULTIPLIER,
                multiplier_type=multiplier.multiplier_type.value,
                multiplier_value=multiplier.multiplier_value,
                applied_value=float(running_fare),
            ))

        # 2.5 Event multipliers join the same chain
        applied_events = []
        for event in events:
            original_fare = running_fare
            running_fare *= to_decimal(event.pricing_multiplier)
            chain.append(AppliedMultiplier(
                id=event.id,
                source=MultiplierSource.EVENT,
                multiplier_type=event.event_type.value,
                multiplier_value=event.pricing_multiplier,
                applied_value=float(running_fare),
                event_name=event.event_name,
            ))
            applied_events.append(AppliedEvent(
                id=event.id,
                event_name=event.event_name,
                event_type=event.event_type.value,
                pricing_multiplier=event.pricing_multiplier,
                original_fare=float(original_fare),
                adjusted_fare=float(running_fare),
                fare_increase=float(running_fare - original_fare),
            ))

        # 3. Clamp (mutually exclusive while minimum <= maximum)
        minimum_fare = to_decimal(vehicle_type.minimum_fare)
        maximum_fare = (
            to_decimal(vehicle_type.maximum_fare) if vehicle_type.maximum_fare is not None else None
        )
        minimum_applied = False
        maximum_applied = False
        if running_fare < minimum_fare:
            running_fare = minimum_fare
            minimum_applied = True
        elif maximum_fare is not None and running_fare > maximum_fare:
            running_fare = maximum_fare
            maximum_applied = True

        # 4. Round
        final_fare = round_fare(running_fare)

        event_pricing = EventPricing(
            applied_events=applied_events,
            total_events_applied=len(applied_events),
            total_fare_increase=sum(event.fare_increase for event in applied_events),
        )

        calculation_details = CalculationDetails(
            base_calculation=BaseCalculation(
                distance_km=distance,
                per_km_rate=vehicle_type.per_km_charges,
                base_fare=float(base_fare),
            ),
            constraints=FareConstraints(
                minimum_fare=vehicle_type.minimum_fare,
                maximum_fare=vehicle_type.maximum_fare,
                minimum_applied=minimum_applied,
                maximum_applied=maximum_applied,
            ),
            multipliers=chain,
            event_pricing=event_pricing,
            trip_details=TripDetails(
                departure_time=departure_time,
                pickup_location=pickup_location,
                dropoff_location=dropoff_location,
                pickup_area=self.location_classifier.classify(pickup_location),
                weather=weather,
            ),
        )

        result = FareCalculationResult(
            base_fare=float(base_fare),
            final_fare=float(final_fare),
            distance_km=distance,
            vehicle_type=VehicleTypeSummary.model_validate(vehicle_type),
            applied_multipliers=chain,
            event_pricing=event_pricing,
            calculation_details=calculation_details,
        )

        # 5. Ledger
        if trip_id:
            async with persistence_guard(db, "pricing calculation ledger write"):
                await PricingCalculationLedger.create(
                    db,
                    trip_id=str(trip_id),
                    vehicle_type_id=vehicle_type.id,
                    base_distance=distance,
                    base_fare=result.base_fare,
                    applied_multipliers=chain,
                    final_fare=result.final_fare,
                    calculation_details=calculation_details,
                    applied_events=applied_events,
                )

        logger.info(
            "Fare calculated",
            extra={
                "vehicle_type_id": vehicle_type.id,
                "trip_id": str(trip_id) if trip_id else None,
                "multipliers_applied": len(chain),
                "final_fare": result.final_fare,
            }
        )

        return result
