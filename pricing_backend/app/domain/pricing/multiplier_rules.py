"""
Multiplier Rule Set.

Admin operations on rule-based multipliers and the applicability check used
by the fare calculator. Each multiplier type is decided by a predicate over
the trip context; predicates may be sync or async and can be replaced per
instance without touching the calculator.

Admin writes flush only; callers commit.
"""

import inspect
from typing import Awaitable, Callable, Dict, List, Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from pricing_backend.app.core.exceptions import ResourceNotFoundError, ValidationError
from pricing_backend.app.domain.pricing.trip_context import TripContext
from pricing_backend.app.domain.pricing.vehicle_types import VehicleTypeCatalog
from pricing_backend.app.models.pricing_enums import MultiplierType
from pricing_backend.app.models.pricing_multiplier import PricingMultiplier
from pricing_backend.app.schemas.pricing import PricingMultiplierCreate, PricingMultiplierUpdate

RulePredicate = Callable[[TripContext], Union[bool, Awaitable[bool]]]

MORNING_PEAK = range(7, 10)  # 07:00-09:59
EVENING_PEAK = range(17, 20)  # 17:00-19:59


def is_peak_hour(context: TripContext) -> bool:
    hour = context.departure_time.hour
    return hour in MORNING_PEAK or hour in EVENING_PEAK


def is_weekend(context: TripContext) -> bool:
    # Monday == 0
    return context.departure_time.weekday() >= 5


def is_holiday(context: TripContext) -> bool:
    """No holiday calendar is wired in; never applies."""
    return False


def is_weather_condition(context: TripContext) -> bool:
    """No weather feed is wired in; never applies."""
    return False


def is_high_demand(context: TripContext) -> bool:
    """No demand signal is wired in; never applies."""
    return False


DEFAULT_PREDICATES: Dict[MultiplierType, RulePredicate] = {
    MultiplierType.PEAK_HOUR: is_peak_hour,
    MultiplierType.WEEKEND: is_weekend,
    MultiplierType.HOLIDAY: is_holiday,
    MultiplierType.WEATHER: is_weather_condition,
    MultiplierType.DEMAND: is_high_demand,
}


class MultiplierRuleSet:

    def __init__(self, predicates: Optional[Dict[MultiplierType, RulePredicate]] = None):
        self.predicates = dict(DEFAULT_PREDICATES)
        if predicates:
            self.predicates.update(predicates)

    async def applies(self, multiplier: PricingMultiplier, context: TripContext) -> bool:
        predicate = self.predicates.get(multiplier.multiplier_type)
        if predicate is None:
            return False
        result = predicate(context)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)

    async def get_applicable_multipliers(
        self,
        db: AsyncSession,
        vehicle_type_id: str,
        context: TripContext
    ) -> List[PricingMultiplier]:
        """
        Active multipliers for the vehicle type whose rule currently holds.

        Order is storage order (creation time, then id); the calculator
        compounds them in exactly this order.
        """
        multipliers = await MultiplierRuleSet.list_multipliers(db, vehicle_type_id=vehicle_type_id, active_only=True)
        applicable = []
        for multiplier in multipliers:
            if await self.applies(multiplier, context):
                applicable.append(multiplier)
        return applicable

    # --- Admin operations ---

    @staticmethod
    async def list_multipliers(
        db: AsyncSession,
        vehicle_type_id: Optional[str] = None,
        multiplier_type: Optional[MultiplierType] = None,
        active_only: bool = True
    ) -> List[PricingMultiplier]:
        query = select(PricingMultiplier).order_by(
            PricingMultiplier.created_at, PricingMultiplier.id
        )

        if vehicle_type_id:
            query = query.where(PricingMultiplier.vehicle_type_id == str(vehicle_type_id))

        if multiplier_type:
            query = query.where(PricingMultiplier.multiplier_type == multiplier_type)

        if active_only:
            query = query.where(PricingMultiplier.is_active == True)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_by_id(db: AsyncSession, multiplier_id: str) -> PricingMultiplier:
        multiplier = await db.get(PricingMultiplier, str(multiplier_id))
        if not multiplier:
            raise ResourceNotFoundError("Pricing multiplier", str(multiplier_id))
        return multiplier

    @staticmethod
    async def create(db: AsyncSession, data: PricingMultiplierCreate) -> PricingMultiplier:
        """Duplicates of the same type are allowed; all of them apply."""
        vehicle_type = await VehicleTypeCatalog.get_by_id(db, data.vehicle_type_id)

        multiplier = PricingMultiplier(
            vehicle_type_id=vehicle_type.id,
            multiplier_type=data.multiplier_type,
            multiplier_value=data.multiplier_value,
            is_active=True,
        )
        db.add(multiplier)
        await db.flush()
        await db.refresh(multiplier)
        return multiplier

    @staticmethod
    async def update(db: AsyncSession, multiplier_id: str, data: PricingMultiplierUpdate) -> PricingMultiplier:
        multiplier = await MultiplierRuleSet.get_by_id(db, multiplier_id)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise ValidationError("No valid fields to update")

        for field, value in update_data.items():
            setattr(multiplier, field, value)

        await db.flush()
        await db.refresh(multiplier)
        return multiplier

    @staticmethod
    async def deactivate(db: AsyncSession, multiplier_id: str) -> PricingMultiplier:
        """Soft delete: the row stays, is_active goes false."""
        multiplier = await MultiplierRuleSet.get_by_id(db, multiplier_id)
        multiplier.is_active = False
        await db.flush()
        await db.refresh(multiplier)
        return multiplier
