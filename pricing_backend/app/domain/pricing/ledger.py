"""
Pricing Calculation Ledger.

Append-only record of served fares and of the pricing events applied to
them. Entries are written once and never updated; every read here is a
filter-and-aggregate query.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from pricing_backend.app.core.clock import utc_now, ensure_utc
from pricing_backend.app.models.pricing_calculation import PricingCalculation
from pricing_backend.app.models.pricing_enums import MultiplierSource
from pricing_backend.app.models.pricing_event import PricingEvent
from pricing_backend.app.models.pricing_event_application import PricingEventApplication
from pricing_backend.app.models.vehicle_type import VehicleType
from pricing_backend.app.schemas.pricing import (
    AppliedEvent, AppliedMultiplier, CalculationDetails, DailyRevenue,
    MultiplierUsage, PricingStatistics, RevenueAnalytics
)
from pricing_backend.app.schemas.pricing_event import EventApplicationStatistics


def _period_start(period_days: int) -> datetime:
    return utc_now() - timedelta(days=period_days)


class PricingCalculationLedger:

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        trip_id: str,
        vehicle_type_id: str,
        base_distance: float,
        base_fare: float,
        applied_multipliers: Sequence[AppliedMultiplier],
        final_fare: float,
        calculation_details: CalculationDetails,
        applied_events: Sequence[AppliedEvent] = ()
    ) -> PricingCalculation:
        """
        Append a calculation and its event applications in one transaction.

        Store errors propagate to the caller; nothing is committed unless
        every row is written.
        """
        calculation = PricingCalculation(
            trip_id=trip_id,
            vehicle_type_id=vehicle_type_id,
            base_distance=base_distance,
            base_fare=base_fare,
            applied_multipliers=[m.model_dump(mode="json") for m in applied_multipliers],
            final_fare=final_fare,
            calculation_details=calculation_details.model_dump(mode="json"),
        )
        db.add(calculation)

        for event in applied_events:
            db.add(PricingEventApplication(
                trip_id=trip_id,
                pricing_event_id=event.id,
                original_fare=event.original_fare,
                adjusted_fare=event.adjusted_fare,
                multiplier_applied=event.pricing_multiplier,
            ))

        await db.flush()
        await db.commit()
        await db.refresh(calculation)
        return calculation

    @staticmethod
    async def find_by_id(db: AsyncSession, calculation_id: str) -> Optional[PricingCalculation]:
        return await db.get(PricingCalculation, str(calculation_id))

    @staticmethod
    async def find_by_trip_id(db: AsyncSession, trip_id: str) -> List[PricingCalculation]:
        result = await db.execute(
            select(PricingCalculation)
            .where(PricingCalculation.trip_id == str(trip_id))
            .order_by(desc(PricingCalculation.created_at))
        )
        return list(result.scalars().all())

    @staticmethod
    async def find_by_vehicle_type_id(
        db: AsyncSession,
        vehicle_type_id: str,
        page: int = 1,
        limit: int = 20,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> List[PricingCalculation]:
        query = select(PricingCalculation).where(
            PricingCalculation.vehicle_type_id == str(vehicle_type_id)
        )

        if start_date:
            query = query.where(PricingCalculation.created_at >= ensure_utc(start_date))

        if end_date:
            query = query.where(PricingCalculation.created_at <= ensure_utc(end_date))

        query = query.order_by(desc(PricingCalculation.created_at)).limit(limit).offset((page - 1) * limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def find_between(
        db: AsyncSession,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 1000
    ) -> List[PricingCalculation]:
        """Calculations across all vehicle types, newest first, optionally bounded by date."""
        query = select(PricingCalculation)

        if start_date:
            query = query.where(PricingCalculation.created_at >= ensure_utc(start_date))

        if end_date:
            query = query.where(PricingCalculation.created_at <= ensure_utc(end_date))

        query = query.order_by(desc(PricingCalculation.created_at)).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_statistics(
        db: AsyncSession,
        vehicle_type_id: Optional[str] = None,
        period_days: int = 30
    ) -> PricingStatistics:
        """
        Count/avg/min/max over base and final fare, average distance and
        summed revenue within the period. Without a vehicle type the
        aggregate covers every type.
        """
        stmt = select(
            func.count(PricingCalculation.id).label("total_calculations"),
            func.avg(PricingCalculation.base_fare).label("avg_base_fare"),
            func.avg(PricingCalculation.final_fare).label("avg_final_fare"),
            func.min(PricingCalculation.base_fare).label("min_base_fare"),
            func.max(PricingCalculation.base_fare).label("max_base_fare"),
            func.min(PricingCalculation.final_fare).label("min_final_fare"),
            func.max(PricingCalculation.final_fare).label("max_final_fare"),
            func.avg(PricingCalculation.base_distance).label("avg_distance"),
            func.sum(PricingCalculation.final_fare).label("total_revenue"),
        ).where(PricingCalculation.created_at >= _period_start(period_days))

        if vehicle_type_id:
            stmt = stmt.where(PricingCalculation.vehicle_type_id == str(vehicle_type_id))

        row = (await db.execute(stmt)).one()

        return PricingStatistics(
            total_calculations=row.total_calculations or 0,
            avg_base_fare=row.avg_base_fare or 0.0,
            avg_final_fare=row.avg_final_fare or 0.0,
            min_base_fare=row.min_base_fare or 0.0,
            max_base_fare=row.max_base_fare or 0.0,
            min_final_fare=row.min_final_fare or 0.0,
            max_final_fare=row.max_final_fare or 0.0,
            avg_distance=row.avg_distance or 0.0,
            total_revenue=row.total_revenue or 0.0,
        )

    @staticmethod
    async def get_overall_statistics(db: AsyncSession, period_days: int = 30) -> PricingStatistics:
        return await PricingCalculationLedger.get_statistics(db, None, period_days)

    @staticmethod
    async def get_multiplier_usage(
        db: AsyncSession,
        vehicle_type_id: Optional[str] = None,
        period_days: int = 30
    ) -> List[MultiplierUsage]:
        """
        How often each rule multiplier type was applied within the period,
        most used first. Event entries of the chain are not counted here.
        """
        stmt = select(PricingCalculation.applied_multipliers).where(
            PricingCalculation.created_at >= _period_start(period_days)
        )
        if vehicle_type_id:
            stmt = stmt.where(PricingCalculation.vehicle_type_id == str(vehicle_type_id))

        result = await db.execute(stmt)

        values_by_type = defaultdict(list)
        for chain in result.scalars():
            for entry in chain or []:
                if entry.get("source", MultiplierSource.MULTIPLIER.value) != MultiplierSource.MULTIPLIER.value:
                    continue
                values_by_type[entry["multiplier_type"]].append(float(entry["multiplier_value"]))

        usage = [
            MultiplierUsage(
                multiplier_type=multiplier_type,
                usage_count=len(values),
                avg_multiplier_value=sum(values) / len(values),
            )
            for multiplier_type, values in values_by_type.items()
        ]
        usage.sort(key=lambda item: (-item.usage_count, item.multiplier_type))
        return usage

    @staticmethod
    async def get_recent_calculations(db: AsyncSession, limit: int = 10) -> List[Tuple[PricingCalculation, Optional[str]]]:
        """Latest calculations with their vehicle type name. limit is clamped to 1..1000."""
        limit = max(1, min(1000, limit))
        result = await db.execute(
            select(PricingCalculation, VehicleType.name)
            .outerjoin(VehicleType, VehicleType.id == PricingCalculation.vehicle_type_id)
            .order_by(desc(PricingCalculation.created_at))
            .limit(limit)
        )
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def get_revenue_analytics(db: AsyncSession, period_days: int = 30) -> RevenueAnalytics:
        day = func.date(PricingCalculation.created_at).label("date")
        stmt = select(
            day,
            func.count(PricingCalculation.id).label("total_calculations"),
            func.sum(PricingCalculation.final_fare).label("daily_revenue"),
            func.avg(PricingCalculation.final_fare).label("avg_fare"),
        ).where(
            PricingCalculation.created_at >= _period_start(period_days)
        ).group_by(day).order_by(desc(day))

        rows = (await db.execute(stmt)).all()

        daily = [
            DailyRevenue(
                date=row.date,
                total_calculations=row.total_calculations,
                daily_revenue=row.daily_revenue or 0.0,
                avg_fare=row.avg_fare or 0.0,
            )
            for row in rows
        ]
        total_revenue = sum(item.daily_revenue for item in daily)
        total_calculations = sum(item.total_calculations for item in daily)

        return RevenueAnalytics(
            daily_revenue=daily,
            total_revenue=total_revenue,
            total_calculations=total_calculations,
            avg_fare=total_revenue / total_calculations if total_calculations else 0.0,
            period_days=period_days,
        )


class EventApplicationLedger:

    @staticmethod
    async def find_by_trip_id(db: AsyncSession, trip_id: str) -> List[PricingEventApplication]:
        result = await db.execute(
            select(PricingEventApplication)
            .where(PricingEventApplication.trip_id == str(trip_id))
            .order_by(desc(PricingEventApplication.created_at))
        )
        return list(result.scalars().all())

    @staticmethod
    async def find_with_event_details(
        db: AsyncSession,
        limit: int = 50,
        offset: int = 0,
        event_id: Optional[str] = None
    ) -> List[Tuple[PricingEventApplication, str, str]]:
        """Applications joined with the name and type of their event, newest first."""
        query = select(
            PricingEventApplication, PricingEvent.event_name, PricingEvent.event_type
        ).join(
            PricingEvent, PricingEvent.id == PricingEventApplication.pricing_event_id
        ).order_by(desc(PricingEventApplication.created_at))

        if event_id:
            query = query.where(PricingEventApplication.pricing_event_id == str(event_id))

        query = query.limit(limit).offset(offset)

        result = await db.execute(query)
        return [(row[0], row[1], row[2]) for row in result.all()]

    @staticmethod
    async def get_statistics(
        db: AsyncSession,
        period_days: int = 30,
        event_id: Optional[str] = None
    ) -> EventApplicationStatistics:
        stmt = select(
            func.count(PricingEventApplication.id).label("total_applications"),
            func.sum(PricingEventApplication.original_fare).label("total_original_fare"),
            func.sum(PricingEventApplication.adjusted_fare).label("total_adjusted_fare"),
            func.sum(
                PricingEventApplication.adjusted_fare - PricingEventApplication.original_fare
            ).label("total_fare_increase"),
            func.avg(PricingEventApplication.multiplier_applied).label("avg_multiplier"),
        ).where(PricingEventApplication.created_at >= _period_start(period_days))

        if event_id:
            stmt = stmt.where(PricingEventApplication.pricing_event_id == str(event_id))

        row = (await db.execute(stmt)).one()

        return EventApplicationStatistics(
            total_applications=row.total_applications or 0,
            total_original_fare=row.total_original_fare or 0.0,
            total_adjusted_fare=row.total_adjusted_fare or 0.0,
            total_fare_increase=row.total_fare_increase or 0.0,
            avg_multiplier=row.avg_multiplier or 0.0,
        )
