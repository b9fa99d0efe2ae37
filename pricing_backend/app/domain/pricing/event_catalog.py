"""
Pricing Event Catalog.

CRUD for time-boxed pricing events and the active-event lookup used by the
fare calculator. The window check runs in SQL; vehicle-type and area scope
are filtered in memory because they live in JSON columns.

Writes flush only; callers commit.
"""

from datetime import datetime, timedelta
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case, desc

from pricing_backend.app.core.clock import utc_now, ensure_utc
from pricing_backend.app.core.exceptions import ResourceNotFoundError, ValidationError
from pricing_backend.app.domain.pricing.location import LocationClassifier, BoundingBoxLocationClassifier
from pricing_backend.app.models.pricing_enums import PricingEventType
from pricing_backend.app.models.pricing_event import PricingEvent
from pricing_backend.app.schemas.pricing import Location
from pricing_backend.app.schemas.pricing_event import (
    PricingEventCreate, PricingEventUpdate, PricingEventStatistics
)

_default_classifier = BoundingBoxLocationClassifier()


class PricingEventCatalog:

    @staticmethod
    async def get_by_id(db: AsyncSession, event_id: str) -> PricingEvent:
        event = await db.get(PricingEvent, str(event_id))
        if not event:
            raise ResourceNotFoundError("Pricing event", str(event_id))
        return event

    @staticmethod
    async def list_events(
        db: AsyncSession,
        active_only: bool = False,
        event_type: Optional[PricingEventType] = None,
        limit: Optional[int] = 50,
        offset: int = 0
    ) -> List[PricingEvent]:
        """Events newest first. A limit of None returns every event."""
        query = select(PricingEvent).order_by(desc(PricingEvent.created_at), desc(PricingEvent.id))

        if active_only:
            query = query.where(PricingEvent.is_active == True)

        if event_type:
            query = query.where(PricingEvent.event_type == event_type)

        query = query.limit(limit).offset(offset)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def create(db: AsyncSession, data: PricingEventCreate) -> PricingEvent:
        event = PricingEvent(
            event_name=data.event_name,
            event_type=data.event_type,
            start_date=ensure_utc(data.start_date),
            end_date=ensure_utc(data.end_date),
            pricing_multiplier=data.pricing_multiplier,
            affected_vehicle_types=list(data.affected_vehicle_types),
            affected_areas=list(data.affected_areas),
            description=data.description,
            is_active=data.is_active,
        )
        db.add(event)
        await db.flush()
        await db.refresh(event)
        return event

    @staticmethod
    async def update(db: AsyncSession, event_id: str, data: PricingEventUpdate) -> PricingEvent:
        """Partial update; the window invariant is checked on the merged values."""
        event = await PricingEventCatalog.get_by_id(db, event_id)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise ValidationError("No valid fields to update")

        for key in ("start_date", "end_date"):
            if key in update_data:
                update_data[key] = ensure_utc(update_data[key])

        start_date = update_data.get("start_date", ensure_utc(event.start_date))
        end_date = update_data.get("end_date", ensure_utc(event.end_date))
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date", field="start_date")

        for field, value in update_data.items():
            setattr(event, field, value)

        await db.flush()
        await db.refresh(event)
        return event

    @staticmethod
    async def delete(db: AsyncSession, event_id: str) -> bool:
        """Hard delete. Recorded applications go with it."""
        event = await PricingEventCatalog.get_by_id(db, event_id)
        await db.delete(event)
        await db.flush()
        return True

    @staticmethod
    async def find_active_events(
        db: AsyncSession,
        moment: datetime,
        location: Optional[Location] = None,
        vehicle_type_name: Optional[str] = None,
        classifier: Optional[LocationClassifier] = None
    ) -> List[PricingEvent]:
        """
        Events active at `moment` (inclusive window) that apply to the
        vehicle type and the area of `location`.

        A missing location or vehicle type name skips that filter.
        Results keep storage order (creation time, then id).
        """
        moment = ensure_utc(moment)
        query = select(PricingEvent).where(
            PricingEvent.is_active == True,
            PricingEvent.start_date <= moment,
            PricingEvent.end_date >= moment
        ).order_by(PricingEvent.created_at, PricingEvent.id)

        result = await db.execute(query)
        events = result.scalars().all()

        area = None
        if location is not None:
            area = (classifier or _default_classifier).classify(location)

        matching = []
        for event in events:
            if vehicle_type_name and not event.applies_to_vehicle_type(vehicle_type_name):
                continue
            if area and not event.applies_to_area(area):
                continue
            matching.append(event)
        return matching

    @staticmethod
    async def find_active_events_for_dashboard(db: AsyncSession) -> List[PricingEvent]:
        """Every event live right now, newest first, unscoped."""
        now = utc_now()
        result = await db.execute(
            select(PricingEvent).where(
                PricingEvent.is_active == True,
                PricingEvent.start_date <= now,
                PricingEvent.end_date >= now
            ).order_by(desc(PricingEvent.created_at))
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_statistics(db: AsyncSession, period_days: int = 30) -> PricingEventStatistics:
        """Aggregate over events created within the last `period_days`."""
        since = utc_now() - timedelta(days=period_days)

        def count_type(event_type: PricingEventType):
            return func.sum(case((PricingEvent.event_type == event_type, 1), else_=0))

        stmt = select(
            func.count(PricingEvent.id).label("total_events"),
            func.sum(case((PricingEvent.is_active == True, 1), else_=0)).label("active_events"),
            count_type(PricingEventType.SEASONAL).label("seasonal_events"),
            count_type(PricingEventType.HOLIDAY).label("holiday_events"),
            count_type(PricingEventType.SPECIAL_EVENT).label("special_events"),
            count_type(PricingEventType.DEMAND_SURGE).label("demand_events"),
            func.avg(PricingEvent.pricing_multiplier).label("avg_multiplier"),
            func.max(PricingEvent.pricing_multiplier).label("max_multiplier"),
            func.min(PricingEvent.pricing_multiplier).label("min_multiplier"),
        ).where(PricingEvent.created_at >= since)

        row = (await db.execute(stmt)).one()

        return PricingEventStatistics(
            total_events=row.total_events or 0,
            active_events=row.active_events or 0,
            seasonal_events=row.seasonal_events or 0,
            holiday_events=row.holiday_events or 0,
            special_events=row.special_events or 0,
            demand_events=row.demand_events or 0,
            avg_multiplier=row.avg_multiplier or 0.0,
            max_multiplier=row.max_multiplier or 0.0,
            min_multiplier=row.min_multiplier or 0.0,
        )
