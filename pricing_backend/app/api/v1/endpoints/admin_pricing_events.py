"""
Admin Pricing Event API Endpoints.

Manages time-boxed pricing events and exposes how often they were applied.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional
from uuid import UUID

from pricing_backend.app.core.config import settings
from pricing_backend.app.core.dependencies import get_actor
from pricing_backend.app.db.errors import persistence_guard
from pricing_backend.app.db.session import get_db
from pricing_backend.app.domain.pricing.event_catalog import PricingEventCatalog
from pricing_backend.app.domain.pricing.ledger import EventApplicationLedger
from pricing_backend.app.models.pricing_enums import PricingEventType
from pricing_backend.app.schemas.pricing import ApiResponse, Pagination
from pricing_backend.app.schemas.pricing_event import (
    PricingEventCreate, PricingEventUpdate, PricingEventResponse,
    PricingEventAnalytics, PricingEventApplicationResponse
)
from pricing_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/admin/pricing-events", tags=["Admin - Pricing Events"])


@router.get("", response_model=ApiResponse[List[PricingEventResponse]])
async def list_pricing_events(
    active_only: bool = Query(False, alias="activeOnly"),
    event_type: Optional[PricingEventType] = Query(None, alias="eventType"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "pricing event list"):
        events = await PricingEventCatalog.list_events(
            db, active_only=active_only, event_type=event_type, limit=limit, offset=offset
        )
    return ApiResponse(
        data=[PricingEventResponse.model_validate(e) for e in events],
        pagination=Pagination(limit=limit, offset=offset, total=len(events))
    )


@router.get("/active", response_model=ApiResponse[List[PricingEventResponse]])
async def list_active_pricing_events(db: AsyncSession = Depends(get_db)):
    """Events live right now, regardless of vehicle type or area scope."""
    async with persistence_guard(db, "active pricing event read"):
        events = await PricingEventCatalog.find_active_events_for_dashboard(db)
    return ApiResponse(data=[PricingEventResponse.model_validate(e) for e in events])


@router.get("/analytics", response_model=ApiResponse[PricingEventAnalytics])
async def get_pricing_event_analytics(
    period: int = Query(settings.default_statistics_period_days, ge=1, le=365),
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "pricing event analytics read"):
        event_statistics = await PricingEventCatalog.get_statistics(db, period)
        application_statistics = await EventApplicationLedger.get_statistics(db, period)
    return ApiResponse(data=PricingEventAnalytics(
        event_statistics=event_statistics,
        application_statistics=application_statistics,
        period_days=period
    ))


@router.get("/applications", response_model=ApiResponse[List[PricingEventApplicationResponse]])
async def list_pricing_event_applications(
    event_id: Optional[UUID] = Query(None, alias="eventId"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """Recorded event applications, newest first, with their event's name and type."""
    async with persistence_guard(db, "pricing event application read"):
        rows = await EventApplicationLedger.find_with_event_details(
            db, limit=limit, offset=offset, event_id=str(event_id) if event_id else None
        )
    data = [
        PricingEventApplicationResponse.model_validate(application).model_copy(
            update={"event_name": event_name, "event_type": event_type}
        )
        for application, event_name, event_type in rows
    ]
    return ApiResponse(
        data=data,
        pagination=Pagination(limit=limit, offset=offset, total=len(data))
    )


@router.get("/{event_id}", response_model=ApiResponse[PricingEventResponse])
async def get_pricing_event(
    event_id: UUID = Path(..., description="Pricing event ID"),
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "pricing event read"):
        event = await PricingEventCatalog.get_by_id(db, str(event_id))
    return ApiResponse(data=PricingEventResponse.model_validate(event))


@router.post("", response_model=ApiResponse[PricingEventResponse], status_code=status.HTTP_201_CREATED)
async def create_pricing_event(
    event: PricingEventCreate,
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "pricing event create"):
        created = await PricingEventCatalog.create(db, event)
        await log_event(
            db=db,
            action=AuditAction.PRICING_EVENT_CREATED,
            resource_type="pricing_event",
            resource_id=created.id,
            actor=actor,
            metadata={
                "event_name": created.event_name,
                "event_type": created.event_type.value,
                "pricing_multiplier": created.pricing_multiplier
            }
        )
        await db.commit()

    return ApiResponse(data=PricingEventResponse.model_validate(created))


@router.put("/{event_id}", response_model=ApiResponse[PricingEventResponse])
async def update_pricing_event(
    update: PricingEventUpdate,
    event_id: UUID = Path(..., description="Pricing event ID"),
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "pricing event update"):
        updated = await PricingEventCatalog.update(db, str(event_id), update)
        await log_event(
            db=db,
            action=AuditAction.PRICING_EVENT_UPDATED,
            resource_type="pricing_event",
            resource_id=updated.id,
            actor=actor,
            metadata={"changes": update.model_dump(mode="json", exclude_unset=True)}
        )
        await db.commit()

    return ApiResponse(data=PricingEventResponse.model_validate(updated))


@router.delete("/{event_id}", response_model=ApiResponse[Dict[str, Any]])
async def delete_pricing_event(
    event_id: UUID = Path(..., description="Pricing event ID"),
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Hard delete. The event's recorded applications are removed with it."""
    async with persistence_guard(db, "pricing event delete"):
        event = await PricingEventCatalog.get_by_id(db, str(event_id))
        event_name = event.event_name
        await PricingEventCatalog.delete(db, event.id)
        await log_event(
            db=db,
            action=AuditAction.PRICING_EVENT_DELETED,
            resource_type="pricing_event",
            resource_id=str(event_id),
            actor=actor,
            metadata={"event_name": event_name}
        )
        await db.commit()

    return ApiResponse(data={"id": str(event_id), "deleted": True})
