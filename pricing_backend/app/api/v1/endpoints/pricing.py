"""
Pricing API Endpoints.

Fare calculation, vehicle type pricing, rule multipliers and the
calculation ledger read side (history, statistics, analytics).
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pricing_backend.app.core.config import settings
from pricing_backend.app.core.dependencies import get_actor, get_fare_calculator
from pricing_backend.app.core.exceptions import ValidationError
from pricing_backend.app.db.errors import persistence_guard
from pricing_backend.app.db.session import get_db
from pricing_backend.app.domain.pricing.fare_calculator import FareCalculator
from pricing_backend.app.domain.pricing.ledger import PricingCalculationLedger
from pricing_backend.app.domain.pricing.multiplier_rules import MultiplierRuleSet
from pricing_backend.app.domain.pricing.vehicle_types import VehicleTypeCatalog
from pricing_backend.app.models.pricing_enums import MultiplierType
from pricing_backend.app.schemas.pricing import (
    ApiResponse, Pagination,
    FareCalculationRequest, FareCalculationResult,
    VehicleTypeCreate, VehicleTypePricingUpdate, VehicleTypeResponse,
    VehicleTypeWithPricing, VehicleTypeDetail, VehicleTypeSummary,
    PricingMultiplierCreate, PricingMultiplierUpdate, PricingMultiplierResponse,
    PricingCalculationResponse, RecentPricingCalculation,
    VehicleTypePricingStatistics, PricingStatistics, MultiplierUsageAnalytics,
    RevenueAnalytics
)
from pricing_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/pricing", tags=["Pricing"])

PERIOD_QUERY = Query(
    settings.default_statistics_period_days, ge=1, le=365, description="Look-back window in days"
)


# --- Fare calculation ---

@router.post("/calculate", response_model=ApiResponse[FareCalculationResult])
async def calculate_fare(
    request: FareCalculationRequest,
    calculator: FareCalculator = Depends(get_fare_calculator),
    db: AsyncSession = Depends(get_db)
):
    """
    Calculate the fare for a trip.

    When tripId is supplied the calculation is also written to the ledger;
    a failed write fails the request.
    """
    result = await calculator.calculate_fare(
        db,
        distance=request.distance,
        vehicle_type_id=str(request.vehicle_type_id),
        departure_time=request.departure_time,
        pickup_location=request.pickup_location,
        dropoff_location=request.dropoff_location,
        weather=request.weather,
        trip_id=str(request.trip_id) if request.trip_id else None,
    )
    return ApiResponse(data=result)


# --- Vehicle types ---

@router.get("/vehicle-types", response_model=ApiResponse[List[VehicleTypeWithPricing]])
async def list_vehicle_types(
    active_only: bool = Query(True, alias="activeOnly"),
    db: AsyncSession = Depends(get_db)
):
    """List vehicle types with their active multiplier count."""
    async with persistence_guard(db, "vehicle type list"):
        rows = await VehicleTypeCatalog.list_with_pricing(db, active_only=active_only)

    data = [
        VehicleTypeWithPricing(
            **VehicleTypeResponse.model_validate(vehicle_type).model_dump(),
            multiplier_count=count
        )
        for vehicle_type, count in rows
    ]
    return ApiResponse(data=data)


@router.get("/vehicle-types/{vehicle_type_id}", response_model=ApiResponse[VehicleTypeDetail])
async def get_vehicle_type(
    vehicle_type_id: UUID = Path(..., description="Vehicle type ID"),
    db: AsyncSession = Depends(get_db)
):
    """Vehicle type with all of its multipliers, active or not."""
    async with persistence_guard(db, "vehicle type read"):
        vehicle_type, multipliers = await VehicleTypeCatalog.get_with_multipliers(db, str(vehicle_type_id))

    data = VehicleTypeDetail(
        **VehicleTypeResponse.model_validate(vehicle_type).model_dump(),
        multipliers=[PricingMultiplierResponse.model_validate(m) for m in multipliers]
    )
    return ApiResponse(data=data)


@router.post(
    "/vehicle-types",
    response_model=ApiResponse[VehicleTypeResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_vehicle_type(
    vehicle_type: VehicleTypeCreate,
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "vehicle type create"):
        created = await VehicleTypeCatalog.create(db, vehicle_type)
        await log_event(
            db=db,
            action=AuditAction.VEHICLE_TYPE_CREATED,
            resource_type="vehicle_type",
            resource_id=created.id,
            actor=actor,
            metadata={"name": created.name, "per_km_charges": created.per_km_charges}
        )
        await db.commit()

    return ApiResponse(data=VehicleTypeResponse.model_validate(created))


@router.put("/vehicle-types/{vehicle_type_id}", response_model=ApiResponse[VehicleTypeResponse])
async def update_vehicle_type_pricing(
    update: VehicleTypePricingUpdate,
    vehicle_type_id: UUID = Path(..., description="Vehicle type ID"),
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Update per-km rate and fare bounds. Omitted fields keep their value."""
    async with persistence_guard(db, "vehicle type pricing update"):
        updated = await VehicleTypeCatalog.update_pricing(db, str(vehicle_type_id), update)
        await log_event(
            db=db,
            action=AuditAction.VEHICLE_TYPE_PRICING_UPDATED,
            resource_type="vehicle_type",
            resource_id=updated.id,
            actor=actor,
            metadata={"changes": update.model_dump(exclude_unset=True)}
        )
        await db.commit()

    return ApiResponse(data=VehicleTypeResponse.model_validate(updated))


@router.delete("/vehicle-types/{vehicle_type_id}", response_model=ApiResponse[VehicleTypeResponse])
async def deactivate_vehicle_type(
    vehicle_type_id: UUID = Path(..., description="Vehicle type ID"),
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate a vehicle type. The row and its history are kept."""
    async with persistence_guard(db, "vehicle type deactivate"):
        vehicle_type = await VehicleTypeCatalog.deactivate(db, str(vehicle_type_id))
        await log_event(
            db=db,
            action=AuditAction.VEHICLE_TYPE_DEACTIVATED,
            resource_type="vehicle_type",
            resource_id=vehicle_type.id,
            actor=actor
        )
        await db.commit()

    return ApiResponse(data=VehicleTypeResponse.model_validate(vehicle_type))


# --- Multipliers ---

@router.get("/multipliers", response_model=ApiResponse[List[PricingMultiplierResponse]])
async def list_multipliers(
    vehicle_type_id: Optional[UUID] = Query(None, alias="vehicleTypeId"),
    multiplier_type: Optional[MultiplierType] = Query(None, alias="multiplierType"),
    active_only: bool = Query(True, alias="activeOnly"),
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "pricing multiplier list"):
        multipliers = await MultiplierRuleSet.list_multipliers(
            db,
            vehicle_type_id=str(vehicle_type_id) if vehicle_type_id else None,
            multiplier_type=multiplier_type,
            active_only=active_only
        )
    return ApiResponse(data=[PricingMultiplierResponse.model_validate(m) for m in multipliers])


@router.post(
    "/multipliers",
    response_model=ApiResponse[PricingMultiplierResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_multiplier(
    multiplier: PricingMultiplierCreate,
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "pricing multiplier create"):
        created = await MultiplierRuleSet.create(db, multiplier)
        await log_event(
            db=db,
            action=AuditAction.PRICING_MULTIPLIER_CREATED,
            resource_type="pricing_multiplier",
            resource_id=created.id,
            actor=actor,
            metadata={
                "vehicle_type_id": created.vehicle_type_id,
                "multiplier_type": created.multiplier_type.value,
                "multiplier_value": created.multiplier_value
            }
        )
        await db.commit()

    return ApiResponse(data=PricingMultiplierResponse.model_validate(created))


@router.put("/multipliers/{multiplier_id}", response_model=ApiResponse[PricingMultiplierResponse])
async def update_multiplier(
    update: PricingMultiplierUpdate,
    multiplier_id: UUID = Path(..., description="Multiplier ID"),
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "pricing multiplier update"):
        updated = await MultiplierRuleSet.update(db, str(multiplier_id), update)
        await log_event(
            db=db,
            action=AuditAction.PRICING_MULTIPLIER_UPDATED,
            resource_type="pricing_multiplier",
            resource_id=updated.id,
            actor=actor,
            metadata={"changes": update.model_dump(mode="json", exclude_unset=True)}
        )
        await db.commit()

    return ApiResponse(data=PricingMultiplierResponse.model_validate(updated))


@router.delete("/multipliers/{multiplier_id}", response_model=ApiResponse[PricingMultiplierResponse])
async def deactivate_multiplier(
    multiplier_id: UUID = Path(..., description="Multiplier ID"),
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Soft delete: the multiplier stops applying but stays on record."""
    async with persistence_guard(db, "pricing multiplier deactivate"):
        multiplier = await MultiplierRuleSet.deactivate(db, str(multiplier_id))
        await log_event(
            db=db,
            action=AuditAction.PRICING_MULTIPLIER_DEACTIVATED,
            resource_type="pricing_multiplier",
            resource_id=multiplier.id,
            actor=actor
        )
        await db.commit()

    return ApiResponse(data=PricingMultiplierResponse.model_validate(multiplier))


# --- Ledger: statistics, history, analytics ---

@router.get("/statistics", response_model=ApiResponse[PricingStatistics])
async def get_overall_statistics(
    period: int = PERIOD_QUERY,
    db: AsyncSession = Depends(get_db)
):
    """Fare statistics across every vehicle type."""
    async with persistence_guard(db, "pricing statistics read"):
        statistics = await PricingCalculationLedger.get_overall_statistics(db, period)
    return ApiResponse(data=statistics)


@router.get("/statistics/{vehicle_type_id}", response_model=ApiResponse[VehicleTypePricingStatistics])
async def get_vehicle_type_statistics(
    vehicle_type_id: UUID = Path(..., description="Vehicle type ID"),
    period: int = PERIOD_QUERY,
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "pricing statistics read"):
        vehicle_type = await VehicleTypeCatalog.get_by_id(db, str(vehicle_type_id))
        statistics = await PricingCalculationLedger.get_statistics(db, vehicle_type.id, period)
        usage = await PricingCalculationLedger.get_multiplier_usage(db, vehicle_type.id, period)

    return ApiResponse(data=VehicleTypePricingStatistics(
        vehicle_type=VehicleTypeSummary.model_validate(vehicle_type),
        statistics=statistics,
        multiplier_usage=usage,
        period_days=period
    ))


@router.get("/history", response_model=ApiResponse[List[PricingCalculationResponse]])
async def get_pricing_history(
    vehicle_type_id: Optional[UUID] = Query(None, alias="vehicleTypeId"),
    trip_id: Optional[UUID] = Query(None, alias="tripId"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(settings.history_page_limit, ge=1, le=100, description="Items per page"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_db)
):
    """
    Ledger entries for a trip or a vehicle type.

    A trip id takes precedence and returns every entry for that trip;
    the vehicle type listing is paged and can be bounded by date.
    """
    if not trip_id and not vehicle_type_id:
        raise ValidationError("Either vehicleTypeId or tripId must be provided", field="vehicleTypeId")

    async with persistence_guard(db, "pricing history read"):
        if trip_id:
            calculations = await PricingCalculationLedger.find_by_trip_id(db, str(trip_id))
        else:
            calculations = await PricingCalculationLedger.find_by_vehicle_type_id(
                db, str(vehicle_type_id), page=page, limit=limit,
                start_date=start_date, end_date=end_date
            )

    return ApiResponse(
        data=[PricingCalculationResponse.model_validate(c) for c in calculations],
        pagination=Pagination(page=page, limit=limit, total=len(calculations))
    )


@router.get("/recent", response_model=ApiResponse[List[RecentPricingCalculation]])
async def get_recent_calculations(
    limit: int = Query(10, description="Clamped to 1..1000"),
    db: AsyncSession = Depends(get_db)
):
    async with persistence_guard(db, "recent calculations read"):
        rows = await PricingCalculationLedger.get_recent_calculations(db, limit)

    data = [
        RecentPricingCalculation(
            **PricingCalculationResponse.model_validate(calculation).model_dump(),
            vehicle_type_name=vehicle_type_name
        )
        for calculation, vehicle_type_name in rows
    ]
    return ApiResponse(data=data)


@router.get("/analytics/multipliers", response_model=ApiResponse[MultiplierUsageAnalytics])
async def get_overall_multiplier_analytics(
    period: int = PERIOD_QUERY,
    db: AsyncSession = Depends(get_db)
):
    """Rule multiplier usage across every vehicle type."""
    async with persistence_guard(db, "multiplier analytics read"):
        usage = await PricingCalculationLedger.get_multiplier_usage(db, None, period)

    return ApiResponse(data=MultiplierUsageAnalytics(
        multiplier_usage=usage,
        total_applications=sum(item.usage_count for item in usage),
        period_days=period
    ))


@router.get(
    "/analytics/multipliers/{vehicle_type_id}",
    response_model=ApiResponse[MultiplierUsageAnalytics]
)
async def get_multiplier_analytics(
    vehicle_type_id: UUID = Path(..., description="Vehicle type ID"),
    period: int = PERIOD_QUERY,
    db: AsyncSession = Depends(get_db)
):
    """How often each rule multiplier fired for a vehicle type."""
    async with persistence_guard(db, "multiplier analytics read"):
        vehicle_type = await VehicleTypeCatalog.get_by_id(db, str(vehicle_type_id))
        usage = await PricingCalculationLedger.get_multiplier_usage(db, vehicle_type.id, period)

    return ApiResponse(data=MultiplierUsageAnalytics(
        vehicle_type=VehicleTypeSummary.model_validate(vehicle_type),
        multiplier_usage=usage,
        total_applications=sum(item.usage_count for item in usage),
        period_days=period
    ))


@router.get("/analytics/revenue", response_model=ApiResponse[RevenueAnalytics])
async def get_revenue_analytics(
    period: int = PERIOD_QUERY,
    db: AsyncSession = Depends(get_db)
):
    """Daily revenue from ledgered fares, most recent day first."""
    async with persistence_guard(db, "revenue analytics read"):
        analytics = await PricingCalculationLedger.get_revenue_analytics(db, period)
    return ApiResponse(data=analytics)
