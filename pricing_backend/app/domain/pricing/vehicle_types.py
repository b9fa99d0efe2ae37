"""
Vehicle Type Catalog.

Read side used by the fare calculator plus the admin pricing operations.
Vehicle types are never hard-deleted.

Writes flush but do not commit; the caller owns the transaction so the
audit row lands in the same commit.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_

from pricing_backend.app.core.exceptions import (
    ValidationError, ResourceNotFoundError, InactiveResourceError
)
from pricing_backend.app.models.vehicle_type import VehicleType
from pricing_backend.app.models.pricing_multiplier import PricingMultiplier
from pricing_backend.app.schemas.pricing import VehicleTypeCreate, VehicleTypePricingUpdate


def _check_fare_bounds(minimum_fare: float, maximum_fare: Optional[float]) -> None:
    if maximum_fare is not None and minimum_fare > maximum_fare:
        raise ValidationError("minimum_fare must not exceed maximum_fare", field="minimum_fare")


class VehicleTypeCatalog:

    @staticmethod
    async def get_by_id(db: AsyncSession, vehicle_type_id: str) -> VehicleType:
        """
        Fetch a vehicle type regardless of status.

        Raises:
            ResourceNotFoundError: If no such vehicle type exists.
        """
        vehicle_type = await db.get(VehicleType, str(vehicle_type_id))
        if not vehicle_type:
            raise ResourceNotFoundError("Vehicle type", str(vehicle_type_id))
        return vehicle_type

    @staticmethod
    async def get_active(db: AsyncSession, vehicle_type_id: str) -> VehicleType:
        """
        Fetch a vehicle type that can be priced.

        Raises:
            ResourceNotFoundError: If no such vehicle type exists.
            InactiveResourceError: If it exists but is deactivated.
        """
        vehicle_type = await VehicleTypeCatalog.get_by_id(db, vehicle_type_id)
        if not vehicle_type.is_active:
            raise InactiveResourceError("Vehicle type", vehicle_type.id)
        return vehicle_type

    @staticmethod
    async def list_with_pricing(db: AsyncSession, active_only: bool = True) -> List[Tuple[VehicleType, int]]:
        """Vehicle types with the number of active multipliers attached to each."""
        stmt = select(
            VehicleType,
            func.count(PricingMultiplier.id).label("multiplier_count")
        ).outerjoin(
            PricingMultiplier,
            and_(
                PricingMultiplier.vehicle_type_id == VehicleType.id,
                PricingMultiplier.is_active == True
            )
        ).group_by(VehicleType.id).order_by(VehicleType.name)

        if active_only:
            stmt = stmt.where(VehicleType.is_active == True)

        result = await db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def get_with_multipliers(db: AsyncSession, vehicle_type_id: str) -> Tuple[VehicleType, List[PricingMultiplier]]:
        vehicle_type = await VehicleTypeCatalog.get_by_id(db, vehicle_type_id)
        result = await db.execute(
            select(PricingMultiplier)
            .where(PricingMultiplier.vehicle_type_id == vehicle_type.id)
            .order_by(PricingMultiplier.multiplier_type, PricingMultiplier.created_at)
        )
        return vehicle_type, list(result.scalars().all())

    @staticmethod
    async def create(db: AsyncSession, data: VehicleTypeCreate) -> VehicleType:
        existing = await db.execute(select(VehicleType.id).where(VehicleType.name == data.name))
        if existing.scalar_one_or_none():
            raise ValidationError(f"Vehicle type '{data.name}' already exists", field="name")

        vehicle_type = VehicleType(
            name=data.name,
            description=data.description,
            per_km_charges=data.per_km_charges,
            minimum_fare=data.minimum_fare,
            maximum_fare=data.maximum_fare,
            is_active=True,
        )
        db.add(vehicle_type)
        await db.flush()
        await db.refresh(vehicle_type)
        return vehicle_type

    @staticmethod
    async def update_pricing(db: AsyncSession, vehicle_type_id: str, data: VehicleTypePricingUpdate) -> VehicleType:
        """Apply a partial pricing update, checking bounds against the merged values."""
        vehicle_type = await VehicleTypeCatalog.get_by_id(db, vehicle_type_id)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise ValidationError("No pricing fields provided")

        minimum_fare = update_data.get("minimum_fare", vehicle_type.minimum_fare)
        maximum_fare = update_data.get("maximum_fare", vehicle_type.maximum_fare)
        _check_fare_bounds(minimum_fare, maximum_fare)

        for field, value in update_data.items():
            setattr(vehicle_type, field, value)

        await db.flush()
        await db.refresh(vehicle_type)
        return vehicle_type

    @staticmethod
    async def deactivate(db: AsyncSession, vehicle_type_id: str) -> VehicleType:
        vehicle_type = await VehicleTypeCatalog.get_by_id(db, vehicle_type_id)
        vehicle_type.is_active = False
        await db.flush()
        await db.refresh(vehicle_type)
        return vehicle_type
