"""
Pricing administration schemas: bulk changes and data export.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pricing_backend.app.models.pricing_enums import BulkOperation
from pricing_backend.app.schemas.pricing import (
    VehicleTypePricingUpdate, VehicleTypeWithPricing,
    PricingMultiplierUpdate, PricingMultiplierResponse,
    PricingCalculationResponse
)
from pricing_backend.app.schemas.pricing_event import PricingEventUpdate, PricingEventResponse


class BulkVehicleTypeItem(VehicleTypePricingUpdate):
    id: UUID

    def changes(self) -> VehicleTypePricingUpdate:
        return VehicleTypePricingUpdate.model_validate(self.model_dump(exclude_unset=True, exclude={"id"}))


class BulkMultiplierItem(PricingMultiplierUpdate):
    id: UUID

    def changes(self) -> PricingMultiplierUpdate:
        return PricingMultiplierUpdate.model_validate(self.model_dump(exclude_unset=True, exclude={"id"}))


class BulkEventItem(PricingEventUpdate):
    id: UUID

    def changes(self) -> PricingEventUpdate:
        return PricingEventUpdate.model_validate(self.model_dump(exclude_unset=True, exclude={"id"}))


class BulkPricingUpdate(BaseModel):
    """
    Body of POST /admin/pricing/bulk-update.

    With operation "delete", vehicle types and multipliers are deactivated
    and events are removed; item fields other than id are ignored.
    """
    operation: BulkOperation = BulkOperation.UPDATE
    vehicle_types: List[BulkVehicleTypeItem] = Field(default_factory=list, alias="vehicleTypes")
    multipliers: List[BulkMultiplierItem] = Field(default_factory=list)
    events: List[BulkEventItem] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class BulkItemResult(BaseModel):
    id: str
    success: bool
    operation: BulkOperation
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class BulkPricingResult(BaseModel):
    vehicle_types: List[BulkItemResult] = []
    multipliers: List[BulkItemResult] = []
    events: List[BulkItemResult] = []
    succeeded: int = 0
    failed: int = 0


class PricingExport(BaseModel):
    """Slices that were not requested are left out as null."""
    exported_at: datetime
    vehicle_types: Optional[List[VehicleTypeWithPricing]] = None
    multipliers: Optional[List[PricingMultiplierResponse]] = None
    events: Optional[List[PricingEventResponse]] = None
    calculations: Optional[List[PricingCalculationResponse]] = None
