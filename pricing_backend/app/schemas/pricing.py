"""
Pricing Pydantic schemas.

Request and response models for fare calculation, vehicle type pricing,
multipliers and the calculation ledger.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, date as calendar_date
from typing import Any, Dict, Generic, List, Optional, TypeVar
from uuid import UUID
from pricing_backend.app.models.pricing_enums import MultiplierType, MultiplierSource

T = TypeVar("T")


class Pagination(BaseModel):
    page: Optional[int] = None
    limit: int
    offset: Optional[int] = None
    total: int


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope shared by every endpoint."""
    success: bool = True
    data: T
    pagination: Optional[Pagination] = None


def _reject_null(value):
    if value is None:
        raise ValueError("Field may be omitted but not set to null")
    return value


# --- Fare calculation ---

class Location(BaseModel):
    """Latitude/longitude pair."""
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)


class FareCalculationRequest(BaseModel):
    """Body of POST /pricing/calculate."""
    distance: float = Field(..., gt=0, allow_inf_nan=False, description="Trip distance in km")
    vehicle_type_id: UUID = Field(..., alias="vehicleTypeId")
    departure_time: datetime = Field(..., alias="departureTime")
    pickup_location: Location = Field(..., alias="pickupLocation")
    dropoff_location: Location = Field(..., alias="dropoffLocation")
    weather: Optional[Any] = None
    trip_id: Optional[UUID] = Field(None, alias="tripId")

    class Config:
        populate_by_name = True


class AppliedMultiplier(BaseModel):
    """One step of the multiplicative fare chain."""
    id: str
    source: MultiplierSource = MultiplierSource.MULTIPLIER
    multiplier_type: str
    multiplier_value: float
    applied_value: float  # running fare after this step
    event_name: Optional[str] = None


class AppliedEvent(BaseModel):
    id: str
    event_name: str
    event_type: str
    pricing_multiplier: float
    original_fare: float
    adjusted_fare: float
    fare_increase: float


class EventPricing(BaseModel):
    applied_events: List[AppliedEvent] = []
    total_events_applied: int = 0
    total_fare_increase: float = 0.0


class BaseCalculation(BaseModel):
    distance_km: float
    per_km_rate: float
    base_fare: float


class FareConstraints(BaseModel):
    minimum_fare: float
    maximum_fare: Optional[float]
    minimum_applied: bool = False
    maximum_applied: bool = False


class TripDetails(BaseModel):
    departure_time: datetime
    pickup_location: Location
    dropoff_location: Location
    pickup_area: str
    weather: Optional[Any] = None


class CalculationDetails(BaseModel):
    base_calculation: BaseCalculation
    constraints: FareConstraints
    multipliers: List[AppliedMultiplier]
    event_pricing: EventPricing
    trip_details: TripDetails


class VehicleTypeSummary(BaseModel):
    id: str
    name: str
    per_km_charges: float
    minimum_fare: float
    maximum_fare: Optional[float]

    class Config:
        from_attributes = True


class FareCalculationResult(BaseModel):
    base_fare: float
    final_fare: float
    distance_km: float
    vehicle_type: VehicleTypeSummary
    applied_multipliers: List[AppliedMultiplier]
    event_pricing: EventPricing
    calculation_details: CalculationDetails


# --- Vehicle types ---

class VehicleTypeCreate(BaseModel):
    """Schema for creating a vehicle type."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    per_km_charges: float = Field(..., ge=0, allow_inf_nan=False)
    minimum_fare: float = Field(0.0, ge=0, allow_inf_nan=False)
    maximum_fare: Optional[float] = Field(None, ge=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def check_fare_bounds(self):
        if self.maximum_fare is not None and self.minimum_fare > self.maximum_fare:
            raise ValueError("minimum_fare must not exceed maximum_fare")
        return self


class VehicleTypePricingUpdate(BaseModel):
    """
    Partial pricing update.

    Omitted fields are left untouched. maximum_fare may be set to null to
    remove the cap; the other fields may not.
    """
    per_km_charges: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    minimum_fare: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    maximum_fare: Optional[float] = Field(None, ge=0, allow_inf_nan=False)

    @field_validator("per_km_charges", "minimum_fare")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class VehicleTypeResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    per_km_charges: float
    minimum_fare: float
    maximum_fare: Optional[float]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleTypeWithPricing(VehicleTypeResponse):
    multiplier_count: int = 0


# --- Multipliers ---

class PricingMultiplierCreate(BaseModel):
    vehicle_type_id: UUID
    multiplier_type: MultiplierType
    multiplier_value: float = Field(..., ge=1.0, allow_inf_nan=False)


class PricingMultiplierUpdate(BaseModel):
    multiplier_type: Optional[MultiplierType] = None
    multiplier_value: Optional[float] = Field(None, ge=1.0, allow_inf_nan=False)
    is_active: Optional[bool] = None

    @field_validator("multiplier_type", "multiplier_value", "is_active")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class PricingMultiplierResponse(BaseModel):
    id: str
    vehicle_type_id: str
    multiplier_type: MultiplierType
    multiplier_value: float
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class VehicleTypeDetail(VehicleTypeResponse):
    multipliers: List[PricingMultiplierResponse] = []


# --- Ledger ---

class PricingCalculationResponse(BaseModel):
    id: str
    trip_id: Optional[str]
    vehicle_type_id: str
    base_distance: float
    base_fare: float
    applied_multipliers: List[AppliedMultiplier]
    final_fare: float
    calculation_details: Dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True


class RecentPricingCalculation(PricingCalculationResponse):
    vehicle_type_name: Optional[str] = None


class PricingStatistics(BaseModel):
    total_calculations: int = 0
    avg_base_fare: float = 0.0
    avg_final_fare: float = 0.0
    min_base_fare: float = 0.0
    max_base_fare: float = 0.0
    min_final_fare: float = 0.0
    max_final_fare: float = 0.0
    avg_distance: float = 0.0
    total_revenue: float = 0.0


class MultiplierUsage(BaseModel):
    multiplier_type: str
    usage_count: int
    avg_multiplier_value: float


class VehicleTypePricingStatistics(BaseModel):
    vehicle_type: VehicleTypeSummary
    statistics: PricingStatistics
    multiplier_usage: List[MultiplierUsage]
    period_days: int


class MultiplierUsageAnalytics(BaseModel):
    vehicle_type: Optional[VehicleTypeSummary] = None
    multiplier_usage: List[MultiplierUsage]
    total_applications: int
    period_days: int


class DailyRevenue(BaseModel):
    date: calendar_date
    total_calculations: int
    daily_revenue: float
    avg_fare: float


class RevenueAnalytics(BaseModel):
    daily_revenue: List[DailyRevenue]
    total_revenue: float
    total_calculations: int
    avg_fare: float
    period_days: int
