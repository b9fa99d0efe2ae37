"""
Pricing Event Pydantic schemas.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import List, Optional
from pricing_backend.app.core.clock import ensure_utc
from pricing_backend.app.models.pricing_enums import PricingEventType, ALL


class PricingEventCreate(BaseModel):
    """Schema for creating a pricing event."""
    event_name: str = Field(..., min_length=1, max_length=150)
    event_type: PricingEventType
    start_date: datetime
    end_date: datetime
    pricing_multiplier: float = Field(..., gt=0, allow_inf_nan=False)
    affected_vehicle_types: List[str] = Field(default_factory=lambda: [ALL])
    affected_areas: List[str] = Field(default_factory=lambda: [ALL])
    description: Optional[str] = None
    is_active: bool = True

    @field_validator("start_date", "end_date")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        # Naive values are read as UTC so mixed inputs stay comparable
        return ensure_utc(value)

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class PricingEventUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""
    event_name: Optional[str] = Field(None, min_length=1, max_length=150)
    event_type: Optional[PricingEventType] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    pricing_multiplier: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    affected_vehicle_types: Optional[List[str]] = None
    affected_areas: Optional[List[str]] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator(
        "event_name", "event_type", "start_date", "end_date", "pricing_multiplier",
        "affected_vehicle_types", "affected_areas", "is_active",
    )
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Field may be omitted but not set to null")
        return value


class PricingEventResponse(BaseModel):
    id: str
    event_name: str
    event_type: PricingEventType
    start_date: datetime
    end_date: datetime
    pricing_multiplier: float
    affected_vehicle_types: List[str]
    affected_areas: List[str]
    description: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PricingEventStatistics(BaseModel):
    total_events: int = 0
    active_events: int = 0
    seasonal_events: int = 0
    holiday_events: int = 0
    special_events: int = 0
    demand_events: int = 0
    avg_multiplier: float = 0.0
    max_multiplier: float = 0.0
    min_multiplier: float = 0.0


class EventApplicationStatistics(BaseModel):
    total_applications: int = 0
    total_original_fare: float = 0.0
    total_adjusted_fare: float = 0.0
    total_fare_increase: float = 0.0
    avg_multiplier: float = 0.0


class PricingEventAnalytics(BaseModel):
    event_statistics: PricingEventStatistics
    application_statistics: EventApplicationStatistics
    period_days: int


class PricingEventApplicationResponse(BaseModel):
    id: str
    trip_id: str
    pricing_event_id: str
    original_fare: float
    adjusted_fare: float
    multiplier_applied: float
    created_at: datetime
    event_name: Optional[str] = None
    event_type: Optional[PricingEventType] = None

    class Config:
        from_attributes = True
