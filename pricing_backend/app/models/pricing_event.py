"""
Pricing Event database model.

Time-boxed multipliers scoped by vehicle type name and area tag.
"""

from datetime import datetime
from sqlalchemy import Column, String, Float, Boolean, DateTime, Text, JSON, Enum
from pricing_backend.app.core.clock import utc_now, new_uuid, ensure_utc
from pricing_backend.app.db.session import Base
from pricing_backend.app.models.pricing_enums import PricingEventType, ALL


class PricingEvent(Base):
    """
    Pricing Event model.

    The window [start_date, end_date] is inclusive at both ends.
    affected_vehicle_types / affected_areas are JSON lists of strings;
    an event applies only where its list holds "all" or the exact name/area,
    so an empty list matches nothing.
    Unlike vehicle types and multipliers, events are hard-deleted.
    """
    __tablename__ = "pricing_events"

    id = Column(String(36), primary_key=True, default=new_uuid)

    event_name = Column(String(150), nullable=False)
    event_type = Column(Enum(PricingEventType, values_callable=lambda e: [m.value for m in e]), nullable=False, index=True)

    # Window
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=False, index=True)

    pricing_multiplier = Column(Float, nullable=False)

    # Scope
    affected_vehicle_types = Column(JSON, nullable=False, default=lambda: [ALL])
    affected_areas = Column(JSON, nullable=False, default=lambda: [ALL])

    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def is_active_at(self, moment: datetime) -> bool:
        moment = ensure_utc(moment)
        return (
            self.is_active
            and ensure_utc(self.start_date) <= moment <= ensure_utc(self.end_date)
        )

    def applies_to_vehicle_type(self, vehicle_type_name: str) -> bool:
        scope = self.affected_vehicle_types or []
        return ALL in scope or vehicle_type_name in scope

    def applies_to_area(self, area: str) -> bool:
        scope = self.affected_areas or []
        return ALL in scope or area in scope

    def __repr__(self):
        return f"<PricingEvent(id={self.id}, name='{self.event_name}', multiplier={self.pricing_multiplier})>"
