"""
Pricing Event Application database model.

One row per pricing event applied to a recorded trip fare.
"""

from sqlalchemy import Column, String, Float, DateTime, ForeignKey
from pricing_backend.app.core.clock import utc_now, new_uuid
from pricing_backend.app.db.session import Base


class PricingEventApplication(Base):
    __tablename__ = "pricing_event_applications"

    id = Column(String(36), primary_key=True, default=new_uuid)

    trip_id = Column(String(36), nullable=False, index=True)
    pricing_event_id = Column(
        String(36), ForeignKey('pricing_events.id', ondelete="CASCADE"), nullable=False, index=True
    )

    original_fare = Column(Float, nullable=False)
    adjusted_fare = Column(Float, nullable=False)
    multiplier_applied = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<PricingEventApplication(trip_id={self.trip_id}, event_id={self.pricing_event_id})>"
