"""
Vehicle Type database model.

Carries the per-kilometre rate and fare bounds used by the fare calculator.
"""

from sqlalchemy import Column, String, Float, Boolean, DateTime, Text
from pricing_backend.app.core.clock import utc_now, new_uuid
from pricing_backend.app.db.session import Base


class VehicleType(Base):
    """
    Vehicle Type model.

    Owns its pricing multipliers (cascade delete at the database level).
    Never hard-deleted: deactivation flips is_active.
    """
    __tablename__ = "vehicle_types"

    id = Column(String(36), primary_key=True, default=new_uuid)

    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Pricing
    per_km_charges = Column(Float, nullable=False, default=0.0)
    minimum_fare = Column(Float, nullable=False, default=0.0)
    maximum_fare = Column(Float, nullable=True)  # NULL means no cap

    # Status
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<VehicleType(id={self.id}, name='{self.name}', per_km={self.per_km_charges})>"
