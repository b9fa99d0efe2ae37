"""
Pricing Multiplier database model.

Rule-based surcharges attached to a vehicle type.
"""

from sqlalchemy import Column, String, Float, Boolean, DateTime, ForeignKey, Enum
from pricing_backend.app.core.clock import utc_now, new_uuid
from pricing_backend.app.db.session import Base
from pricing_backend.app.models.pricing_enums import MultiplierType


class PricingMultiplier(Base):
    """
    Pricing Multiplier model.

    (vehicle_type_id, multiplier_type) is deliberately not unique: every
    active entry whose rule matches is applied.
    Soft-deleted via is_active.
    """
    __tablename__ = "pricing_multipliers"

    id = Column(String(36), primary_key=True, default=new_uuid)

    vehicle_type_id = Column(
        String(36), ForeignKey('vehicle_types.id', ondelete="CASCADE"), nullable=False, index=True
    )
    multiplier_type = Column(Enum(MultiplierType, values_callable=lambda e: [m.value for m in e]), nullable=False)
    multiplier_value = Column(Float, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<PricingMultiplier(id={self.id}, type='{self.multiplier_type.value}', value={self.multiplier_value})>"
