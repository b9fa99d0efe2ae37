"""
Pricing Calculation database model.

Immutable audit trail of served fares.
"""

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, JSON
from pricing_backend.app.core.clock import utc_now, new_uuid
from pricing_backend.app.db.session import Base


class PricingCalculation(Base):
    """
    Pricing Calculation model.

    Written once per fare calculation that carries a trip id.
    NO updates or deletions allowed.
    """
    __tablename__ = "pricing_calculations"

    id = Column(String(36), primary_key=True, default=new_uuid)

    # Linkage
    trip_id = Column(String(36), nullable=True, index=True)
    vehicle_type_id = Column(String(36), ForeignKey('vehicle_types.id'), nullable=False, index=True)

    # Inputs and results
    base_distance = Column(Float, nullable=False)
    base_fare = Column(Float, nullable=False)
    final_fare = Column(Float, nullable=False)

    # Ordered chain of {id, source, multiplier_type, multiplier_value, applied_value}
    applied_multipliers = Column(JSON, nullable=False, default=list)
    calculation_details = Column(JSON, nullable=False, default=dict)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<PricingCalculation(id={self.id}, trip_id={self.trip_id}, final={self.final_fare})>"
