"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from pricing_backend.app.api.v1.endpoints import pricing, admin_pricing_events, admin_pricing

router = APIRouter()

# Fare calculation, vehicle type pricing, multipliers, ledger reads
router.include_router(pricing.router)

# Pricing event administration
router.include_router(admin_pricing_events.router)

# Bulk changes and export
router.include_router(admin_pricing.router)
