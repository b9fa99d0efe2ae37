"""
Admin Pricing API Endpoints.

Bulk catalog changes and pricing data export.
"""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import Optional

from pricing_backend.app.core.dependencies import get_actor
from pricing_backend.app.db.errors import persistence_guard
from pricing_backend.app.db.session import get_db
from pricing_backend.app.domain.pricing.administration import PricingAdministration
from pricing_backend.app.models.pricing_enums import ExportType
from pricing_backend.app.schemas.pricing import ApiResponse
from pricing_backend.app.schemas.pricing_admin import BulkPricingUpdate, BulkPricingResult, PricingExport

router = APIRouter(prefix="/admin/pricing", tags=["Admin - Pricing"])


@router.post("/bulk-update", response_model=ApiResponse[BulkPricingResult])
async def bulk_update_pricing(
    request: BulkPricingUpdate,
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Update or delete many catalog entries at once.

    Always 200: each item carries its own success flag and error.
    """
    result = await PricingAdministration.bulk_update(db, request, actor=actor)
    return ApiResponse(data=result)


@router.get("/export", response_model=ApiResponse[PricingExport])
async def export_pricing_data(
    response: Response,
    export_type: ExportType = Query(ExportType.ALL, alias="type"),
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    db: AsyncSession = Depends(get_db)
):
    """JSON snapshot of the pricing catalog and ledger, served as a download."""
    async with persistence_guard(db, "pricing export read"):
        export = await PricingAdministration.export_data(
            db, export_type=export_type, date_from=date_from, date_to=date_to
        )

    filename = f"pricing-export-{export.exported_at.strftime('%Y%m%dT%H%M%SZ')}.json"
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return ApiResponse(data=export)
