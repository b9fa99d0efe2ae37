"""
Pricing Administration.

Bulk changes across the pricing catalog and a full data export.

Bulk items are independent: each one commits with its own audit row or
rolls back alone, and its outcome is reported per item.
"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_backend.app.core.clock import utc_now
from pricing_backend.app.core.exceptions import AppException
from pricing_backend.app.db.errors import persistence_guard
from pricing_backend.app.domain.pricing.event_catalog import PricingEventCatalog
from pricing_backend.app.domain.pricing.ledger import PricingCalculationLedger
from pricing_backend.app.domain.pricing.multiplier_rules import MultiplierRuleSet
from pricing_backend.app.domain.pricing.vehicle_types import VehicleTypeCatalog
from pricing_backend.app.models.pricing_enums import BulkOperation, ExportType
from pricing_backend.app.schemas.pricing import (
    VehicleTypeResponse, VehicleTypeWithPricing, PricingMultiplierResponse, PricingCalculationResponse
)
from pricing_backend.app.schemas.pricing_admin import (
    BulkPricingUpdate, BulkPricingResult, BulkItemResult,
    BulkVehicleTypeItem, BulkMultiplierItem, BulkEventItem, PricingExport
)
from pricing_backend.app.schemas.pricing_event import PricingEventResponse
from pricing_backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger("fare_engine.pricing.admin")

EXPORT_CALCULATION_LIMIT = 1000


async def _vehicle_type_change(
    db: AsyncSession, item: BulkVehicleTypeItem, operation: BulkOperation, actor: Optional[str]
) -> Dict[str, Any]:
    if operation == BulkOperation.DELETE:
        vehicle_type = await VehicleTypeCatalog.deactivate(db, str(item.id))
        action, metadata = AuditAction.VEHICLE_TYPE_DEACTIVATED, {"bulk": True}
    else:
        changes = item.changes()
        vehicle_type = await VehicleTypeCatalog.update_pricing(db, str(item.id), changes)
        action = AuditAction.VEHICLE_TYPE_PRICING_UPDATED
        metadata = {"bulk": True, "changes": changes.model_dump(exclude_unset=True)}

    await log_event(
        db=db, action=action, resource_type="vehicle_type",
        resource_id=vehicle_type.id, actor=actor, metadata=metadata
    )
    return VehicleTypeResponse.model_validate(vehicle_type).model_dump(mode="json")


async def _multiplier_change(
    db: AsyncSession, item: BulkMultiplierItem, operation: BulkOperation, actor: Optional[str]
) -> Dict[str, Any]:
    if operation == BulkOperation.DELETE:
        multiplier = await MultiplierRuleSet.deactivate(db, str(item.id))
        action, metadata = AuditAction.PRICING_MULTIPLIER_DEACTIVATED, {"bulk": True}
    else:
        changes = item.changes()
        multiplier = await MultiplierRuleSet.update(db, str(item.id), changes)
        action = AuditAction.PRICING_MULTIPLIER_UPDATED
        metadata = {"bulk": True, "changes": changes.model_dump(mode="json", exclude_unset=True)}

    await log_event(
        db=db, action=action, resource_type="pricing_multiplier",
        resource_id=multiplier.id, actor=actor, metadata=metadata
    )
    return PricingMultiplierResponse.model_validate(multiplier).model_dump(mode="json")


async def _event_change(
    db: AsyncSession, item: BulkEventItem, operation: BulkOperation, actor: Optional[str]
) -> Dict[str, Any]:
    if operation == BulkOperation.DELETE:
        event = await PricingEventCatalog.get_by_id(db, str(item.id))
        event_name = event.event_name
        await PricingEventCatalog.delete(db, event.id)
        await log_event(
            db=db, action=AuditAction.PRICING_EVENT_DELETED, resource_type="pricing_event",
            resource_id=str(item.id), actor=actor, metadata={"bulk": True, "event_name": event_name}
        )
        return {"id": str(item.id), "deleted": True}

    changes = item.changes()
    event = await PricingEventCatalog.update(db, str(item.id), changes)
    await log_event(
        db=db, action=AuditAction.PRICING_EVENT_UPDATED, resource_type="pricing_event",
        resource_id=event.id, actor=actor,
        metadata={"bulk": True, "changes": changes.model_dump(mode="json", exclude_unset=True)}
    )
    return PricingEventResponse.model_validate(event).model_dump(mode="json")


class PricingAdministration:

    @staticmethod
    async def _apply_item(
        db: AsyncSession,
        kind: str,
        item_id: str,
        operation: BulkOperation,
        change: Callable[[], Awaitable[Dict[str, Any]]]
    ) -> BulkItemResult:
        try:
            async with persistence_guard(db, f"bulk {kind} {operation.value}"):
                data = await change()
                await db.commit()
        except AppException as exc:
            await db.rollback()
            logger.warning(
                "Bulk pricing item failed",
                extra={"kind": kind, "item_id": item_id, "error_code": exc.error_code}
            )
            return BulkItemResult(
                id=item_id, success=False, operation=operation,
                error=exc.message, error_code=exc.error_code
            )

        return BulkItemResult(id=item_id, success=True, operation=operation, data=data)

    @staticmethod
    async def bulk_update(
        db: AsyncSession,
        request: BulkPricingUpdate,
        actor: Optional[str] = None
    ) -> BulkPricingResult:
        """
        Apply updates (or deletes) to vehicle types, multipliers and events.

        Items are processed in request order, vehicle types first. A failing
        item does not stop the batch; it is reported with its error.
        """
        operation = request.operation
        result = BulkPricingResult()

        for item in request.vehicle_types:
            result.vehicle_types.append(await PricingAdministration._apply_item(
                db, "vehicle type", str(item.id), operation,
                lambda item=item: _vehicle_type_change(db, item, operation, actor)
            ))

        for item in request.multipliers:
            result.multipliers.append(await PricingAdministration._apply_item(
                db, "pricing multiplier", str(item.id), operation,
                lambda item=item: _multiplier_change(db, item, operation, actor)
            ))

        for item in request.events:
            result.events.append(await PricingAdministration._apply_item(
                db, "pricing event", str(item.id), operation,
                lambda item=item: _event_change(db, item, operation, actor)
            ))

        outcomes = result.vehicle_types + result.multipliers + result.events
        result.succeeded = sum(1 for outcome in outcomes if outcome.success)
        result.failed = len(outcomes) - result.succeeded

        logger.info(
            "Bulk pricing update completed",
            extra={"operation": operation.value, "succeeded": result.succeeded, "failed": result.failed}
        )
        return result

    @staticmethod
    async def export_data(
        db: AsyncSession,
        export_type: ExportType = ExportType.ALL,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> PricingExport:
        """
        Snapshot of the catalog, inactive entries included.

        The date range only bounds calculations, which are capped at
        EXPORT_CALCULATION_LIMIT newest entries.
        """
        def wanted(slice_type: ExportType) -> bool:
            return export_type in (slice_type, ExportType.ALL)

        export: Dict[str, Any] = {"exported_at": utc_now()}

        if wanted(ExportType.VEHICLE_TYPES):
            rows = await VehicleTypeCatalog.list_with_pricing(db, active_only=False)
            export["vehicle_types"] = [
                VehicleTypeWithPricing(
                    **VehicleTypeResponse.model_validate(vehicle_type).model_dump(),
                    multiplier_count=count
                )
                for vehicle_type, count in rows
            ]

        if wanted(ExportType.MULTIPLIERS):
            multipliers = await MultiplierRuleSet.list_multipliers(db, active_only=False)
            export["multipliers"] = [PricingMultiplierResponse.model_validate(m) for m in multipliers]

        if wanted(ExportType.EVENTS):
            events = await PricingEventCatalog.list_events(db, limit=None)
            export["events"] = [PricingEventResponse.model_validate(e) for e in events]

        if wanted(ExportType.CALCULATIONS):
            calculations = await PricingCalculationLedger.find_between(
                db, start_date=date_from, end_date=date_to, limit=EXPORT_CALCULATION_LIMIT
            )
            export["calculations"] = [PricingCalculationResponse.model_validate(c) for c in calculations]

        return PricingExport(**export)
