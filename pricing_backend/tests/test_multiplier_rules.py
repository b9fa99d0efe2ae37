"""
Multiplier rule and vehicle type catalog tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from pricing_backend.app.core.exceptions import ValidationError, ResourceNotFoundError
from pricing_backend.app.domain.pricing.multiplier_rules import (
    MultiplierRuleSet, is_peak_hour, is_weekend, is_holiday
)
from pricing_backend.app.domain.pricing.trip_context import TripContext
from pricing_backend.app.domain.pricing.vehicle_types import VehicleTypeCatalog
from pricing_backend.app.models.pricing_enums import MultiplierType
from pricing_backend.app.schemas.pricing import (
    PricingMultiplierCreate, PricingMultiplierUpdate, VehicleTypeCreate, VehicleTypePricingUpdate
)


def at(year, month, day, hour, minute=0):
    return TripContext(departure_time=datetime(year, month, day, hour, minute, tzinfo=timezone.utc))


@pytest.mark.parametrize("hour,expected", [
    (6, False), (7, True), (9, True), (10, False),
    (16, False), (17, True), (19, True), (20, False),
])
def test_peak_hour_windows(hour, expected):
    assert is_peak_hour(at(2025, 1, 15, hour, 59)) is expected


def test_peak_hour_reads_wall_clock_of_given_timestamp():
    # 08:00 in UTC-5 is 13:00 UTC; the local hour decides
    eastern = timezone(timedelta(hours=-5))
    context = TripContext(departure_time=datetime(2025, 1, 15, 8, 0, tzinfo=eastern))
    assert is_peak_hour(context)


def test_weekend_is_saturday_and_sunday():
    assert not is_weekend(at(2025, 1, 17, 12))  # Friday
    assert is_weekend(at(2025, 1, 18, 12))  # Saturday
    assert is_weekend(at(2025, 1, 19, 12))  # Sunday
    assert not is_weekend(at(2025, 1, 20, 12))  # Monday


def test_holiday_stub_never_applies():
    assert not is_holiday(at(2025, 12, 25, 12))


@pytest.mark.asyncio
async def test_unknown_multiplier_type_does_not_apply():
    rule_set = MultiplierRuleSet()
    rule_set.predicates.pop(MultiplierType.WEEKEND)

    class Stub:
        multiplier_type = MultiplierType.WEEKEND

    assert not await rule_set.applies(Stub(), at(2025, 1, 18, 12))


# --- Multiplier admin ---

@pytest.mark.asyncio
async def test_create_and_list_multipliers(db_session, sedan):
    created = await MultiplierRuleSet.create(db_session, PricingMultiplierCreate(
        vehicle_type_id=sedan.id, multiplier_type=MultiplierType.PEAK_HOUR, multiplier_value=1.25
    ))

    assert created.is_active
    assert created.vehicle_type_id == sedan.id

    listed = await MultiplierRuleSet.list_multipliers(db_session, vehicle_type_id=sedan.id)
    assert [m.id for m in listed] == [created.id]

    by_type = await MultiplierRuleSet.list_multipliers(db_session, multiplier_type=MultiplierType.WEEKEND)
    assert by_type == []


@pytest.mark.asyncio
async def test_create_multiplier_for_unknown_vehicle_type(db_session):
    with pytest.raises(ResourceNotFoundError):
        await MultiplierRuleSet.create(db_session, PricingMultiplierCreate(
            vehicle_type_id=uuid4(), multiplier_type=MultiplierType.PEAK_HOUR, multiplier_value=1.25
        ))


def test_multiplier_value_below_one_rejected():
    with pytest.raises(ValueError):
        PricingMultiplierCreate(vehicle_type_id=uuid4(), multiplier_type=MultiplierType.PEAK_HOUR, multiplier_value=0.9)


@pytest.mark.asyncio
async def test_update_multiplier(db_session, sedan, add_multiplier):
    multiplier = await add_multiplier(sedan, MultiplierType.PEAK_HOUR, 1.25)

    updated = await MultiplierRuleSet.update(db_session, multiplier.id, PricingMultiplierUpdate(multiplier_value=1.4))

    assert updated.multiplier_value == 1.4
    assert updated.multiplier_type == MultiplierType.PEAK_HOUR


@pytest.mark.asyncio
async def test_update_multiplier_requires_a_field(db_session, sedan, add_multiplier):
    multiplier = await add_multiplier(sedan, MultiplierType.PEAK_HOUR, 1.25)

    with pytest.raises(ValidationError):
        await MultiplierRuleSet.update(db_session, multiplier.id, PricingMultiplierUpdate())


def test_multiplier_update_rejects_explicit_null():
    with pytest.raises(ValueError):
        PricingMultiplierUpdate(multiplier_value=None)


@pytest.mark.asyncio
async def test_deactivate_multiplier_is_soft(db_session, sedan, add_multiplier):
    multiplier = await add_multiplier(sedan, MultiplierType.PEAK_HOUR, 1.25)

    await MultiplierRuleSet.deactivate(db_session, multiplier.id)

    assert await MultiplierRuleSet.list_multipliers(db_session, vehicle_type_id=sedan.id) == []
    everything = await MultiplierRuleSet.list_multipliers(db_session, vehicle_type_id=sedan.id, active_only=False)
    assert len(everything) == 1
    assert not everything[0].is_active


@pytest.mark.asyncio
async def test_applicable_multipliers_follow_storage_order(db_session, sedan, add_multiplier):
    weekend = await add_multiplier(sedan, MultiplierType.WEEKEND, 1.1,
                                   created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    peak = await add_multiplier(sedan, MultiplierType.PEAK_HOUR, 1.2,
                                created_at=datetime(2024, 1, 2, tzinfo=timezone.utc))

    applicable = await MultiplierRuleSet().get_applicable_multipliers(db_session, sedan.id, at(2025, 1, 18, 8))

    assert [m.id for m in applicable] == [weekend.id, peak.id]


# --- Vehicle type catalog ---

@pytest.mark.asyncio
async def test_create_vehicle_type_rejects_duplicate_name(db_session, sedan):
    with pytest.raises(ValidationError):
        await VehicleTypeCatalog.create(db_session, VehicleTypeCreate(name="Sedan", per_km_charges=1.0))


def test_vehicle_type_create_checks_bounds():
    with pytest.raises(ValueError):
        VehicleTypeCreate(name="Bad", per_km_charges=1.0, minimum_fare=50.0, maximum_fare=10.0)


@pytest.mark.asyncio
async def test_update_pricing_checks_merged_bounds(db_session, sedan):
    with pytest.raises(ValidationError):
        await VehicleTypeCatalog.update_pricing(db_session, sedan.id, VehicleTypePricingUpdate(minimum_fare=150.0))

    updated = await VehicleTypeCatalog.update_pricing(
        db_session, sedan.id, VehicleTypePricingUpdate(per_km_charges=3.0, maximum_fare=None)
    )
    assert updated.per_km_charges == 3.0
    assert updated.maximum_fare is None
    assert updated.minimum_fare == 5.0


@pytest.mark.asyncio
async def test_list_with_pricing_counts_active_multipliers(db_session, sedan, add_multiplier):
    await add_multiplier(sedan, MultiplierType.PEAK_HOUR, 1.25)
    await add_multiplier(sedan, MultiplierType.WEEKEND, 1.15)
    await add_multiplier(sedan, MultiplierType.DEMAND, 1.5, is_active=False)
    await VehicleTypeCatalog.create(db_session, VehicleTypeCreate(name="Van", per_km_charges=3.5))

    rows = await VehicleTypeCatalog.list_with_pricing(db_session)

    counts = {vehicle_type.name: count for vehicle_type, count in rows}
    assert counts == {"Sedan": 2, "Van": 0}


@pytest.mark.asyncio
async def test_deactivated_vehicle_type_hidden_from_active_listing(db_session, sedan):
    await VehicleTypeCatalog.deactivate(db_session, sedan.id)

    assert await VehicleTypeCatalog.list_with_pricing(db_session) == []
    assert len(await VehicleTypeCatalog.list_with_pricing(db_session, active_only=False)) == 1


@pytest.mark.asyncio
async def test_applicable_multipliers_lookup_is_idempotent(db_session, sedan, add_multiplier):
    await add_multiplier(sedan, MultiplierType.PEAK_HOUR, 1.25)
    await add_multiplier(sedan, MultiplierType.WEEKEND, 1.15)
    rule_set = MultiplierRuleSet()
    context = at(2025, 1, 18, 8)

    first = await rule_set.get_applicable_multipliers(db_session, sedan.id, context)
    second = await rule_set.get_applicable_multipliers(db_session, sedan.id, context)

    assert [m.id for m in first] == [m.id for m in second]
    assert len(first) == 2
    assert all(m.is_active for m in second)


def test_vehicle_type_rejects_non_finite_pricing():
    with pytest.raises(ValueError):
        VehicleTypeCreate(name="Bad", per_km_charges=float("inf"))
    with pytest.raises(ValueError):
        VehicleTypePricingUpdate(maximum_fare=float("nan"))


def test_multiplier_rejects_non_finite_value():
    with pytest.raises(ValueError):
        PricingMultiplierCreate(vehicle_type_id=uuid4(), multiplier_type=MultiplierType.PEAK_HOUR, multiplier_value=float("inf"))
