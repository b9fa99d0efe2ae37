"""
Pricing API tests.

Exercises /v1/pricing end to end over the ASGI transport.
"""

import json
import pytest
from uuid import uuid4

from pricing_backend.app.models.pricing_enums import MultiplierType
from pricing_backend.app.services.audit import AuditAction, get_audit_trail

from pricing_backend.tests.helpers import DOWNTOWN, AIRPORT


def fare_request(vehicle_type_id, distance=10, departure="2025-01-15T12:00:00Z", **extra):
    body = {
        "distance": distance,
        "vehicleTypeId": str(vehicle_type_id),
        "departureTime": departure,
        "pickupLocation": DOWNTOWN,
        "dropoffLocation": AIRPORT,
    }
    body.update(extra)
    return body


# --- Calculate ---

@pytest.mark.asyncio
async def test_calculate_fare(client, sedan):
    response = await client.post("/v1/pricing/calculate", json=fare_request(sedan.id))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["base_fare"] == 25.0
    assert data["final_fare"] == 25.0
    assert data["vehicle_type"]["name"] == "Sedan"
    assert data["calculation_details"]["trip_details"]["pickup_area"] == "downtown"


@pytest.mark.asyncio
async def test_calculate_fare_with_peak_multiplier(client, sedan, add_multiplier):
    await add_multiplier(sedan, MultiplierType.PEAK_HOUR, 1.25)

    response = await client.post(
        "/v1/pricing/calculate", json=fare_request(sedan.id, departure="2025-01-15T08:00:00Z")
    )

    data = response.json()["data"]
    assert data["final_fare"] == 31.25
    assert data["applied_multipliers"][0]["multiplier_type"] == "peak_hour"
    assert data["applied_multipliers"][0]["source"] == "multiplier"


@pytest.mark.asyncio
async def test_calculate_with_trip_id_is_retrievable_from_history(client, sedan):
    trip_id = str(uuid4())

    await client.post("/v1/pricing/calculate", json=fare_request(sedan.id, tripId=trip_id))
    response = await client.get("/v1/pricing/history", params={"tripId": trip_id})

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 1
    assert body["data"][0]["trip_id"] == trip_id
    assert body["data"][0]["final_fare"] == 25.0
    assert body["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_calculate_rejects_zero_distance(client, sedan):
    trip_id = str(uuid4())
    response = await client.post("/v1/pricing/calculate", json=fare_request(sedan.id, distance=0, tripId=trip_id))

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "ERR_VALIDATION"
    assert any(error["field"] == "distance" for error in body["details"]["errors"])

    history = await client.get("/v1/pricing/history", params={"tripId": trip_id})
    assert history.json()["data"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize("distance", [float("inf"), float("nan")])
async def test_calculate_rejects_non_finite_distance(client, sedan, distance):
    trip_id = str(uuid4())
    # json.dumps writes the non-standard Infinity / NaN literals
    payload = json.dumps(fare_request(sedan.id, distance=distance, tripId=trip_id))

    response = await client.post(
        "/v1/pricing/calculate", content=payload, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_VALIDATION"
    assert any(error["field"] == "distance" for error in body["details"]["errors"])

    history = await client.get("/v1/pricing/history", params={"tripId": trip_id})
    assert history.json()["data"] == []


@pytest.mark.asyncio
async def test_calculate_rejects_missing_fields_and_bad_ids(client):
    response = await client.post("/v1/pricing/calculate", json={"distance": 5, "vehicleTypeId": "not-a-uuid"})

    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["details"]["errors"]}
    assert "vehicleTypeId" in fields
    assert "departureTime" in fields


@pytest.mark.asyncio
async def test_calculate_unknown_vehicle_type(client):
    response = await client.post("/v1/pricing/calculate", json=fare_request(uuid4()))

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_calculate_inactive_vehicle_type(client, sedan):
    await client.delete(f"/v1/pricing/vehicle-types/{sedan.id}")

    response = await client.post("/v1/pricing/calculate", json=fare_request(sedan.id))

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_INACTIVE_001"


# --- Vehicle types ---

@pytest.mark.asyncio
async def test_vehicle_type_lifecycle(client, db_session):
    created = await client.post(
        "/v1/pricing/vehicle-types",
        json={"name": "Van", "per_km_charges": 3.5, "minimum_fare": 7.0, "maximum_fare": 150.0},
        headers={"X-Actor-ID": "ops-admin"},
    )
    assert created.status_code == 201
    vehicle_type_id = created.json()["data"]["id"]

    updated = await client.put(f"/v1/pricing/vehicle-types/{vehicle_type_id}", json={"per_km_charges": 4.0})
    assert updated.status_code == 200
    assert updated.json()["data"]["per_km_charges"] == 4.0
    assert updated.json()["data"]["minimum_fare"] == 7.0

    deleted = await client.delete(f"/v1/pricing/vehicle-types/{vehicle_type_id}")
    assert deleted.json()["data"]["is_active"] is False

    active = await client.get("/v1/pricing/vehicle-types")
    assert active.json()["data"] == []
    everything = await client.get("/v1/pricing/vehicle-types", params={"activeOnly": "false"})
    assert [v["name"] for v in everything.json()["data"]] == ["Van"]

    trail = await get_audit_trail(db_session, resource_id=vehicle_type_id)
    assert {entry.action for entry in trail} == {
        AuditAction.VEHICLE_TYPE_CREATED,
        AuditAction.VEHICLE_TYPE_PRICING_UPDATED,
        AuditAction.VEHICLE_TYPE_DEACTIVATED,
    }
    created_entry = next(e for e in trail if e.action == AuditAction.VEHICLE_TYPE_CREATED)
    assert created_entry.actor == "ops-admin"


@pytest.mark.asyncio
async def test_create_vehicle_type_duplicate_name(client, sedan):
    response = await client.post("/v1/pricing/vehicle-types", json={"name": "Sedan", "per_km_charges": 1.0})

    assert response.status_code == 400
    assert response.json()["details"]["field"] == "name"


@pytest.mark.asyncio
async def test_update_vehicle_type_rejects_inverted_bounds(client, sedan):
    response = await client.put(f"/v1/pricing/vehicle-types/{sedan.id}", json={"maximum_fare": 1.0})

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_vehicle_type_detail_and_listing(client, sedan, add_multiplier):
    await add_multiplier(sedan, MultiplierType.PEAK_HOUR, 1.25)
    await add_multiplier(sedan, MultiplierType.WEEKEND, 1.15, is_active=False)

    listing = await client.get("/v1/pricing/vehicle-types")
    detail = await client.get(f"/v1/pricing/vehicle-types/{sedan.id}")

    assert listing.json()["data"][0]["multiplier_count"] == 1
    assert len(detail.json()["data"]["multipliers"]) == 2


@pytest.mark.asyncio
async def test_vehicle_type_not_found(client):
    response = await client.get(f"/v1/pricing/vehicle-types/{uuid4()}")

    assert response.status_code == 404
    assert response.json()["success"] is False


# --- Multipliers ---

@pytest.mark.asyncio
async def test_multiplier_lifecycle(client, sedan):
    created = await client.post("/v1/pricing/multipliers", json={
        "vehicle_type_id": sedan.id, "multiplier_type": "weekend", "multiplier_value": 1.15
    })
    assert created.status_code == 201
    multiplier_id = created.json()["data"]["id"]

    listed = await client.get("/v1/pricing/multipliers", params={"vehicleTypeId": sedan.id})
    assert [m["id"] for m in listed.json()["data"]] == [multiplier_id]

    updated = await client.put(f"/v1/pricing/multipliers/{multiplier_id}", json={"multiplier_value": 1.3})
    assert updated.json()["data"]["multiplier_value"] == 1.3

    deleted = await client.delete(f"/v1/pricing/multipliers/{multiplier_id}")
    assert deleted.json()["data"]["is_active"] is False

    listed = await client.get("/v1/pricing/multipliers", params={"vehicleTypeId": sedan.id})
    assert listed.json()["data"] == []


@pytest.mark.asyncio
async def test_multiplier_rejects_unknown_type_and_low_value(client, sedan):
    bad_type = await client.post("/v1/pricing/multipliers", json={
        "vehicle_type_id": sedan.id, "multiplier_type": "rush", "multiplier_value": 1.2
    })
    low_value = await client.post("/v1/pricing/multipliers", json={
        "vehicle_type_id": sedan.id, "multiplier_type": "weekend", "multiplier_value": 0.5
    })

    assert bad_type.status_code == 400
    assert low_value.status_code == 400


@pytest.mark.asyncio
async def test_multiplier_update_not_found(client):
    response = await client.put(f"/v1/pricing/multipliers/{uuid4()}", json={"multiplier_value": 1.3})

    assert response.status_code == 404


# --- Ledger reads ---

@pytest.mark.asyncio
async def test_history_requires_a_filter(client):
    response = await client.get("/v1/pricing/history")

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_history_by_vehicle_type_pages(client, sedan):
    for _ in range(3):
        await client.post("/v1/pricing/calculate", json=fare_request(sedan.id, tripId=str(uuid4())))

    response = await client.get("/v1/pricing/history", params={"vehicleTypeId": sedan.id, "limit": 2})

    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "offset": None, "total": 2}


@pytest.mark.asyncio
async def test_statistics_and_analytics(client, sedan, add_multiplier):
    await add_multiplier(sedan, MultiplierType.PEAK_HOUR, 1.25)
    await client.post("/v1/pricing/calculate", json=fare_request(
        sedan.id, departure="2025-01-15T08:00:00Z", tripId=str(uuid4())
    ))
    await client.post("/v1/pricing/calculate", json=fare_request(sedan.id, distance=20, tripId=str(uuid4())))

    per_type = (await client.get(f"/v1/pricing/statistics/{sedan.id}", params={"period": 7})).json()["data"]
    assert per_type["statistics"]["total_calculations"] == 2
    assert per_type["statistics"]["total_revenue"] == pytest.approx(81.25)
    assert per_type["multiplier_usage"] == [
        {"multiplier_type": "peak_hour", "usage_count": 1, "avg_multiplier_value": 1.25}
    ]
    assert per_type["period_days"] == 7

    overall = (await client.get("/v1/pricing/statistics")).json()["data"]
    assert overall["total_calculations"] == 2

    usage = (await client.get(f"/v1/pricing/analytics/multipliers/{sedan.id}")).json()["data"]
    assert usage["total_applications"] == 1

    revenue = (await client.get("/v1/pricing/analytics/revenue")).json()["data"]
    assert revenue["total_revenue"] == pytest.approx(81.25)
    assert revenue["total_calculations"] == 2

    recent = (await client.get("/v1/pricing/recent", params={"limit": 5})).json()["data"]
    assert len(recent) == 2
    assert recent[0]["vehicle_type_name"] == "Sedan"


@pytest.mark.asyncio
@pytest.mark.parametrize("period", [0, 366])
async def test_statistics_period_out_of_range(client, period):
    response = await client.get("/v1/pricing/statistics", params={"period": period})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_statistics_for_unknown_vehicle_type(client):
    response = await client.get(f"/v1/pricing/statistics/{uuid4()}")

    assert response.status_code == 404


# --- Ambient ---

@pytest.mark.asyncio
async def test_health_and_correlation_header(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Correlation-ID"] == "abc-123"
    assert "X-Process-Time" in response.headers
