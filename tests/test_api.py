"""
API Endpoint Tests

Covers the vehicle and challan REST endpoints end to end against a
temporary SQLite database.
"""

import os
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from app.main import app
from app.models.database import Base
from app.services.search_cache import search_cache
from app.services.violation_store import violation_store

SYNC_DATABASE_URL = os.environ["DATABASE_URL"].replace("sqlite+aiosqlite", "sqlite")


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def clean_database(client):
    """Empty every table and the search cache before each test"""
    engine = create_engine(SYNC_DATABASE_URL)
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    engine.dispose()
    search_cache.clear()
    yield


def _challan(**overrides):
    body = {
        "id": "CHLN500",
        "date": "2024-10-15",
        "time": "14:30",
        "type": "Speeding",
        "location": "Mumbai-Pune Expressway",
        "licensePlate": "MH12AB1234",
        "amount": 1000,
    }
    body.update(overrides)
    return body


# ============================================
# Root & Health Endpoints
# ============================================

class TestRootEndpoints:

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "app" in response.json()

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "search_cache" in data

    def test_health_prunes_expired_searches(self, client):
        search_cache.remember("a@x.com", "MH12AB1234")
        search_cache._cache["a@x.com"].timestamp = datetime.now() - timedelta(days=1)

        data = client.get("/health").json()
        assert data["search_cache_pruned"] == 1
        assert data["search_cache"]["total_entries"] == 0


# ============================================
# Vehicle Endpoints
# ============================================

class TestVehicleEndpoints:

    def test_register_vehicle(self, client):
        response = client.post("/api/vehicles/register", json={"vehicleNumber": "mh 12 ab 1234", "email": "a@x.com"})
        assert response.status_code == 201
        data = response.json()
        assert data["vehicleNumber"] == "MH12AB1234"
        assert data["ownerEmail"] == "a@x.com"
        assert "createdAt" in data

    def test_register_again_same_owner(self, client):
        client.post("/api/vehicles/register", json={"vehicleNumber": "MH12AB1234", "email": "a@x.com"})
        response = client.post("/api/vehicles/register", json={"vehicleNumber": "MH12AB1234", "email": "a@x.com"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Vehicle already registered to you"
        assert data["vehicle"]["vehicleNumber"] == "MH12AB1234"

    def test_register_owned_by_other(self, client):
        client.post("/api/vehicles/register", json={"vehicleNumber": "MH12AB1234", "email": "a@x.com"})
        response = client.post("/api/vehicles/register", json={"vehicleNumber": "mh 12ab1234", "email": "b@x.com"})

        assert response.status_code == 409
        assert response.json()["message"] == "This vehicle number is already registered with another email ID."

    def test_register_missing_fields(self, client):
        response = client.post("/api/vehicles/register", json={"vehicleNumber": "MH12AB1234"})
        assert response.status_code == 400
        assert response.json()["message"] == "Missing fields"

    def test_my_vehicles(self, client):
        client.post("/api/vehicles/register", json={"vehicleNumber": "MH12AB1234", "email": "a@x.com"})
        client.post("/api/vehicles/register", json={"vehicleNumber": "KA01MJ0001", "email": "b@x.com"})

        response = client.get("/api/vehicles/my-vehicles", params={"email": "a@x.com"})
        assert response.status_code == 200
        assert [v["vehicleNumber"] for v in response.json()] == ["MH12AB1234"]

    def test_my_vehicles_requires_email(self, client):
        response = client.get("/api/vehicles/my-vehicles")
        assert response.status_code == 400
        assert response.json()["message"] == "Email required"

    def test_ownership_status(self, client):
        client.post("/api/vehicles/register", json={"vehicleNumber": "MH12AB1234", "email": "a@x.com"})

        assert client.get("/api/vehicles/status/KA01MJ0001").json() == {"status": "unregistered"}
        assert client.get("/api/vehicles/status/mh12ab1234", params={"email": "a@x.com"}).json() == {"status": "owned_by_self"}
        assert client.get("/api/vehicles/status/MH12AB1234", params={"email": "b@x.com"}).json() == {"status": "owned_by_other"}
        assert client.get("/api/vehicles/status/MH12AB1234").json() == {"status": "owned_by_other"}

    def test_last_search(self, client):
        client.post("/api/challans/seed")
        client.get("/api/challans", params={"vehicleNumber": "mh 14 xy 9876", "userEmail": "a@x.com"})

        response = client.get("/api/vehicles/last-search", params={"email": "a@x.com"})
        assert response.status_code == 200
        assert response.json() == {"vehicleNumber": "MH14XY9876"}

        response = client.delete("/api/vehicles/last-search", params={"email": "a@x.com"})
        assert response.status_code == 200
        assert client.get("/api/vehicles/last-search", params={"email": "a@x.com"}).json() == {"vehicleNumber": None}

    def test_last_search_requires_email(self, client):
        assert client.get("/api/vehicles/last-search").status_code == 400
        assert client.delete("/api/vehicles/last-search").status_code == 400


# ============================================
# Challan Endpoints
# ============================================

class TestChallanEndpoints:

    def test_seed(self, client):
        client.post("/api/challans", json=_challan(id="STALE"))

        response = client.post("/api/challans/seed")
        assert response.status_code == 200
        assert response.json() == {"message": "Database seeded successfully"}

        records = client.get("/api/challans").json()
        assert [r["id"] for r in records] == ["CHLN001", "CHLN002", "CHLN003", "CHLN004", "CHLN005"]

    def test_lookup_by_vehicle(self, client):
        client.post("/api/challans/seed")

        response = client.get("/api/challans", params={"vehicleNumber": "mh 12 ab 1234"})
        assert response.status_code == 200
        records = response.json()
        assert [r["id"] for r in records] == ["CHLN001", "CHLN002", "CHLN003"]
        assert records[0]["licensePlate"] == "MH12AB1234"
        assert records[0]["type"] == "Speeding"
        assert records[0]["status"] == "Pending"

    def test_lookup_owned_by_other(self, client):
        client.post("/api/challans/seed")
        client.post("/api/vehicles/register", json={"vehicleNumber": "MH12AB1234", "email": "a@x.com"})

        response = client.get("/api/challans", params={"vehicleNumber": "MH12AB1234", "userEmail": "b@x.com"})
        assert response.status_code == 403
        assert response.json() == {
            "code": "VEHICLE_OWNED_BY_OTHER",
            "message": "This vehicle number is already registered with another email ID."
        }

        response = client.get("/api/challans", params={"vehicleNumber": "MH12AB1234", "userEmail": "a@x.com"})
        assert response.status_code == 200
        assert len(response.json()) == 3

    def test_lookup_unregistered_vehicle_with_email(self, client):
        client.post("/api/challans/seed")

        response = client.get("/api/challans", params={"vehicleNumber": "MH14XY9876", "userEmail": "b@x.com"})
        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == ["CHLN004", "CHLN005"]

    def test_create_challan(self, client):
        response = client.post("/api/challans", json=_challan(licensePlate="mh 12 ab 1234"))
        assert response.status_code == 201
        data = response.json()
        assert data["id"] == "CHLN500"
        assert data["status"] == "Pending"
        assert data["licensePlate"] == "MH12AB1234"
        assert data["dueDate"] == "2024-11-14"

    def test_create_challan_duplicate_id(self, client):
        client.post("/api/challans", json=_challan())
        response = client.post("/api/challans", json=_challan())
        assert response.status_code == 400
        assert "already exists" in response.json()["message"]

    def test_create_challan_missing_field(self, client):
        body = _challan()
        del body["location"]
        response = client.post("/api/challans", json=body)
        assert response.status_code == 400
        assert "location" in response.json()["message"]

    def test_create_challan_negative_amount(self, client):
        response = client.post("/api/challans", json=_challan(amount=-5))
        assert response.status_code == 400

    def test_create_challan_invalid_status(self, client):
        response = client.post("/api/challans", json=_challan(status="Waived"))
        assert response.status_code == 400

    def test_get_challan(self, client):
        client.post("/api/challans/seed")
        response = client.get("/api/challans/CHLN004")
        assert response.status_code == 200
        assert response.json()["location"] == "Shivaji Nagar"

        assert client.get("/api/challans/NOPE").status_code == 404

    def test_update_challan(self, client):
        client.post("/api/challans/seed")

        response = client.put("/api/challans/CHLN001", json={"id": "OTHER", "amount": 42, "status": "Paid"})
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "CHLN001"
        assert data["amount"] == 42
        assert data["status"] == "Paid"

    def test_update_challan_not_found(self, client):
        response = client.put("/api/challans/NOPE", json={"status": "Paid"})
        assert response.status_code == 404
        assert response.json()["message"] == "Challan not found"

    def test_update_challan_invalid_status(self, client):
        client.post("/api/challans/seed")

        response = client.put("/api/challans/CHLN001", json={"status": "Invalid"})
        assert response.status_code == 400
        assert client.get("/api/challans/CHLN001").json()["status"] == "Pending"

    def test_pay_challan(self, client):
        client.post("/api/challans/seed")

        response = client.post("/api/challans/CHLN002/pay")
        assert response.status_code == 200
        assert response.json()["status"] == "Paid"
        assert client.post("/api/challans/NOPE/pay").status_code == 404

    def test_summary(self, client):
        client.post("/api/challans/seed")

        response = client.get("/api/challans/summary", params={"vehicleNumber": "MH12AB1234"})
        assert response.status_code == 200
        data = response.json()
        assert data["totalViolations"] == 3
        assert data["pendingPayments"] == 2
        assert data["paidFines"] == 1
        assert data["totalAmount"] == 2000
        assert data["pendingAmount"] == 1500

    def test_summary_owned_by_other(self, client):
        client.post("/api/challans/seed")
        client.post("/api/vehicles/register", json={"vehicleNumber": "MH12AB1234", "email": "a@x.com"})

        response = client.get("/api/challans/summary", params={"vehicleNumber": "MH12AB1234", "userEmail": "b@x.com"})
        assert response.status_code == 403

    def test_create_challan_impossible_date(self, client):
        response = client.post("/api/challans", json=_challan(date="2024-02-30"))
        assert response.status_code == 400
        assert "date" in response.json()["message"]

        response = client.post("/api/challans", json=_challan(dueDate="2024-04-31"))
        assert response.status_code == 400
        assert client.get("/api/challans").json() == []

    def test_create_challan_blank_plate(self, client):
        response = client.post("/api/challans", json=_challan(licensePlate="   "))
        assert response.status_code == 400
        assert "licensePlate" in response.json()["message"]
        assert client.get("/api/challans").json() == []

    def test_update_challan_blank_plate(self, client):
        client.post("/api/challans/seed")

        response = client.put("/api/challans/CHLN001", json={"licensePlate": " \t "})
        assert response.status_code == 400
        assert client.get("/api/challans/CHLN001").json()["licensePlate"] == "MH12AB1234"

    def test_update_unknown_challan_with_invalid_status(self, client):
        response = client.put("/api/challans/NOPE", json={"status": "Invalid"})
        assert response.status_code == 404
        assert response.json()["message"] == "Challan not found"


# ============================================
# Store Failures
# ============================================

class TestStoreFailureEndpoints:

    def test_store_unavailable_is_500(self, client, monkeypatch):
        def unreachable():
            raise OSError("database file is unavailable")

        monkeypatch.setattr(violation_store, "_session_factory", unreachable)

        response = client.get("/api/challans")
        assert response.status_code == 500
        assert response.json() == {"message": "Storage backend error"}

        response = client.post("/api/challans/seed")
        assert response.status_code == 500
        assert response.json() == {"message": "Storage backend error"}
