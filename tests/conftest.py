"""
Shared test configuration.

The application database is pointed at a throwaway file before any
``app`` module is imported, so the global engine never touches a real
database. Service tests build their own in-memory engine per test.
"""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="echallan-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test_echallan.db"
os.environ["DEBUG"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio

from app.models.database import Base, build_engine, build_session_factory
from app.services.lookup_service import LookupService
from app.services.record_manager import RecordManager
from app.services.search_cache import RecentSearchCache
from app.services.vehicle_registry import VehicleRegistry
from app.services.violation_store import ViolationStore


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database with all tables"""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield build_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def registry(session_factory):
    return VehicleRegistry(session_factory)


@pytest.fixture
def store(session_factory):
    return ViolationStore(session_factory)


@pytest.fixture
def cache():
    return RecentSearchCache(ttl_minutes=30)


@pytest.fixture
def lookup(registry, store, cache):
    return LookupService(registry=registry, store=store, cache=cache)


@pytest.fixture
def manager(store):
    return RecordManager(store=store)


@pytest.fixture
def challan_fields():
    """Factory for store-level challan column values"""
    def _make(violation_id="CHLN100", license_plate="MH12AB1234", **overrides):
        fields = {
            "violation_id": violation_id,
            "date": "2024-10-15",
            "time": "14:30",
            "violation_type": "Speeding",
            "location": "Mumbai-Pune Expressway",
            "license_plate": license_plate,
            "amount": 1000,
        }
        fields.update(overrides)
        return fields
    return _make
