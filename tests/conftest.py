from contextlib import asynccontextmanager
from datetime import date

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from src.fleet_ledger.daily_ledger.aggregator import BatchAggregator
from src.fleet_ledger.daily_ledger.financials import DefaultFeePolicy
from src.fleet_ledger.daily_ledger.reconciler import BatchReconciler
from src.fleet_ledger.fleet_registry.schemas import (
    Driver,
    FleetCategory,
    FuelStation,
    Truck,
    TruckStatus,
)
from src.fleet_ledger.main import app
from src.fleet_ledger.middleware.viewer import Viewer, ViewerRole
from tests.mocks.config_mocks import mock_get_settings  # noqa: F401
from tests.mocks.repositories import (
    InMemoryBatchAdjustmentRepository,
    InMemoryFleetRegistryRepository,
    InMemoryFuelEventRepository,
    InMemoryTripRecordRepository,
)

# -----------------------------------------------------------------------------
# FASTAPI CLIENT FOR API TESTING
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_openapi_schema():
    app.openapi_schema = None
    yield
    app.openapi_schema = None


@pytest.fixture(scope="function")
async def async_client():
    """
    Provide an async client for FastAPI test with lifespan events.
    """

    @asynccontextmanager
    async def test_lifespan(_):
        yield

    app.router.lifespan_context = test_lifespan
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


# -----------------------------------------------------------------------------
# IN-MEMORY LEDGER FOR SERVICE TESTING
# -----------------------------------------------------------------------------


@pytest.fixture
def registry_repo():
    return InMemoryFleetRegistryRepository(
        trucks=[
            Truck(
                id="T1",
                plate_number="OD-02-AB-1234",
                fleet_category=FleetCategory.MINING,
                current_odometer=5000,
                status=TruckStatus.ACTIVE,
            ),
            Truck(
                id="T2",
                plate_number="OD-02-CD-5678",
                fleet_category=FleetCategory.COAL,
                current_odometer=0,
                status=TruckStatus.ACTIVE,
            ),
        ],
        drivers=[Driver(id="D1", name="Ravi Kumar", status="ON Duty")],
        stations=[FuelStation(id="S1", name="Angul Fuels", location="Angul")],
    )


@pytest.fixture
def fuel_event_repo():
    return InMemoryFuelEventRepository()


@pytest.fixture
def trip_repo():
    return InMemoryTripRecordRepository()


@pytest.fixture
def adjustment_repo():
    return InMemoryBatchAdjustmentRepository()


@pytest.fixture
def fee_policy():
    return DefaultFeePolicy(flat_fee=300, per_trip_fee=100)


@pytest.fixture
def reconciler(trip_repo, adjustment_repo, fee_policy):
    return BatchReconciler(trip_repo, adjustment_repo, fee_policy)


@pytest.fixture
def aggregator(fee_policy):
    return BatchAggregator(fee_policy, default_diesel_price=90.55)


@pytest.fixture
def admin():
    return Viewer(username="admin", role=ViewerRole.ADMIN)


@pytest.fixture
def agent():
    return Viewer(username="agent1", role=ViewerRole.FUEL_AGENT)


@pytest.fixture
def other_agent():
    return Viewer(username="agent2", role=ViewerRole.COAL_ENTRY)


@pytest.fixture
def march_10():
    return date(2024, 3, 10)
