from datetime import date
from unittest.mock import AsyncMock, patch

from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from fastapi import status
from src.fleet_ledger.daily_ledger.exceptions import BatchNotFoundError
from src.fleet_ledger.daily_ledger.schemas import AdjustmentField, Batch
from src.fleet_ledger.database.database import DatabaseManager
from src.fleet_ledger.fuel_events.exceptions import OdometerBelowBaselineError
from src.fleet_ledger.fuel_events.schemas import EntryMode
from src.fleet_ledger.trip_records.schemas import BatchKey, TransactionType
from src.fleet_ledger.trip_records.weights import annotate
from tests.conftest import async_client  # noqa: F401
from tests.mocks.config_mocks import ADMIN_HEADERS, AGENT_HEADERS, HEADERS
from tests.mocks.factories import make_fuel_event, make_trip

THU = date(2024, 3, 7)
BATCH_URL = "/api/daily-ledger/T1/2024-03-07/DISPATCH"


def _batch() -> Batch:
    return Batch(
        production_date=THU,
        truck_id="T1",
        transaction_type=TransactionType.DISPATCH,
        truck_label="OD-02-AB-1234",
        record_count=1,
        effective_trip_count=1,
        flat_fee=300,
        per_trip_fee=100,
        total_payable=400,
        records=[annotate(make_trip("r1", THU))],
    )


@patch("src.fleet_ledger.database.dependencies.db.get_client", new_callable=AsyncMock)
@patch(
    "src.fleet_ledger.fuel_events.dependencies.service.create_fuel_event",
    new_callable=AsyncMock,
)
async def test_create_fuel_event(mock_create, mock_get_client, async_client: AsyncClient):
    DatabaseManager.is_connected = True
    mock_get_client.return_value = AsyncMock()
    mock_create.return_value = make_fuel_event(
        "e1", date(2024, 3, 10), 5400, previous_odometer=5000
    )

    r = await async_client.post(
        "/api/fuel-events",
        json={
            "truck_id": "T1",
            "driver_id": "D1",
            "entry_mode": "FULL_TANK",
            "odometer": 5400,
            "liters": 100,
            "unit_price": 92,
            "fueling_date": "2024-03-10",
        },
        headers=AGENT_HEADERS,
    )

    assert r.status_code == status.HTTP_201_CREATED, r.text
    body = r.json()
    assert body["attribution_date"] == "2024-03-09"
    assert body["previous_odometer"] == 5000
    viewer = mock_create.call_args.args[2]
    assert viewer.username == "agent1"


@patch("src.fleet_ledger.database.dependencies.db.get_client", new_callable=AsyncMock)
@patch(
    "src.fleet_ledger.fuel_events.dependencies.service.create_fuel_event",
    new_callable=AsyncMock,
)
async def test_create_fuel_event_below_baseline(
    mock_create, mock_get_client, async_client: AsyncClient
):
    DatabaseManager.is_connected = True
    mock_get_client.return_value = AsyncMock()
    mock_create.side_effect = OdometerBelowBaselineError(1000, 1200)

    r = await async_client.post(
        "/api/fuel-events",
        json={
            "truck_id": "T1",
            "driver_id": "D1",
            "odometer": 1000,
            "liters": 100,
            "unit_price": 92,
        },
        headers=AGENT_HEADERS,
    )

    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert "1200" in r.json()["detail"]


async def test_missing_api_key_is_rejected(async_client: AsyncClient):
    r = await async_client.get("/api/fuel-events", headers={"X-Agent-Id": "agent1"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


@patch("src.fleet_ledger.database.dependencies.db.get_client", new_callable=AsyncMock)
async def test_missing_agent_header_is_rejected(
    mock_get_client, async_client: AsyncClient
):
    DatabaseManager.is_connected = True
    mock_get_client.return_value = AsyncMock()
    r = await async_client.get("/api/fuel-events", headers=HEADERS)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert "X-Agent-Id" in r.json()["detail"]


@patch("src.fleet_ledger.database.dependencies.db.get_client", new_callable=AsyncMock)
@patch(
    "src.fleet_ledger.fuel_events.dependencies.service.list_fuel_events",
    new_callable=AsyncMock,
)
async def test_list_fuel_events_sets_pagination_headers(
    mock_list, mock_get_client, async_client: AsyncClient
):
    DatabaseManager.is_connected = True
    mock_get_client.return_value = AsyncMock()
    mock_list.return_value = ([], 45)

    r = await async_client.get(
        "/api/fuel-events?page=2&page_size=20", headers=ADMIN_HEADERS
    )

    assert r.status_code == status.HTTP_200_OK, r.text
    assert r.json() == []
    assert r.headers["X-Total-Count"] == "45"
    assert r.headers["X-Total-Pages"] == "3"
    assert r.headers["X-Current-Page"] == "2"
    assert r.headers["X-Page-Size"] == "20"


async def test_attribution_date_preview(async_client: AsyncClient):
    r = await async_client.get(
        "/api/fuel-events/attribution-date?fueling_date=2024-03-10&entry_mode=FULL_TANK",
        headers=AGENT_HEADERS,
    )
    assert r.status_code == status.HTTP_200_OK, r.text
    assert r.json() == {
        "fueling_date": "2024-03-10",
        "entry_mode": EntryMode.FULL_TANK.value,
        "attribution_date": "2024-03-09",
    }


@patch("src.fleet_ledger.database.dependencies.db.get_client", new_callable=AsyncMock)
@patch(
    "src.fleet_ledger.trip_records.dependencies.service.delete_trip_record",
    new_callable=AsyncMock,
)
async def test_delete_trip_record(mock_delete, mock_get_client, async_client):
    DatabaseManager.is_connected = True
    mock_get_client.return_value = AsyncMock()

    r = await async_client.delete("/api/trip-records/r1", headers=AGENT_HEADERS)

    assert r.status_code == status.HTTP_204_NO_CONTENT
    assert mock_delete.call_args.args[1] == "r1"


@patch("src.fleet_ledger.database.dependencies.db.get_client", new_callable=AsyncMock)
@patch(
    "src.fleet_ledger.daily_ledger.dependencies.service.get_batch_view",
    new_callable=AsyncMock,
)
async def test_get_batch_view(mock_view, mock_get_client, async_client):
    DatabaseManager.is_connected = True
    mock_get_client.return_value = AsyncMock()
    mock_view.return_value = _batch()

    r = await async_client.get(BATCH_URL, headers=ADMIN_HEADERS)

    assert r.status_code == status.HTTP_200_OK, r.text
    assert r.json()["total_payable"] == 400
    key = mock_view.call_args.args[1]
    assert key == BatchKey(
        production_date=THU, truck_id="T1", transaction_type=TransactionType.DISPATCH
    )


@patch("src.fleet_ledger.database.dependencies.db.get_client", new_callable=AsyncMock)
@patch(
    "src.fleet_ledger.daily_ledger.dependencies.service.get_batch_view",
    new_callable=AsyncMock,
)
async def test_get_missing_batch(mock_view, mock_get_client, async_client):
    DatabaseManager.is_connected = True
    mock_get_client.return_value = AsyncMock()
    mock_view.side_effect = BatchNotFoundError(
        BatchKey(
            production_date=THU,
            truck_id="T1",
            transaction_type=TransactionType.DISPATCH,
        )
    )

    r = await async_client.get(BATCH_URL, headers=ADMIN_HEADERS)
    assert r.status_code == status.HTTP_404_NOT_FOUND


@patch("src.fleet_ledger.database.dependencies.db.get_client", new_callable=AsyncMock)
@patch(
    "src.fleet_ledger.daily_ledger.dependencies.service.edit_batch_adjustment",
    new_callable=AsyncMock,
)
async def test_edit_batch_adjustment(mock_edit, mock_get_client, async_client):
    DatabaseManager.is_connected = True
    mock_get_client.return_value = AsyncMock()
    mock_edit.return_value = _batch()

    r = await async_client.put(
        BATCH_URL + "/adjustments",
        json={"field": "diesel_stock", "value": 40, "remark": "left in tank"},
        headers=ADMIN_HEADERS,
    )

    assert r.status_code == status.HTTP_200_OK, r.text
    _, _, field, value, remark, _ = mock_edit.call_args.args
    assert field == AdjustmentField.DIESEL_STOCK
    assert value == 40
    assert remark == "left in tank"


@patch("src.fleet_ledger.database.dependencies.db.get_client", new_callable=AsyncMock)
async def test_unknown_transaction_type_is_rejected(mock_get_client, async_client):
    DatabaseManager.is_connected = True
    mock_get_client.return_value = AsyncMock()
    r = await async_client.get(
        "/api/daily-ledger/T1/2024-03-07/SALE", headers=ADMIN_HEADERS
    )
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@patch("src.fleet_ledger.database.dependencies.db.get_client", new_callable=AsyncMock)
@patch(
    "src.fleet_ledger.daily_ledger.dependencies.service.list_batches",
    new_callable=AsyncMock,
)
async def test_database_errors_map_to_503(mock_list, mock_get_client, async_client):
    DatabaseManager.is_connected = True
    mock_get_client.return_value = AsyncMock()
    mock_list.side_effect = OperationalError("SELECT 1", {}, Exception("down"))

    r = await async_client.get(
        "/api/daily-ledger?date_range_start=2024-03-01&date_range_end=2024-03-07",
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert "unavailable" in r.json()["detail"]
    assert DatabaseManager.is_connected is False
