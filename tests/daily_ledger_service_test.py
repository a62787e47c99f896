from datetime import date

import pytest
from pydantic import ValidationError

from src.fleet_ledger.daily_ledger.exceptions import (
    BatchNotFoundError,
    InvalidAdjustmentError,
    InvalidBatchMoveError,
    MissingRemarkError,
)
from src.fleet_ledger.daily_ledger.schemas import (
    AdjustmentField,
    BatchAdjustmentRequest,
    BatchListRequestDTO,
    BatchMoveRequest,
)
from src.fleet_ledger.daily_ledger.services import LedgerService
from src.fleet_ledger.trip_records.schemas import BatchKey, TransactionType
from tests.mocks.factories import make_fuel_event, make_trip

MON = date(2024, 3, 4)
THU = date(2024, 3, 7)
FRI = date(2024, 3, 8)
THU_KEY = BatchKey(
    production_date=THU, truck_id="T1", transaction_type=TransactionType.DISPATCH
)
MON_KEY = BatchKey(
    production_date=MON, truck_id="T1", transaction_type=TransactionType.DISPATCH
)


@pytest.fixture
def service(
    trip_repo, adjustment_repo, fuel_event_repo, registry_repo, aggregator, reconciler
):
    return LedgerService(
        trip_repo,
        adjustment_repo,
        fuel_event_repo,
        registry_repo,
        aggregator,
        reconciler,
    )


@pytest.fixture
async def seeded(trip_repo, fuel_event_repo, reconciler):
    await trip_repo.save(None, make_trip("m1", MON, agent_id="agent1"))
    await trip_repo.save(None, make_trip("t1", THU, agent_id="agent1"))
    await trip_repo.save(None, make_trip("t2", THU, agent_id="agent2"))
    await trip_repo.save(None, make_trip("x1", THU, truck_id="T2", agent_id="agent2"))
    await fuel_event_repo.save(None, make_fuel_event("f1", FRI, 6000, liters=180.0))
    for key in (MON_KEY, THU_KEY):
        await reconciler.reconcile(None, key)


async def test_batch_view_joins_fuel_and_labels(service, seeded, admin):
    batch = await service.get_batch_view(None, THU_KEY, admin)

    assert batch.record_count == 2
    assert batch.truck_label == "OD-02-AB-1234"
    assert batch.driver_label == "Ravi Kumar"
    assert batch.fuel_liters == 180.0
    assert batch.fuel_event_ids == ["f1"]
    assert (batch.flat_fee, batch.per_trip_fee) == (300, 200)


async def test_empty_batch_is_not_found(service, seeded, admin):
    key = BatchKey(
        production_date=FRI, truck_id="T1", transaction_type=TransactionType.DISPATCH
    )
    with pytest.raises(BatchNotFoundError) as exc:
        await service.get_batch_view(None, key, admin)
    assert exc.value.status_code == 404


async def test_stock_adjustment_carries_into_next_working_day(
    service, seeded, admin
):
    await service.edit_batch_adjustment(
        None, MON_KEY, AdjustmentField.DIESEL_STOCK, 40.0, "left in tank", admin
    )
    thursday = await service.get_batch_view(None, THU_KEY, admin)

    assert thursday.carry_in_stock == 40.0
    assert thursday.net_diesel_consumption == 220.0


async def test_trip_count_adjustment_rewrites_fees(
    service, seeded, trip_repo, admin
):
    batch = await service.edit_batch_adjustment(
        None, THU_KEY, AdjustmentField.TRIP_COUNT, 3, "two trips unrecorded", admin
    )
    assert batch.effective_trip_count == 5
    assert batch.trip_remarks == "two trips unrecorded"
    assert (batch.flat_fee, batch.per_trip_fee) == (300, 500)

    members = await trip_repo.find_batch_members(None, THU_KEY)
    assert [(r.flat_fee, r.per_trip_fee) for r in members] == [(300, 500), (0, 0)]

    batch = await service.edit_batch_adjustment(
        None, THU_KEY, AdjustmentField.TRIP_COUNT, -4, "cancelled", admin
    )
    assert batch.effective_trip_count == 0
    members = await trip_repo.find_batch_members(None, THU_KEY)
    assert [(r.flat_fee, r.per_trip_fee) for r in members] == [(0, 0), (0, 0)]


@pytest.mark.parametrize("remark", [None, "", "   "])
async def test_adjustment_requires_remark(service, seeded, admin, remark):
    with pytest.raises(MissingRemarkError) as exc:
        await service.edit_batch_adjustment(
            None, THU_KEY, AdjustmentField.DIESEL_OTHER, 5.0, remark, admin
        )
    assert exc.value.status_code == 422


async def test_fractional_trip_adjustment_is_rejected(service, seeded, admin):
    with pytest.raises(InvalidAdjustmentError):
        await service.edit_batch_adjustment(
            None, THU_KEY, AdjustmentField.TRIP_COUNT, 1.5, "half trip", admin
        )


@pytest.mark.parametrize(
    "field, value",
    [
        (AdjustmentField.TRIP_COUNT, float("nan")),
        (AdjustmentField.DIESEL_STOCK, float("inf")),
        (AdjustmentField.DIESEL_OTHER, float("-inf")),
    ],
)
async def test_non_finite_adjustment_is_rejected(
    service, seeded, adjustment_repo, admin, field, value
):
    with pytest.raises(InvalidAdjustmentError) as exc:
        await service.edit_batch_adjustment(None, MON_KEY, field, value, "typo", admin)
    assert exc.value.status_code == 422
    assert adjustment_repo.adjustments == {}

    thursday = await service.get_batch_view(None, THU_KEY, admin)
    assert thursday.carry_in_stock == 0.0


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_adjustment_request_rejects_non_finite_values(value):
    with pytest.raises(ValidationError):
        BatchAdjustmentRequest(
            field=AdjustmentField.DIESEL_STOCK, value=value, remark="stock"
        )


async def test_adjusting_empty_batch_is_not_found(service, seeded, admin):
    key = BatchKey(
        production_date=FRI, truck_id="T1", transaction_type=TransactionType.DISPATCH
    )
    with pytest.raises(BatchNotFoundError):
        await service.edit_batch_adjustment(
            None, key, AdjustmentField.DIESEL_STOCK, 5.0, "stock", admin
        )


async def test_list_is_paginated_and_ordered(service, seeded, admin):
    params = BatchListRequestDTO(
        date_range_start=MON, date_range_end=FRI, page=1, page_size=2
    )
    batches, total = await service.list_batches(None, params, admin)

    assert total == 3
    assert [(b.production_date, b.truck_id) for b in batches] == [
        (THU, "T1"),
        (THU, "T2"),
    ]


async def test_non_admin_sees_batches_with_own_records(service, seeded, agent):
    params = BatchListRequestDTO(date_range_start=MON, date_range_end=FRI)
    batches, total = await service.list_batches(None, params, agent)

    assert total == 2
    assert {(b.production_date, b.truck_id) for b in batches} == {
        (MON, "T1"),
        (THU, "T1"),
    }
    thursday = next(b for b in batches if b.production_date == THU)
    assert thursday.record_count == 2


async def test_move_batch_carries_adjustment_and_reconciles(
    service, seeded, trip_repo, adjustment_repo, admin
):
    await service.edit_batch_adjustment(
        None, THU_KEY, AdjustmentField.TRIP_COUNT, 1, "late entry", admin
    )
    moved = await service.move_batch(
        None, THU_KEY, BatchMoveRequest(production_date=FRI, driver_id="D2"), admin
    )

    assert moved.production_date == FRI
    assert moved.record_count == 2
    assert moved.driver_id == "D2"
    assert moved.trip_count_adjustment == 1
    assert (moved.flat_fee, moved.per_trip_fee) == (300, 300)
    assert await adjustment_repo.get(None, THU_KEY) is None
    assert await trip_repo.find_batch_members(None, THU_KEY) == []


async def test_move_requires_a_target(service, seeded, admin):
    with pytest.raises(InvalidBatchMoveError):
        await service.move_batch(None, THU_KEY, BatchMoveRequest(), admin)


async def test_reconcile_is_idempotent(service, seeded, trip_repo, admin):
    first = await service.reconcile_batch(None, THU_KEY, admin)
    before = await trip_repo.find_batch_members(None, THU_KEY)
    second = await service.reconcile_batch(None, THU_KEY, admin)
    after = await trip_repo.find_batch_members(None, THU_KEY)

    assert first == second
    assert before == after
