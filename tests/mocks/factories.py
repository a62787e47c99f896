from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from src.fleet_ledger.daily_ledger.schemas import BatchAdjustment
from src.fleet_ledger.fuel_events.attribution import attribution_date
from src.fleet_ledger.fuel_events.schemas import EntryMode, FuelEvent, FuelEventStatus
from src.fleet_ledger.trip_records.schemas import TransactionType, TripRecord


def make_fuel_event(
    event_id: str,
    fueling_date: date,
    odometer: int,
    previous_odometer: int = 0,
    truck_id: str = "T1",
    entry_mode: EntryMode = EntryMode.FULL_TANK,
    liters: float = 100.0,
    unit_price: float = 92.0,
    status: FuelEventStatus = FuelEventStatus.COMPLETED,
    agent_id: str = "agent1",
    created_at: Optional[datetime] = None,
) -> FuelEvent:
    return FuelEvent(
        id=event_id,
        truck_id=truck_id,
        driver_id="D1",
        station_id="S1",
        entry_mode=entry_mode,
        odometer=odometer,
        liters=liters,
        unit_price=unit_price,
        fueling_date=fueling_date,
        attribution_date=attribution_date(fueling_date, entry_mode),
        previous_odometer=previous_odometer,
        status=status,
        agent_id=agent_id,
        created_at=created_at,
    )


def make_trip(
    record_id: str,
    production_date: date,
    truck_id: str = "T1",
    transaction_type: TransactionType = TransactionType.DISPATCH,
    loading: Optional[str] = "20.000",
    unloading: Optional[str] = None,
    driver_id: Optional[str] = "D1",
    agent_id: str = "agent1",
    created_at: Optional[datetime] = None,
    flat_fee: int = 0,
    per_trip_fee: int = 0,
) -> TripRecord:
    return TripRecord(
        id=record_id,
        transaction_type=transaction_type,
        production_date=production_date,
        truck_id=truck_id,
        driver_id=driver_id,
        material="Coal",
        loading_net_weight=Decimal(loading) if loading is not None else None,
        unloading_net_weight=Decimal(unloading) if unloading is not None else None,
        agent_id=agent_id,
        created_at=created_at,
        flat_fee=flat_fee,
        per_trip_fee=per_trip_fee,
    )


def make_adjustment(
    production_date: date,
    truck_id: str = "T1",
    transaction_type: TransactionType = TransactionType.DISPATCH,
    trips: int = 0,
    stock: float = 0.0,
    other: float = 0.0,
    updated_at: Optional[datetime] = None,
) -> BatchAdjustment:
    return BatchAdjustment(
        production_date=production_date,
        truck_id=truck_id,
        transaction_type=transaction_type,
        trip_count_adjustment=trips,
        trip_remarks="manual" if trips else None,
        diesel_stock_adjustment=stock,
        diesel_remarks="stock" if stock else None,
        diesel_other_adjustment=other,
        other_remarks="air" if other else None,
        updated_at=updated_at,
    )
