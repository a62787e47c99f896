from datetime import date

import pendulum

from src.fleet_ledger.fuel_events.attribution import attribution_date
from src.fleet_ledger.fuel_events.schemas import EntryMode


def test_full_tank_is_charged_to_previous_day():
    assert attribution_date(date(2024, 3, 10), EntryMode.FULL_TANK) == date(2024, 3, 9)


def test_per_trip_is_charged_to_same_day():
    assert attribution_date(date(2024, 3, 10), EntryMode.PER_TRIP) == date(2024, 3, 10)


def test_full_tank_crosses_month_and_year_boundaries():
    assert attribution_date(date(2024, 3, 1), EntryMode.FULL_TANK) == date(2024, 2, 29)
    assert attribution_date(date(2025, 1, 1), EntryMode.FULL_TANK) == date(2024, 12, 31)


def test_accepts_pendulum_dates():
    fueling = pendulum.date(2024, 3, 10)
    assert attribution_date(fueling, EntryMode.FULL_TANK) == date(2024, 3, 9)
