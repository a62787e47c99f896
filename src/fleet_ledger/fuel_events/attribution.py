from datetime import date, timedelta

from src.fleet_ledger.fuel_events.schemas import EntryMode


def attribution_date(fueling_date: date, entry_mode: EntryMode) -> date:
    """Map a refueling date to the production day the fuel is charged to.

    A per-trip fill is burned the same day. A full-tank fill is logged at
    the end of the working day it closes, so it belongs to the day before.
    """
    if entry_mode == EntryMode.PER_TRIP:
        return fueling_date
    return fueling_date - timedelta(days=1)
