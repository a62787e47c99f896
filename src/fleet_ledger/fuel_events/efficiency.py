from typing import Dict, Iterable, Optional

from src.fleet_ledger.fuel_events.schemas import EntryMode, FuelEvent, FuelEventStatus


def km_per_liter(
    event: FuelEvent, previous_full_tank: Optional[FuelEvent] = None
) -> Optional[float]:
    """Mileage of a full-tank fill; per-trip fills have none."""
    if event.entry_mode != EntryMode.FULL_TANK:
        return None
    start = (
        previous_full_tank.odometer
        if previous_full_tank is not None
        else event.previous_odometer
    )
    distance = event.odometer - start
    if distance <= 0 or event.liters <= 0:
        return 0.0
    return round(distance / event.liters, 2)


def compute_efficiencies(events: Iterable[FuelEvent]) -> Dict[str, Optional[float]]:
    """km/L for every event, keyed by id.

    Each full-tank fill is measured from the previous completed full-tank
    fill of the same truck.
    """
    by_truck: Dict[str, list] = {}
    for event in events:
        by_truck.setdefault(event.truck_id, []).append(event)

    results: Dict[str, Optional[float]] = {}
    for truck_events in by_truck.values():
        truck_events.sort(key=lambda e: (e.fueling_date, e.odometer))
        previous: Optional[FuelEvent] = None
        for event in truck_events:
            results[event.id] = km_per_liter(event, previous)
            if (
                event.entry_mode == EntryMode.FULL_TANK
                and event.status == FuelEventStatus.COMPLETED
            ):
                previous = event
    return results
