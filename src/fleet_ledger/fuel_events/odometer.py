import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.fleet_ledger.fleet_registry.repositories import IFleetRegistryRepository
from src.fleet_ledger.fleet_registry.schemas import DailyOdometerSnapshot, Truck
from src.fleet_ledger.fuel_events.repositories import IFuelEventRepository
from src.fleet_ledger.fuel_events.schemas import FuelEvent, FuelEventStatus

logger = logging.getLogger(__name__)


def resolve_previous_odometer(
    truck_id: str,
    day: date,
    events: Iterable[FuelEvent],
    truck: Optional[Truck] = None,
    snapshot: Optional[DailyOdometerSnapshot] = None,
    editing: Optional[FuelEvent] = None,
    excluding_event_id: Optional[str] = None,
) -> int:
    """Pick the baseline odometer for a refueling of ``truck_id`` on ``day``.

    First match wins:

    1. the edited event keeps the baseline it was stamped with;
    2. the highest odometer among completed fills on the same day, so a
       second fill continues from the first;
    3. the opening value of the daily odometer registry;
    4. the latest completed fill strictly before ``day``;
    5. the truck's reference odometer, or 0 if the truck is unknown.
    """
    if editing is not None:
        return editing.previous_odometer

    completed = [
        e
        for e in events
        if e.truck_id == truck_id
        and e.status == FuelEventStatus.COMPLETED
        and e.id != excluding_event_id
    ]

    same_day = [e.odometer for e in completed if e.fueling_date == day]
    if same_day:
        return max(same_day)

    if snapshot is not None and snapshot.opening_odometer:
        return snapshot.opening_odometer

    earlier = [e for e in completed if e.fueling_date < day]
    if earlier:
        latest = max(earlier, key=lambda e: (e.fueling_date, e.odometer))
        return latest.odometer

    return truck.current_odometer if truck else 0


class OdometerContinuityResolver:
    def __init__(
        self,
        fuel_event_repo: IFuelEventRepository,
        registry_repo: IFleetRegistryRepository,
    ):
        self.fuel_event_repo = fuel_event_repo
        self.registry_repo = registry_repo

    async def resolve(
        self,
        db: AsyncSession,
        truck_id: str,
        day: date,
        excluding_event_id: Optional[str] = None,
    ) -> int:
        editing = None
        if excluding_event_id:
            editing = await self.fuel_event_repo.get(db, excluding_event_id)

        if editing is not None:
            return resolve_previous_odometer(truck_id, day, [], editing=editing)

        events = await self.fuel_event_repo.find_baseline_candidates(
            db, truck_id, day, excluding_event_id
        )
        snapshot = await self.registry_repo.get_snapshot(db, truck_id, day)
        truck = await self.registry_repo.get_truck(db, truck_id)
        if truck is None:
            logger.warning("Resolving baseline for unknown truck %s", truck_id)

        baseline = resolve_previous_odometer(
            truck_id,
            day,
            events,
            truck=truck,
            snapshot=snapshot,
            excluding_event_id=excluding_event_id,
        )
        logger.debug("Baseline odometer for %s on %s is %s", truck_id, day, baseline)
        return baseline
