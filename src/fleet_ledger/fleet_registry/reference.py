import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.fleet_ledger.fleet_registry.repositories import IFleetRegistryRepository
from src.fleet_ledger.fleet_registry.schemas import Driver, FuelStation, Truck

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "unknown"


@dataclass
class ReferenceData:
    """Snapshot of registry rows used to label ledger output.

    Missing ids are a recoverable data inconsistency: the label falls back
    to ``UNKNOWN_LABEL`` and a warning is recorded instead of failing.
    """

    trucks: Dict[str, Truck] = field(default_factory=dict)
    drivers: Dict[str, Driver] = field(default_factory=dict)
    stations: Dict[str, FuelStation] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def truck_label(self, truck_id: str) -> str:
        truck = self.trucks.get(truck_id)
        if truck is None:
            return self._missing("truck", truck_id)
        return truck.plate_number

    def driver_label(self, driver_id: Optional[str]) -> Optional[str]:
        if not driver_id:
            return None
        driver = self.drivers.get(driver_id)
        if driver is None:
            return self._missing("driver", driver_id)
        return driver.name

    def station_label(self, station_id: Optional[str]) -> Optional[str]:
        if not station_id:
            return None
        station = self.stations.get(station_id)
        if station is None:
            return self._missing("station", station_id)
        return station.name

    def _missing(self, kind: str, ref_id: str) -> str:
        message = f"Unknown {kind} reference: {ref_id}"
        if message not in self.warnings:
            logger.warning(message)
            self.warnings.append(message)
        return UNKNOWN_LABEL


async def load_reference_data(
    db: AsyncSession,
    registry: IFleetRegistryRepository,
    truck_ids: Iterable[str] = (),
    driver_ids: Iterable[Optional[str]] = (),
    station_ids: Iterable[Optional[str]] = (),
) -> ReferenceData:
    trucks = await registry.find_trucks(db, truck_ids)
    drivers = await registry.find_drivers(db, [d for d in driver_ids if d])
    stations = await registry.find_stations(db, [s for s in station_ids if s])
    return ReferenceData(
        trucks={t.id: t for t in trucks},
        drivers={d.id: d for d in drivers},
        stations={s.id: s for s in stations},
    )
