from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.fleet_ledger.fleet_registry.models import (
    DailyOdometerSnapshotModel,
    DriverModel,
    FuelStationModel,
    TruckModel,
)
from src.fleet_ledger.fleet_registry.schemas import (
    DailyOdometerSnapshot,
    Driver,
    FuelStation,
    Truck,
)


class IFleetRegistryRepository(ABC):
    """Read-only access to reference data owned by the fleet registry."""

    @abstractmethod
    async def get_truck(self, db: AsyncSession, truck_id: str) -> Optional[Truck]:
        pass

    @abstractmethod
    async def get_snapshot(
        self, db: AsyncSession, truck_id: str, day: date
    ) -> Optional[DailyOdometerSnapshot]:
        pass

    @abstractmethod
    async def find_trucks(
        self, db: AsyncSession, truck_ids: Iterable[str]
    ) -> List[Truck]:
        pass

    @abstractmethod
    async def find_drivers(
        self, db: AsyncSession, driver_ids: Iterable[str]
    ) -> List[Driver]:
        pass

    @abstractmethod
    async def find_stations(
        self, db: AsyncSession, station_ids: Iterable[str]
    ) -> List[FuelStation]:
        pass


class FleetRegistryRepository(IFleetRegistryRepository):
    async def get_truck(self, db: AsyncSession, truck_id: str) -> Optional[Truck]:
        q = await db.execute(select(TruckModel).where(TruckModel.id == truck_id))
        row = q.scalar_one_or_none()
        return Truck.model_validate(row) if row else None

    async def get_snapshot(
        self, db: AsyncSession, truck_id: str, day: date
    ) -> Optional[DailyOdometerSnapshot]:
        q = await db.execute(
            select(DailyOdometerSnapshotModel).where(
                DailyOdometerSnapshotModel.truck_id == truck_id,
                DailyOdometerSnapshotModel.date == day,
            )
        )
        row = q.scalar_one_or_none()
        return DailyOdometerSnapshot.model_validate(row) if row else None

    async def find_trucks(
        self, db: AsyncSession, truck_ids: Iterable[str]
    ) -> List[Truck]:
        ids = list(set(truck_ids))
        if not ids:
            return []
        q = await db.execute(select(TruckModel).where(TruckModel.id.in_(ids)))
        return [Truck.model_validate(r) for r in q.scalars().all()]

    async def find_drivers(
        self, db: AsyncSession, driver_ids: Iterable[str]
    ) -> List[Driver]:
        ids = list(set(driver_ids))
        if not ids:
            return []
        q = await db.execute(select(DriverModel).where(DriverModel.id.in_(ids)))
        return [Driver.model_validate(r) for r in q.scalars().all()]

    async def find_stations(
        self, db: AsyncSession, station_ids: Iterable[str]
    ) -> List[FuelStation]:
        ids = list(set(station_ids))
        if not ids:
            return []
        q = await db.execute(
            select(FuelStationModel).where(FuelStationModel.id.in_(ids))
        )
        return [FuelStation.model_validate(r) for r in q.scalars().all()]
