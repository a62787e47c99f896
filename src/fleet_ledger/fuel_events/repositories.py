import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, List, Optional, Tuple, cast

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.fleet_ledger.fuel_events.models import FuelEventModel
from src.fleet_ledger.fuel_events.schemas import (
    EntryMode,
    FuelEvent,
    FuelEventStatus,
)

logger = logging.getLogger(__name__)


class IFuelEventRepository(ABC):
    @abstractmethod
    async def get(self, db: AsyncSession, event_id: str) -> Optional[FuelEvent]:
        pass

    @abstractmethod
    async def save(self, db: AsyncSession, event: FuelEvent) -> FuelEvent:
        """Insert a new event"""
        pass

    @abstractmethod
    async def update(self, db: AsyncSession, event: FuelEvent) -> FuelEvent:
        """Overwrite the editable fields of an existing event"""
        pass

    @abstractmethod
    async def find_baseline_candidates(
        self,
        db: AsyncSession,
        truck_id: str,
        day: date,
        excluding_event_id: Optional[str] = None,
    ) -> List[FuelEvent]:
        """Completed events of the truck on ``day`` plus the latest one before it"""
        pass

    @abstractmethod
    async def find_attributed(
        self,
        db: AsyncSession,
        truck_ids: Iterable[str],
        start_date: date,
        end_date: date,
    ) -> List[FuelEvent]:
        pass

    @abstractmethod
    async def find_by_trucks(
        self, db: AsyncSession, truck_ids: Iterable[str]
    ) -> List[FuelEvent]:
        pass

    @abstractmethod
    async def find_history(
        self,
        db: AsyncSession,
        truck_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        entry_mode: Optional[EntryMode],
        agent_id: Optional[str],
        page: int,
        page_size: int,
    ) -> Tuple[List[FuelEvent], int]:
        """Returns (events, total_count), newest fueling date first"""
        ...


class FuelEventRepository(IFuelEventRepository):
    async def get(self, db: AsyncSession, event_id: str) -> Optional[FuelEvent]:
        q = await db.execute(
            select(FuelEventModel).where(FuelEventModel.id == event_id)
        )
        row = q.scalar_one_or_none()
        return FuelEvent.model_validate(row) if row else None

    async def save(self, db: AsyncSession, event: FuelEvent) -> FuelEvent:
        model = FuelEventModel(
            id=event.id,
            truck_id=event.truck_id,
            driver_id=event.driver_id,
            station_id=event.station_id,
            fueling_date=event.fueling_date,
            attribution_date=event.attribution_date,
            entry_mode=event.entry_mode.value,
            odometer=event.odometer,
            previous_odometer=event.previous_odometer,
            liters=event.liters,
            unit_price=event.unit_price,
            status=event.status.value,
            agent_id=event.agent_id,
        )
        db.add(model)
        await db.commit()
        await db.refresh(model)
        return FuelEvent.model_validate(model)

    async def update(self, db: AsyncSession, event: FuelEvent) -> FuelEvent:
        await db.execute(
            update(FuelEventModel)
            .where(FuelEventModel.id == event.id)
            .values(
                driver_id=event.driver_id,
                station_id=event.station_id,
                fueling_date=event.fueling_date,
                attribution_date=event.attribution_date,
                entry_mode=event.entry_mode.value,
                odometer=event.odometer,
                liters=event.liters,
                unit_price=event.unit_price,
                status=event.status.value,
            )
        )
        await db.commit()
        return cast(FuelEvent, await self.get(db, event.id))

    async def find_baseline_candidates(
        self,
        db: AsyncSession,
        truck_id: str,
        day: date,
        excluding_event_id: Optional[str] = None,
    ) -> List[FuelEvent]:
        base = select(FuelEventModel).where(
            FuelEventModel.truck_id == truck_id,
            FuelEventModel.status == FuelEventStatus.COMPLETED.value,
        )
        if excluding_event_id:
            base = base.where(FuelEventModel.id != excluding_event_id)

        same_day = await db.execute(base.where(FuelEventModel.fueling_date == day))
        latest_before = await db.execute(
            base.where(FuelEventModel.fueling_date < day)
            .order_by(desc(FuelEventModel.fueling_date), desc(FuelEventModel.odometer))
            .limit(1)
        )
        rows = list(same_day.scalars().all()) + list(latest_before.scalars().all())
        return [FuelEvent.model_validate(r) for r in rows]

    async def find_attributed(
        self,
        db: AsyncSession,
        truck_ids: Iterable[str],
        start_date: date,
        end_date: date,
    ) -> List[FuelEvent]:
        ids = list(set(truck_ids))
        if not ids:
            return []
        q = await db.execute(
            select(FuelEventModel)
            .where(
                FuelEventModel.truck_id.in_(ids),
                FuelEventModel.attribution_date.between(start_date, end_date),
            )
            .order_by(FuelEventModel.created_at, FuelEventModel.id)
        )
        return [FuelEvent.model_validate(r) for r in q.scalars().all()]

    async def find_by_trucks(
        self, db: AsyncSession, truck_ids: Iterable[str]
    ) -> List[FuelEvent]:
        ids = list(set(truck_ids))
        if not ids:
            return []
        q = await db.execute(
            select(FuelEventModel).where(FuelEventModel.truck_id.in_(ids))
        )
        return [FuelEvent.model_validate(r) for r in q.scalars().all()]

    async def find_history(
        self,
        db: AsyncSession,
        truck_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        entry_mode: Optional[EntryMode],
        agent_id: Optional[str],
        page: int,
        page_size: int,
    ) -> Tuple[List[FuelEvent], int]:
        conditions = [FuelEventModel.status == FuelEventStatus.COMPLETED.value]
        if truck_id:
            conditions.append(FuelEventModel.truck_id == truck_id)
        if start_date:
            conditions.append(FuelEventModel.fueling_date >= start_date)
        if end_date:
            conditions.append(FuelEventModel.fueling_date <= end_date)
        if entry_mode:
            conditions.append(FuelEventModel.entry_mode == entry_mode.value)
        if agent_id:
            conditions.append(FuelEventModel.agent_id == agent_id)

        try:
            stmt = (
                select(FuelEventModel)
                .where(*conditions)
                .order_by(desc(FuelEventModel.fueling_date), desc(FuelEventModel.odometer))
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            result = await db.execute(stmt)
            items = [FuelEvent.model_validate(r) for r in result.scalars().all()]

            count_stmt = (
                select(func.count()).select_from(FuelEventModel).where(*conditions)
            )
            count_result = await db.execute(count_stmt)
            total_count = cast(int, count_result.scalar_one())
            return items, total_count

        except SQLAlchemyError as e:
            logger.error("Database error: %s", str(e), exc_info=True)
            raise RuntimeError(
                "Failed to fetch fuel history due to a database error."
            ) from e
