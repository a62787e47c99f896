import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.fleet_ledger.trip_records.models import TripRecordModel
from src.fleet_ledger.trip_records.schemas import (
    BatchKey,
    TransactionType,
    TripRecord,
)

logger = logging.getLogger(__name__)

_WRITABLE_FIELDS = (
    "transaction_type",
    "production_date",
    "truck_id",
    "driver_id",
    "material",
    "challan_no",
    "party_name",
    "loading_gross_weight",
    "loading_tare_weight",
    "loading_net_weight",
    "unloading_gross_weight",
    "unloading_tare_weight",
    "unloading_net_weight",
    "remarks",
    "flat_fee",
    "per_trip_fee",
)


def _values(record: TripRecord) -> dict:
    values = {name: getattr(record, name) for name in _WRITABLE_FIELDS}
    values["transaction_type"] = record.transaction_type.value
    return values


class ITripRecordRepository(ABC):
    @abstractmethod
    async def get(self, db: AsyncSession, record_id: str) -> Optional[TripRecord]:
        pass

    @abstractmethod
    async def save(self, db: AsyncSession, record: TripRecord) -> TripRecord:
        pass

    @abstractmethod
    async def update(self, db: AsyncSession, record: TripRecord) -> TripRecord:
        pass

    @abstractmethod
    async def delete(self, db: AsyncSession, record_id: str) -> None:
        pass

    @abstractmethod
    async def find_batch_members(
        self, db: AsyncSession, key: BatchKey
    ) -> List[TripRecord]:
        """Members of one batch in natural order (created_at, id)"""
        pass

    @abstractmethod
    async def update_fees(self, db: AsyncSession, records: List[TripRecord]) -> None:
        """Persist flat_fee and per_trip_fee of every given record"""
        pass

    @abstractmethod
    async def move(
        self,
        db: AsyncSession,
        record_ids: List[str],
        production_date: date,
        driver_id: Optional[str],
    ) -> None:
        pass

    @abstractmethod
    async def find_in_range(
        self,
        db: AsyncSession,
        start_date: date,
        end_date: date,
        truck_id: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> List[TripRecord]:
        pass

    @abstractmethod
    async def find_working_days(
        self, db: AsyncSession, truck_ids: Iterable[str], until: date
    ) -> List[Tuple[str, date]]:
        """Distinct (truck_id, production_date) pairs up to ``until``, any type"""
        pass


class TripRecordRepository(ITripRecordRepository):
    async def get(self, db: AsyncSession, record_id: str) -> Optional[TripRecord]:
        q = await db.execute(
            select(TripRecordModel).where(TripRecordModel.id == record_id)
        )
        row = q.scalar_one_or_none()
        return TripRecord.model_validate(row) if row else None

    async def save(self, db: AsyncSession, record: TripRecord) -> TripRecord:
        model = TripRecordModel(
            id=record.id, agent_id=record.agent_id, **_values(record)
        )
        db.add(model)
        await db.commit()
        await db.refresh(model)
        return TripRecord.model_validate(model)

    async def update(self, db: AsyncSession, record: TripRecord) -> TripRecord:
        await db.execute(
            update(TripRecordModel)
            .where(TripRecordModel.id == record.id)
            .values(**_values(record))
        )
        await db.commit()
        updated = await self.get(db, record.id)
        return updated if updated is not None else record

    async def delete(self, db: AsyncSession, record_id: str) -> None:
        await db.execute(delete(TripRecordModel).where(TripRecordModel.id == record_id))
        await db.commit()

    async def find_batch_members(
        self, db: AsyncSession, key: BatchKey
    ) -> List[TripRecord]:
        q = await db.execute(
            select(TripRecordModel)
            .where(
                TripRecordModel.production_date == key.production_date,
                TripRecordModel.truck_id == key.truck_id,
                TripRecordModel.transaction_type == key.transaction_type.value,
            )
            .order_by(TripRecordModel.created_at, TripRecordModel.id)
        )
        return [TripRecord.model_validate(r) for r in q.scalars().all()]

    async def update_fees(self, db: AsyncSession, records: List[TripRecord]) -> None:
        for record in records:
            await db.execute(
                update(TripRecordModel)
                .where(TripRecordModel.id == record.id)
                .values(flat_fee=record.flat_fee, per_trip_fee=record.per_trip_fee)
            )
        await db.commit()

    async def move(
        self,
        db: AsyncSession,
        record_ids: List[str],
        production_date: date,
        driver_id: Optional[str],
    ) -> None:
        if not record_ids:
            return
        values: dict = {"production_date": production_date}
        if driver_id:
            values["driver_id"] = driver_id
        await db.execute(
            update(TripRecordModel)
            .where(TripRecordModel.id.in_(record_ids))
            .values(**values)
        )
        await db.commit()
        logger.info("Moved %d trip records to %s", len(record_ids), production_date)

    async def find_in_range(
        self,
        db: AsyncSession,
        start_date: date,
        end_date: date,
        truck_id: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> List[TripRecord]:
        stmt = select(TripRecordModel).where(
            TripRecordModel.production_date >= start_date,
            TripRecordModel.production_date <= end_date,
        )
        if truck_id:
            stmt = stmt.where(TripRecordModel.truck_id == truck_id)
        if transaction_type:
            stmt = stmt.where(TripRecordModel.transaction_type == transaction_type.value)
        q = await db.execute(
            stmt.order_by(TripRecordModel.created_at, TripRecordModel.id)
        )
        return [TripRecord.model_validate(r) for r in q.scalars().all()]

    async def find_working_days(
        self, db: AsyncSession, truck_ids: Iterable[str], until: date
    ) -> List[Tuple[str, date]]:
        ids = list(set(truck_ids))
        if not ids:
            return []
        q = await db.execute(
            select(TripRecordModel.truck_id, TripRecordModel.production_date)
            .where(
                TripRecordModel.truck_id.in_(ids),
                TripRecordModel.production_date <= until,
            )
            .distinct()
        )
        return [(truck_id, day) for truck_id, day in q.all()]
