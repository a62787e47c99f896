from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.fleet_ledger.daily_ledger.models import BatchAdjustmentModel
from src.fleet_ledger.daily_ledger.schemas import BatchAdjustment
from src.fleet_ledger.trip_records.schemas import BatchKey


def _key_filter(key: BatchKey):
    return (
        BatchAdjustmentModel.production_date == key.production_date,
        BatchAdjustmentModel.truck_id == key.truck_id,
        BatchAdjustmentModel.transaction_type == key.transaction_type.value,
    )


class IBatchAdjustmentRepository(ABC):
    @abstractmethod
    async def get(self, db: AsyncSession, key: BatchKey) -> Optional[BatchAdjustment]:
        pass

    @abstractmethod
    async def upsert(
        self, db: AsyncSession, adjustment: BatchAdjustment
    ) -> BatchAdjustment:
        pass

    @abstractmethod
    async def delete(self, db: AsyncSession, key: BatchKey) -> None:
        pass

    @abstractmethod
    async def find_for_trucks(
        self, db: AsyncSession, truck_ids: Iterable[str], until: date
    ) -> List[BatchAdjustment]:
        pass


class BatchAdjustmentRepository(IBatchAdjustmentRepository):
    async def get(self, db: AsyncSession, key: BatchKey) -> Optional[BatchAdjustment]:
        q = await db.execute(select(BatchAdjustmentModel).where(*_key_filter(key)))
        row = q.scalar_one_or_none()
        return BatchAdjustment.model_validate(row) if row else None

    async def upsert(
        self, db: AsyncSession, adjustment: BatchAdjustment
    ) -> BatchAdjustment:
        values = adjustment.model_dump(exclude={"updated_at"})
        values["transaction_type"] = adjustment.transaction_type.value
        stmt = insert(BatchAdjustmentModel).values(**values)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_batch_adjustments_key",
            set_={
                "trip_count_adjustment": stmt.excluded.trip_count_adjustment,
                "trip_remarks": stmt.excluded.trip_remarks,
                "diesel_stock_adjustment": stmt.excluded.diesel_stock_adjustment,
                "diesel_remarks": stmt.excluded.diesel_remarks,
                "diesel_other_adjustment": stmt.excluded.diesel_other_adjustment,
                "other_remarks": stmt.excluded.other_remarks,
                "updated_at": func.now(),
            },
        )
        await db.execute(stmt)
        await db.commit()
        stored = await self.get(db, adjustment.key)
        return stored if stored is not None else adjustment

    async def delete(self, db: AsyncSession, key: BatchKey) -> None:
        await db.execute(delete(BatchAdjustmentModel).where(*_key_filter(key)))
        await db.commit()

    async def find_for_trucks(
        self, db: AsyncSession, truck_ids: Iterable[str], until: date
    ) -> List[BatchAdjustment]:
        ids = list(set(truck_ids))
        if not ids:
            return []
        q = await db.execute(
            select(BatchAdjustmentModel).where(
                BatchAdjustmentModel.truck_id.in_(ids),
                BatchAdjustmentModel.production_date <= until,
            )
        )
        return [BatchAdjustment.model_validate(r) for r in q.scalars().all()]
