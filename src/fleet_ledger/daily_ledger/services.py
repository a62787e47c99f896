import logging
import math
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.fleet_ledger.daily_ledger.aggregator import BatchAggregator
from src.fleet_ledger.daily_ledger.exceptions import (
    BatchNotFoundError,
    InvalidAdjustmentError,
    InvalidBatchMoveError,
    MissingRemarkError,
)
from src.fleet_ledger.daily_ledger.reconciler import BatchReconciler
from src.fleet_ledger.daily_ledger.repositories import IBatchAdjustmentRepository
from src.fleet_ledger.daily_ledger.schemas import (
    AdjustmentField,
    Batch,
    BatchAdjustment,
    BatchListRequestDTO,
    BatchMoveRequest,
)
from src.fleet_ledger.exceptions import LedgerException
from src.fleet_ledger.fleet_registry.reference import load_reference_data
from src.fleet_ledger.fleet_registry.repositories import IFleetRegistryRepository
from src.fleet_ledger.fuel_events.repositories import IFuelEventRepository
from src.fleet_ledger.middleware.viewer import Viewer
from src.fleet_ledger.trip_records.repositories import ITripRecordRepository
from src.fleet_ledger.trip_records.schemas import BatchKey, TripRecord

logger = logging.getLogger(__name__)


def visible_to(records: List[TripRecord], viewer: Viewer) -> List[TripRecord]:
    """Records of every batch holding at least one record the viewer entered"""
    if viewer.is_admin:
        return records
    keys = {r.batch_key for r in records if viewer.can_see(r.agent_id)}
    return [r for r in records if r.batch_key in keys]


class LedgerService:
    def __init__(
        self,
        trip_repo: ITripRecordRepository,
        adjustment_repo: IBatchAdjustmentRepository,
        fuel_event_repo: IFuelEventRepository,
        registry_repo: IFleetRegistryRepository,
        aggregator: BatchAggregator,
        reconciler: BatchReconciler,
    ):
        self.trip_repo = trip_repo
        self.adjustment_repo = adjustment_repo
        self.fuel_event_repo = fuel_event_repo
        self.registry_repo = registry_repo
        self.aggregator = aggregator
        self.reconciler = reconciler

    async def _build_batches(
        self,
        db: AsyncSession,
        records: List[TripRecord],
        start_date: date,
        end_date: date,
    ) -> List[Batch]:
        if not records:
            return []
        truck_ids = {r.truck_id for r in records}

        working_days = await self.trip_repo.find_working_days(db, truck_ids, end_date)
        adjustments = await self.adjustment_repo.find_for_trucks(
            db, truck_ids, end_date
        )
        fuel_events = await self.fuel_event_repo.find_attributed(
            db, truck_ids, start_date, end_date
        )
        reference = await load_reference_data(
            db,
            self.registry_repo,
            truck_ids=truck_ids,
            driver_ids={r.driver_id for r in records}
            | {e.driver_id for e in fuel_events},
        )
        return self.aggregator.aggregate(
            records,
            fuel_events,
            adjustments,
            reference=reference,
            working_days=working_days,
        )

    async def list_batches(
        self, db: AsyncSession, params: BatchListRequestDTO, viewer: Viewer
    ) -> Tuple[List[Batch], int]:
        try:
            records = await self.trip_repo.find_in_range(
                db,
                params.date_range_start,
                params.date_range_end,
                truck_id=params.truck_id,
                transaction_type=params.transaction_type,
            )
            records = visible_to(records, viewer)
            batches = await self._build_batches(
                db, records, params.date_range_start, params.date_range_end
            )
            offset = (params.page - 1) * params.page_size
            return batches[offset : offset + params.page_size], len(batches)

        except LedgerException:
            raise

        except SQLAlchemyError as e:
            logger.error(
                "Database error while listing batches: %s", str(e), exc_info=True
            )
            raise

        except Exception as e:
            logger.error(
                "Unexpected error while listing batches: %s", str(e), exc_info=True
            )
            raise RuntimeError("Unexpected error while listing batches.") from e

    async def _members(
        self, db: AsyncSession, key: BatchKey, viewer: Viewer
    ) -> List[TripRecord]:
        members = visible_to(await self.trip_repo.find_batch_members(db, key), viewer)
        if not members:
            raise BatchNotFoundError(key)
        return members

    async def get_batch_view(
        self, db: AsyncSession, key: BatchKey, viewer: Viewer
    ) -> Batch:
        members = await self._members(db, key, viewer)
        batches = await self._build_batches(
            db, members, key.production_date, key.production_date
        )
        return batches[0]

    async def reconcile_batch(
        self, db: AsyncSession, key: BatchKey, viewer: Viewer
    ) -> Batch:
        await self._members(db, key, viewer)
        await self.reconciler.reconcile(db, key)
        return await self.get_batch_view(db, key, viewer)

    async def edit_batch_adjustment(
        self,
        db: AsyncSession,
        key: BatchKey,
        field: AdjustmentField,
        value: float,
        remark: Optional[str],
        viewer: Viewer,
    ) -> Batch:
        if not remark or not remark.strip():
            raise MissingRemarkError(field.value)
        remark = remark.strip()
        if not math.isfinite(value):
            raise InvalidAdjustmentError(field.value, value)

        await self._members(db, key, viewer)

        adjustment = await self.adjustment_repo.get(db, key)
        if adjustment is None:
            adjustment = BatchAdjustment.empty(key)
        if field == AdjustmentField.TRIP_COUNT:
            if value != int(value):
                raise InvalidAdjustmentError(field.value, value)
            adjustment.trip_count_adjustment = int(value)
            adjustment.trip_remarks = remark
        elif field == AdjustmentField.DIESEL_STOCK:
            adjustment.diesel_stock_adjustment = value
            adjustment.diesel_remarks = remark
        elif field == AdjustmentField.DIESEL_OTHER:
            adjustment.diesel_other_adjustment = value
            adjustment.other_remarks = remark

        await self.adjustment_repo.upsert(db, adjustment)
        logger.info(
            "%s set %s adjustment of %s to %s (%s)",
            viewer.username,
            field.value,
            key,
            value,
            remark,
        )
        await self.reconciler.reconcile(db, key)
        return await self.get_batch_view(db, key, viewer)

    async def move_batch(
        self,
        db: AsyncSession,
        key: BatchKey,
        request: BatchMoveRequest,
        viewer: Viewer,
    ) -> Batch:
        """Move every record of a batch to another date and/or driver."""
        if request.production_date is None and not request.driver_id:
            raise InvalidBatchMoveError("Provide a production date or a driver.")

        await self._members(db, key, viewer)
        # Moving includes records the viewer did not enter.
        members = await self.trip_repo.find_batch_members(db, key)

        target = BatchKey(
            production_date=request.production_date or key.production_date,
            truck_id=key.truck_id,
            transaction_type=key.transaction_type,
        )
        await self.trip_repo.move(
            db, [r.id for r in members], target.production_date, request.driver_id
        )

        if target != key:
            await self._carry_adjustment(db, key, target)
            await self.reconciler.reconcile(db, key)
        await self.reconciler.reconcile(db, target)
        logger.info("%s moved batch %s to %s", viewer.username, key, target)
        return await self.get_batch_view(db, target, viewer)

    async def _carry_adjustment(
        self, db: AsyncSession, source: BatchKey, target: BatchKey
    ) -> None:
        moving = await self.adjustment_repo.get(db, source)
        if moving is None:
            return
        existing = await self.adjustment_repo.get(db, target)
        if existing is not None:
            logger.warning(
                "Batch %s already has adjustments, merging from %s; latest wins",
                target,
                source,
            )
        keep_moving = existing is None or (moving.updated_at or datetime.min) >= (
            existing.updated_at or datetime.min
        )
        if keep_moving:
            await self.adjustment_repo.upsert(
                db,
                moving.model_copy(update={"production_date": target.production_date}),
            )
        await self.adjustment_repo.delete(db, source)
