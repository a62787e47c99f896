import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from src.fleet_ledger.daily_ledger.financials import (
    IFeePolicy,
    natural_order,
    reconcile_financials,
)
from src.fleet_ledger.daily_ledger.repositories import IBatchAdjustmentRepository
from src.fleet_ledger.trip_records.repositories import ITripRecordRepository
from src.fleet_ledger.trip_records.schemas import BatchKey, TripRecord

logger = logging.getLogger(__name__)


class BatchReconciler:
    """Recomputes and stores the fee fields of one batch after it changed."""

    def __init__(
        self,
        trip_repo: ITripRecordRepository,
        adjustment_repo: IBatchAdjustmentRepository,
        policy: IFeePolicy,
    ):
        self.trip_repo = trip_repo
        self.adjustment_repo = adjustment_repo
        self.policy = policy

    async def reconcile(self, db: AsyncSession, key: BatchKey) -> List[TripRecord]:
        members = await self.trip_repo.find_batch_members(db, key)
        if not members:
            # A batch without records no longer exists; neither do its adjustments
            await self.adjustment_repo.delete(db, key)
            logger.info("Batch %s is empty, dropped its adjustments", key)
            return []

        adjustment = await self.adjustment_repo.get(db, key)
        reconciled = reconcile_financials(members, adjustment, self.policy)

        changed = [
            new
            for new, old in zip(reconciled, natural_order(members))
            if (new.flat_fee, new.per_trip_fee) != (old.flat_fee, old.per_trip_fee)
        ]
        if changed:
            await self.trip_repo.update_fees(db, changed)
        logger.info(
            "Reconciled batch %s: %d records, %d fee rows rewritten",
            key,
            len(reconciled),
            len(changed),
        )
        return reconciled
