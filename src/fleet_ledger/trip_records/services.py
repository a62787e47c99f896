import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.fleet_ledger.daily_ledger.reconciler import BatchReconciler
from src.fleet_ledger.middleware.viewer import Viewer
from src.fleet_ledger.trip_records.exceptions import TripRecordNotFoundError
from src.fleet_ledger.trip_records.repositories import ITripRecordRepository
from src.fleet_ledger.trip_records.schemas import (
    TripRecord,
    TripRecordCreate,
    TripRecordUpdate,
    TripRecordView,
)
from src.fleet_ledger.trip_records.weights import (
    annotate,
    derive_net_weights,
    validate_required_weight,
)

logger = logging.getLogger(__name__)


class TripRecordService:
    def __init__(self, trip_repo: ITripRecordRepository, reconciler: BatchReconciler):
        self.trip_repo = trip_repo
        self.reconciler = reconciler

    async def _get_visible(
        self, db: AsyncSession, record_id: str, viewer: Viewer
    ) -> TripRecord:
        record = await self.trip_repo.get(db, record_id)
        if record is None or not viewer.can_see(record.agent_id):
            raise TripRecordNotFoundError(record_id)
        return record

    async def create_trip_record(
        self, db: AsyncSession, payload: TripRecordCreate, viewer: Viewer
    ) -> TripRecordView:
        payload = derive_net_weights(payload)
        validate_required_weight(payload)

        record = TripRecord(
            **payload.model_dump(), id=str(uuid.uuid4()), agent_id=viewer.username
        )
        try:
            saved = await self.trip_repo.save(db, record)
            await self.reconciler.reconcile(db, saved.batch_key)
        except SQLAlchemyError as e:
            logger.error("Failed to store trip record: %s", str(e), exc_info=True)
            raise

        logger.info("Created trip record %s in batch %s", saved.id, saved.batch_key)
        stored = await self.trip_repo.get(db, saved.id)
        return annotate(stored or saved)

    async def update_trip_record(
        self,
        db: AsyncSession,
        record_id: str,
        payload: TripRecordUpdate,
        viewer: Viewer,
    ) -> TripRecordView:
        existing = await self._get_visible(db, record_id, viewer)

        updated = existing.model_copy(update=payload.changes())
        updated = derive_net_weights(updated)
        validate_required_weight(updated)

        try:
            saved = await self.trip_repo.update(db, updated)
            await self.reconciler.reconcile(db, existing.batch_key)
            if saved.batch_key != existing.batch_key:
                logger.info(
                    "Trip record %s moved from %s to %s",
                    record_id,
                    existing.batch_key,
                    saved.batch_key,
                )
                await self.reconciler.reconcile(db, saved.batch_key)
        except SQLAlchemyError as e:
            logger.error("Failed to update trip record: %s", str(e), exc_info=True)
            raise

        stored = await self.trip_repo.get(db, record_id)
        return annotate(stored or saved)

    async def delete_trip_record(
        self, db: AsyncSession, record_id: str, viewer: Viewer
    ) -> None:
        existing = await self._get_visible(db, record_id, viewer)
        try:
            await self.trip_repo.delete(db, record_id)
            await self.reconciler.reconcile(db, existing.batch_key)
        except SQLAlchemyError as e:
            logger.error("Failed to delete trip record: %s", str(e), exc_info=True)
            raise
        logger.info("Deleted trip record %s from batch %s", record_id, existing.batch_key)
