from datetime import date
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from fastapi import APIRouter, Depends, Response
from src.fleet_ledger.daily_ledger.dependencies import get_ledger_service
from src.fleet_ledger.daily_ledger.schemas import (
    Batch,
    BatchAdjustmentRequest,
    BatchListRequestDTO,
    BatchMoveRequest,
)
from src.fleet_ledger.daily_ledger.services import LedgerService
from src.fleet_ledger.database.dependencies import verify_database
from src.fleet_ledger.middleware.auth import get_viewer
from src.fleet_ledger.middleware.viewer import Viewer
from src.fleet_ledger.trip_records.schemas import BatchKey, TransactionType

daily_ledger_router = APIRouter(prefix="/daily-ledger", tags=["Daily Ledger"])

BATCH_PATH = "/{truck_id}/{production_date}/{transaction_type}"


def get_batch_key(
    truck_id: str, production_date: date, transaction_type: TransactionType
) -> BatchKey:
    return BatchKey(
        production_date=production_date,
        truck_id=truck_id,
        transaction_type=transaction_type,
    )


@daily_ledger_router.get("", response_model=List[Batch])
async def list_batches(
    response: Response,
    params: BatchListRequestDTO = Depends(),
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: LedgerService = Depends(get_ledger_service),
):
    results, total = await service.list_batches(db_session, params, viewer)

    total_pages = (total + params.page_size - 1) // params.page_size

    response.headers["X-Total-Count"] = str(total)
    response.headers["X-Total-Pages"] = str(total_pages)
    response.headers["X-Current-Page"] = str(params.page)
    response.headers["X-Page-Size"] = str(params.page_size)

    return results


@daily_ledger_router.get(BATCH_PATH, response_model=Batch)
async def get_batch_view(
    key: BatchKey = Depends(get_batch_key),
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: LedgerService = Depends(get_ledger_service),
):
    return await service.get_batch_view(db_session, key, viewer)


@daily_ledger_router.put(BATCH_PATH + "/adjustments", response_model=Batch)
async def edit_batch_adjustment(
    payload: BatchAdjustmentRequest,
    key: BatchKey = Depends(get_batch_key),
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: LedgerService = Depends(get_ledger_service),
):
    return await service.edit_batch_adjustment(
        db_session, key, payload.field, payload.value, payload.remark, viewer
    )


@daily_ledger_router.post(BATCH_PATH + "/reconcile", response_model=Batch)
async def reconcile_batch(
    key: BatchKey = Depends(get_batch_key),
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: LedgerService = Depends(get_ledger_service),
):
    return await service.reconcile_batch(db_session, key, viewer)


@daily_ledger_router.post(BATCH_PATH + "/move", response_model=Batch)
async def move_batch(
    payload: BatchMoveRequest,
    key: BatchKey = Depends(get_batch_key),
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: LedgerService = Depends(get_ledger_service),
):
    return await service.move_batch(db_session, key, payload, viewer)
