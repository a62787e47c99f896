from http import HTTPStatus

from sqlalchemy.ext.asyncio import AsyncSession

from fastapi import APIRouter, Depends, Response
from src.fleet_ledger.database.dependencies import verify_database
from src.fleet_ledger.middleware.auth import get_viewer
from src.fleet_ledger.middleware.viewer import Viewer
from src.fleet_ledger.trip_records.dependencies import get_trip_record_service
from src.fleet_ledger.trip_records.schemas import (
    TripRecordCreate,
    TripRecordUpdate,
    TripRecordView,
)
from src.fleet_ledger.trip_records.services import TripRecordService

trip_records_router = APIRouter(prefix="/trip-records", tags=["Trip Records"])


@trip_records_router.post(
    "", response_model=TripRecordView, status_code=HTTPStatus.CREATED
)
async def create_trip_record(
    payload: TripRecordCreate,
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: TripRecordService = Depends(get_trip_record_service),
):
    return await service.create_trip_record(db_session, payload, viewer)


@trip_records_router.patch("/{record_id}", response_model=TripRecordView)
async def update_trip_record(
    record_id: str,
    payload: TripRecordUpdate,
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: TripRecordService = Depends(get_trip_record_service),
):
    return await service.update_trip_record(db_session, record_id, payload, viewer)


@trip_records_router.delete("/{record_id}", status_code=HTTPStatus.NO_CONTENT)
async def delete_trip_record(
    record_id: str,
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: TripRecordService = Depends(get_trip_record_service),
):
    await service.delete_trip_record(db_session, record_id, viewer)
    return Response(status_code=HTTPStatus.NO_CONTENT)
