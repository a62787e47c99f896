from datetime import date
from http import HTTPStatus
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fastapi import APIRouter, Depends, Query, Response
from src.fleet_ledger.database.dependencies import verify_database
from src.fleet_ledger.fuel_events.dependencies import get_fuel_event_service
from src.fleet_ledger.fuel_events.schemas import (
    AttributionDateResponse,
    EntryMode,
    FuelEvent,
    FuelEventCreate,
    FuelEventUpdate,
    FuelEventView,
    FuelHistoryRequestDTO,
    PreviousOdometerResponse,
)
from src.fleet_ledger.fuel_events.services import FuelEventService
from src.fleet_ledger.middleware.auth import get_viewer
from src.fleet_ledger.middleware.viewer import Viewer

fuel_events_router = APIRouter(prefix="/fuel-events", tags=["Fuel Events"])


@fuel_events_router.post(
    "", response_model=FuelEvent, status_code=HTTPStatus.CREATED
)
async def create_fuel_event(
    payload: FuelEventCreate,
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: FuelEventService = Depends(get_fuel_event_service),
):
    return await service.create_fuel_event(db_session, payload, viewer)


@fuel_events_router.patch("/{event_id}", response_model=FuelEvent)
async def update_fuel_event(
    event_id: str,
    payload: FuelEventUpdate,
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: FuelEventService = Depends(get_fuel_event_service),
):
    return await service.update_fuel_event(db_session, event_id, payload, viewer)


@fuel_events_router.get("", response_model=List[FuelEventView])
async def list_fuel_events(
    response: Response,
    params: FuelHistoryRequestDTO = Depends(),
    db_session: AsyncSession = Depends(verify_database),
    viewer: Viewer = Depends(get_viewer),
    service: FuelEventService = Depends(get_fuel_event_service),
):
    results, total = await service.list_fuel_events(db_session, params, viewer)

    total_pages = (total + params.page_size - 1) // params.page_size

    response.headers["X-Total-Count"] = str(total)
    response.headers["X-Total-Pages"] = str(total_pages)
    response.headers["X-Current-Page"] = str(params.page)
    response.headers["X-Page-Size"] = str(params.page_size)

    return results


@fuel_events_router.get(
    "/previous-odometer", response_model=PreviousOdometerResponse
)
async def get_previous_odometer(
    truck_id: str = Query(..., min_length=1),
    fueling_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
    db_session: AsyncSession = Depends(verify_database),
    service: FuelEventService = Depends(get_fuel_event_service),
):
    return await service.previous_odometer(db_session, truck_id, fueling_date)


@fuel_events_router.get("/attribution-date", response_model=AttributionDateResponse)
async def get_attribution_date(
    fueling_date: date = Query(..., description="YYYY-MM-DD"),
    entry_mode: EntryMode = Query(EntryMode.FULL_TANK),
):
    return FuelEventService.preview_attribution(fueling_date, entry_mode)
