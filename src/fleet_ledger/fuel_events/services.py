import logging
import uuid
from datetime import date
from typing import List, Optional, Tuple

import pendulum
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.fleet_ledger.config import get_settings
from src.fleet_ledger.exceptions import LedgerException
from src.fleet_ledger.fleet_registry.reference import load_reference_data
from src.fleet_ledger.fleet_registry.repositories import IFleetRegistryRepository
from src.fleet_ledger.fuel_events.attribution import attribution_date
from src.fleet_ledger.fuel_events.efficiency import compute_efficiencies
from src.fleet_ledger.fuel_events.exceptions import (
    FuelEventForbiddenError,
    FuelEventNotFoundError,
    InvalidFuelQuantityError,
    InvalidUnitPriceError,
    OdometerBelowBaselineError,
    TruckNotFoundError,
)
from src.fleet_ledger.fuel_events.odometer import OdometerContinuityResolver
from src.fleet_ledger.fuel_events.repositories import IFuelEventRepository
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
from src.fleet_ledger.middleware.viewer import Viewer

logger = logging.getLogger(__name__)
settings = get_settings()


def today() -> date:
    return pendulum.now(settings.TIMEZONE).date()


def _check_quantities(liters: float, unit_price: float) -> None:
    if liters <= 0:
        raise InvalidFuelQuantityError(liters)
    if unit_price < 0:
        raise InvalidUnitPriceError(unit_price)


class FuelEventService:
    def __init__(
        self,
        fuel_event_repo: IFuelEventRepository,
        registry_repo: IFleetRegistryRepository,
    ):
        self.fuel_event_repo = fuel_event_repo
        self.registry_repo = registry_repo
        self.resolver = OdometerContinuityResolver(fuel_event_repo, registry_repo)

    async def create_fuel_event(
        self, db: AsyncSession, payload: FuelEventCreate, viewer: Viewer
    ) -> FuelEvent:
        _check_quantities(payload.liters, payload.unit_price)

        truck = await self.registry_repo.get_truck(db, payload.truck_id)
        if truck is None:
            raise TruckNotFoundError(payload.truck_id)

        fueling_date = payload.fueling_date or today()
        baseline = await self.resolver.resolve(db, payload.truck_id, fueling_date)
        if payload.odometer < baseline:
            logger.warning(
                "Rejected fill for %s: odometer %s below baseline %s",
                payload.truck_id,
                payload.odometer,
                baseline,
            )
            raise OdometerBelowBaselineError(payload.odometer, baseline)

        event = FuelEvent(
            id=str(uuid.uuid4()),
            truck_id=payload.truck_id,
            driver_id=payload.driver_id,
            station_id=payload.station_id,
            entry_mode=payload.entry_mode,
            odometer=payload.odometer,
            liters=payload.liters,
            unit_price=payload.unit_price,
            fueling_date=fueling_date,
            attribution_date=attribution_date(fueling_date, payload.entry_mode),
            previous_odometer=baseline,
            status=payload.status,
            agent_id=viewer.username,
        )
        try:
            saved = await self.fuel_event_repo.save(db, event)
        except SQLAlchemyError as e:
            logger.error("Failed to store fuel event: %s", str(e), exc_info=True)
            raise
        logger.info(
            "Recorded %s fill %s for truck %s on %s (attributed to %s)",
            saved.entry_mode.value,
            saved.id,
            saved.truck_id,
            saved.fueling_date,
            saved.attribution_date,
        )
        return saved

    async def update_fuel_event(
        self,
        db: AsyncSession,
        event_id: str,
        payload: FuelEventUpdate,
        viewer: Viewer,
    ) -> FuelEvent:
        existing = await self.fuel_event_repo.get(db, event_id)
        if existing is None:
            raise FuelEventNotFoundError(event_id)
        if not viewer.can_see(existing.agent_id):
            raise FuelEventForbiddenError(event_id, viewer.username)

        changes = payload.changes()
        updated = existing.model_copy(update=changes)
        _check_quantities(updated.liters, updated.unit_price)

        baseline = await self.resolver.resolve(
            db, updated.truck_id, updated.fueling_date, excluding_event_id=event_id
        )
        if updated.odometer < baseline:
            raise OdometerBelowBaselineError(updated.odometer, baseline)

        if (
            updated.fueling_date != existing.fueling_date
            or updated.entry_mode != existing.entry_mode
        ):
            updated.attribution_date = attribution_date(
                updated.fueling_date, updated.entry_mode
            )
            logger.info(
                "Fuel event %s re-attributed from %s to %s",
                event_id,
                existing.attribution_date,
                updated.attribution_date,
            )

        try:
            return await self.fuel_event_repo.update(db, updated)
        except SQLAlchemyError as e:
            logger.error("Failed to update fuel event: %s", str(e), exc_info=True)
            raise

    async def list_fuel_events(
        self, db: AsyncSession, params: FuelHistoryRequestDTO, viewer: Viewer
    ) -> Tuple[List[FuelEventView], int]:
        try:
            events, total = await self.fuel_event_repo.find_history(
                db,
                truck_id=params.truck_id,
                start_date=params.date_range_start,
                end_date=params.date_range_end,
                entry_mode=params.entry_mode,
                agent_id=None if viewer.is_admin else viewer.username,
                page=params.page,
                page_size=params.page_size,
            )
            truck_ids = {e.truck_id for e in events}
            history = await self.fuel_event_repo.find_by_trucks(db, truck_ids)
            efficiencies = compute_efficiencies(history)

            reference = await load_reference_data(
                db,
                self.registry_repo,
                truck_ids=truck_ids,
                driver_ids={e.driver_id for e in events},
                station_ids={e.station_id for e in events},
            )
            views = [
                FuelEventView(
                    **event.model_dump(),
                    truck_label=reference.truck_label(event.truck_id),
                    driver_label=reference.driver_label(event.driver_id),
                    station_label=reference.station_label(event.station_id),
                    km_per_liter=efficiencies.get(event.id),
                )
                for event in events
            ]
            return views, total

        except LedgerException:
            raise

        except SQLAlchemyError as e:
            logger.error(
                "Database error while listing fuel events: %s", str(e), exc_info=True
            )
            raise

        except Exception as e:
            logger.error(
                "Unexpected error while listing fuel events: %s",
                str(e),
                exc_info=True,
            )
            raise RuntimeError("Unexpected error while listing fuel events.") from e

    async def previous_odometer(
        self, db: AsyncSession, truck_id: str, day: Optional[date] = None
    ) -> PreviousOdometerResponse:
        day = day or today()
        baseline = await self.resolver.resolve(db, truck_id, day)
        return PreviousOdometerResponse(
            truck_id=truck_id, fueling_date=day, previous_odometer=baseline
        )

    @staticmethod
    def preview_attribution(
        fueling_date: date, entry_mode: EntryMode
    ) -> AttributionDateResponse:
        return AttributionDateResponse(
            fueling_date=fueling_date,
            entry_mode=entry_mode,
            attribution_date=attribution_date(fueling_date, entry_mode),
        )
