from src.fleet_ledger.config import get_settings
from src.fleet_ledger.daily_ledger.aggregator import BatchAggregator
from src.fleet_ledger.daily_ledger.financials import FeePolicyFactory
from src.fleet_ledger.daily_ledger.reconciler import BatchReconciler
from src.fleet_ledger.daily_ledger.repositories import BatchAdjustmentRepository
from src.fleet_ledger.daily_ledger.services import LedgerService
from src.fleet_ledger.fleet_registry.repositories import FleetRegistryRepository
from src.fleet_ledger.fuel_events.repositories import FuelEventRepository
from src.fleet_ledger.trip_records.repositories import TripRecordRepository

settings = get_settings()

trip_repo = TripRecordRepository()
adjustment_repo = BatchAdjustmentRepository()
fuel_event_repo = FuelEventRepository()
registry_repo = FleetRegistryRepository()
fee_policy = FeePolicyFactory.create()

reconciler = BatchReconciler(trip_repo, adjustment_repo, fee_policy)
aggregator = BatchAggregator(
    fee_policy,
    default_diesel_price=settings.DEFAULT_DIESEL_PRICE,
    shortage_tolerance=settings.SHORTAGE_TOLERANCE,
)
service = LedgerService(
    trip_repo,
    adjustment_repo,
    fuel_event_repo,
    registry_repo,
    aggregator,
    reconciler,
)


def get_ledger_service() -> LedgerService:
    return service
