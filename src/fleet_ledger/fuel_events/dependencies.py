from src.fleet_ledger.fleet_registry.repositories import FleetRegistryRepository
from src.fleet_ledger.fuel_events.repositories import FuelEventRepository
from src.fleet_ledger.fuel_events.services import FuelEventService

fuel_event_repo = FuelEventRepository()
registry_repo = FleetRegistryRepository()
service = FuelEventService(fuel_event_repo, registry_repo)


def get_fuel_event_service() -> FuelEventService:
    return service
