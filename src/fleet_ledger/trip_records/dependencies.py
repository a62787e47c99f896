from src.fleet_ledger.daily_ledger.dependencies import reconciler
from src.fleet_ledger.trip_records.repositories import TripRecordRepository
from src.fleet_ledger.trip_records.services import TripRecordService

trip_repo = TripRecordRepository()
service = TripRecordService(trip_repo, reconciler)


def get_trip_record_service() -> TripRecordService:
    return service
