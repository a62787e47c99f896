import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from src.fleet_ledger.config import get_settings
from src.fleet_ledger.daily_ledger.schemas import BatchAdjustment
from src.fleet_ledger.trip_records.schemas import TripRecord

logger = logging.getLogger(__name__)


class IFeePolicy(ABC):
    @abstractmethod
    def flat_fee(self, effective_trip_count: int) -> int:
        """Fee owed once per day the batch ran at all"""
        pass

    @abstractmethod
    def per_trip_fee(self, effective_trip_count: int) -> int:
        pass


class DefaultFeePolicy(IFeePolicy):
    def __init__(self, flat_fee: int = 300, per_trip_fee: int = 100):
        self.flat = flat_fee
        self.per_trip = per_trip_fee

    def flat_fee(self, effective_trip_count: int) -> int:
        return self.flat if effective_trip_count > 0 else 0

    def per_trip_fee(self, effective_trip_count: int) -> int:
        return effective_trip_count * self.per_trip


class FeePolicyFactory:
    @staticmethod
    def create() -> IFeePolicy:
        settings = get_settings()
        return DefaultFeePolicy(
            flat_fee=settings.FLAT_FEE, per_trip_fee=settings.PER_TRIP_FEE
        )


def effective_trip_count(record_count: int, trip_count_adjustment: int = 0) -> int:
    return max(0, record_count + trip_count_adjustment)


def batch_fees(
    record_count: int, trip_count_adjustment: int, policy: IFeePolicy
) -> Tuple[int, int, int]:
    """Returns (effective_trip_count, flat_fee, per_trip_fee)."""
    effective = effective_trip_count(record_count, trip_count_adjustment)
    return effective, policy.flat_fee(effective), policy.per_trip_fee(effective)


def natural_order(records: List[TripRecord]) -> List[TripRecord]:
    return sorted(
        records,
        key=lambda r: (r.created_at is None, r.created_at or datetime.min, r.id),
    )


def reconcile_financials(
    records: List[TripRecord],
    adjustment: Optional[BatchAdjustment],
    policy: IFeePolicy,
) -> List[TripRecord]:
    """Rewrite the fee fields of every member of one batch.

    The whole batch is recomputed from scratch: the first record in
    natural order carries both fees and every other record is zeroed.
    Running it twice yields the same records.
    """
    if not records:
        return []

    trip_adjustment = adjustment.trip_count_adjustment if adjustment else 0
    _, flat_fee, per_trip_fee = batch_fees(len(records), trip_adjustment, policy)

    ordered = natural_order(records)
    reconciled = [
        ordered[0].model_copy(update={"flat_fee": flat_fee, "per_trip_fee": per_trip_fee})
    ]
    reconciled.extend(
        r.model_copy(update={"flat_fee": 0, "per_trip_fee": 0}) for r in ordered[1:]
    )
    logger.debug(
        "Reconciled %s: %d records, carrier %s, flat %s, per-trip %s",
        ordered[0].batch_key,
        len(records),
        ordered[0].id,
        flat_fee,
        per_trip_fee,
    )
    return reconciled
