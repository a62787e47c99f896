"""Weighbridge arithmetic for trip records.

Net weights are derived from gross and tare whenever both are known.
Shortage compares the two weighbridges and is only defined when both
net weights are present; an undefined shortage is ``None``, never zero.
"""

from decimal import Decimal
from typing import Optional, TypeVar

from src.fleet_ledger.config import get_settings
from src.fleet_ledger.trip_records.exceptions import (
    MissingNetWeightError,
    NegativeWeightError,
    TareAboveGrossError,
)
from src.fleet_ledger.trip_records.schemas import (
    ShortageStatus,
    TransactionType,
    TripRecord,
    TripRecordBase,
    TripRecordView,
)

WEIGHT_QUANTUM = Decimal("0.001")
ZERO = Decimal("0")

R = TypeVar("R", bound=TripRecordBase)


def derive_net(
    side: str,
    gross: Optional[Decimal],
    tare: Optional[Decimal],
    net: Optional[Decimal],
) -> Optional[Decimal]:
    if gross is not None and tare is not None:
        if tare > gross:
            raise TareAboveGrossError(side, gross, tare)
        return (gross - tare).quantize(WEIGHT_QUANTUM)
    if net is not None and net < 0:
        raise NegativeWeightError(f"{side}_net_weight", net)
    return net


def derive_net_weights(record: R) -> R:
    """Return a copy of ``record`` with both net weights recomputed."""
    for name in (
        "loading_gross_weight",
        "loading_tare_weight",
        "unloading_gross_weight",
        "unloading_tare_weight",
    ):
        value = getattr(record, name)
        if value is not None and value < 0:
            raise NegativeWeightError(name, value)

    return record.model_copy(
        update={
            "loading_net_weight": derive_net(
                "loading",
                record.loading_gross_weight,
                record.loading_tare_weight,
                record.loading_net_weight,
            ),
            "unloading_net_weight": derive_net(
                "unloading",
                record.unloading_gross_weight,
                record.unloading_tare_weight,
                record.unloading_net_weight,
            ),
        }
    )


def validate_required_weight(record: TripRecordBase) -> None:
    if (
        record.transaction_type == TransactionType.DISPATCH
        and record.loading_net_weight is None
    ):
        raise MissingNetWeightError(record.transaction_type.value, "loading_net_weight")
    if (
        record.transaction_type == TransactionType.PURCHASE
        and record.unloading_net_weight is None
    ):
        raise MissingNetWeightError(
            record.transaction_type.value, "unloading_net_weight"
        )


def effective_net_weight(record: TripRecordBase) -> Decimal:
    if record.unloading_net_weight is not None:
        return record.unloading_net_weight
    if record.loading_net_weight is not None:
        return record.loading_net_weight
    return ZERO


def shortage(record: TripRecordBase) -> Optional[Decimal]:
    if record.loading_net_weight is None or record.unloading_net_weight is None:
        return None
    return (record.unloading_net_weight - record.loading_net_weight).quantize(
        WEIGHT_QUANTUM
    )


def shortage_status(
    value: Optional[Decimal], tolerance: Optional[float] = None
) -> Optional[ShortageStatus]:
    if value is None:
        return None
    if tolerance is None:
        tolerance = get_settings().SHORTAGE_TOLERANCE
    if value < -Decimal(str(tolerance)):
        return ShortageStatus.LOSS
    return ShortageStatus.GAIN_OR_STABLE


def annotate(record: TripRecord, tolerance: Optional[float] = None) -> TripRecordView:
    value = shortage(record)
    return TripRecordView(
        **record.model_dump(),
        effective_net_weight=effective_net_weight(record),
        shortage=value,
        shortage_status=shortage_status(value, tolerance),
    )
