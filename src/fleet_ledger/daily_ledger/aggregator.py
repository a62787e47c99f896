import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from src.fleet_ledger.daily_ledger.carry_forward import CarryForwardCalculator
from src.fleet_ledger.daily_ledger.financials import (
    IFeePolicy,
    batch_fees,
    natural_order,
)
from src.fleet_ledger.daily_ledger.schemas import Batch, BatchAdjustment
from src.fleet_ledger.fleet_registry.reference import UNKNOWN_LABEL, ReferenceData
from src.fleet_ledger.fuel_events.schemas import FuelEvent
from src.fleet_ledger.trip_records.schemas import BatchKey, TripRecord
from src.fleet_ledger.trip_records.weights import annotate

logger = logging.getLogger(__name__)


def resolve_adjustments(
    adjustments: Iterable[BatchAdjustment],
) -> Tuple[Dict[BatchKey, BatchAdjustment], Dict[BatchKey, List[str]]]:
    """Keep one adjustment per batch key, the most recently written one.

    Competing rows are a data-quality problem, reported per key.
    """
    latest: Dict[BatchKey, BatchAdjustment] = {}
    warnings: Dict[BatchKey, List[str]] = defaultdict(list)
    for adjustment in adjustments:
        key = adjustment.key
        current = latest.get(key)
        if current is None:
            latest[key] = adjustment
            continue

        message = f"Conflicting adjustments for batch {key}, keeping the latest"
        logger.warning(message)
        warnings[key].append(message)
        if (adjustment.updated_at or datetime.min) >= (
            current.updated_at or datetime.min
        ):
            latest[key] = adjustment
    return latest, warnings


class BatchAggregator:
    def __init__(
        self,
        policy: IFeePolicy,
        default_diesel_price: float = 90.55,
        shortage_tolerance: Optional[float] = None,
    ):
        self.policy = policy
        self.default_diesel_price = default_diesel_price
        self.shortage_tolerance = shortage_tolerance

    def aggregate(
        self,
        records: Iterable[TripRecord],
        fuel_events: Iterable[FuelEvent],
        adjustments: Iterable[BatchAdjustment],
        reference: Optional[ReferenceData] = None,
        working_days: Optional[Iterable[Tuple[str, date]]] = None,
    ) -> List[Batch]:
        """Group trip records into batches, newest production date first.

        ``working_days`` defaults to the dates present in ``records``; pass
        the truck's full history when the records cover only a window.
        """
        ordered = natural_order(list(records))
        groups: Dict[BatchKey, List[TripRecord]] = {}
        for record in ordered:
            groups.setdefault(record.batch_key, []).append(record)

        latest, adjustment_warnings = resolve_adjustments(adjustments)

        if working_days is None:
            working_days = {(r.truck_id, r.production_date) for r in ordered}
        carry = CarryForwardCalculator(working_days, latest.values())

        fuel_index: Dict[Tuple[str, date], List[FuelEvent]] = defaultdict(list)
        for event in sorted(
            fuel_events,
            key=lambda e: (e.created_at is None, e.created_at or datetime.min, e.id),
        ):
            fuel_index[(event.truck_id, event.attribution_date)].append(event)

        batches = [
            self._build(
                key,
                members,
                fuel_index.get((key.truck_id, key.production_date), []),
                latest.get(key),
                adjustment_warnings.get(key, []),
                carry,
                reference,
            )
            for key, members in groups.items()
        ]
        batches.sort(key=lambda b: b.production_date, reverse=True)
        return batches

    def _build(
        self,
        key: BatchKey,
        members: List[TripRecord],
        fuel: List[FuelEvent],
        adjustment: Optional[BatchAdjustment],
        adjustment_warnings: List[str],
        carry: CarryForwardCalculator,
        reference: Optional[ReferenceData],
    ) -> Batch:
        warnings = list(adjustment_warnings)
        adjustment = adjustment or BatchAdjustment.empty(key)

        driver_id = members[0].driver_id or next(
            (e.driver_id for e in fuel if e.driver_id), None
        )
        if reference is not None:
            truck_label = reference.truck_label(key.truck_id)
            driver_label = reference.driver_label(driver_id)
            if truck_label == UNKNOWN_LABEL:
                warnings.append(f"Unknown truck reference: {key.truck_id}")
            if driver_id and driver_label == UNKNOWN_LABEL:
                warnings.append(f"Unknown driver reference: {driver_id}")
        else:
            truck_label, driver_label = key.truck_id, driver_id

        views = [annotate(r, self.shortage_tolerance) for r in members]
        shortages = [v.shortage for v in views if v.shortage is not None]

        fuel_liters = round(sum(e.liters for e in fuel), 3)
        carry_in = carry.carry_forward(key.truck_id, key.production_date)
        net_consumption = round(
            fuel_liters
            + carry_in
            - adjustment.diesel_stock_adjustment
            - adjustment.diesel_other_adjustment,
            3,
        )
        rate = fuel[0].unit_price if fuel else self.default_diesel_price

        effective, flat_fee, per_trip_fee = batch_fees(
            len(members), adjustment.trip_count_adjustment, self.policy
        )

        return Batch(
            production_date=key.production_date,
            truck_id=key.truck_id,
            transaction_type=key.transaction_type,
            truck_label=truck_label,
            driver_id=driver_id,
            driver_label=driver_label,
            record_count=len(members),
            net_weight_total=sum((v.effective_net_weight for v in views), Decimal("0")),
            total_shortage=sum(shortages, Decimal("0")) if shortages else None,
            fuel_liters=fuel_liters,
            fuel_event_ids=[e.id for e in fuel],
            fuel_entry_modes=[e.entry_mode for e in fuel],
            fuel_dates=[e.fueling_date for e in fuel],
            carry_in_stock=carry_in,
            trip_count_adjustment=adjustment.trip_count_adjustment,
            trip_remarks=adjustment.trip_remarks,
            diesel_stock_adjustment=adjustment.diesel_stock_adjustment,
            diesel_remarks=adjustment.diesel_remarks,
            diesel_other_adjustment=adjustment.diesel_other_adjustment,
            other_remarks=adjustment.other_remarks,
            effective_trip_count=effective,
            net_diesel_consumption=net_consumption,
            per_trip_diesel_average=round(net_consumption / max(1, len(members)), 3),
            diesel_rate=rate,
            diesel_cost=round(net_consumption * rate, 2),
            flat_fee=flat_fee,
            per_trip_fee=per_trip_fee,
            total_payable=flat_fee + per_trip_fee,
            warnings=warnings,
            records=views,
        )
