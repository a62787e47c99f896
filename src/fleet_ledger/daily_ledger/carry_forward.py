import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, Optional, Set, Tuple

from src.fleet_ledger.daily_ledger.schemas import BatchAdjustment

logger = logging.getLogger(__name__)


class CarryForwardCalculator:
    """Diesel stock carried into a day from the truck's previous working day.

    A working day is any date on which the truck has at least one trip
    record, whatever its transaction type. Calendar gaps (Sundays, idle
    days) are skipped. Results are memoised per truck for the lifetime of
    one calculator; call ``invalidate`` after the inputs change.
    """

    def __init__(
        self,
        working_days: Iterable[Tuple[str, date]],
        adjustments: Iterable[BatchAdjustment],
    ):
        self._working_days: Dict[str, Set[date]] = defaultdict(set)
        for truck_id, day in working_days:
            self._working_days[truck_id].add(day)

        self._stock: Dict[Tuple[str, date], float] = defaultdict(float)
        for adjustment in adjustments:
            self._stock[(adjustment.truck_id, adjustment.production_date)] += (
                adjustment.diesel_stock_adjustment or 0.0
            )

        self._cache: Dict[str, Dict[date, float]] = {}

    def prior_working_day(self, truck_id: str, day: date) -> Optional[date]:
        earlier = [d for d in self._working_days.get(truck_id, ()) if d < day]
        return max(earlier) if earlier else None

    def carry_forward(self, truck_id: str, day: date) -> float:
        truck_cache = self._cache.setdefault(truck_id, {})
        if day in truck_cache:
            return truck_cache[day]

        prior = self.prior_working_day(truck_id, day)
        # Only surplus stock is carried; a shortfall stays on its own day
        value = max(0.0, self._stock.get((truck_id, prior), 0.0)) if prior else 0.0
        if prior:
            logger.debug(
                "Carry-in for %s on %s from %s: %s L", truck_id, day, prior, value
            )
        truck_cache[day] = value
        return value

    def invalidate(self, truck_id: Optional[str] = None) -> None:
        if truck_id is None:
            self._cache.clear()
        else:
            self._cache.pop(truck_id, None)
