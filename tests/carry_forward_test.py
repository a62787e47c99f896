from datetime import date

from src.fleet_ledger.daily_ledger.carry_forward import CarryForwardCalculator
from src.fleet_ledger.trip_records.schemas import TransactionType
from tests.mocks.factories import make_adjustment

MON = date(2024, 3, 4)
THU = date(2024, 3, 7)


def test_nearest_prior_working_day_is_used():
    calc = CarryForwardCalculator(
        working_days=[("T1", MON), ("T1", THU)],
        adjustments=[make_adjustment(MON, stock=40.0)],
    )
    assert calc.prior_working_day("T1", THU) == MON
    assert calc.carry_forward("T1", THU) == 40.0


def test_first_working_day_has_no_carry_in():
    calc = CarryForwardCalculator(
        working_days=[("T1", MON)], adjustments=[make_adjustment(MON, stock=40.0)]
    )
    assert calc.carry_forward("T1", MON) == 0.0


def test_prior_day_without_stock_gives_zero():
    tue = date(2024, 3, 5)
    calc = CarryForwardCalculator(
        working_days=[("T1", MON), ("T1", tue), ("T1", THU)],
        adjustments=[make_adjustment(MON, stock=40.0)],
    )
    assert calc.carry_forward("T1", THU) == 0.0


def test_stock_is_summed_across_transaction_types():
    calc = CarryForwardCalculator(
        working_days=[("T1", MON), ("T1", THU)],
        adjustments=[
            make_adjustment(MON, stock=25.0),
            make_adjustment(
                MON, transaction_type=TransactionType.PURCHASE, stock=15.0
            ),
        ],
    )
    assert calc.carry_forward("T1", THU) == 40.0


def test_trucks_are_independent():
    calc = CarryForwardCalculator(
        working_days=[("T1", MON), ("T2", THU)],
        adjustments=[make_adjustment(MON, stock=40.0)],
    )
    assert calc.carry_forward("T2", THU) == 0.0


def test_results_are_memoised_until_invalidated():
    calc = CarryForwardCalculator(
        working_days=[("T1", MON), ("T1", THU)],
        adjustments=[make_adjustment(MON, stock=40.0)],
    )
    assert calc.carry_forward("T1", THU) == 40.0

    calc._stock[("T1", MON)] = 10.0
    assert calc.carry_forward("T1", THU) == 40.0

    calc.invalidate("T1")
    assert calc.carry_forward("T1", THU) == 10.0


def test_negative_stock_is_not_carried():
    calc = CarryForwardCalculator(
        working_days=[("T1", MON), ("T1", THU)],
        adjustments=[make_adjustment(MON, stock=-15.0)],
    )
    assert calc.carry_forward("T1", THU) == 0.0
