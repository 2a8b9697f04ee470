"""Tests for :mod:`crypto_paper_trading.risk.allocator`."""

import pytest

from crypto_paper_trading.risk import DynamicAllocator


def test_empty_symbol_set_yields_flagged_empty_plan() -> None:
    plan = DynamicAllocator().compute_allocation([], max_symbols=4, reserve_cash_ratio=0.25)

    assert plan.is_empty is True
    assert plan.active_symbol_count == 0
    assert plan.max_position_size == 0.0
    assert plan.target_symbols == ()


def test_investable_fraction_split_evenly() -> None:
    plan = DynamicAllocator().compute_allocation(['BTCUSDT', 'ETHUSDT', 'XRPUSDT'], 4, 0.25)

    assert plan.active_symbol_count == 3
    assert plan.max_position_size == pytest.approx(0.25)
    assert plan.target_symbols == ('BTCUSDT', 'ETHUSDT', 'XRPUSDT')


def test_symbol_set_truncated_to_max_symbols() -> None:
    symbols = ['A', 'B', 'C', 'D', 'E', 'F']

    plan = DynamicAllocator().compute_allocation(symbols, 4, 0.2)

    assert plan.target_symbols == ('A', 'B', 'C', 'D')
    assert plan.max_position_size == pytest.approx(0.2)


def test_zero_max_symbols_is_empty_not_error() -> None:
    plan = DynamicAllocator().compute_allocation(['BTCUSDT'], 0, 0.25)

    assert plan.is_empty is True


@pytest.mark.parametrize(('max_symbols', 'ratio'), [(4, -0.1), (4, 1.5), (-1, 0.25)])
def test_invalid_configuration_raises(max_symbols: int, ratio: float) -> None:
    with pytest.raises(ValueError):
        DynamicAllocator().compute_allocation(['BTCUSDT'], max_symbols, ratio)
