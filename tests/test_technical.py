"""Tests for price history buffers and :mod:`crypto_paper_trading.strategies.technical`."""

import pytest

from crypto_paper_trading.data import PriceHistoryStore
from crypto_paper_trading.strategies import TechnicalIndicatorCalculator
from crypto_paper_trading.strategies.technical import (
    moving_average_score,
    rsi_score,
    strength_label,
    trend_score,
    volume_score,
)
from crypto_paper_trading.utils import relative_strength_index


def test_history_evicts_oldest_beyond_capacity() -> None:
    history = PriceHistoryStore(capacity=3)
    for price in (1.0, 2.0, 3.0, 4.0):
        length = history.record_price('BTCUSDT', price)

    assert length == 3
    assert history.prices('BTCUSDT') == [2.0, 3.0, 4.0]
    assert history.length('ETHUSDT') == 0


def test_history_buffers_are_per_symbol() -> None:
    history = PriceHistoryStore()
    history.record_price('BTCUSDT', 100.0)
    history.record_price('ETHUSDT', 10.0)

    assert history.prices('BTCUSDT') == [100.0]
    assert sorted(history.symbols()) == ['BTCUSDT', 'ETHUSDT']
    history.clear()
    assert history.symbols() == []


@pytest.mark.parametrize('length', [0, 1, 14, 19])
def test_short_history_scores_neutral(length: int) -> None:
    history = PriceHistoryStore()
    for step in range(length):
        history.record_price('SYM', 100.0 + step)
    calculator = TechnicalIndicatorCalculator(history)

    score = calculator.compute_score('SYM', change_percent=-5.0, volume=100.0)

    assert score.total_score == pytest.approx(5.0)
    assert score.strength == 'weak'
    assert score.sufficient_data is False


def test_min_length_must_cover_rsi_period() -> None:
    with pytest.raises(ValueError):
        TechnicalIndicatorCalculator(PriceHistoryStore(), min_length=14)


@pytest.mark.parametrize(
    ('rsi', 'expected'),
    [(20.0, 10.0), (25.0, 10.0), (30.0, 9.0), (35.0, 7.0), (40.0, 7.0), (50.0, 5.0), (60.0, 3.0), (70.0, 1.0), (75.0, 0.0)],
)
def test_rsi_buckets_are_inclusive(rsi: float, expected: float) -> None:
    assert rsi_score(rsi) == expected


def test_rsi_is_100_without_losses() -> None:
    assert relative_strength_index([float(p) for p in range(1, 17)]) == pytest.approx(100.0)
    assert relative_strength_index([1.0] * 10) is None


def test_rsi_balances_gains_and_losses() -> None:
    prices = [100.0, 101.0] * 8
    assert relative_strength_index(prices[:15]) == pytest.approx(50.0)


def test_moving_average_score_needs_long_window() -> None:
    assert moving_average_score([100.0] * 59) == pytest.approx(5.0)
    rising = [float(p) for p in range(1, 61)]
    falling = list(reversed(rising))
    assert moving_average_score(rising) == pytest.approx(8.0)
    assert moving_average_score(falling) == pytest.approx(2.0)


@pytest.mark.parametrize(
    ('change', 'volume', 'expected'),
    [(6.0, 1.0, 9.0), (-3.0, 1.0, 8.0), (1.5, 1.0, 7.0), (0.5, 1.0, 5.0), (0.1, 1.0, 3.0), (6.0, 0.0, 5.0)],
)
def test_volume_score_buckets(change: float, volume: float, expected: float) -> None:
    assert volume_score(change, volume) == expected


def test_trend_score_follows_five_period_move() -> None:
    assert trend_score([100.0, 100, 100, 100, 100, 112.0]) == pytest.approx(8.0)
    assert trend_score([100.0, 100, 100, 100, 100, 94.0]) == pytest.approx(3.0)
    assert trend_score([100.0, 100, 100, 100, 100, 101.0]) == pytest.approx(5.5)
    assert trend_score([100.0, 101.0]) == pytest.approx(5.0)


def test_full_history_produces_bounded_score() -> None:
    history = PriceHistoryStore()
    prices = [100.0 - step * 0.5 for step in range(30)]
    for price in prices:
        history.record_price('SYM', price)
    calculator = TechnicalIndicatorCalculator(history)

    score = calculator.compute_score('SYM', change_percent=-3.0, volume=50.0)

    assert score.sufficient_data is True
    # straight decline: RSI 0, MA neutral below 60 prices, -2.8% trend, 3% move
    assert score.rsi == pytest.approx(0.0)
    assert score.rsi_score == 10.0
    assert score.ma_score == 5.0
    assert score.volume_score == 8.0
    assert score.trend_score == 4.0
    assert score.total_score == pytest.approx(0.35 * 10 + 0.25 * 5 + 0.20 * 8 + 0.20 * 4.0)
    assert score.strength == strength_label(score.total_score)
