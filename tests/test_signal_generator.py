"""Tests for :mod:`crypto_paper_trading.strategies.signal_generator` and its rules."""

from __future__ import annotations

from typing import Optional

import pytest

from crypto_paper_trading.config import TradingConfig
from crypto_paper_trading.data import MarketTick
from crypto_paper_trading.risk import AllocationPlan, Holding
from crypto_paper_trading.strategies import (
    PortfolioContext,
    SentimentScore,
    SignalCache,
    SignalGenerator,
    SignalType,
    TechnicalScore,
    composite_score,
)
from crypto_paper_trading.strategies.technical import strength_label


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


PLAN = AllocationPlan(
    max_position_size=0.25,
    reserve_cash_ratio=0.25,
    active_symbol_count=3,
    target_symbols=('SYM', 'ETHUSDT', 'XRPUSDT'),
)


def _tick(price: float = 100.0, change: float = -3.0, symbol: str = 'SYM') -> MarketTick:
    return MarketTick(symbol=symbol, price=price, change_percent=change, volume=10.0, received_at=0.0)


def _technical(total: float, rsi: float = 50.0, trend: float = 5.0) -> TechnicalScore:
    return TechnicalScore(
        rsi=rsi,
        rsi_score=5.0,
        ma_score=5.0,
        volume_score=5.0,
        trend_score=trend,
        total_score=total,
        strength=strength_label(total),
    )


def _sentiment(score: float = 5.0, strength: str = 'neutral', trend: str = 'neutral') -> SentimentScore:
    return SentimentScore(score=score, strength=strength, trend=trend)


def _context(holding: Optional[Holding] = None, plan: AllocationPlan = PLAN) -> PortfolioContext:
    cash = 1_000_000.0
    total = cash + (holding.current_value if holding else 0.0)
    return PortfolioContext(cash_balance=cash, total_value=total, allocation=plan, holding=holding)


def _generator(clock: FakeClock, **overrides) -> SignalGenerator:
    return SignalGenerator(TradingConfig.preset('live', **overrides), clock=clock)


def test_composite_blends_weights() -> None:
    config = TradingConfig.preset('live')

    assert composite_score(_technical(8.0), _sentiment(6.0), config) == pytest.approx(7.4)


def test_composite_alignment_amplifies_and_clamps() -> None:
    config = TradingConfig.preset('live')

    bullish = composite_score(_technical(8.0), _sentiment(9.0, 'very_strong', 'bullish'), config)
    bearish = composite_score(_technical(8.0), _sentiment(9.0, 'strong', 'bearish'), config)

    assert bullish == pytest.approx(10.0)
    assert bearish == pytest.approx(8.3 * 0.8)


def test_momentum_weight_adds_trend_term() -> None:
    config = TradingConfig.preset('live', momentum_weight=0.5)

    score = composite_score(_technical(6.0, trend=8.0), _sentiment(6.0), config)

    assert score == pytest.approx(6.0 + 0.5 * 3.0)


def test_dip_with_strong_score_emits_buy() -> None:
    generator = _generator(FakeClock())

    decision = generator.evaluate(_tick(change=-3.0), _technical(8.0), _sentiment(8.0), _context())

    assert decision.accepted is True
    assert decision.reason == 'buy'
    assert decision.signal.type is SignalType.BUY
    assert decision.signal.position_size_multiplier == pytest.approx(1.0)
    assert decision.composite_score == pytest.approx(8.0)


@pytest.mark.parametrize(
    ('technical', 'sentiment', 'expected'),
    [
        (9.5, 9.5, 1.5),
        (7.0, 7.0, 1.0),
        (6.2, 6.2, 0.7),
    ],
)
def test_buy_multiplier_follows_strength(technical: float, sentiment: float, expected: float) -> None:
    generator = _generator(FakeClock(), min_buy_score=6.0, strong_buy_score=9.0)

    decision = generator.evaluate(_tick(), _technical(technical), _sentiment(sentiment), _context())

    assert decision.signal.type is SignalType.BUY
    assert decision.signal.position_size_multiplier == pytest.approx(expected)


@pytest.mark.parametrize(('rsi', 'expected'), [(28.0, 1.0), (30.0, 1.0), (31.0, 0.7)])
def test_oversold_rsi_lifts_weak_buy_size(rsi: float, expected: float) -> None:
    generator = _generator(FakeClock(), min_buy_score=6.0, rsi_oversold=30.0)

    decision = generator.evaluate(_tick(), _technical(6.2, rsi=rsi), _sentiment(6.2), _context())

    assert decision.signal.type is SignalType.BUY
    assert decision.signal.position_size_multiplier == pytest.approx(expected)


def test_buy_requires_symbol_in_allocation_plan() -> None:
    generator = _generator(FakeClock())
    empty = AllocationPlan.empty(0.25)

    outside = generator.evaluate(_tick(symbol='DOGEUSDT'), _technical(8.0), _sentiment(8.0), _context())
    no_plan = generator.evaluate(_tick(), _technical(8.0), _sentiment(8.0), _context(plan=empty))

    assert outside.accepted is False
    assert no_plan.accepted is False


def test_buy_blocked_when_position_already_at_target() -> None:
    generator = _generator(FakeClock())
    holding = Holding('SYM', quantity=5_000, avg_price=100.0, last_price=100.0)

    decision = generator.evaluate(_tick(), _technical(8.0), _sentiment(8.0), _context(holding))

    assert decision.accepted is False
    assert decision.reason == 'no_match'


def test_cooldown_suppresses_second_signal() -> None:
    clock = FakeClock()
    generator = _generator(clock, cooldown_seconds=300)

    first = generator.evaluate(_tick(price=100.0), _technical(8.0), _sentiment(8.0), _context())
    clock.now += 1
    second = generator.evaluate(_tick(price=99.0), _technical(8.0), _sentiment(8.0), _context())
    clock.now += 300
    third = generator.evaluate(_tick(price=98.0), _technical(8.0), _sentiment(8.0), _context())

    assert first.accepted is True
    assert second.accepted is False
    assert second.reason == 'cooldown'
    assert third.accepted is True


def test_stop_loss_wins_over_buy() -> None:
    generator = _generator(FakeClock())
    holding = Holding('SYM', quantity=10, avg_price=100.0, last_price=93.0)

    decision = generator.evaluate(_tick(price=93.0), _technical(8.0), _sentiment(8.0), _context(holding))

    assert decision.reason == 'stop_loss'
    assert decision.signal.type is SignalType.SELL
    assert decision.signal.position_size_multiplier == pytest.approx(1.0)


def test_momentum_sell_on_rally_with_weak_score() -> None:
    generator = _generator(FakeClock())
    holding = Holding('SYM', quantity=10, avg_price=100.0, last_price=104.0)

    decision = generator.evaluate(_tick(price=104.0, change=4.0), _technical(5.0), _sentiment(5.0), _context(holding))

    assert decision.reason == 'momentum_sell'
    # 4% profit sits in the first profit tier
    assert decision.signal.position_size_multiplier == pytest.approx(0.5)


def test_take_profit_when_overbought() -> None:
    generator = _generator(FakeClock())
    holding = Holding('SYM', quantity=10, avg_price=100.0, last_price=106.0)

    decision = generator.evaluate(
        _tick(price=106.0, change=1.0),
        _technical(7.0, rsi=75.0),
        _sentiment(7.0),
        _context(holding),
    )

    assert decision.reason == 'take_profit'
    assert decision.signal.position_size_multiplier == pytest.approx(0.8)


def test_weak_exit_with_small_profit() -> None:
    generator = _generator(FakeClock())
    holding = Holding('SYM', quantity=10, avg_price=100.0, last_price=101.5)

    decision = generator.evaluate(_tick(price=101.5, change=0.5), _technical(4.0), _sentiment(4.0), _context(holding))

    assert decision.reason == 'weak_exit'
    assert decision.signal.position_size_multiplier == pytest.approx(0.3)


def test_no_match_is_explicit_and_cached_for_same_price() -> None:
    clock = FakeClock()
    generator = _generator(clock)

    first = generator.evaluate(_tick(change=0.0), _technical(5.0), _sentiment(5.0), _context())
    clock.now += 5
    repeat = generator.evaluate(_tick(change=0.0), _technical(5.0), _sentiment(5.0), _context())
    moved = generator.evaluate(_tick(price=101.0, change=0.0), _technical(5.0), _sentiment(5.0), _context())

    assert first.accepted is False
    assert first.reason == 'no_match'
    assert first.cached is False
    assert repeat.cached is True
    assert moved.cached is False


def test_generator_keeps_injected_empty_cache() -> None:
    cache = SignalCache(cooldown_seconds=300, result_ttl_seconds=30, clock=FakeClock())

    generator = SignalGenerator(TradingConfig.preset('live'), cache=cache, clock=FakeClock())

    assert len(cache) == 0
    assert generator.cache is cache


def test_cache_sweep_drops_expired_entries() -> None:
    clock = FakeClock()
    cache = SignalCache(cooldown_seconds=300, result_ttl_seconds=30, clock=clock)
    generator = SignalGenerator(TradingConfig.preset('live'), cache=cache, clock=clock)
    generator.evaluate(_tick(), _technical(8.0), _sentiment(8.0), _context())
    assert len(cache) == 2

    clock.now += 31
    assert generator.sweep() == 1
    assert cache.in_cooldown('SYM') is True

    clock.now += 300
    assert generator.sweep() == 1
    assert len(cache) == 0
    assert cache.in_cooldown('SYM') is False
