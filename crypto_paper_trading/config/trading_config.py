"""Trading thresholds and engine tuning."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping

from .config import Settings

_ENV_PREFIX = 'TRADING_'

# Overrides applied on top of the live defaults for the looser test mode.
_TEST_MODE_OVERRIDES: Dict[str, Any] = {
    'buy_threshold': -1.0,
    'sell_threshold': 2.0,
    'rsi_oversold': 40.0,
    'rsi_overbought': 65.0,
    'min_buy_score': 5.5,
    'strong_buy_score': 7.5,
    'weak_sell_score': 6.5,
    'take_profit_pct': 3.0,
    'weak_exit_min_profit_pct': 0.5,
    'max_coins_to_trade': 8,
    'cooldown_seconds': 120.0,
}


@dataclass(frozen=True)
class TradingConfig:
    """Every tunable used by the signal pipeline.

    Percent values (thresholds, profit targets, stop loss) are expressed in
    percent, e.g. ``-2.0`` for a 2% drop. Ratios are fractions of 1.
    """

    # signal thresholds
    buy_threshold: float = -2.0
    sell_threshold: float = 3.0
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    min_buy_score: float = 7.0
    strong_buy_score: float = 9.0
    weak_sell_score: float = 6.0
    stop_loss_pct: float = -6.0
    take_profit_pct: float = 5.0
    profit_target_1: float = 3.0
    profit_target_2: float = 5.0
    profit_target_3: float = 8.0
    weak_exit_min_profit_pct: float = 1.0

    # composite score
    technical_weight: float = 0.7
    sentiment_weight: float = 0.3
    momentum_weight: float = 0.0

    # allocation
    max_coins_to_trade: int = 4
    reserve_cash_ratio: float = 0.25

    # caches and timers, in seconds
    cooldown_seconds: float = 300.0
    result_cache_seconds: float = 30.0
    sweep_interval_seconds: float = 300.0
    status_interval_seconds: float = 120.0
    sentiment_cache_seconds: float = 600.0
    reconnect_delay: float = 5.0

    # ledger
    initial_capital: float = 1_840_000.0
    min_trade_amount: float = 5_000.0

    # pipeline
    max_concurrency: int = 4
    queue_size: int = 100
    history_capacity: int = 100
    min_history: int = 20

    def __post_init__(self) -> None:
        if not 0.0 <= self.reserve_cash_ratio <= 1.0:
            raise ValueError('reserve_cash_ratio must be within [0, 1]')
        if not 0.0 <= self.rsi_oversold < self.rsi_overbought <= 100.0:
            raise ValueError('RSI thresholds must satisfy 0 <= oversold < overbought <= 100')
        if self.buy_threshold > 0:
            raise ValueError('buy_threshold must be zero or negative')
        if self.sell_threshold < 0:
            raise ValueError('sell_threshold must be zero or positive')
        for name in ('min_buy_score', 'strong_buy_score', 'weak_sell_score'):
            value = getattr(self, name)
            if not 0.0 <= value <= 10.0:
                raise ValueError(f'{name} must be within [0, 10]')
        if self.strong_buy_score < self.min_buy_score:
            raise ValueError('strong_buy_score must not be below min_buy_score')
        if self.stop_loss_pct >= 0:
            raise ValueError('stop_loss_pct must be negative')
        if not 0 < self.profit_target_1 <= self.profit_target_2 <= self.profit_target_3:
            raise ValueError('profit targets must be positive and ascending')
        if self.take_profit_pct <= 0:
            raise ValueError('take_profit_pct must be positive')
        for name in ('technical_weight', 'sentiment_weight'):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ValueError(f'{name} must be within [0, 1]')
        if not math.isclose(self.technical_weight + self.sentiment_weight, 1.0, abs_tol=1e-6):
            raise ValueError('technical_weight and sentiment_weight must sum to 1')
        if self.max_coins_to_trade < 1:
            raise ValueError('max_coins_to_trade must be at least 1')
        for name in (
            'cooldown_seconds',
            'result_cache_seconds',
            'sweep_interval_seconds',
            'status_interval_seconds',
            'sentiment_cache_seconds',
            'reconnect_delay',
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f'{name} must be positive')
        if self.initial_capital <= 0:
            raise ValueError('initial_capital must be positive')
        if self.min_trade_amount < 0:
            raise ValueError('min_trade_amount must not be negative')
        if self.max_concurrency < 1 or self.queue_size < 1:
            raise ValueError('max_concurrency and queue_size must be at least 1')
        if not 0 < self.min_history <= self.history_capacity:
            raise ValueError('min_history must be positive and fit in history_capacity')

    @classmethod
    def preset(cls, mode: str = 'live', **overrides: Any) -> 'TradingConfig':
        if mode == 'live':
            base: Dict[str, Any] = {}
        elif mode == 'test':
            base = dict(_TEST_MODE_OVERRIDES)
        else:
            raise ValueError(f'Unsupported trading mode: {mode}')
        base.update(overrides)
        return cls(**base)

    @classmethod
    def from_env(
        cls,
        settings: Settings,
        environ: Mapping[str, str] | None = None,
    ) -> 'TradingConfig':
        """Build the preset for ``settings.trading_mode`` and apply ``TRADING_*`` overrides."""
        env = environ if environ is not None else (settings.env or os.environ)
        overrides: Dict[str, Any] = {}
        for spec in fields(cls):
            raw = env.get(f'{_ENV_PREFIX}{spec.name.upper()}')
            if raw is None:
                continue
            caster = int if spec.type in ('int', int) else float
            try:
                overrides[spec.name] = caster(raw)
            except ValueError as exc:
                raise ValueError(f'Invalid value for {_ENV_PREFIX}{spec.name.upper()}: {raw!r}') from exc
        return cls.preset(settings.trading_mode, **overrides)

    def with_overrides(self, **overrides: Any) -> 'TradingConfig':
        return replace(self, **overrides)


__all__ = ['TradingConfig']
