"""Ordered trading rules evaluated by the signal generator.

Each rule looks at one :class:`RuleInput` and either declines (``None``) or
returns a complete :class:`RuleMatch` carrying its own size multiplier. The
generator takes the first match in :data:`DEFAULT_RULES` order, so the stop
loss always wins over every other rule.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import TradingConfig
from ..data import MarketTick
from .signal import PortfolioContext, SignalType
from .technical import TechnicalScore, strength_at_least


@dataclass(frozen=True)
class RuleInput:
    tick: MarketTick
    technical: TechnicalScore
    composite_score: float
    composite_strength: str
    context: PortfolioContext
    config: TradingConfig


@dataclass(frozen=True)
class RuleMatch:
    rule: str
    type: SignalType
    multiplier: float
    reason: str


def buy_multiplier(
    composite_score: float,
    composite_strength: str,
    config: TradingConfig,
    rsi: Optional[float] = None,
) -> float:
    if composite_score >= config.strong_buy_score:
        return 1.5
    if strength_at_least(composite_strength, 'moderate'):
        return 1.0
    # an oversold dip lifts a weak entry to the moderate size
    if rsi is not None and rsi <= config.rsi_oversold:
        return 1.0
    return 0.7


def sell_multiplier(profit_rate: float, config: TradingConfig) -> float:
    if profit_rate >= config.profit_target_3:
        return 1.0
    if profit_rate >= config.profit_target_2:
        return 0.8
    if profit_rate >= config.profit_target_1:
        return 0.5
    return 0.3


class TradingRule(abc.ABC):
    name: str = 'rule'

    @abc.abstractmethod
    def evaluate(self, data: RuleInput) -> Optional[RuleMatch]:
        """Return a match or ``None``."""


class StopLossRule(TradingRule):
    name = 'stop_loss'

    def evaluate(self, data: RuleInput) -> Optional[RuleMatch]:
        context = data.context
        if not context.is_held or context.profit_rate > data.config.stop_loss_pct:
            return None
        return RuleMatch(
            rule=self.name,
            type=SignalType.SELL,
            multiplier=1.0,
            reason=f'stop loss at {context.profit_rate:.2f}% (limit {data.config.stop_loss_pct:.2f}%)',
        )


class BuyRule(TradingRule):
    name = 'buy'

    def evaluate(self, data: RuleInput) -> Optional[RuleMatch]:
        config = data.config
        context = data.context
        plan = context.allocation
        if plan.is_empty or data.tick.symbol not in plan.target_symbols:
            return None
        if data.tick.change_percent > config.buy_threshold:
            return None
        if data.composite_score < config.min_buy_score:
            return None
        if context.cash_ratio <= plan.reserve_cash_ratio:
            return None
        if context.position_ratio >= plan.max_position_size:
            return None
        return RuleMatch(
            rule=self.name,
            type=SignalType.BUY,
            multiplier=buy_multiplier(
                data.composite_score,
                data.composite_strength,
                config,
                rsi=data.technical.rsi,
            ),
            reason=(
                f'dip {data.tick.change_percent:.2f}% with score {data.composite_score:.2f} '
                f'({data.composite_strength})'
            ),
        )


class MomentumSellRule(TradingRule):
    name = 'momentum_sell'

    def evaluate(self, data: RuleInput) -> Optional[RuleMatch]:
        config = data.config
        if not data.context.is_held:
            return None
        if data.tick.change_percent < config.sell_threshold or data.composite_score >= config.weak_sell_score:
            return None
        return RuleMatch(
            rule=self.name,
            type=SignalType.SELL,
            multiplier=sell_multiplier(data.context.profit_rate, config),
            reason=f'rally {data.tick.change_percent:.2f}% with weak score {data.composite_score:.2f}',
        )


class TakeProfitRule(TradingRule):
    name = 'take_profit'

    def evaluate(self, data: RuleInput) -> Optional[RuleMatch]:
        config = data.config
        context = data.context
        if not context.is_held:
            return None
        if context.profit_rate < config.take_profit_pct or data.technical.rsi < config.rsi_overbought:
            return None
        return RuleMatch(
            rule=self.name,
            type=SignalType.SELL,
            multiplier=sell_multiplier(context.profit_rate, config),
            reason=f'take profit at {context.profit_rate:.2f}% with RSI {data.technical.rsi:.1f}',
        )


class WeakSignalExitRule(TradingRule):
    name = 'weak_exit'

    def evaluate(self, data: RuleInput) -> Optional[RuleMatch]:
        context = data.context
        if not context.is_held or data.composite_strength != 'very_weak':
            return None
        if context.profit_rate < data.config.weak_exit_min_profit_pct:
            return None
        return RuleMatch(
            rule=self.name,
            type=SignalType.SELL,
            multiplier=sell_multiplier(context.profit_rate, data.config),
            reason=f'very weak score {data.composite_score:.2f} while up {context.profit_rate:.2f}%',
        )


DEFAULT_RULES: Tuple[TradingRule, ...] = (
    StopLossRule(),
    BuyRule(),
    MomentumSellRule(),
    TakeProfitRule(),
    WeakSignalExitRule(),
)


__all__ = [
    'BuyRule',
    'DEFAULT_RULES',
    'MomentumSellRule',
    'RuleInput',
    'RuleMatch',
    'StopLossRule',
    'TakeProfitRule',
    'TradingRule',
    'WeakSignalExitRule',
    'buy_multiplier',
    'sell_multiplier',
]
