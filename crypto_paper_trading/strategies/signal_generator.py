"""Composite scoring and rule evaluation for incoming ticks."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Sequence, Tuple

from ..config import TradingConfig
from ..data import MarketTick
from ..utils import clamp
from .rules import DEFAULT_RULES, RuleInput, TradingRule
from .sentiment import SentimentScore
from .signal import PortfolioContext, Signal, SignalDecision
from .technical import TechnicalScore, strength_label

logger = logging.getLogger(__name__)

ALIGNMENT_MULTIPLIERS = {
    ('very_strong', 'bullish'): 1.3,
    ('strong', 'bullish'): 1.2,
    ('strong', 'bearish'): 0.8,
    ('very_strong', 'bearish'): 0.7,
}


class SignalCache:
    """Cooldown timestamps and short-lived evaluation results per symbol.

    Both maps are swept explicitly by the owner; nothing here runs on a timer.
    """

    def __init__(
        self,
        cooldown_seconds: float,
        result_ttl_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if cooldown_seconds < 0 or result_ttl_seconds < 0:
            raise ValueError('cache durations must be non-negative')
        self.cooldown_seconds = cooldown_seconds
        self.result_ttl_seconds = result_ttl_seconds
        self._clock = clock
        self._cooldowns: Dict[str, float] = {}
        self._results: Dict[str, Tuple[float, float, SignalDecision]] = {}

    def in_cooldown(self, symbol: str, now: Optional[float] = None) -> bool:
        started = self._cooldowns.get(symbol)
        if started is None:
            return False
        now = self._clock() if now is None else now
        return now - started < self.cooldown_seconds

    def start_cooldown(self, symbol: str, now: Optional[float] = None) -> None:
        self._cooldowns[symbol] = self._clock() if now is None else now

    def cached(self, symbol: str, price: float, now: Optional[float] = None) -> Optional[SignalDecision]:
        entry = self._results.get(symbol)
        if entry is None:
            return None
        stored_at, stored_price, decision = entry
        now = self._clock() if now is None else now
        if stored_price != price or now - stored_at >= self.result_ttl_seconds:
            return None
        return decision

    def store(self, decision: SignalDecision, price: float, now: Optional[float] = None) -> None:
        self._results[decision.symbol] = (self._clock() if now is None else now, price, decision)

    def sweep(self) -> int:
        now = self._clock()
        expired_cooldowns = [
            symbol for symbol, started in self._cooldowns.items()
            if now - started >= self.cooldown_seconds
        ]
        expired_results = [
            symbol for symbol, (stored_at, _, _) in self._results.items()
            if now - stored_at >= self.result_ttl_seconds
        ]
        for symbol in expired_cooldowns:
            del self._cooldowns[symbol]
        for symbol in expired_results:
            del self._results[symbol]
        return len(expired_cooldowns) + len(expired_results)

    def clear(self) -> None:
        self._cooldowns.clear()
        self._results.clear()

    def __len__(self) -> int:
        return len(self._cooldowns) + len(self._results)


def composite_score(
    technical: TechnicalScore,
    sentiment: SentimentScore,
    config: TradingConfig,
) -> float:
    score = (
        technical.total_score * config.technical_weight
        + sentiment.score * config.sentiment_weight
        + config.momentum_weight * (technical.trend_score - 5.0)
    )
    score *= ALIGNMENT_MULTIPLIERS.get((sentiment.strength, sentiment.trend), 1.0)
    return round(clamp(score), 2)


class SignalGenerator:
    """Decides BUY, SELL or nothing for a tick. Never touches the ledger."""

    def __init__(
        self,
        config: TradingConfig,
        cache: Optional[SignalCache] = None,
        clock: Callable[[], float] = time.time,
        rules: Sequence[TradingRule] = DEFAULT_RULES,
    ) -> None:
        self.config = config
        self._clock = clock
        self.cache = cache if cache is not None else SignalCache(
            config.cooldown_seconds,
            config.result_cache_seconds,
            clock=clock,
        )
        self.rules = tuple(rules)

    def evaluate(
        self,
        tick: MarketTick,
        technical: TechnicalScore,
        sentiment: SentimentScore,
        context: PortfolioContext,
    ) -> SignalDecision:
        now = self._clock()
        symbol = tick.symbol

        if self.cache.in_cooldown(symbol, now):
            return SignalDecision(symbol=symbol, signal=None, reason='cooldown')

        cached = self.cache.cached(symbol, tick.price, now)
        if cached is not None:
            return SignalDecision(
                symbol=symbol,
                signal=cached.signal,
                reason=cached.reason,
                composite_score=cached.composite_score,
                cached=True,
            )

        score = composite_score(technical, sentiment, self.config)
        data = RuleInput(
            tick=tick,
            technical=technical,
            composite_score=score,
            composite_strength=strength_label(score),
            context=context,
            config=self.config,
        )

        for rule in self.rules:
            match = rule.evaluate(data)
            if match is None:
                continue
            signal = Signal(
                symbol=symbol,
                type=match.type,
                price=tick.price,
                total_score=score,
                position_size_multiplier=match.multiplier,
                reason=match.reason,
                timestamp=now,
            )
            decision = SignalDecision(
                symbol=symbol,
                signal=signal,
                reason=match.rule,
                composite_score=score,
            )
            self.cache.start_cooldown(symbol, now)
            self.cache.store(decision, tick.price, now)
            logger.debug('%s %s via %s (score %.2f)', symbol, match.type.value, match.rule, score)
            return decision

        decision = SignalDecision(symbol=symbol, signal=None, reason='no_match', composite_score=score)
        self.cache.store(decision, tick.price, now)
        return decision

    def sweep(self) -> int:
        return self.cache.sweep()

    def reset(self) -> None:
        self.cache.clear()


__all__ = [
    'ALIGNMENT_MULTIPLIERS',
    'SignalCache',
    'SignalGenerator',
    'composite_score',
]
