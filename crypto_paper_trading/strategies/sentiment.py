"""Sentiment scores consumed from an external provider."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Protocol, Tuple

from ..utils import clamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentimentScore:
    score: float
    strength: str
    trend: str

    @classmethod
    def neutral(cls) -> 'SentimentScore':
        return cls(score=5.0, strength='neutral', trend='neutral')


class SentimentProvider(Protocol):
    async def get_sentiment(self, symbol: str) -> SentimentScore:
        ...


class NeutralSentimentProvider:
    """Provider used when no sentiment source is wired in."""

    async def get_sentiment(self, symbol: str) -> SentimentScore:
        return SentimentScore.neutral()


class CachedSentimentProvider:
    """Caches another provider per symbol and hides its failures.

    A failing lookup yields the neutral score, which downstream treats as an
    ordinary result. Failures are not cached so the next tick retries.
    """

    def __init__(
        self,
        inner: SentimentProvider,
        ttl: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._inner = inner
        self._ttl = ttl
        self._clock = clock
        self._cache: Dict[str, Tuple[float, SentimentScore]] = {}

    async def get_sentiment(self, symbol: str) -> SentimentScore:
        now = self._clock()
        cached = self._cache.get(symbol)
        if cached is not None and now - cached[0] < self._ttl:
            return cached[1]
        try:
            result = await self._inner.get_sentiment(symbol)
        except Exception as error:  # provider is external; any failure means neutral
            logger.warning('Sentiment lookup for %s failed, using neutral: %s', symbol, error)
            return SentimentScore.neutral()
        result = SentimentScore(
            score=clamp(float(result.score)),
            strength=result.strength,
            trend=result.trend,
        )
        self._cache[symbol] = (now, result)
        return result


__all__ = [
    'CachedSentimentProvider',
    'NeutralSentimentProvider',
    'SentimentProvider',
    'SentimentScore',
]
