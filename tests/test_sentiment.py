"""Tests for :mod:`crypto_paper_trading.strategies.sentiment`."""

import asyncio

from crypto_paper_trading.strategies import CachedSentimentProvider, SentimentScore


class CountingProvider:
    def __init__(self, fail: bool = False) -> None:
        self.calls = 0
        self.fail = fail

    async def get_sentiment(self, symbol: str) -> SentimentScore:
        self.calls += 1
        if self.fail:
            raise TimeoutError('sentiment backend unavailable')
        return SentimentScore(score=12.0, strength='strong', trend='bullish')


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_results_cached_until_ttl_expires() -> None:
    async def scenario() -> None:
        inner = CountingProvider()
        clock = FakeClock()
        provider = CachedSentimentProvider(inner, ttl=600, clock=clock)

        first = await provider.get_sentiment('BTCUSDT')
        clock.now = 599
        await provider.get_sentiment('BTCUSDT')
        assert inner.calls == 1
        clock.now = 600
        await provider.get_sentiment('BTCUSDT')
        assert inner.calls == 2
        assert first.score == 10.0
        assert first.trend == 'bullish'

    asyncio.run(scenario())


def test_failure_returns_neutral_and_is_not_cached() -> None:
    async def scenario() -> None:
        inner = CountingProvider(fail=True)
        provider = CachedSentimentProvider(inner, clock=FakeClock())

        first = await provider.get_sentiment('BTCUSDT')
        second = await provider.get_sentiment('BTCUSDT')

        assert first == SentimentScore.neutral()
        assert second == SentimentScore.neutral()
        assert inner.calls == 2

    asyncio.run(scenario())
