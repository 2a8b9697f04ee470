"""Tests for :mod:`crypto_paper_trading.exchanges.binance_service` and the retry helper."""

from __future__ import annotations

import asyncio

import pytest

from crypto_paper_trading.config import BinanceConfig
from crypto_paper_trading.exchanges import BinanceService
from crypto_paper_trading.utils import async_retry


class StubAsyncClient:
    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls = 0
        self.closed = False

    async def get_exchange_info(self) -> dict:
        self.calls += 1
        if self.calls <= self.failures:
            raise OSError('temporary failure')
        return {
            'symbols': [
                {'symbol': 'BTCUSDT', 'status': 'TRADING'},
                {'symbol': 'ETHUSDT', 'status': 'TRADING'},
                {'symbol': 'LUNAUSDT', 'status': 'BREAK'},
            ]
        }

    async def close_connection(self) -> None:
        self.closed = True


def _service(client: StubAsyncClient) -> BinanceService:
    service = BinanceService(BinanceConfig())
    service._client = client
    return service


def test_tradable_symbols_filters_on_exchange_status(monkeypatch) -> None:
    monkeypatch.setattr(asyncio, 'sleep', _no_sleep)
    client = StubAsyncClient(failures=1)
    service = _service(client)

    async def scenario():
        symbols = await service.tradable_symbols(['btcusdt', 'LUNAUSDT', 'FOOUSDT', 'ETHUSDT'])
        await service.close()
        return symbols

    assert asyncio.run(scenario()) == ['BTCUSDT', 'ETHUSDT']
    assert client.calls == 2
    assert client.closed is True


def test_async_retry_gives_up_after_retries(monkeypatch) -> None:
    monkeypatch.setattr(asyncio, 'sleep', _no_sleep)
    attempts = []

    @async_retry(retries=3, delay=0.1, exceptions=(ValueError,))
    async def flaky() -> None:
        attempts.append(1)
        raise ValueError('nope')

    with pytest.raises(ValueError):
        asyncio.run(flaky())
    assert len(attempts) == 3


async def _no_sleep(delay: float) -> None:
    return None
