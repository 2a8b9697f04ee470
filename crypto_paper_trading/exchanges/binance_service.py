"""Shared Binance client management for market data and symbol metadata."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from binance import AsyncClient, BinanceSocketManager
from binance.exceptions import BinanceAPIException, BinanceRequestException

from ..config import BinanceConfig
from ..utils import async_retry

logger = logging.getLogger(__name__)

_TRADING_STATUS = 'TRADING'


class BinanceService:
    """Lazily instantiates the Binance AsyncClient and socket manager.

    Only public endpoints are used: the ticker streams and exchange info.
    """

    def __init__(self, config: BinanceConfig) -> None:
        self._config = config
        self._client: Optional[AsyncClient] = None
        self._socket_manager: Optional[BinanceSocketManager] = None
        self._lock = asyncio.Lock()

    @property
    def config(self) -> BinanceConfig:
        return self._config

    async def client(self) -> AsyncClient:
        async with self._lock:
            if self._client is None:
                self._client = await AsyncClient.create(
                    api_key=self._config.api_key or None,
                    api_secret=self._config.api_secret or None,
                    testnet=self._config.network == 'testnet',
                    requests_params={'timeout': self._config.request_timeout},
                )
            return self._client

    async def socket_manager(self) -> BinanceSocketManager:
        client = await self.client()
        async with self._lock:
            if self._socket_manager is None:
                self._socket_manager = BinanceSocketManager(client)
            return self._socket_manager

    @async_retry(retries=3, delay=1.0, exceptions=(BinanceAPIException, BinanceRequestException, OSError))
    async def _exchange_symbols(self) -> Dict[str, str]:
        client = await self.client()
        info = await client.get_exchange_info()
        return {entry['symbol']: entry.get('status', '') for entry in info.get('symbols', [])}

    async def tradable_symbols(self, symbols: Iterable[str]) -> List[str]:
        """Return the subset of ``symbols`` currently open for trading."""
        requested = [symbol.upper() for symbol in symbols]
        statuses = await self._exchange_symbols()
        tradable = [symbol for symbol in requested if statuses.get(symbol) == _TRADING_STATUS]
        skipped = sorted(set(requested) - set(tradable))
        if skipped:
            logger.warning('Skipping symbols that are not tradable: %s', ', '.join(skipped))
        return tradable

    async def close(self) -> None:
        async with self._lock:
            self._socket_manager = None
            if self._client is not None:
                await self._client.close_connection()
                self._client = None


__all__ = ['BinanceService', 'BinanceAPIException', 'BinanceRequestException']
