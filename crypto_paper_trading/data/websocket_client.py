"""Binance ticker stream with a simulated fallback, and the reconnecting feed connector."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
import time
from typing import AsyncIterator, Awaitable, Callable, Dict, Iterable, List, Optional

from ..config import BinanceConfig
from ..exchanges import BinanceService
from .ticks import MalformedFrameError, MarketTick, decode_ticker_frame

logger = logging.getLogger(__name__)

TickHandler = Callable[[MarketTick], Awaitable[None]]


class WebSocketClient:
    """Yield raw ticker frames from Binance, or synthetic frames when no service is given."""

    def __init__(
        self,
        config: Optional[BinanceConfig] = None,
        service: Optional[BinanceService] = None,
        *,
        mock_interval: float = 1.0,
    ) -> None:
        self._config = config or (service.config if service else BinanceConfig())
        self._service = service
        self._mock_interval = mock_interval
        self._rng = random.Random(time.time())

    @property
    def simulated(self) -> bool:
        return self._service is None

    async def connect(self) -> None:
        if self._service is not None:
            await self._service.client()

    async def disconnect(self) -> None:
        if self._service is not None:
            await self._service.close()

    async def frames(self, symbols: Iterable[str]) -> AsyncIterator[dict]:
        if self._service is None:
            async for frame in self._mock_frames(symbols):
                yield frame
            return

        manager = await self._service.socket_manager()
        stream_names = [self._config.stream_name(symbol) for symbol in symbols]
        socket = manager.multiplex_socket(stream_names)
        async with socket as stream:
            while True:
                message = await stream.recv()
                if message is None:
                    continue
                if isinstance(message, dict) and message.get('e') == 'error':
                    raise ConnectionError(message.get('m') or 'websocket error')
                yield message

    async def _mock_frames(self, symbols: Iterable[str]) -> AsyncIterator[dict]:
        tracked = [symbol.upper() for symbol in symbols] or ['BTCUSDT']
        opens = {symbol: self._rng.uniform(10_000, 60_000) for symbol in tracked}
        prices = dict(opens)
        while True:
            await asyncio.sleep(self._mock_interval)
            symbol = self._rng.choice(tracked)
            prices[symbol] *= 1 + self._rng.gauss(0, 0.004)
            change = (prices[symbol] - opens[symbol]) / opens[symbol] * 100
            yield {
                'stream': self._config.stream_name(symbol),
                'data': {
                    'e': '24hrTicker',
                    'E': int(time.time() * 1000),
                    's': symbol,
                    'c': f'{prices[symbol]:.2f}',
                    'P': f'{change:.3f}',
                    'v': f'{self._rng.uniform(0, 50):.4f}',
                },
            }


class MarketFeedConnector:
    """Owns the ticker subscription and its reconnect lifecycle.

    While active, a dropped or failed stream is reopened after
    ``reconnect_delay`` seconds. The delay runs inside the connector task, so
    :meth:`stop` cancelling that task also cancels any pending reconnect.
    """

    def __init__(
        self,
        client: WebSocketClient,
        reconnect_delay: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if reconnect_delay <= 0:
            raise ValueError('reconnect_delay must be positive')
        self._client = client
        self._reconnect_delay = reconnect_delay
        self._clock = clock
        self._symbols: List[str] = []
        self._on_tick: Optional[TickHandler] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._active = False
        self._connected = False
        self._last_tick_at: Dict[str, float] = {}
        self._frames_received = 0
        self._malformed_frames = 0
        self._reconnects = 0

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def symbols(self) -> List[str]:
        return list(self._symbols)

    async def start(self, symbols: Iterable[str], on_tick: TickHandler) -> None:
        if self._task and not self._task.done():
            raise RuntimeError('Feed already running')
        self._symbols = [symbol.upper() for symbol in symbols]
        if not self._symbols:
            raise ValueError('at least one symbol is required')
        self._on_tick = on_tick
        self._active = True
        self._task = asyncio.create_task(self._run(), name='market-feed')
        logger.info('Feed started for %s', ', '.join(self._symbols))

    async def stop(self) -> None:
        self._active = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                try:
                    await task
                except Exception:
                    logger.exception('Feed task failed before stop')
        self._connected = False
        try:
            await self._client.disconnect()
        except Exception:
            logger.exception('Failed to close ticker stream client')
        logger.info('Feed stopped')

    async def change_symbols(self, symbols: Iterable[str]) -> None:
        if self._on_tick is None:
            raise RuntimeError('Feed was never started')
        on_tick = self._on_tick
        await self.stop()
        await self.start(symbols, on_tick)

    def last_tick_at(self, symbol: str) -> Optional[float]:
        return self._last_tick_at.get(symbol.upper())

    def stats(self) -> Dict[str, object]:
        return {
            'active': self._active,
            'connected': self._connected,
            'simulated': self._client.simulated,
            'frames_received': self._frames_received,
            'malformed_frames': self._malformed_frames,
            'reconnects': self._reconnects,
            'last_tick_at': dict(self._last_tick_at),
        }

    def reset_stats(self) -> None:
        self._frames_received = 0
        self._malformed_frames = 0
        self._reconnects = 0
        self._last_tick_at.clear()

    async def _run(self) -> None:
        while self._active:
            try:
                await self._client.connect()
                self._connected = True
                async for frame in self._client.frames(self._symbols):
                    if not self._active:
                        return
                    await self._handle_frame(frame)
                logger.warning('Ticker stream ended')
            except Exception as error:  # websocket and binance stream errors share no base class
                logger.warning('Ticker stream connection lost: %r', error)
            finally:
                self._connected = False
            if not self._active:
                return
            self._reconnects += 1
            logger.info('Reconnecting ticker stream in %.1fs', self._reconnect_delay)
            await asyncio.sleep(self._reconnect_delay)

    async def _handle_frame(self, frame: object) -> None:
        self._frames_received += 1
        try:
            tick = decode_ticker_frame(frame, received_at=self._clock())
        except MalformedFrameError as error:
            self._malformed_frames += 1
            logger.warning('Dropping malformed frame: %s', error)
            return
        self._last_tick_at[tick.symbol] = tick.received_at
        if self._on_tick is not None:
            await self._on_tick(tick)


__all__ = ['MarketFeedConnector', 'TickHandler', 'WebSocketClient']
