"""Runs the paper-trading pipeline from ticker stream to ledger."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set

from ..config import TradingConfig
from ..data import MarketFeedConnector, MarketTick, PriceHistoryStore
from ..database import DatabaseManager, TradeRecord
from ..exchanges import BinanceAPIException, BinanceRequestException
from ..monitoring import EventLog, LogLevel, LogSubscriber, MonitoringStats
from ..risk import AllocationPlan, DynamicAllocator, ExecutionResult, PortfolioManager, Trade
from ..strategies import (
    InvalidSignalError,
    SentimentProvider,
    Signal,
    SignalGenerator,
    TechnicalIndicatorCalculator,
)
from ..utils import format_amount

logger = logging.getLogger(__name__)

SymbolLookup = Callable[[Iterable[str]], Awaitable[List[str]]]
SignalSubscriber = Callable[[Signal, ExecutionResult], None]

_LOOKUP_ERRORS = (OSError, asyncio.TimeoutError, BinanceAPIException, BinanceRequestException)


class ExecutionEngine:
    """Wires the feed, scoring, signal rules and ledger together.

    Each subscribed symbol gets a bounded queue drained by its own worker, so
    ticks for one symbol are processed in arrival order while different
    symbols run in parallel up to ``max_concurrency``. All ledger access goes
    through one lock, and every mutating stage re-checks that the engine is
    still running because a sentiment lookup can outlive :meth:`stop`.
    """

    def __init__(
        self,
        feed: MarketFeedConnector,
        history: PriceHistoryStore,
        calculator: TechnicalIndicatorCalculator,
        sentiment: SentimentProvider,
        generator: SignalGenerator,
        allocator: DynamicAllocator,
        portfolio: PortfolioManager,
        config: TradingConfig,
        events: Optional[EventLog] = None,
        journal: Optional[DatabaseManager] = None,
        symbol_lookup: Optional[SymbolLookup] = None,
        trading_mode: str = 'live',
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.feed = feed
        self.history = history
        self.calculator = calculator
        self.sentiment = sentiment
        self.generator = generator
        self.allocator = allocator
        self.portfolio = portfolio
        self.config = config
        self.events = events or EventLog()
        self.journal = journal
        self.trading_mode = trading_mode
        self._symbol_lookup = symbol_lookup
        self._clock = clock

        self.stats = MonitoringStats()
        self._active = False
        self._started_at: Optional[float] = None
        self._symbols: List[str] = []
        self._queues: Dict[str, asyncio.Queue[MarketTick]] = {}
        self._workers: Dict[str, asyncio.Task[None]] = {}
        self._background: List[asyncio.Task[None]] = []
        self._journal_tasks: Set[asyncio.Task[None]] = set()
        self._signal_subscribers: List[SignalSubscriber] = []
        self._ledger_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(config.max_concurrency)

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def symbols(self) -> List[str]:
        return list(self._symbols)

    # lifecycle

    async def start(self, symbols: Iterable[str]) -> List[str]:
        if self._active:
            raise RuntimeError('Engine already running')
        resolved = await self._resolve_symbols(symbols)
        if not resolved:
            raise ValueError('No tradable symbols to subscribe to')

        self.stats.reset()
        self.feed.reset_stats()
        self._symbols = resolved
        self._active = True
        self._started_at = self._clock()
        for symbol in resolved:
            self._spawn_worker(symbol)
        await self.feed.start(resolved, self._enqueue)
        self._background = [
            asyncio.create_task(self._sweep_loop(), name='signal-cache-sweep'),
            asyncio.create_task(self._status_loop(), name='status-report'),
        ]
        self.events.log(f'Paper trading started ({self.trading_mode}): {", ".join(resolved)}', LogLevel.SUCCESS)
        return list(resolved)

    async def stop(self) -> None:
        if not self._active and not self._workers:
            return
        self._active = False
        try:
            await self.feed.stop()
        finally:
            tasks = [*self._workers.values(), *self._background]
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self._workers.clear()
            self._queues.clear()
            self._background = []

        if self._journal_tasks:
            await asyncio.gather(*self._journal_tasks, return_exceptions=True)
        self.events.log('Paper trading stopped', LogLevel.INFO)

    async def change_symbols(self, symbols: Iterable[str]) -> List[str]:
        if not self._active:
            raise RuntimeError('Engine is not running')
        resolved = await self._resolve_symbols(symbols)
        if not resolved:
            raise ValueError('No tradable symbols to subscribe to')

        removed = [symbol for symbol in self._symbols if symbol not in resolved]
        for symbol in removed:
            task = self._workers.pop(symbol)
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            self._queues.pop(symbol, None)
        for symbol in resolved:
            if symbol not in self._workers:
                self._spawn_worker(symbol)
        self._symbols = resolved
        await self.feed.change_symbols(resolved)
        self.events.log(f'Subscription changed: {", ".join(resolved)}', LogLevel.INFO)
        return list(resolved)

    async def _resolve_symbols(self, symbols: Iterable[str]) -> List[str]:
        requested = list(dict.fromkeys(symbol.upper() for symbol in symbols))
        if self._symbol_lookup is None or not requested:
            return requested
        try:
            return list(await self._symbol_lookup(requested))
        except _LOOKUP_ERRORS as error:
            self.events.log(f'Symbol lookup failed, using requested symbols: {error}', LogLevel.WARNING)
            return requested

    def _spawn_worker(self, symbol: str) -> None:
        queue: asyncio.Queue[MarketTick] = asyncio.Queue(maxsize=self.config.queue_size)
        self._queues[symbol] = queue
        self._workers[symbol] = asyncio.create_task(self._worker(symbol, queue), name=f'pipeline-{symbol}')

    # pipeline

    async def _enqueue(self, tick: MarketTick) -> None:
        if not self._active:
            return
        queue = self._queues.get(tick.symbol)
        if queue is None:
            logger.debug('Ignoring tick for unsubscribed symbol %s', tick.symbol)
            return
        self.stats.mark_activity(tick.received_at)
        try:
            queue.put_nowait(tick)
        except asyncio.QueueFull:
            self.stats.ticks_dropped += 1
            logger.warning('Queue for %s is full, dropping tick', tick.symbol)

    async def _worker(self, symbol: str, queue: asyncio.Queue[MarketTick]) -> None:
        while True:
            tick = await queue.get()
            try:
                async with self._semaphore:
                    await self._process(tick)
            except InvalidSignalError as error:
                self.stats.signals_rejected += 1
                logger.exception('Invalid signal for %s', symbol)
                self.events.log(f'Invalid signal for {symbol}: {error}', LogLevel.ERROR)
            except Exception as error:
                logger.exception('Pipeline stage failed for %s', symbol)
                self.events.log(f'Pipeline error for {symbol}: {error!r}', LogLevel.ERROR)
            finally:
                queue.task_done()

    async def _process(self, tick: MarketTick) -> None:
        if not self._active:
            return
        self.history.record_price(tick.symbol, tick.price)
        async with self._ledger_lock:
            if not self._active:
                return
            self.portfolio.update_price(tick.symbol, tick.price)

        technical = self.calculator.compute_score(tick.symbol, tick.change_percent, tick.volume)
        sentiment = await self.sentiment.get_sentiment(tick.symbol)

        async with self._ledger_lock:
            if not self._active:
                return
            plan = self.current_allocation()
            context = self.portfolio.context(tick.symbol, plan)
            decision = self.generator.evaluate(tick, technical, sentiment, context)
            if decision.signal is None:
                self.stats.signals_rejected += 1
                return
            if decision.cached:
                return
            self.stats.signals_generated += 1
            if not self._active:
                return
            result = self.portfolio.execute_signal(decision.signal, plan)
        self._publish(decision.signal, result)

    def current_allocation(self) -> AllocationPlan:
        return self.allocator.compute_allocation(
            self._symbols,
            self.config.max_coins_to_trade,
            self.config.reserve_cash_ratio,
        )

    async def execute_signal(self, signal: Signal) -> ExecutionResult:
        """Apply an externally built signal under the ledger lock."""
        async with self._ledger_lock:
            if not self._active:
                return ExecutionResult.rejected('engine is not running')
            result = self.portfolio.execute_signal(signal, self.current_allocation())
        self._publish(signal, result)
        return result

    def _publish(self, signal: Signal, result: ExecutionResult) -> None:
        if result.executed and result.trade is not None:
            self.stats.trades_executed += 1
            trade = result.trade
            message = (
                f'{trade.action.value} {trade.symbol} {trade.quantity:.6f} @ {format_amount(trade.price)} '
                f'= {format_amount(trade.amount)}'
            )
            if trade.realized_profit is not None:
                message += f' (P&L {format_amount(trade.realized_profit)})'
            self.events.log(message, LogLevel.SUCCESS)
            self._journal_trade(trade)
        else:
            self.stats.trades_rejected += 1
            self.events.log(f'{signal.type.value} {signal.symbol} rejected: {result.reason}', LogLevel.WARNING)

        for subscriber in list(self._signal_subscribers):
            try:
                subscriber(signal, result)
            except Exception:
                logger.exception('Signal subscriber %r failed', subscriber)

    def _journal_trade(self, trade: Trade) -> None:
        if self.journal is None:
            return
        record = TradeRecord(
            trade_id=trade.id,
            symbol=trade.symbol,
            action=trade.action.value,
            price=trade.price,
            quantity=trade.quantity,
            amount=trade.amount,
            executed_at=datetime.fromtimestamp(trade.timestamp, tz=timezone.utc),
            realized_profit=trade.realized_profit,
            reason=trade.reason,
            trading_mode=self.trading_mode,
        )
        task = asyncio.create_task(asyncio.to_thread(self.journal.record_trade, record))
        self._journal_tasks.add(task)
        task.add_done_callback(self._journal_done)

    def _journal_done(self, task: asyncio.Task[None]) -> None:
        self._journal_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning('Failed to journal paper trade: %s', error)

    # background

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.sweep_interval_seconds)
            removed = self.generator.sweep()
            if removed:
                logger.debug('Swept %d expired signal cache entries', removed)

    async def _status_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.status_interval_seconds)
            self.events.log(
                f'Status: {self.monitoring_stats_line()} value={format_amount(self.portfolio.total_value)}',
                LogLevel.INFO,
            )

    # produced interfaces

    def subscribe_signals(self, subscriber: SignalSubscriber) -> Callable[[], None]:
        self._signal_subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._signal_subscribers:
                self._signal_subscribers.remove(subscriber)

        return unsubscribe

    def subscribe_logs(self, subscriber: LogSubscriber) -> Callable[[], None]:
        return self.events.subscribe(subscriber)

    def portfolio_summary(self) -> dict:
        summary = self.portfolio.portfolio_summary()
        summary['allocation'] = self.current_allocation().as_dict()
        return summary

    def _sync_feed_stats(self) -> Dict[str, object]:
        feed_stats = self.feed.stats()
        self.stats.malformed_frames = int(feed_stats['malformed_frames'])
        self.stats.reconnects = int(feed_stats['reconnects'])
        return feed_stats

    def monitoring_stats_line(self) -> str:
        self._sync_feed_stats()
        return self.stats.status_line()

    def monitoring_stats(self) -> Dict[str, object]:
        feed_stats = self._sync_feed_stats()
        payload = self.stats.as_dict()
        payload.update(
            {
                'active': self._active,
                'connected': feed_stats['connected'],
                'simulated': feed_stats['simulated'],
                'symbols': list(self._symbols),
                'started_at': self._started_at,
                'queued_ticks': {symbol: queue.qsize() for symbol, queue in self._queues.items()},
            }
        )
        return payload

    def dashboard_payload(self) -> dict:
        return {
            'trading_mode': self.trading_mode,
            'portfolio': self.portfolio_summary(),
            'stats': self.monitoring_stats(),
            'logs': [event.as_dict() for event in self.events.latest(50)],
        }

    async def dashboard_snapshot(self) -> dict:
        """Dashboard payload taken under the ledger lock."""
        async with self._ledger_lock:
            return self.dashboard_payload()

    async def reset(self) -> None:
        async with self._ledger_lock:
            self.portfolio.reset()
            self.history.clear()
            self.generator.reset()
        self.events.log('Paper account reset', LogLevel.INFO)


__all__ = ['ExecutionEngine', 'SignalSubscriber', 'SymbolLookup']
