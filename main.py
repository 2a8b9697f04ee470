"""Command line entry point for the crypto paper trading engine."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional, Sequence

from crypto_paper_trading.api import serve_dashboard_api
from crypto_paper_trading.config import BinanceConfig, Settings, TradingConfig, load_settings
from crypto_paper_trading.data import MarketFeedConnector, PriceHistoryStore, WebSocketClient
from crypto_paper_trading.database import DatabaseManager
from crypto_paper_trading.exchanges import BinanceService
from crypto_paper_trading.execution import ExecutionEngine
from crypto_paper_trading.monitoring import EventLog, configure_logging
from crypto_paper_trading.risk import DynamicAllocator, PortfolioManager
from crypto_paper_trading.strategies import (
    CachedSentimentProvider,
    NeutralSentimentProvider,
    SignalGenerator,
    TechnicalIndicatorCalculator,
)
from crypto_paper_trading.utils import format_amount


logger = logging.getLogger(__name__)


def build_engine(
    settings: Settings,
    config: TradingConfig,
    *,
    simulated: bool = False,
    journal: Optional[DatabaseManager] = None,
) -> ExecutionEngine:
    binance_service: Optional[BinanceService] = None
    binance_config = BinanceConfig.from_env(settings)
    if simulated:
        logger.warning('Running on simulated ticker frames.')
    else:
        binance_service = BinanceService(binance_config)

    history = PriceHistoryStore(capacity=config.history_capacity)
    feed = MarketFeedConnector(
        WebSocketClient(binance_config, service=binance_service),
        reconnect_delay=config.reconnect_delay,
    )
    return ExecutionEngine(
        feed=feed,
        history=history,
        calculator=TechnicalIndicatorCalculator(history, min_length=config.min_history),
        sentiment=CachedSentimentProvider(NeutralSentimentProvider(), ttl=config.sentiment_cache_seconds),
        generator=SignalGenerator(config),
        allocator=DynamicAllocator(),
        portfolio=PortfolioManager(config.initial_capital, config.min_trade_amount),
        config=config,
        events=EventLog(),
        journal=journal,
        symbol_lookup=binance_service.tradable_symbols if binance_service else None,
        trading_mode=settings.trading_mode,
    )


async def run_paper(
    settings: Settings,
    symbols: Sequence[str],
    duration: int,
    *,
    simulated: bool = False,
    journal_enabled: bool = False,
    api_host: Optional[str] = None,
    api_port: Optional[int] = None,
) -> None:
    config = TradingConfig.from_env(settings)
    journal = DatabaseManager(settings.database_url) if journal_enabled else None
    engine = build_engine(settings, config, simulated=simulated, journal=journal)

    server = thread = None
    if api_port is not None:
        loop = asyncio.get_running_loop()

        def payload() -> dict:
            return asyncio.run_coroutine_threadsafe(engine.dashboard_snapshot(), loop).result(timeout=5)

        server, thread = serve_dashboard_api(payload, host=api_host or '127.0.0.1', port=api_port)
        logger.info('Dashboard API available at http://%s:%s/api/dashboard', api_host or '127.0.0.1', api_port)

    try:
        await engine.start(symbols)
        await asyncio.sleep(duration)
    finally:
        await engine.stop()
        if server:
            server.shutdown()
            if thread:
                thread.join(timeout=1)
            logger.info('Dashboard API stopped')
        if journal is not None:
            journal.close()

    summary = engine.portfolio_summary()
    performance = summary['performance']
    logger.info(
        'Session finished: value=%s return=%.2f%% win_rate=%.1f%% trades=%d',
        format_amount(summary['total_value']),
        performance['total_return'],
        performance['win_rate'],
        performance['total_trades'],
    )


def show_trades(settings: Settings, limit: int) -> None:
    journal = DatabaseManager(settings.database_url)
    try:
        records = journal.load_trades(limit)
    finally:
        journal.close()
    if not records:
        print('No paper trades recorded.')
        return
    for record in records:
        profit = '' if record.realized_profit is None else f' pnl={format_amount(record.realized_profit)}'
        print(
            f'{record.executed_at:%Y-%m-%d %H:%M:%S} [{record.trading_mode}] {record.action:<4} '
            f'{record.symbol:<10} qty={record.quantity:.6f} price={format_amount(record.price)} '
            f'amount={format_amount(record.amount)}{profit}'
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Crypto paper trading CLI')
    sub = parser.add_subparsers(dest='command', required=True)

    paper = sub.add_parser('paper', help='Run the paper trading loop')
    paper.add_argument('--symbols', nargs='+', default=['BTCUSDT'])
    paper.add_argument('--duration', type=int, default=30, help='Runtime in seconds')
    paper.add_argument('--mode', choices=['live', 'test'], help='Threshold preset (defaults to TRADING_MODE)')
    paper.add_argument('--simulated', action='store_true', help='Use synthetic ticker frames')
    paper.add_argument('--journal', action='store_true', help='Persist executed paper trades')
    paper.add_argument('--api-port', type=int, help='Expose dashboard data on the given port')
    paper.add_argument('--api-host', default='127.0.0.1')

    trades = sub.add_parser('trades', help='Print journaled paper trades')
    trades.add_argument('--limit', type=int, default=20)

    return parser


async def async_main(args: argparse.Namespace) -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    if args.command == 'paper':
        if args.mode:
            settings.trading_mode = args.mode
        await run_paper(
            settings,
            args.symbols,
            args.duration,
            simulated=args.simulated,
            journal_enabled=args.journal or settings.journal_enabled,
            api_host=args.api_host,
            api_port=args.api_port,
        )
    elif args.command == 'trades':
        show_trades(settings, args.limit)
    else:  # pragma: no cover
        raise ValueError(f'Unknown command {args.command}')


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    asyncio.run(async_main(args))


if __name__ == '__main__':
    main()
