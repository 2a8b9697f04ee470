"""Binance market-data connection settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Mapping

from .config import Settings

Network = Literal['mainnet', 'testnet']
StreamType = Literal['mini_ticker', 'ticker']

_STREAM_SUFFIX = {'mini_ticker': 'miniTicker', 'ticker': 'ticker'}


@dataclass
class BinanceConfig:
    """Credentials and stream options for the ticker feed.

    Credentials are optional; the ticker streams and exchange info used
    here are public endpoints.
    """

    api_key: str = ''
    api_secret: str = ''
    network: Network = 'testnet'
    request_timeout: int = 10
    stream_type: StreamType = 'ticker'

    def __post_init__(self) -> None:
        if self.network not in {'mainnet', 'testnet'}:
            raise ValueError(f'Unsupported network: {self.network}')
        if self.stream_type not in _STREAM_SUFFIX:
            raise ValueError(f'Unsupported stream type: {self.stream_type}')
        if self.request_timeout <= 0:
            raise ValueError('request_timeout must be positive')

    def stream_name(self, symbol: str) -> str:
        return f'{symbol.lower()}@{_STREAM_SUFFIX[self.stream_type]}'

    @classmethod
    def from_env(
        cls,
        settings: Settings,
        environ: Mapping[str, str] | None = None,
    ) -> 'BinanceConfig':
        env = environ if environ is not None else (settings.env or os.environ)
        network: Network = 'testnet' if settings.use_testnet else 'mainnet'
        return cls(
            api_key=env.get('BINANCE_API_KEY', ''),
            api_secret=env.get('BINANCE_API_SECRET', ''),
            network=network,
            request_timeout=int(env.get('BINANCE_API_TIMEOUT', cls.request_timeout)),
            stream_type=env.get('BINANCE_STREAM_TYPE', cls.stream_type),
        )


__all__ = ['BinanceConfig', 'Network', 'StreamType']
