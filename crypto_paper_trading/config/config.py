"""Process-level settings shared by the CLI and the engine factories."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping

_TRUTHY = {'1', 'true', 'yes', 'on'}
_TRADING_MODES = ('live', 'test')


def _read_env_file(path: Path) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` lines of a .env file; a missing file yields nothing."""
    if not path.exists():
        return {}

    values: Dict[str, str] = {}
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, value = line.split('=', 1)
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


def _flag(values: Mapping[str, str], key: str, default: bool) -> bool:
    raw = values.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass
class Settings:
    """Settings resolved from the process environment, then `.env`, then defaults.

    ``env`` keeps the merged mapping so the Binance and trading configs can
    read their own prefixed keys from the same source.
    """

    database_url: str = 'sqlite:///data/paper_trades.db'
    log_level: str = 'INFO'
    use_testnet: bool = True
    trading_mode: str = 'live'
    journal_enabled: bool = False
    env: Dict[str, str] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self.trading_mode = self.trading_mode.lower()
        if self.trading_mode not in _TRADING_MODES:
            raise ValueError(f'Unsupported trading mode: {self.trading_mode}')
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f'Unknown log level: {self.log_level}')

    @classmethod
    def from_env(cls, env_file: str | Path = '.env') -> 'Settings':
        merged = {**_read_env_file(Path(env_file)), **os.environ}
        return cls(
            database_url=merged.get('DATABASE_URL', cls.database_url),
            log_level=merged.get('LOG_LEVEL', cls.log_level),
            use_testnet=_flag(merged, 'USE_TESTNET', cls.use_testnet),
            trading_mode=merged.get('TRADING_MODE', cls.trading_mode),
            journal_enabled=_flag(merged, 'TRADE_JOURNAL', cls.journal_enabled),
            env=merged,
        )


load_settings = Settings.from_env

__all__ = ['Settings', 'load_settings']
