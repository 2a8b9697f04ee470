"""Configuration utilities for the paper trading engine."""

from .config import Settings, load_settings
from .binance_config import BinanceConfig
from .trading_config import TradingConfig

__all__ = ['Settings', 'BinanceConfig', 'TradingConfig', 'load_settings']
