"""Exchange access for ticker streams and symbol metadata."""

from .binance_service import (
    BinanceAPIException,
    BinanceRequestException,
    BinanceService,
)

__all__ = ['BinanceService', 'BinanceAPIException', 'BinanceRequestException']
