"""Market data layer."""

from .price_history import PriceHistoryStore
from .ticks import MalformedFrameError, MarketTick, decode_ticker_frame
from .websocket_client import MarketFeedConnector, TickHandler, WebSocketClient

__all__ = [
    'MalformedFrameError',
    'MarketFeedConnector',
    'MarketTick',
    'PriceHistoryStore',
    'TickHandler',
    'WebSocketClient',
    'decode_ticker_frame',
]
