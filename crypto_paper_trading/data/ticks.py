"""Normalisation of raw ticker frames into :class:`MarketTick`."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional


class MalformedFrameError(ValueError):
    """Raised when an inbound frame cannot be turned into a tick."""


@dataclass(frozen=True)
class MarketTick:
    symbol: str
    price: float
    change_percent: float
    volume: float
    received_at: float


def _number(frame: Mapping[str, Any], key: str, *, required: bool = True) -> Optional[float]:
    raw = frame.get(key)
    if raw is None:
        if required:
            raise MalformedFrameError(f'missing field {key!r}')
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedFrameError(f'field {key!r} is not numeric: {raw!r}') from exc
    if not math.isfinite(value):
        raise MalformedFrameError(f'field {key!r} is not finite: {raw!r}')
    return value


def decode_ticker_frame(frame: Any, received_at: Optional[float] = None) -> MarketTick:
    """Decode a Binance ticker or mini ticker frame.

    Multiplexed frames arrive wrapped as ``{'stream': ..., 'data': {...}}``.
    The 24h ticker carries the change percent in ``P``; the mini ticker only
    carries the open price ``o`` so the change is derived from it.
    """
    if not isinstance(frame, Mapping):
        raise MalformedFrameError(f'frame is not an object: {type(frame).__name__}')
    data = frame.get('data', frame)
    if not isinstance(data, Mapping):
        raise MalformedFrameError('frame payload is not an object')
    if data.get('e') == 'error' or ('code' in data and 'msg' in data):
        raise MalformedFrameError(f'error frame: {data.get("m") or data.get("msg")}')

    symbol = data.get('s')
    if not isinstance(symbol, str) or not symbol:
        raise MalformedFrameError('missing symbol')
    price = _number(data, 'c')
    if price <= 0:
        raise MalformedFrameError(f'non-positive price {price}')

    change_percent = _number(data, 'P', required=False)
    if change_percent is None:
        open_price = _number(data, 'o', required=False)
        change_percent = (price - open_price) / open_price * 100 if open_price else 0.0
    volume = _number(data, 'v', required=False) or 0.0
    if volume < 0:
        raise MalformedFrameError(f'negative volume {volume}')

    return MarketTick(
        symbol=symbol.upper(),
        price=price,
        change_percent=change_percent,
        volume=volume,
        received_at=received_at if received_at is not None else time.time(),
    )


__all__ = ['MalformedFrameError', 'MarketTick', 'decode_ticker_frame']
