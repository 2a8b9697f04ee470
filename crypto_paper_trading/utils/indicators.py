"""Indicator helpers."""

from __future__ import annotations

from typing import Optional, Sequence


def latest_moving_average(values: Sequence[float], window: int) -> Optional[float]:
    """Average of the last ``window`` values, or ``None`` when there are fewer."""
    if window <= 0:
        raise ValueError('window must be positive')
    if len(values) < window:
        return None
    recent = values[-window:]
    return sum(recent) / window


def relative_strength_index(values: Sequence[float], period: int = 14) -> Optional[float]:
    """Simple-average RSI over the last ``period`` price changes.

    Returns ``None`` when fewer than ``period + 1`` prices are available and
    100 when there were no losing moves in the window.
    """
    if period <= 0:
        raise ValueError('period must be positive')
    if len(values) < period + 1:
        return None
    recent = values[-(period + 1):]
    gains = 0.0
    losses = 0.0
    for previous, current in zip(recent, recent[1:]):
        change = current - previous
        if change > 0:
            gains += change
        else:
            losses -= change
    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def simple_return(start: float, end: float) -> float:
    if start == 0:
        return 0.0
    return (end - start) / start


def percent_change(values: Sequence[float], lookback: int) -> Optional[float]:
    """Percent move between the latest value and the one ``lookback`` steps earlier."""
    if lookback <= 0:
        raise ValueError('lookback must be positive')
    if len(values) <= lookback:
        return None
    return simple_return(values[-lookback - 1], values[-1]) * 100


def clamp(value: float, lower: float = 0.0, upper: float = 10.0) -> float:
    return max(lower, min(upper, value))


__all__ = [
    'clamp',
    'latest_moving_average',
    'percent_change',
    'relative_strength_index',
    'simple_return',
]
