"""Utility helpers."""

from .helpers import async_retry, format_amount
from .indicators import (
    clamp,
    latest_moving_average,
    percent_change,
    relative_strength_index,
    simple_return,
)

__all__ = [
    'async_retry',
    'clamp',
    'format_amount',
    'latest_moving_average',
    'percent_change',
    'relative_strength_index',
    'simple_return',
]
