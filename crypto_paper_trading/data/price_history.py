"""Bounded per-symbol price buffers."""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List


class PriceHistoryStore:
    """One FIFO buffer per symbol, oldest prices evicted beyond ``capacity``."""

    def __init__(self, capacity: int = 100) -> None:
        if capacity <= 0:
            raise ValueError('capacity must be positive')
        self._capacity = capacity
        self._buffers: Dict[str, Deque[float]] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def record_price(self, symbol: str, price: float) -> int:
        buffer = self._buffers.get(symbol)
        if buffer is None:
            buffer = self._buffers[symbol] = deque(maxlen=self._capacity)
        buffer.append(float(price))
        return len(buffer)

    def prices(self, symbol: str) -> List[float]:
        return list(self._buffers.get(symbol, ()))

    def length(self, symbol: str) -> int:
        buffer = self._buffers.get(symbol)
        return len(buffer) if buffer is not None else 0

    def symbols(self) -> List[str]:
        return list(self._buffers)

    def clear(self) -> None:
        self._buffers.clear()


__all__ = ['PriceHistoryStore']
