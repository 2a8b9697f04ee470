"""Per-symbol position sizing across the active symbol set."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationPlan:
    max_position_size: float
    reserve_cash_ratio: float
    active_symbol_count: int
    target_symbols: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return self.active_symbol_count == 0

    @classmethod
    def empty(cls, reserve_cash_ratio: float) -> 'AllocationPlan':
        return cls(max_position_size=0.0, reserve_cash_ratio=reserve_cash_ratio, active_symbol_count=0)

    def as_dict(self) -> dict:
        return {
            'max_position_size': self.max_position_size,
            'reserve_cash_ratio': self.reserve_cash_ratio,
            'active_symbol_count': self.active_symbol_count,
            'target_symbols': list(self.target_symbols),
        }


class DynamicAllocator:
    """Splits the investable fraction evenly over at most ``max_symbols`` symbols.

    The plan is recomputed on every call since the symbol set and the
    configuration can change between ticks.
    """

    def compute_allocation(
        self,
        active_symbols: Sequence[str],
        max_symbols: int,
        reserve_cash_ratio: float,
    ) -> AllocationPlan:
        if not 0.0 <= reserve_cash_ratio <= 1.0:
            raise ValueError(f'reserve_cash_ratio must be within [0, 1], got {reserve_cash_ratio}')
        if max_symbols < 0:
            raise ValueError(f'max_symbols must be non-negative, got {max_symbols}')

        targets = tuple(dict.fromkeys(active_symbols))[:max_symbols]
        if not targets:
            logger.info('No active symbols to allocate; returning an empty plan')
            return AllocationPlan.empty(reserve_cash_ratio)

        return AllocationPlan(
            max_position_size=(1.0 - reserve_cash_ratio) / len(targets),
            reserve_cash_ratio=reserve_cash_ratio,
            active_symbol_count=len(targets),
            target_symbols=targets,
        )


__all__ = ['AllocationPlan', 'DynamicAllocator']
