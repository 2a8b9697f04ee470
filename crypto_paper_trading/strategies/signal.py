"""Signal value types shared by the generator and the ledger."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from ..risk.allocator import AllocationPlan
    from ..risk.portfolio_manager import Holding


class InvalidSignalError(ValueError):
    """A signal reached the ledger in a shape no generator should produce."""


class SignalType(str, enum.Enum):
    BUY = 'BUY'
    SELL = 'SELL'


@dataclass(frozen=True)
class Signal:
    symbol: str
    type: SignalType
    price: float
    total_score: float
    position_size_multiplier: float
    reason: str
    timestamp: float

    def validate(self) -> None:
        if not isinstance(self.symbol, str) or not self.symbol:
            raise InvalidSignalError('signal symbol must be a non-empty string')
        if not isinstance(self.type, SignalType):
            raise InvalidSignalError(f'unknown signal type {self.type!r}')
        for name in ('price', 'total_score', 'position_size_multiplier', 'timestamp'):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
                raise InvalidSignalError(f'signal {name} must be a finite number, got {value!r}')
        if self.price <= 0:
            raise InvalidSignalError(f'signal price must be positive, got {self.price}')
        if self.position_size_multiplier <= 0:
            raise InvalidSignalError('position_size_multiplier must be positive')
        if not 0.0 <= self.total_score <= 10.0:
            raise InvalidSignalError(f'total_score {self.total_score} outside [0, 10]')

    def as_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'type': self.type.value,
            'price': self.price,
            'total_score': self.total_score,
            'position_size_multiplier': self.position_size_multiplier,
            'reason': self.reason,
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class SignalDecision:
    """Outcome of one evaluation; ``signal`` is ``None`` for an explicit no-signal."""

    symbol: str
    signal: Optional[Signal]
    reason: str
    composite_score: Optional[float] = None
    cached: bool = False

    @property
    def accepted(self) -> bool:
        return self.signal is not None


@dataclass(frozen=True)
class PortfolioContext:
    """Ledger snapshot the rules decide against, taken under the ledger lock."""

    cash_balance: float
    total_value: float
    allocation: 'AllocationPlan'
    holding: Optional['Holding'] = None

    @property
    def is_held(self) -> bool:
        return self.holding is not None and self.holding.quantity > 0

    @property
    def profit_rate(self) -> float:
        return self.holding.profit_rate if self.holding is not None else 0.0

    @property
    def cash_ratio(self) -> float:
        if self.total_value <= 0:
            return 0.0
        return self.cash_balance / self.total_value

    @property
    def position_ratio(self) -> float:
        if self.holding is None or self.total_value <= 0:
            return 0.0
        return self.holding.current_value / self.total_value


__all__ = [
    'InvalidSignalError',
    'PortfolioContext',
    'Signal',
    'SignalDecision',
    'SignalType',
]
