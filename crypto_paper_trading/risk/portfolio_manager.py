"""Virtual ledger: cash, holdings and the paper-trade history."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..strategies.signal import InvalidSignalError, PortfolioContext, Signal, SignalType
from .allocator import AllocationPlan

logger = logging.getLogger(__name__)

# Quantities below this count as fully closed.
DUST_QUANTITY = 1e-9


@dataclass
class Holding:
    symbol: str
    quantity: float = 0.0
    avg_price: float = 0.0
    last_price: float = 0.0

    @property
    def current_value(self) -> float:
        return self.quantity * self.last_price

    @property
    def profit_rate(self) -> float:
        """Unrealized profit in percent of the average cost."""
        if self.avg_price <= 0:
            return 0.0
        return (self.last_price - self.avg_price) / self.avg_price * 100.0

    def as_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'quantity': self.quantity,
            'avg_price': self.avg_price,
            'last_price': self.last_price,
            'current_value': self.current_value,
            'profit_rate': self.profit_rate,
        }


@dataclass(frozen=True)
class Trade:
    symbol: str
    action: SignalType
    price: float
    quantity: float
    amount: float
    timestamp: float
    realized_profit: Optional[float] = None
    reason: str = ''
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def as_dict(self) -> dict:
        return {
            'id': self.id,
            'symbol': self.symbol,
            'action': self.action.value,
            'price': self.price,
            'quantity': self.quantity,
            'amount': self.amount,
            'timestamp': self.timestamp,
            'realized_profit': self.realized_profit,
            'reason': self.reason,
        }


@dataclass(frozen=True)
class ExecutionResult:
    executed: bool
    reason: str
    trade: Optional[Trade] = None

    @classmethod
    def rejected(cls, reason: str) -> 'ExecutionResult':
        return cls(executed=False, reason=reason)


class PortfolioManager:
    """Applies accepted signals to an in-memory paper account.

    Every rejection is returned as an :class:`ExecutionResult`; only a
    malformed signal raises. Callers serialize access, the ledger itself
    holds no lock.
    """

    def __init__(self, initial_capital: float, min_trade_amount: float = 5000.0) -> None:
        if initial_capital <= 0:
            raise ValueError('initial_capital must be positive')
        if min_trade_amount < 0:
            raise ValueError('min_trade_amount must be non-negative')
        self.initial_capital = float(initial_capital)
        self.min_trade_amount = float(min_trade_amount)
        self._cash = self.initial_capital
        self._holdings: Dict[str, Holding] = {}
        self._trades: List[Trade] = []

    @property
    def cash(self) -> float:
        return self._cash

    @property
    def holdings(self) -> Dict[str, Holding]:
        return dict(self._holdings)

    @property
    def trades(self) -> List[Trade]:
        return list(self._trades)

    @property
    def total_value(self) -> float:
        return self._cash + sum(holding.current_value for holding in self._holdings.values())

    def holding(self, symbol: str) -> Optional[Holding]:
        return self._holdings.get(symbol)

    def context(self, symbol: str, plan: AllocationPlan) -> PortfolioContext:
        holding = self._holdings.get(symbol)
        return PortfolioContext(
            cash_balance=self._cash,
            total_value=self.total_value,
            allocation=plan,
            holding=dataclasses.replace(holding) if holding is not None else None,
        )

    def update_price(self, symbol: str, price: float) -> None:
        holding = self._holdings.get(symbol)
        if holding is not None and price > 0:
            holding.last_price = price

    def execute_signal(self, signal: Signal, plan: AllocationPlan) -> ExecutionResult:
        signal.validate()
        if signal.type is SignalType.BUY:
            result = self._buy(signal, plan)
        elif signal.type is SignalType.SELL:
            result = self._sell(signal)
        else:  # pragma: no cover - validate() guards the enum
            raise InvalidSignalError(f'unsupported signal type {signal.type!r}')
        if result.executed:
            logger.info(
                '%s %s qty=%.8f @ %.2f (%s)',
                signal.type.value,
                signal.symbol,
                result.trade.quantity,
                signal.price,
                signal.reason,
            )
        else:
            logger.debug('%s %s rejected: %s', signal.type.value, signal.symbol, result.reason)
        return result

    def _buy(self, signal: Signal, plan: AllocationPlan) -> ExecutionResult:
        if plan.is_empty:
            return ExecutionResult.rejected('empty allocation plan')
        amount = self.total_value * plan.max_position_size * signal.position_size_multiplier
        amount = min(amount, self._cash)
        if amount < self.min_trade_amount:
            return ExecutionResult.rejected(
                f'amount {amount:.2f} below minimum {self.min_trade_amount:.2f}'
            )
        if self._cash - amount < 0:
            return ExecutionResult.rejected('insufficient cash')

        quantity = amount / signal.price
        holding = self._holdings.get(signal.symbol)
        if holding is None:
            holding = self._holdings[signal.symbol] = Holding(symbol=signal.symbol)
        cost = holding.quantity * holding.avg_price + amount
        holding.quantity += quantity
        holding.avg_price = cost / holding.quantity
        holding.last_price = signal.price
        self._cash -= amount

        trade = Trade(
            symbol=signal.symbol,
            action=SignalType.BUY,
            price=signal.price,
            quantity=quantity,
            amount=amount,
            timestamp=signal.timestamp,
            reason=signal.reason,
        )
        self._trades.append(trade)
        return ExecutionResult(executed=True, reason='bought', trade=trade)

    def _sell(self, signal: Signal) -> ExecutionResult:
        holding = self._holdings.get(signal.symbol)
        if holding is None or holding.quantity <= DUST_QUANTITY:
            return ExecutionResult.rejected('nothing to sell')

        quantity = min(holding.quantity, holding.quantity * signal.position_size_multiplier)
        amount = quantity * signal.price
        realized = (signal.price - holding.avg_price) * quantity

        holding.quantity -= quantity
        holding.last_price = signal.price
        if holding.quantity < DUST_QUANTITY:
            del self._holdings[signal.symbol]
        self._cash += amount

        trade = Trade(
            symbol=signal.symbol,
            action=SignalType.SELL,
            price=signal.price,
            quantity=quantity,
            amount=amount,
            timestamp=signal.timestamp,
            realized_profit=realized,
            reason=signal.reason,
        )
        self._trades.append(trade)
        return ExecutionResult(executed=True, reason='sold', trade=trade)

    def performance(self) -> dict:
        sells = [trade for trade in self._trades if trade.action is SignalType.SELL]
        wins = sum(1 for trade in sells if (trade.realized_profit or 0.0) > 0)
        total_value = self.total_value
        return {
            'total_return': (total_value - self.initial_capital) / self.initial_capital * 100.0,
            'win_rate': wins / len(sells) * 100.0 if sells else 0.0,
            'realized_profit': sum(trade.realized_profit or 0.0 for trade in sells),
            'total_trades': len(self._trades),
            'sell_trades': len(sells),
        }

    def portfolio_summary(self) -> dict:
        return {
            'cash_balance': self._cash,
            'initial_capital': self.initial_capital,
            'total_value': self.total_value,
            'holdings': [holding.as_dict() for holding in self._holdings.values()],
            'trades': [trade.as_dict() for trade in self._trades],
            'performance': self.performance(),
        }

    def reset(self) -> None:
        self._cash = self.initial_capital
        self._holdings.clear()
        self._trades.clear()
        logger.info('Ledger reset to %.2f', self.initial_capital)


__all__ = ['DUST_QUANTITY', 'ExecutionResult', 'Holding', 'PortfolioManager', 'Trade']
