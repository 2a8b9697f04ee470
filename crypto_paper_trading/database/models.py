"""SQLAlchemy ORM model and typed record for the paper-trade journal."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import DateTime, Float, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class PaperTrade(Base):
    """One executed paper trade."""

    __tablename__ = 'paper_trades'
    __table_args__ = (
        Index('ix_paper_trades_symbol_executed_at', 'symbol', 'executed_at'),
    )

    trade_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    symbol: Mapped[str] = mapped_column(String(32))
    action: Mapped[str] = mapped_column(String(8))
    price: Mapped[float] = mapped_column(Float)
    quantity: Mapped[float] = mapped_column(Float)
    amount: Mapped[float] = mapped_column(Float)
    realized_profit: Mapped[float | None] = mapped_column(Float, nullable=True)
    reason: Mapped[str] = mapped_column(String(255), default='')
    trading_mode: Mapped[str] = mapped_column(String(8), default='live')
    executed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)


@dataclass(slots=True)
class TradeRecord:
    """Typed container for journal rows."""

    trade_id: str
    symbol: str
    action: str
    price: float
    quantity: float
    amount: float
    executed_at: datetime
    realized_profit: float | None = None
    reason: str = ''
    trading_mode: str = 'live'


__all__ = ['Base', 'PaperTrade', 'TradeRecord']
