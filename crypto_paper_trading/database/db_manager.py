"""SQLAlchemy-backed paper-trade journal."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List

from sqlalchemy import Select, create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base, PaperTrade, TradeRecord


def _as_utc(value: datetime) -> datetime:
    """Ensure datetimes are timezone-aware in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DatabaseManager:
    """High level helper around a SQLAlchemy engine and session factory."""

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        self._database_url = database_url
        connect_args: dict[str, object] = {}
        if database_url.startswith('sqlite:///'):
            db_path = Path(database_url.replace('sqlite:///', '', 1))
            db_path.parent.mkdir(parents=True, exist_ok=True)
            # Writes arrive from worker threads.
            connect_args['check_same_thread'] = False
        self._engine: Engine = create_engine(
            database_url,
            echo=echo,
            connect_args=connect_args,
        )
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)
        self.create_schema()

    @property
    def database_url(self) -> str:
        return self._database_url

    def create_schema(self) -> None:
        """Create database tables if they do not already exist."""

        Base.metadata.create_all(self._engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager returning a database session with automatic commit."""

        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def record_trade(self, trade: TradeRecord) -> None:
        """Persist one executed paper trade; re-recording the same id overwrites it."""

        with self.session() as session:
            session.merge(
                PaperTrade(
                    trade_id=trade.trade_id,
                    symbol=trade.symbol,
                    action=trade.action,
                    price=trade.price,
                    quantity=trade.quantity,
                    amount=trade.amount,
                    realized_profit=trade.realized_profit,
                    reason=trade.reason[:255],
                    trading_mode=trade.trading_mode,
                    executed_at=_as_utc(trade.executed_at),
                )
            )

    def load_trades(self, limit: int = 50) -> List[TradeRecord]:
        """Return the most recent trades ordered from oldest to newest."""

        if limit <= 0:
            return []
        stmt: Select[tuple[PaperTrade]] = (
            select(PaperTrade)
            .order_by(PaperTrade.executed_at.desc())
            .limit(limit)
        )
        with self.session() as session:
            rows = session.execute(stmt).scalars().all()
        return [
            TradeRecord(
                trade_id=row.trade_id,
                symbol=row.symbol,
                action=row.action,
                price=row.price,
                quantity=row.quantity,
                amount=row.amount,
                executed_at=_as_utc(row.executed_at),
                realized_profit=row.realized_profit,
                reason=row.reason,
                trading_mode=row.trading_mode,
            )
            for row in reversed(rows)
        ]

    def clear_trades(self) -> int:
        """Delete every journal row and return how many were removed."""

        with self.session() as session:
            result = session.execute(delete(PaperTrade))
        return result.rowcount or 0

    def close(self) -> None:
        """Dispose of the underlying engine and connection pool."""

        self._engine.dispose()


__all__ = ['DatabaseManager']
