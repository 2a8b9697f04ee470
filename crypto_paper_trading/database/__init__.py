"""Persistence layer exports."""

from .db_manager import DatabaseManager
from .models import Base, PaperTrade, TradeRecord

__all__ = [
    'Base',
    'DatabaseManager',
    'PaperTrade',
    'TradeRecord',
]
