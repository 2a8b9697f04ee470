"""Position sizing and the virtual ledger."""

from .allocator import AllocationPlan, DynamicAllocator
from .portfolio_manager import DUST_QUANTITY, ExecutionResult, Holding, PortfolioManager, Trade

__all__ = [
    'AllocationPlan',
    'DUST_QUANTITY',
    'DynamicAllocator',
    'ExecutionResult',
    'Holding',
    'PortfolioManager',
    'Trade',
]
