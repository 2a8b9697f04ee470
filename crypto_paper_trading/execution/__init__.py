"""Paper-trading pipeline orchestration."""

from .execution_engine import ExecutionEngine, SignalSubscriber, SymbolLookup

__all__ = ['ExecutionEngine', 'SignalSubscriber', 'SymbolLookup']
