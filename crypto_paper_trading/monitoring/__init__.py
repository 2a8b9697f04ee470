"""Event log, pipeline counters and logging setup."""

from .events import EventLog, LogEvent, LogLevel, LogSubscriber
from .logger import configure_logging
from .stats import MonitoringStats

__all__ = [
    'EventLog',
    'LogEvent',
    'LogLevel',
    'LogSubscriber',
    'MonitoringStats',
    'configure_logging',
]
