"""In-memory event log fanned out to presentation subscribers."""

from __future__ import annotations

import enum
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


class LogLevel(str, enum.Enum):
    DEBUG = 'debug'
    INFO = 'info'
    SUCCESS = 'success'
    WARNING = 'warning'
    ERROR = 'error'

    @classmethod
    def parse(cls, value: object) -> 'LogLevel':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.INFO


_PYTHON_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class LogEvent:
    message: str
    level: LogLevel
    created_at: float = field(default_factory=time.time)

    def as_dict(self) -> dict:
        return {'message': self.message, 'level': self.level.value, 'created_at': self.created_at}


LogSubscriber = Callable[[LogEvent], None]


class EventLog:
    """Fire-and-forget log sink.

    :meth:`log` never raises and never awaits. Identical messages inside the
    de-duplication window are dropped, the newest ``max_events`` are kept, and
    each accepted event is mirrored into :mod:`logging` and handed to every
    subscriber.
    """

    def __init__(
        self,
        max_events: int = 50,
        dedupe_window: float = 0.5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._events: Deque[LogEvent] = deque(maxlen=max_events)
        self._dedupe_window = dedupe_window
        self._clock = clock
        self._last_seen: Dict[str, float] = {}
        self._subscribers: List[LogSubscriber] = []

    def log(self, message: str, level: object = LogLevel.INFO) -> Optional[LogEvent]:
        try:
            return self._log(str(message), LogLevel.parse(level))
        except Exception:
            logger.exception('Event log failed to record %r', message)
            return None

    def _log(self, message: str, level: LogLevel) -> Optional[LogEvent]:
        now = self._clock()
        last = self._last_seen.get(message)
        if last is not None and now - last < self._dedupe_window:
            return None
        self._last_seen[message] = now
        if len(self._last_seen) > 4 * (self._events.maxlen or 50):
            self._prune(now)

        event = LogEvent(message=message, level=level, created_at=now)
        self._events.append(event)
        logger.log(_PYTHON_LEVELS[level], message)
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.exception('Log subscriber %r failed', subscriber)
        return event

    def _prune(self, now: float) -> None:
        self._last_seen = {
            message: seen for message, seen in self._last_seen.items()
            if now - seen < self._dedupe_window
        }

    def subscribe(self, subscriber: LogSubscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def latest(self, limit: int = 10) -> List[LogEvent]:
        if limit <= 0:
            return []
        return list(self._events)[-limit:]

    def clear(self) -> None:
        self._events.clear()
        self._last_seen.clear()

    def __len__(self) -> int:
        return len(self._events)


__all__ = ['EventLog', 'LogEvent', 'LogLevel', 'LogSubscriber']
