"""Pipeline counters exposed to the dashboard and the status log."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Optional


@dataclass
class MonitoringStats:
    data_received: int = 0
    signals_generated: int = 0
    signals_rejected: int = 0
    trades_executed: int = 0
    trades_rejected: int = 0
    ticks_dropped: int = 0
    malformed_frames: int = 0
    reconnects: int = 0
    last_activity: Optional[float] = None

    def mark_activity(self, at: float) -> None:
        self.data_received += 1
        self.last_activity = at

    def reset(self) -> None:
        for name, value in asdict(MonitoringStats()).items():
            setattr(self, name, value)

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)

    def status_line(self) -> str:
        return (
            f'ticks={self.data_received} signals={self.signals_generated} '
            f'rejected={self.signals_rejected} trades={self.trades_executed} '
            f'trade_rejects={self.trades_rejected} dropped={self.ticks_dropped} '
            f'malformed={self.malformed_frames} reconnects={self.reconnects}'
        )


__all__ = ['MonitoringStats']
