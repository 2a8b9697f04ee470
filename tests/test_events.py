"""Tests for :mod:`crypto_paper_trading.monitoring`."""

import logging

from crypto_paper_trading.monitoring import EventLog, LogLevel, MonitoringStats


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_identical_messages_deduplicated_within_window() -> None:
    clock = FakeClock()
    events = EventLog(clock=clock)

    assert events.log('feed connected') is not None
    clock.now += 0.2
    assert events.log('feed connected') is None
    clock.now += 0.5
    assert events.log('feed connected') is not None
    assert len(events) == 2


def test_keeps_only_latest_events() -> None:
    clock = FakeClock()
    events = EventLog(max_events=50, clock=clock)
    for index in range(60):
        events.log(f'message {index}')

    latest = events.latest(100)
    assert len(latest) == 50
    assert latest[0].message == 'message 10'
    assert latest[-1].message == 'message 59'


def test_unknown_level_falls_back_to_info_and_mirrors_logging(caplog) -> None:
    events = EventLog()

    with caplog.at_level(logging.INFO, logger='crypto_paper_trading.monitoring.events'):
        event = events.log('hello', level='loud')

    assert event.level is LogLevel.INFO
    assert 'hello' in caplog.text


def test_failing_subscriber_does_not_break_others() -> None:
    events = EventLog()
    received = []

    def broken(event) -> None:
        raise RuntimeError('boom')

    events.subscribe(broken)
    unsubscribe = events.subscribe(received.append)

    event = events.log('trade executed', LogLevel.SUCCESS)
    unsubscribe()
    events.log('after unsubscribe')

    assert event is not None
    assert [item.message for item in received] == ['trade executed']


def test_monitoring_stats_reset_and_status_line() -> None:
    stats = MonitoringStats()
    stats.mark_activity(5.0)
    stats.trades_executed = 2

    assert stats.as_dict()['data_received'] == 1
    assert 'trades=2' in stats.status_line()
    stats.reset()
    assert stats.as_dict() == MonitoringStats().as_dict()
