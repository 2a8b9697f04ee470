"""Logging helpers."""

from __future__ import annotations

import logging

_NOISY_LOGGERS = ('websockets', 'asyncio', 'sqlalchemy.engine')


def configure_logging(level: str = 'INFO', *, include_timestamp: bool = True) -> None:
    """Configure root logging handlers once, at the CLI entry point."""
    fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s' if include_timestamp else '%(name)s - %(levelname)s - %(message)s'
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=fmt)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ['configure_logging']
