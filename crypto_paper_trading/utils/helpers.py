"""Assorted helper functions."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Tuple, Type

logger = logging.getLogger(__name__)


def async_retry(
    retries: int = 3,
    delay: float = 0.5,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Retry decorator for async callables with a linearly growing delay."""

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as error:
                    attempt += 1
                    if attempt >= retries:
                        raise
                    logger.debug('%s failed (%s), retry %d/%d', func.__name__, error, attempt, retries)
                    await asyncio.sleep(delay * attempt)
        return wrapper

    return decorator


def format_amount(value: float) -> str:
    """Thousands-separated amount used in log messages."""
    return f'{value:,.0f}'


__all__ = ['async_retry', 'format_amount']
