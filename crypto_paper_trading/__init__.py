"""Core package for the crypto paper trading engine."""

from importlib import metadata

try:
    __version__ = metadata.version('crypto-paper-trading')
except metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = '0.1.0-dev'

__all__ = ['__version__']
