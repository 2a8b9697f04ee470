"""Read-only HTTP hooks for the presentation layer."""

from .server import serve_dashboard_api

__all__ = ['serve_dashboard_api']
