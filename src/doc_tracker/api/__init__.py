"""HTTP surface for the reminder engine."""

from .app import create_app

__all__ = ["create_app"]
