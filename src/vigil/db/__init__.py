"""Database utilities for vigil."""

from .session import get_engine

__all__ = ["get_engine"]
