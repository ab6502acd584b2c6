"""Database engine construction utilities.

This module provides a helper for constructing SQLAlchemy engines for
one-shot probes.  A probe opens a handful of short queries and exits,
so engines are built without connection pooling.
"""

from __future__ import annotations

from typing import Union

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.pool import NullPool


def get_engine(url: Union[str, URL], **kwargs) -> Engine:
    """Create a new SQLAlchemy engine.

    Args:
        url: A database URL, either a string or a structured
            :class:`sqlalchemy.engine.URL`.
        **kwargs: Additional keyword arguments passed to
            ``sqlalchemy.create_engine``.

    Returns:
        A SQLAlchemy :class:`Engine` that does not pool connections.
    """
    if not url:
        raise RuntimeError("database URL is not set")
    kwargs.setdefault("poolclass", NullPool)
    return create_engine(url, **kwargs)
