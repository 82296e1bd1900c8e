"""API routers module."""

from . import graph

__all__ = ["graph"]
