"""Endpoints HTTP del agregador."""

from .diagnostics import router as diagnostics_router

__all__ = ["diagnostics_router"]
