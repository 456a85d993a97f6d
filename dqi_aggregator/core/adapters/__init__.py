"""Adapters - Conversión payload del enlace ↔ dominio."""

from .radio_adapter import RadioAdapter

__all__ = ["RadioAdapter"]
