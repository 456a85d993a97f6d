"""Utilidades compartidas (configuración)."""

from .config import EstimatorConfig, Settings, WindowConfig, get_settings

__all__ = ["EstimatorConfig", "Settings", "WindowConfig", "get_settings"]
