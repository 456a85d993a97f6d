"""Monitoring layer - Métricas y observabilidad."""

from .stats import Stats
from .health import HealthChecker, HealthStatus

__all__ = ["Stats", "HealthChecker", "HealthStatus"]
