"""Validation layer - Esquemas de payload del enlace."""

from .payload_schemas import (
    AckPayload,
    QualityReportPayload,
    ReadingPayload,
    SelfEstimatePayload,
)

__all__ = ["AckPayload", "QualityReportPayload", "ReadingPayload", "SelfEstimatePayload"]
