"""Esquemas de validación de los payloads del enlace.

La pasarela de radio publica cada mensaje del nodo como JSON con los nombres
de campo del firmware (camelCase). También se acepta snake_case.

Ejemplo de lectura:
{
    "sensorId": 7,
    "msgId": 1,
    "tag": 1,
    "readings": [10, 20],
    "times": [0, 1]
}
"""

from __future__ import annotations

import math
from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _check_finite(values: List[float]) -> List[float]:
    for v in values:
        if math.isnan(v):
            raise ValueError("Value is NaN")
        if math.isinf(v):
            raise ValueError("Value is infinite")
    return values


class _NodePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sensor_id: int = Field(..., ge=0, validation_alias=AliasChoices("sensorId", "sensor_id", "nodeId", "node_id"))


class ReadingPayload(_NodePayload):
    """Lote de lecturas (SensorMsg). Los arrays se validan en el dominio."""

    msg_id: int = Field(..., ge=0, validation_alias=AliasChoices("msgId", "msg_id"))
    tag: int = 0
    readings: List[float] = Field(default_factory=list, validation_alias=AliasChoices("readings", "values"))
    times: List[int] = Field(default_factory=list, validation_alias=AliasChoices("times", "ticks"))

    @field_validator("readings")
    @classmethod
    def validate_readings(cls, v):
        return _check_finite(v)


class QualityReportPayload(_NodePayload):
    """Resumen de calidad del nodo (DQIMsg)."""

    msg_id: int = Field(..., ge=0, validation_alias=AliasChoices("msgId", "msg_id"))
    priority_count: int = Field(0, validation_alias=AliasChoices("priorityCount", "priority_count"))
    start_id: int = Field(..., validation_alias=AliasChoices("startId", "start_id", "start_tick"))
    end_id: int = Field(..., validation_alias=AliasChoices("endId", "end_id", "end_tick"))
    values: List[float] = Field(default_factory=list)

    @field_validator("values")
    @classmethod
    def validate_values(cls, v):
        return _check_finite(v)


class AckPayload(_NodePayload):
    """ACK enviado por un nodo (reservado, se ignora)."""

    msg_id: int = Field(..., validation_alias=AliasChoices("msgId", "msg_id"))
    msg_type: int = Field(0, validation_alias=AliasChoices("msgType", "msg_type"))


class SelfEstimatePayload(_NodePayload):
    """Auto-estimación del nodo en formato explícito (no heredado)."""

    estimated_dqi: float = Field(..., validation_alias=AliasChoices("estimatedDqi", "estimated_dqi"))
    estimated_drop_rate: float = Field(
        ..., validation_alias=AliasChoices("estimatedDropRate", "estimated_drop_rate")
    )
    counters: List[int] = Field(default_factory=list)

    @field_validator("estimated_dqi", "estimated_drop_rate")
    @classmethod
    def validate_fraction(cls, v):
        if math.isnan(v) or math.isinf(v):
            raise ValueError("Estimate is not finite")
        return v
