"""Estimador de DQI y tasa de pérdida por nodo.

Forma del estimador:
    received_fraction = received / (received + gaps)
    drop_rate         = gaps / (received + gaps)
    priority_fraction = priority_received / priority_count auto-reportado
    dqi               = w_r * received_fraction + w_p * priority_fraction

Sin datos, el nodo se considera completo (fracción 1, pérdida 0). Si el nodo
no ha reportado lecturas prioritarias, no hay nada que penalizar y
priority_fraction vale 1. Ambas salidas se acotan a [0, 1].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..common.config import EstimatorConfig
from .domain.profile import SensorProfile


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class QualityEstimate:
    estimated_dqi: float
    estimated_drop_rate: float
    received_fraction: float
    priority_fraction: float

    def to_dict(self) -> dict:
        return {
            "estimated_dqi": round(self.estimated_dqi, 4),
            "estimated_drop_rate": round(self.estimated_drop_rate, 4),
            "received_fraction": round(self.received_fraction, 4),
            "priority_fraction": round(self.priority_fraction, 4),
        }


class DQIEstimator:
    """Calcula la estimación de calidad a partir de los contadores del perfil.

    No muta el perfil; el llamador debe tener el lock del perfil.
    """

    def __init__(self, config: Optional[EstimatorConfig] = None) -> None:
        config = config if config is not None else EstimatorConfig()
        total = config.received_weight + config.priority_weight
        if config.received_weight < 0 or config.priority_weight < 0 or total <= 0:
            raise ValueError(
                f"Invalid DQI weights: received={config.received_weight} priority={config.priority_weight}"
            )
        self._received_weight = config.received_weight / total
        self._priority_weight = config.priority_weight / total

    def estimate(self, profile: SensorProfile) -> QualityEstimate:
        span = profile.received_count + profile.gap_count
        if span > 0:
            received_fraction = profile.received_count / span
            drop_rate = profile.gap_count / span
        else:
            received_fraction = 1.0
            drop_rate = 0.0

        priority_fraction = self._priority_fraction(profile)

        dqi = (
            self._received_weight * received_fraction
            + self._priority_weight * priority_fraction
        )
        return QualityEstimate(
            estimated_dqi=_clamp(dqi),
            estimated_drop_rate=_clamp(drop_rate),
            received_fraction=_clamp(received_fraction),
            priority_fraction=priority_fraction,
        )

    @staticmethod
    def _priority_fraction(profile: SensorProfile) -> float:
        report = profile.last_self_reported
        if report is None or report.priority_count <= 0:
            return 1.0
        return _clamp(profile.priority_received_count / report.priority_count)
