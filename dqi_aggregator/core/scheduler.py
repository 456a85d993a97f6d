"""Feedback Scheduler: detecta cierres de ventana por nodo."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..common.config import WindowConfig
from .domain.messages import Feedback
from .domain.profile import SensorProfile
from .estimator import DQIEstimator

logger = logging.getLogger(__name__)


class FeedbackScheduler:
    """Decide cuándo un perfil cruzó una frontera de ventana.

    La frontera de la ventana k está en el tick (k + 1) * W + O. Tras cada
    lectura ingerida con tick t, se emite un Feedback por CADA frontera que
    t supera, incrementando `window_index` una vez por frontera. Un salto
    que cruza más de `max_catchup` fronteras emite solo la última ventana.

    `window_index` vive en el perfil: cada nodo tiene su propio ritmo.
    """

    def __init__(
        self,
        window: Optional[WindowConfig] = None,
        estimator: Optional[DQIEstimator] = None,
    ) -> None:
        self._window = window if window is not None else WindowConfig()
        self._estimator = estimator if estimator is not None else DQIEstimator()

    @property
    def window(self) -> WindowConfig:
        return self._window

    def on_reading(self, profile: SensorProfile, tick: int) -> List[Feedback]:
        """Evalúa el perfil tras ingerir `tick`. Requiere el lock del perfil."""
        target = self._window.window_for(tick)
        crossed = target - profile.window_index
        if crossed <= 0:
            return []

        if crossed > self._window.max_catchup:
            # Salto anómalo: las ventanas intermedias se cierran sin Feedback
            skipped = crossed - 1
            logger.warning(
                "[SCHEDULER] Tick jump node=%d tick=%d crosses %d windows, skipping %d",
                profile.node_id,
                tick,
                crossed,
                skipped,
            )
            profile.window_index += skipped
            profile.skipped_window_count += skipped

        emitted: List[Feedback] = []
        while profile.window_index < target:
            emitted.append(self._close_window(profile))
        return emitted

    def _close_window(self, profile: SensorProfile) -> Feedback:
        estimate = self._estimator.estimate(profile)
        k = profile.window_index
        feedback = Feedback(
            node_id=profile.node_id,
            estimated_dqi=estimate.estimated_dqi,
            estimated_drop_rate=estimate.estimated_drop_rate,
            window_index=k,
            window_start=self._window.boundary(k - 1),
            window_end=self._window.boundary(k),
        )
        profile.window_index = k + 1

        logger.info(
            "[SCHEDULER] Window closed node=%d window=%d end_tick=%d dqi=%.4f drop_rate=%.4f",
            profile.node_id,
            k,
            feedback.window_end,
            feedback.estimated_dqi,
            feedback.estimated_drop_rate,
        )
        return feedback
