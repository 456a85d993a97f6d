"""Registro de perfiles por nodo."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from .domain.profile import SensorProfile

logger = logging.getLogger(__name__)


class ProfileRegistry:
    """Mapa node_id -> SensorProfile.

    Thread-safe: la creación es un get-or-create atómico, de modo que dos
    primeras llegadas concurrentes del mismo nodo comparten un único perfil.
    Las entradas nunca se eliminan.
    """

    def __init__(self) -> None:
        self._profiles: Dict[int, SensorProfile] = {}
        self._lock = threading.Lock()

    def get_or_create(self, node_id: int) -> SensorProfile:
        profile = self._profiles.get(node_id)
        if profile is not None:
            return profile

        with self._lock:
            profile = self._profiles.get(node_id)
            if profile is None:
                profile = SensorProfile(node_id=node_id)
                self._profiles[node_id] = profile
                logger.info("[REGISTRY] New node profile node=%d total=%d", node_id, len(self._profiles))
            return profile

    def get(self, node_id: int) -> Optional[SensorProfile]:
        """Consulta sin crear (diagnóstico)."""
        return self._profiles.get(node_id)

    def node_ids(self) -> List[int]:
        with self._lock:
            return sorted(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._profiles
