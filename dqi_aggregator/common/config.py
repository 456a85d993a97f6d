from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class WindowConfig:
    """Ventana de observación del Feedback Scheduler.

    La frontera de la ventana k (base 0) está en el tick (k + 1) * size + offset.
    `max_catchup` acota cuántas ventanas se cierran una a una tras un salto
    de tick; por encima se saltan las intermedias y se cierra solo la última.
    """
    size: int = 200
    offset: int = 30
    max_catchup: int = 16

    def __post_init__(self):
        if self.size <= 0:
            raise ValueError(f"Invalid window size: {self.size} (must be > 0)")
        if self.offset < 0:
            raise ValueError(f"Invalid window offset: {self.offset} (must be >= 0)")
        if self.max_catchup < 1:
            raise ValueError(f"Invalid max_catchup: {self.max_catchup} (must be >= 1)")

    @classmethod
    def from_env(cls) -> "WindowConfig":
        return cls(
            size=int(os.getenv("DQI_WINDOW_SIZE", "200")),
            offset=int(os.getenv("DQI_WINDOW_OFFSET", "30")),
            max_catchup=int(os.getenv("DQI_MAX_CATCHUP_WINDOWS", "16")),
        )

    def boundary(self, window_index: int) -> int:
        """Tick de cierre de la ventana `window_index`."""
        return (window_index + 1) * self.size + self.offset

    def window_for(self, tick: int) -> int:
        """Índice de la primera ventana cuya frontera `tick` no supera."""
        # ceil((tick - offset) / size) - 1, sin pasar por float
        return max(0, -((self.offset - tick) // self.size) - 1)


@dataclass(frozen=True)
class EstimatorConfig:
    """Pesos del estimador de DQI."""
    received_weight: float = 0.8
    priority_weight: float = 0.2

    @classmethod
    def from_env(cls) -> "EstimatorConfig":
        return cls(
            received_weight=float(os.getenv("DQI_RECEIVED_WEIGHT", "0.8")),
            priority_weight=float(os.getenv("DQI_PRIORITY_WEIGHT", "0.2")),
        )


@dataclass(frozen=True)
class Settings:
    mqtt_host: str
    mqtt_port: int
    mqtt_username: str | None
    mqtt_password: str | None
    mqtt_client_id: str
    topic_prefix: str

    # Id reservado del eco de auto-estimación del nodo
    self_estimate_msg_id: int

    api_host: str
    api_port: int
    log_level: str

    window: WindowConfig = field(default_factory=WindowConfig)
    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)


def get_settings() -> Settings:
    # Carga el .env (si existe) sin pisar variables reales del entorno.
    env_file = os.getenv("AGGREGATOR_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    return Settings(
        mqtt_host=os.getenv("MQTT_BROKER_HOST", "localhost"),
        mqtt_port=int(os.getenv("MQTT_BROKER_PORT", "1883")),
        mqtt_username=os.getenv("MQTT_USERNAME") or None,
        mqtt_password=os.getenv("MQTT_PASSWORD") or None,
        mqtt_client_id=os.getenv("MQTT_CLIENT_ID", "dqi-aggregator"),
        topic_prefix=os.getenv("MQTT_TOPIC_PREFIX", "wsn"),
        self_estimate_msg_id=int(os.getenv("DQI_SELF_ESTIMATE_MSG_ID", "3000")),
        api_host=os.getenv("API_HOST", "127.0.0.1"),
        api_port=int(os.getenv("API_PORT", "8010")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        window=WindowConfig.from_env(),
        estimator=EstimatorConfig.from_env(),
    )
