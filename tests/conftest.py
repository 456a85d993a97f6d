"""Fixtures compartidas."""

import pytest

from dqi_aggregator.common.config import EstimatorConfig, Settings, WindowConfig
from dqi_aggregator.core.dispatcher import Dispatcher
from dqi_aggregator.core.registry import ProfileRegistry
from dqi_aggregator.core.scheduler import FeedbackScheduler
from dqi_aggregator.core.transport.base import LoopbackTransport


@pytest.fixture
def transport() -> LoopbackTransport:
    """Enlace en memoria que registra lo enviado."""
    return LoopbackTransport()


@pytest.fixture
def registry() -> ProfileRegistry:
    return ProfileRegistry()


@pytest.fixture
def dispatcher(transport, registry) -> Dispatcher:
    """Dispatcher con ventana W=200, O=30."""
    return Dispatcher(
        transport,
        registry=registry,
        scheduler=FeedbackScheduler(WindowConfig(size=200, offset=30)),
    )


@pytest.fixture
def settings() -> Settings:
    """Settings explícitas, sin depender del entorno."""
    return Settings(
        mqtt_host="localhost",
        mqtt_port=1883,
        mqtt_username=None,
        mqtt_password=None,
        mqtt_client_id="test-aggregator",
        topic_prefix="wsn",
        self_estimate_msg_id=3000,
        api_host="127.0.0.1",
        api_port=8010,
        log_level="INFO",
        window=WindowConfig(size=200, offset=30),
        estimator=EstimatorConfig(received_weight=0.8, priority_weight=0.2),
    )
