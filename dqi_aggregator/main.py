from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import make_asgi_app

from . import __version__
from .core.receiver import AggregatorReceiver
from .endpoints import diagnostics_router


def create_app(receiver: AggregatorReceiver) -> FastAPI:
    """App de diagnóstico ligada a un receptor ya construido."""
    app = FastAPI(title="WSN DQI Aggregator", version=__version__)
    app.state.receiver = receiver
    app.include_router(diagnostics_router)
    app.mount("/metrics", make_asgi_app())
    return app
