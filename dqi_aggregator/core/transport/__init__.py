"""Transport layer - Enlace con los nodos.

El MessageHandler vive en transport/message_handler.py (depende del Dispatcher).
"""

from .base import LoopbackTransport, Transport
from .mqtt_client import MQTTTransport

__all__ = ["LoopbackTransport", "MQTTTransport", "Transport"]
