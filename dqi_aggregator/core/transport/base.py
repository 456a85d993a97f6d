"""Interfaz abstracta del enlace hacia los nodos.

Desacopla el Dispatcher de la implementación del enlace (MQTT, loopback).
El enlace no es confiable: puede perder, duplicar y reordenar mensajes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..domain.errors import TransportError


class Transport(ABC):
    """Enlace con primitiva de envío broadcast.

    Implementaciones:
    - MQTTTransport: pasarela de radio vía broker MQTT
    - LoopbackTransport: en memoria, para pruebas
    """

    @abstractmethod
    def broadcast(self, message) -> None:
        """Envía el mensaje a todos los nodos (fire-and-forget).

        Raises:
            TransportError: el enlace no pudo aceptar el mensaje
        """

    @abstractmethod
    def is_connected(self) -> bool:
        """Indica si el enlace está disponible."""


class LoopbackTransport(Transport):
    """Enlace en memoria que registra todo lo enviado."""

    def __init__(self) -> None:
        self.sent: List[object] = []
        self.fail = False

    def broadcast(self, message) -> None:
        if self.fail:
            raise TransportError("loopback transport unavailable")
        self.sent.append(message)

    def is_connected(self) -> bool:
        return not self.fail

    def sent_of(self, cls) -> list:
        """Mensajes enviados de un tipo concreto, en orden."""
        return [m for m in self.sent if isinstance(m, cls)]
