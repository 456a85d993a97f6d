"""Taxonomía de errores del agregador."""

from __future__ import annotations


class AggregatorError(Exception):
    """Error base del agregador."""


class TransportError(AggregatorError):
    """Fallo de envío o de conexión del enlace. Nunca es fatal."""


class MalformedMessageError(AggregatorError):
    """Mensaje rechazado antes de la ingesta (no se envía ACK)."""

    def __init__(self, reason: str, node_id: int | None = None, msg_id: int | None = None):
        self.reason = reason
        self.node_id = node_id
        self.msg_id = msg_id
        super().__init__(f"{reason} (node={node_id} msg={msg_id})")
