"""Domain layer - Mensajes, perfil por nodo y errores."""

from .errors import AggregatorError, MalformedMessageError, TransportError
from .messages import (
    SELF_ESTIMATE_MSG_ID,
    AckKind,
    Acknowledgment,
    Feedback,
    MessageKind,
    QualityReport,
    Reading,
    SelfEstimate,
)
from .profile import IngestOutcome, ProfileState, SensorProfile

__all__ = [
    "SELF_ESTIMATE_MSG_ID",
    "AckKind",
    "Acknowledgment",
    "AggregatorError",
    "Feedback",
    "IngestOutcome",
    "MalformedMessageError",
    "MessageKind",
    "ProfileState",
    "QualityReport",
    "Reading",
    "SelfEstimate",
    "SensorProfile",
    "TransportError",
]
