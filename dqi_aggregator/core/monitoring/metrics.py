"""Métricas Prometheus del agregador."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

MESSAGES_HANDLED = Counter(
    "dqi_aggregator_messages_total",
    "Inbound messages handled by the dispatcher",
    ["kind", "status"],  # status: processed, malformed, failed
)

ACKS_SENT = Counter(
    "dqi_aggregator_acks_sent_total",
    "Acknowledgments broadcast to nodes",
    ["ack_kind"],
)

FEEDBACK_SENT = Counter(
    "dqi_aggregator_feedback_sent_total",
    "Feedback reports broadcast on window close",
)

SEND_FAILURES = Counter(
    "dqi_aggregator_send_failures_total",
    "Broadcasts that failed at the transport",
    ["kind"],
)

NODES_TRACKED = Gauge(
    "dqi_aggregator_nodes_tracked",
    "Number of node profiles in the registry",
)
