"""Tests del camino enlace → dominio: JSON, esquemas, adaptador y cliente MQTT."""

from unittest.mock import MagicMock

import orjson
import paho.mqtt.client as mqtt
import pytest

from dqi_aggregator.core.adapters.radio_adapter import RadioAdapter
from dqi_aggregator.core.domain.errors import MalformedMessageError, TransportError
from dqi_aggregator.core.domain.messages import (
    Acknowledgment,
    AckKind,
    Feedback,
    MessageKind,
    QualityReport,
    Reading,
    SelfEstimate,
)
from dqi_aggregator.core.monitoring.stats import Stats
from dqi_aggregator.core.transport.message_handler import MessageHandler
from dqi_aggregator.core.transport.mqtt_client import MQTTTransport


@pytest.fixture
def adapter() -> RadioAdapter:
    return RadioAdapter()


@pytest.fixture
def handler(dispatcher) -> MessageHandler:
    return MessageHandler(dispatcher)


def _payload(data) -> bytes:
    return orjson.dumps(data)


# =============================================================================
# ADAPTADOR
# =============================================================================

class TestRadioAdapter:

    def test_reading_with_firmware_names(self, adapter):
        msg = adapter.to_message(
            "reading", {"sensorId": 7, "msgId": 1, "tag": 1, "readings": [10, 20], "times": [0, 1]}
        )

        assert msg == Reading(node_id=7, msg_id=1, tag=1, values=(10.0, 20.0), ticks=(0, 1))

    def test_reading_with_snake_case(self, adapter):
        msg = adapter.to_message(
            MessageKind.READING, {"sensor_id": 7, "msg_id": 1, "values": [10], "ticks": [4]}
        )

        assert msg.node_id == 7
        assert msg.ticks == (4,)
        assert msg.tag == 0

    def test_quality_report(self, adapter):
        msg = adapter.to_message(
            "quality",
            {"sensorId": 3, "msgId": 8, "priorityCount": 2, "startId": 10, "endId": 20, "values": [1500, 2500]},
        )

        assert isinstance(msg, QualityReport)
        assert (msg.start_tick, msg.end_tick, msg.priority_count) == (10, 20, 2)

    def test_upstream_ack(self, adapter):
        msg = adapter.to_message("ack", {"sensorId": 3, "msgId": 8, "msgType": 1})

        assert msg == Acknowledgment(node_id=3, msg_id=8, ack_kind=AckKind.READING_ACK)

    def test_explicit_self_estimate(self, adapter):
        msg = adapter.to_message(
            "estimate", {"sensorId": 3, "estimatedDqi": 0.9, "estimatedDropRate": 0.05, "counters": [1, 2, 3]}
        )

        assert isinstance(msg, SelfEstimate)
        assert msg.counters == (1, 2, 3)

    @pytest.mark.parametrize(
        "kind,data",
        [
            ("reading", {"msgId": 1, "readings": [1], "times": [0]}),              # sin sensorId
            ("reading", {"sensorId": 7, "readings": [1], "times": [0]}),           # sin msgId
            ("reading", {"sensorId": -1, "msgId": 1, "readings": [], "times": []}),
            ("reading", {"sensorId": 7, "msgId": 1, "readings": ["x"], "times": [0]}),
            ("quality", {"sensorId": 7, "msgId": 1, "startId": 0}),                # sin endId
            ("ack", {"sensorId": 7, "msgId": 1, "msgType": 5}),
            ("feedback", {"sensorId": 7}),
            ("bogus", {"sensorId": 7}),
        ],
    )
    def test_invalid_payloads_rejected(self, adapter, kind, data):
        with pytest.raises(MalformedMessageError):
            adapter.to_message(kind, data)

    def test_encode_ack(self, adapter):
        data = orjson.loads(adapter.encode(Acknowledgment(node_id=7, msg_id=1, ack_kind=AckKind.REPORT_ACK)))

        assert data == {"type": "ack", "sensorId": 7, "msgId": 1, "msgType": 0}

    def test_encode_feedback_fixed_point(self, adapter):
        fb = Feedback(
            node_id=7,
            estimated_dqi=0.21017,
            estimated_drop_rate=0.98729,
            window_index=0,
            window_start=30,
            window_end=230,
        )

        data = orjson.loads(adapter.encode(fb))

        assert data["type"] == "feedback"
        assert data["dqi"] == 2102
        assert data["dropRate"] == 9873
        assert data["windowEnd"] == 230


# =============================================================================
# HANDLER
# =============================================================================

class TestMessageHandler:

    def test_kind_from_topic(self, handler, transport, registry):
        handler.handle(
            "wsn/up/reading",
            _payload({"sensorId": 7, "msgId": 1, "tag": 1, "readings": [10, 20], "times": [0, 1]}),
        )

        assert registry.get(7).received_count == 2
        assert transport.sent == [Acknowledgment(node_id=7, msg_id=1, ack_kind=AckKind.READING_ACK)]

    def test_type_field_overrides_topic(self, handler, registry):
        handler.handle(
            "wsn/up/anything",
            _payload({"type": "quality", "sensorId": 4, "msgId": 2, "startId": 0, "endId": 3}),
        )

        assert registry.get(4).last_self_reported.end_tick == 3

    def test_invalid_json_counted(self, handler, dispatcher, transport):
        handler.handle("wsn/up/reading", b"{not json")

        assert dispatcher.stats.malformed == 1
        assert transport.sent == []

    def test_non_object_json_counted(self, handler, dispatcher):
        handler.handle("wsn/up/reading", b"[1, 2, 3]")

        assert dispatcher.stats.malformed == 1

    def test_schema_violation_counted(self, handler, dispatcher, registry):
        handler.handle("wsn/up/reading", _payload({"sensorId": "abc", "msgId": 1}))

        assert dispatcher.stats.malformed == 1
        assert len(registry) == 0

    def test_unexpected_error_is_contained(self, transport):
        dispatcher = MagicMock()
        dispatcher.handle.side_effect = RuntimeError("boom")
        dispatcher.stats = Stats()
        handler = MessageHandler(dispatcher)

        handler.handle("wsn/up/ack", _payload({"sensorId": 1, "msgId": 1, "msgType": 0}))

        assert dispatcher.stats.failed == 1


# =============================================================================
# CLIENTE MQTT
# =============================================================================

class TestMQTTTransport:

    def test_topics(self):
        link = MQTTTransport(topic_prefix="lab/wsn/")

        assert link.uplink_topic == "lab/wsn/up/+"
        assert link.broadcast_topic == "lab/wsn/down/broadcast"

    def test_broadcast_when_disconnected_raises(self):
        link = MQTTTransport()

        with pytest.raises(TransportError):
            link.broadcast(Acknowledgment(node_id=1, msg_id=1, ack_kind=AckKind.REPORT_ACK))

    def test_broadcast_publishes_encoded_payload(self):
        link = MQTTTransport(topic_prefix="wsn")
        link._client = MagicMock()
        link._client.publish.return_value = MagicMock(rc=mqtt.MQTT_ERR_SUCCESS)
        link._link_up.set()

        link.broadcast(Acknowledgment(node_id=1, msg_id=9, ack_kind=AckKind.READING_ACK))

        topic, payload = link._client.publish.call_args[0]
        assert topic == "wsn/down/broadcast"
        assert orjson.loads(payload)["msgId"] == 9

    def test_publish_error_raises_transport_error(self):
        link = MQTTTransport()
        link._client = MagicMock()
        link._client.publish.return_value = MagicMock(rc=mqtt.MQTT_ERR_NO_CONN)
        link._link_up.set()

        with pytest.raises(TransportError):
            link.broadcast(Acknowledgment(node_id=1, msg_id=9, ack_kind=AckKind.READING_ACK))

    def test_on_message_delegates_to_handler(self):
        link = MQTTTransport()
        received = []
        link.set_message_handler(lambda topic, payload: received.append((topic, payload)))

        link._on_message(None, None, MagicMock(topic="wsn/up/reading", payload=b"{}"))

        assert received == [("wsn/up/reading", b"{}")]

    def test_connack_subscribes_and_marks_link_up(self):
        link = MQTTTransport(topic_prefix="wsn")
        client = MagicMock()

        link._on_connect(client, None, None, MagicMock(is_failure=False), None)

        client.subscribe.assert_called_once_with("wsn/up/+", qos=0)
        assert link.is_connected() is True

    def test_refused_connack_keeps_link_down(self):
        link = MQTTTransport()
        client = MagicMock()

        link._on_connect(client, None, None, MagicMock(is_failure=True), None)

        client.subscribe.assert_not_called()
        assert link.is_connected() is False

    def test_disconnect_callback_blocks_broadcast(self):
        """Tras perder el enlace, broadcast falla con TransportError hasta reconectar."""
        link = MQTTTransport()
        link._client = MagicMock()
        link._on_connect(link._client, None, None, MagicMock(is_failure=False), None)

        link._on_disconnect(link._client, None, None, MagicMock(is_failure=True), None)

        assert link.is_connected() is False
        with pytest.raises(TransportError):
            link.broadcast(Acknowledgment(node_id=1, msg_id=9, ack_kind=AckKind.READING_ACK))

    def test_connect_unreachable_broker_returns_false(self, monkeypatch):
        client = MagicMock()
        client.connect.side_effect = ConnectionRefusedError("refused")
        monkeypatch.setattr(mqtt, "Client", MagicMock(return_value=client))

        assert MQTTTransport(connect_timeout=0.1).connect() is False
        client.loop_start.assert_not_called()

    def test_connect_without_connack_times_out(self, monkeypatch):
        client = MagicMock()
        monkeypatch.setattr(mqtt, "Client", MagicMock(return_value=client))

        assert MQTTTransport(connect_timeout=0.05).connect() is False
        client.loop_stop.assert_called_once()
