"""Tests for InProcessBroadcaster -- best-effort topic delivery."""

from datetime import datetime, timezone
from uuid import uuid4

from taskboard_bulk.domain.progress import start_event
from taskboard_bulk.domain.types import OperationType
from taskboard_bulk.services.broadcaster import (
    InProcessBroadcaster,
    ProgressBroadcaster,
    topic_for_project,
)

TS = datetime(2024, 6, 15, 9, 30, tzinfo=timezone.utc)


def _event(total=3):
    return start_event("op-1", OperationType.STATUS_UPDATE, total, TS)


class TestTopic:
    def test_project_topic(self):
        project_id = uuid4()
        assert topic_for_project(project_id) == f"project:{project_id}"

    def test_custom_prefix(self):
        assert topic_for_project("abc", "board") == "board:abc"


class TestInProcessBroadcaster:
    def test_satisfies_protocol(self, hub):
        assert isinstance(hub, ProgressBroadcaster)

    def test_delivers_payload_to_topic_subscribers(self, hub):
        received = []
        hub.subscribe("project:1", received.append)

        delivered = hub.publish("project:1", _event())

        assert delivered == 1
        assert received == [_event().to_payload()]

    def test_other_topics_not_delivered(self, hub):
        received = []
        hub.subscribe("project:2", received.append)
        assert hub.publish("project:1", _event()) == 0
        assert received == []

    def test_no_subscribers_is_fine(self, hub):
        assert hub.publish("project:1", _event()) == 0

    def test_no_replay_for_late_subscribers(self, hub):
        hub.publish("project:1", _event())
        received = []
        hub.subscribe("project:1", received.append)
        assert received == []

    def test_unsubscribe(self, hub):
        received = []
        sub = hub.subscribe("project:1", received.append)
        hub.unsubscribe(sub)
        hub.unsubscribe(sub)  # second call is a no-op

        hub.publish("project:1", _event())
        assert received == []
        assert hub.subscriber_count("project:1") == 0

    def test_failing_subscriber_isolated(self, hub, captured_logs):
        received = []

        def broken(payload):
            raise RuntimeError("socket closed")

        hub.subscribe("project:1", broken)
        hub.subscribe("project:1", received.append)

        delivered = hub.publish("project:1", _event())

        assert delivered == 1
        assert len(received) == 1
        assert any(
            r["message"] == "subscriber_delivery_failed" for r in captured_logs()
        )

    def test_subscribers_get_independent_copies(self, hub):
        first, second = [], []

        def mutate(payload):
            payload["total"] = -1
            first.append(payload)

        hub.subscribe("project:1", mutate)
        hub.subscribe("project:1", second.append)
        hub.publish("project:1", _event(total=3))

        assert second[0]["total"] == 3
