"""
ProgressBroadcaster -- best-effort pub/sub for progress events.

Contract:
    ``publish(topic, event)`` hands the event's JSON payload to whoever is
    subscribed to ``topic`` right now.  Fire-and-forget: no acknowledgment,
    no retry, no buffering for subscribers that connect later.  Consumers
    reload authoritative state once they see a terminal event.

Architecture: taskboard_bulk/services.  Imports from taskboard_bulk.domain
    and the kernel logger only.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable
from uuid import UUID, uuid4

from taskboard_kernel.logging_config import get_logger

from taskboard_bulk.domain.types import ProgressEvent

logger = get_logger("bulk.broadcaster")

Subscriber = Callable[[dict[str, Any]], None]

DEFAULT_TOPIC_PREFIX = "project"


def topic_for_project(project_id: UUID | str, prefix: str = DEFAULT_TOPIC_PREFIX) -> str:
    """Deterministic topic name for a project's progress stream."""
    return f"{prefix}:{project_id}"


@runtime_checkable
class ProgressBroadcaster(Protocol):
    """Anything that can deliver a progress event to a topic."""

    def publish(self, topic: str, event: ProgressEvent) -> None: ...


@dataclass(frozen=True)
class Subscription:
    """Handle returned by ``subscribe()``; pass it back to unsubscribe."""

    subscription_id: UUID
    topic: str


class InProcessBroadcaster:
    """Thread-safe in-process topic hub.

    Contract:
        - ``subscribe()`` registers a callback for one topic.
        - ``publish()`` delivers to a snapshot of the topic's subscribers
          and returns how many accepted the payload.
        - A subscriber that raises is logged and skipped; the remaining
          subscribers still receive the event and the publisher never sees
          the error.

    Non-goals:
        - No replay for late subscribers.
        - No cross-process delivery.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, dict[UUID, Subscriber]] = {}

    def subscribe(self, topic: str, callback: Subscriber) -> Subscription:
        subscription = Subscription(subscription_id=uuid4(), topic=topic)
        with self._lock:
            self._subscribers.setdefault(topic, {})[subscription.subscription_id] = callback
        logger.debug("subscriber_added", extra={"topic": topic})
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            topic_subs = self._subscribers.get(subscription.topic)
            if topic_subs is None:
                return
            topic_subs.pop(subscription.subscription_id, None)
            if not topic_subs:
                del self._subscribers[subscription.topic]
        logger.debug("subscriber_removed", extra={"topic": subscription.topic})

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, {}))

    def publish(self, topic: str, event: ProgressEvent) -> int:
        payload = event.to_payload()
        with self._lock:
            callbacks = tuple(self._subscribers.get(topic, {}).values())

        delivered = 0
        for callback in callbacks:
            try:
                callback(dict(payload))
                delivered += 1
            except Exception:
                logger.warning(
                    "subscriber_delivery_failed",
                    exc_info=True,
                    extra={"topic": topic, "event_operation_id": event.operation_id},
                )

        logger.debug(
            "progress_published",
            extra={
                "topic": topic,
                "delivered": delivered,
                "processed": event.processed,
                "total": event.total,
                "terminal": event.is_terminal,
            },
        )
        return delivered
