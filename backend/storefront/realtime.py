# Overview: Realtime pub/sub publishers; rooms are keyed by store or owner id.

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from flask import current_app


EXTENSION_KEY = "storefront.realtime"

EVENT_ORDER_CREATED = "order:created"
EVENT_ORDER_UPDATED = "order:updated"
EVENT_LOW_STOCK = "product:low-stock"


def store_room(store_id: str) -> str:
    return f"store:{store_id}"


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


class RealtimePublisher:
    """Publishes a serializable payload to every subscriber of a room."""

    def publish(self, room: str, event: str, payload: dict) -> None:
        raise NotImplementedError


class LoggingPublisher(RealtimePublisher):
    """Default publisher when no socket server is attached: records events in the app log."""

    def publish(self, room: str, event: str, payload: dict) -> None:
        current_app.logger.info("Realtime %s -> %s", event, room)


@dataclass
class PublishedEvent:
    room: str
    event: str
    payload: dict


@dataclass
class InMemoryPublisher(RealtimePublisher):
    events: list[PublishedEvent] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def publish(self, room: str, event: str, payload: dict) -> None:
        with self._lock:
            self.events.append(PublishedEvent(room, event, payload))

    def for_room(self, room: str) -> list[PublishedEvent]:
        with self._lock:
            return [e for e in self.events if e.room == room]

    def clear(self) -> None:
        with self._lock:
            self.events.clear()


def get_publisher() -> RealtimePublisher:
    return current_app.extensions[EXTENSION_KEY]
