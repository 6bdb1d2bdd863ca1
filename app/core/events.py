"""Venue-scoped push notifications.

Services depend only on the ``Publisher`` protocol. ``VenueHub`` is the
in-process implementation behind the WebSocket endpoint; its subscriber
table is ephemeral and rebuilt as clients reconnect.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class VenueEventType(StrEnum):
    REQUEST_CREATED = "request_created"
    REQUEST_UPDATED = "request_updated"
    REQUEST_DELETED = "request_deleted"
    VENUE_UPDATED = "venue_updated"


@dataclass
class VenueEvent:
    type: VenueEventType
    data: dict[str, Any] = field(default_factory=dict)

    def to_message(self, venue_id: str) -> dict[str, Any]:
        return {
            "type": str(self.type),
            "venue_id": venue_id,
            "data": self.data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


class Sink(Protocol):
    async def send_json(self, data: Any) -> None: ...


class Publisher(Protocol):
    async def publish(self, venue_id: str, event: VenueEvent) -> None: ...


class VenueHub:
    """Fan-out of venue events to connected sinks (WebSockets in production)."""

    def __init__(self) -> None:
        self._subscribers: dict[str, set[Sink]] = {}

    def subscribe(self, venue_id: str, sink: Sink) -> None:
        self._subscribers.setdefault(venue_id, set()).add(sink)
        logger.info("Subscriber registered for venue %s", venue_id)

    def unsubscribe(self, venue_id: str, sink: Sink) -> None:
        sinks = self._subscribers.get(venue_id)
        if sinks is None:
            return
        sinks.discard(sink)
        if not sinks:
            del self._subscribers[venue_id]
        logger.info("Subscriber removed for venue %s", venue_id)

    async def publish(self, venue_id: str, event: VenueEvent) -> None:
        sinks = list(self._subscribers.get(venue_id, ()))
        if not sinks:
            logger.debug("No subscribers for venue %s", venue_id)
            return

        message = event.to_message(venue_id)
        delivered = 0
        for sink in sinks:
            try:
                await sink.send_json(message)
                delivered += 1
            except Exception:
                logger.warning("Dropping dead subscriber for venue %s", venue_id)
                self.unsubscribe(venue_id, sink)

        logger.debug(
            "Broadcast %s to venue %s: %d/%d delivered",
            event.type, venue_id, delivered, len(sinks),
        )

    def stats(self) -> dict[str, Any]:
        venues = {venue_id: len(sinks) for venue_id, sinks in self._subscribers.items()}
        return {
            "total_connections": sum(venues.values()),
            "total_venues": len(venues),
            "venues": venues,
        }


async def notify(publisher: Publisher, venue_id: str, event: VenueEvent) -> None:
    """Publish without ever failing the caller."""
    try:
        await publisher.publish(venue_id, event)
    except Exception:
        logger.exception("Publishing %s for venue %s failed", event.type, venue_id)


_hub = VenueHub()


def get_publisher() -> VenueHub:
    """FastAPI dependency for the process-wide hub."""
    return _hub
