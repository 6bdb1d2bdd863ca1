"""VenueHub fan-out and the never-failing notify helper."""

import pytest

from app.core.events import VenueEvent, VenueEventType, VenueHub, notify


class BrokenSink:
    async def send_json(self, data) -> None:
        raise ConnectionError("socket closed")


class BrokenPublisher:
    async def publish(self, venue_id, event) -> None:
        raise RuntimeError("hub down")


@pytest.mark.asyncio
async def test_publish_reaches_only_that_venue(hub: VenueHub, sink):
    other = type(sink)()
    hub.subscribe("a", sink)
    hub.subscribe("b", other)

    await hub.publish("a", VenueEvent(VenueEventType.VENUE_UPDATED, {"name": "New"}))

    assert len(sink.messages) == 1
    message = sink.messages[0]
    assert message["type"] == "venue_updated"
    assert message["venue_id"] == "a"
    assert message["data"] == {"name": "New"}
    assert "timestamp" in message
    assert other.messages == []


@pytest.mark.asyncio
async def test_failing_sink_is_dropped(hub: VenueHub, sink):
    hub.subscribe("a", sink)
    hub.subscribe("a", BrokenSink())

    await hub.publish("a", VenueEvent(VenueEventType.REQUEST_DELETED, {"request_id": 1}))

    assert len(sink.messages) == 1
    assert hub.stats() == {"total_connections": 1, "total_venues": 1, "venues": {"a": 1}}


@pytest.mark.asyncio
async def test_publish_without_subscribers(hub: VenueHub):
    await hub.publish("empty", VenueEvent(VenueEventType.REQUEST_CREATED))
    assert hub.stats()["total_venues"] == 0


def test_unsubscribe_forgets_empty_venue(hub: VenueHub, sink):
    hub.subscribe("a", sink)
    hub.unsubscribe("a", sink)
    hub.unsubscribe("a", sink)
    assert hub.stats() == {"total_connections": 0, "total_venues": 0, "venues": {}}


@pytest.mark.asyncio
async def test_notify_swallows_publisher_errors():
    await notify(BrokenPublisher(), "a", VenueEvent(VenueEventType.REQUEST_CREATED))
