from __future__ import annotations

import threading
import time

from biospectra.remote.broadcast import (
    FeatureEvent,
    FeatureEventType,
    HostPort,
    ReadWriteLock,
    SubscriptionHub,
)


class ListSink:
    def __init__(self) -> None:
        self.events: list[FeatureEvent] = []

    def write(self, event: FeatureEvent) -> None:
        self.events.append(event)


class BrokenSink:
    def write(self, event: FeatureEvent) -> None:
        raise ConnectionError("socket closed")


def test_dispatch_reaches_only_matching_subscribers() -> None:
    hub = SubscriptionHub()
    power_sink, rms_sink = ListSink(), ListSink()
    hub.subscribe(HostPort("10.0.0.1", 9000), power_sink, [FeatureEventType.LOG_POWER])
    hub.subscribe(HostPort("10.0.0.2", 9000), rms_sink, [FeatureEventType.RMS])

    event = FeatureEvent(FeatureEventType.LOG_POWER, {10.0: -3.2})
    assert hub.dispatch(event) == 1

    assert power_sink.events == [event]
    assert rms_sink.events == []


def test_subscribe_is_idempotent_per_type() -> None:
    hub = SubscriptionHub()
    sink = ListSink()
    hp = HostPort("localhost", 1234)
    hub.subscribe(hp, sink, [FeatureEventType.RMS, FeatureEventType.WMA])
    hub.subscribe(hp, sink, [FeatureEventType.RMS])

    assert hub.subscribers(FeatureEventType.RMS) == [hp]
    assert hub.dispatch(FeatureEvent(FeatureEventType.RMS, 1.0)) == 1


def test_empty_subscription_is_ignored(caplog) -> None:
    hub = SubscriptionHub()
    hp = HostPort("localhost", 1234)
    hub.subscribe(hp, ListSink(), [])
    assert "No event types" in caplog.text
    assert all(not hub.subscribers(t) for t in FeatureEventType)


def test_unsubscribe_removes_everywhere() -> None:
    hub = SubscriptionHub()
    sink = ListSink()
    hp = HostPort("localhost", 1234)
    hub.subscribe(hp, sink, list(FeatureEventType))
    hub.unsubscribe(hp)
    hub.unsubscribe(hp)

    for event_type in FeatureEventType:
        assert hub.dispatch(FeatureEvent(event_type, None)) == 0
    assert sink.events == []


def test_failing_sink_does_not_block_others(caplog) -> None:
    hub = SubscriptionHub()
    good = ListSink()
    hub.subscribe(HostPort("a", 1), BrokenSink(), [FeatureEventType.BAND_POWER])
    hub.subscribe(HostPort("b", 2), good, [FeatureEventType.BAND_POWER])

    delivered = hub.dispatch(FeatureEvent(FeatureEventType.BAND_POWER, -10.0))

    assert delivered == 1
    assert len(good.events) == 1
    assert "Failed to send" in caplog.text


def test_publish_delivers_on_background_thread() -> None:
    hub = SubscriptionHub()
    sink = ListSink()
    hub.subscribe(HostPort("localhost", 1), sink, [FeatureEventType.SPECTRUM])
    hub.start()
    try:
        assert hub.is_running()
        hub.publish(FeatureEvent(FeatureEventType.SPECTRUM, [1.0, 2.0]))
        timeout = time.time() + 2.0
        while time.time() < timeout and not sink.events:
            time.sleep(0.01)
    finally:
        hub.stop()

    assert len(sink.events) == 1
    assert not hub.is_running()


def test_publish_drops_oldest_when_full() -> None:
    hub = SubscriptionHub(queue_size=2)
    sink = ListSink()
    hub.subscribe(HostPort("localhost", 1), sink, [FeatureEventType.WMA])
    for value in range(3):
        hub.publish(FeatureEvent(FeatureEventType.WMA, value))

    hub.start()
    try:
        timeout = time.time() + 2.0
        while time.time() < timeout and len(sink.events) < 2:
            time.sleep(0.01)
    finally:
        hub.stop()

    assert [e.payload for e in sink.events] == [1, 2]


def test_read_lock_is_shared_and_write_lock_exclusive() -> None:
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=2.0)

    def reader() -> None:
        with lock.read_locked():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(2.0)
    assert not inside.broken

    order: list[str] = []

    def late_reader() -> None:
        with lock.read_locked():
            order.append("reader")

    with lock.write_locked():
        t = threading.Thread(target=late_reader)
        t.start()
        time.sleep(0.05)
        order.append("writer")
    t.join(2.0)
    assert order == ["writer", "reader"]
