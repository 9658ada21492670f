"""
Fan-out of computed features to subscribed remote listeners.

Subscribers are identified by ``(host, port)`` and register for one or more
:class:`FeatureEventType` values. The subscription map is guarded by a
reader/writer lock: broadcasting takes the shared side, while subscribe and
unsubscribe take the exclusive side for as long as the map edit lasts. The
socket sessions themselves live behind the :class:`EventSink` protocol.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from queue import Empty, Full, Queue
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256


class FeatureEventType(Enum):
    LOG_POWER = "log_power"
    BAND_POWER = "band_power"
    RMS = "rms"
    WMA = "wma"
    NORMALIZED = "normalized"
    SPECTRUM = "spectrum"


class HostPort(NamedTuple):
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(slots=True)
class FeatureEvent:
    event_type: FeatureEventType
    payload: Any
    created_at: float = field(default_factory=time.time)


class EventSink(Protocol):
    """A remote session able to deliver an event (e.g. a socket wrapper)."""

    def write(self, event: FeatureEvent) -> None:  # pragma: no cover - protocol
        ...


class ReadWriteLock:
    """
    Many concurrent readers or one writer.

    Waiting writers block new readers, so a steady broadcast load cannot
    starve subscription changes.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


def _offer_queue(queue: Queue, item: object) -> None:
    """Best-effort put that drops the oldest payload when the queue is full."""
    try:
        queue.put_nowait(item)
    except Full:
        try:
            dropped = queue.get_nowait()
            logger.warning("Broadcast queue full; dropping %r", dropped)
        except Empty:
            pass
        queue.put_nowait(item)


class SubscriptionHub:
    """Routes :class:`FeatureEvent` objects to the sinks subscribed to them."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._subscriptions: Dict[FeatureEventType, List[HostPort]] = {}
        self._sessions: Dict[HostPort, EventSink] = {}
        self._lock = ReadWriteLock()
        self._queue: Queue[FeatureEvent] = Queue(maxsize=max(1, int(queue_size)))
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ---------------------------------------------------------- subscriptions
    def subscribe(
        self,
        host_port: HostPort,
        sink: EventSink,
        event_types: Iterable[FeatureEventType],
    ) -> None:
        types = list(event_types or ())
        if not types:
            logger.error("No event types to subscribe %s to", host_port)
            return

        with self._lock.write_locked():
            for event_type in types:
                subscribers = self._subscriptions.setdefault(event_type, [])
                if host_port not in subscribers:
                    subscribers.append(host_port)
            self._sessions[host_port] = sink

        logger.info(
            "%s subscribed to %s", host_port, ", ".join(t.value for t in types)
        )

    def unsubscribe(self, host_port: HostPort) -> None:
        logger.info("Disconnecting subscriber %s", host_port)
        with self._lock.write_locked():
            for subscribers in self._subscriptions.values():
                if host_port in subscribers:
                    subscribers.remove(host_port)
            self._sessions.pop(host_port, None)

    def subscribers(self, event_type: FeatureEventType) -> List[HostPort]:
        with self._lock.read_locked():
            return list(self._subscriptions.get(event_type, ()))

    # --------------------------------------------------------------- delivery
    def dispatch(self, event: FeatureEvent) -> int:
        """
        Deliver ``event`` synchronously to its current subscribers.

        Returns the number of sinks that accepted the event. A sink that
        raises is logged and skipped.
        """
        with self._lock.read_locked():
            targets = [
                (hp, self._sessions[hp])
                for hp in self._subscriptions.get(event.event_type, ())
                if hp in self._sessions
            ]

        delivered = 0
        for host_port, sink in targets:
            logger.debug("Sending %s to %s", event.event_type.value, host_port)
            try:
                sink.write(event)
            except Exception:
                logger.exception("Failed to send %s to %s", event.event_type.value, host_port)
                continue
            delivered += 1
        return delivered

    def publish(self, event: FeatureEvent) -> None:
        """Queue ``event`` for delivery on the dispatcher thread."""
        _offer_queue(self._queue, event)

    def start(self, *, thread_name: Optional[str] = None) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=thread_name or "SubscriptionHub",
            daemon=True,
        )
        self._thread.start()

    def stop(self, *, join: bool = True, timeout: Optional[float] = 2.0) -> None:
        self._stop_event.set()
        if join and self._thread is not None:
            self._thread.join(timeout)
        self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                event = self._queue.get(timeout=0.1)
            except Empty:
                continue
            self.dispatch(event)


__all__ = [
    "EventSink",
    "FeatureEvent",
    "FeatureEventType",
    "HostPort",
    "ReadWriteLock",
    "SubscriptionHub",
]
