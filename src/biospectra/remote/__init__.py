"""Distribution of computed features to remote subscribers."""

from .broadcast import (
    EventSink,
    FeatureEvent,
    FeatureEventType,
    HostPort,
    ReadWriteLock,
    SubscriptionHub,
)

__all__ = [
    "EventSink",
    "FeatureEvent",
    "FeatureEventType",
    "HostPort",
    "ReadWriteLock",
    "SubscriptionHub",
]
