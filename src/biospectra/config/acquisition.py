"""Sample rate / sample size state shared by acquisition and analysis."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from numbers import Integral
from typing import Callable, Dict, Optional, Protocol, Tuple

from ..decimal_math import divide_decimal
from ..errors import InvalidArgument

logger = logging.getLogger(__name__)

ONE_THOUSAND = 1_000
ONE_MILLION = 1_000_000
ONE_BILLION = 1_000_000_000


class TimeUnit(Enum):
    """Resolution used to pace sampling; the value is ticks per second."""

    MILLI = ONE_THOUSAND
    MICRO = ONE_MILLION
    NANO = ONE_BILLION

    @classmethod
    def for_sample_rate(cls, sample_rate: int) -> "TimeUnit":
        if sample_rate <= ONE_THOUSAND:
            return cls.MILLI
        if sample_rate <= ONE_MILLION:
            return cls.MICRO
        return cls.NANO


class DSPValueListener(Protocol):
    """Callbacks fired after the sample rate or sample size changes."""

    def on_sample_rate_changed(self) -> None:  # pragma: no cover - protocol
        ...

    def on_sample_size_changed(self) -> None:  # pragma: no cover - protocol
        ...


@dataclass(frozen=True)
class ListenerHandle:
    """Opaque token returned by :meth:`AcquisitionConfig.add_listener`."""

    id: int


_Callbacks = Tuple[Callable[[], None], Callable[[], None]]
_handle_ids = itertools.count(1)


def is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


class AcquisitionConfig:
    """
    Holds the sample rate and sample block size of an acquisition session.

    The time unit and sleep interval are derived from the sample rate and are
    recomputed synchronously whenever it changes. Registered listeners are
    called in registration order, on the calling thread, after every change
    to either value.
    """

    def __init__(self, sample_rate: int, sample_size: int) -> None:
        self._listeners: Dict[ListenerHandle, _Callbacks] = {}
        self._sample_rate = 0
        self._sample_size = 0
        self._time_unit = TimeUnit.MILLI
        self.set_sample_rate(sample_rate)
        self.set_sample_size(sample_size)

    # ------------------------------------------------------------ properties
    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def sample_size(self) -> int:
        return self._sample_size

    @property
    def time_unit(self) -> TimeUnit:
        return self._time_unit

    @property
    def upper_measurable_frequency(self) -> float:
        """Nyquist frequency (half the sample rate) in Hz."""
        return self._sample_rate / 2

    # -------------------------------------------------------------- mutation
    def set_sample_rate(self, sample_rate: int) -> None:
        if isinstance(sample_rate, bool) or not isinstance(sample_rate, Integral):
            raise InvalidArgument(f"Sample rate must be an integer: {sample_rate!r}")
        if sample_rate <= 0:
            raise InvalidArgument(f"Sample rate must be greater than zero: {sample_rate}")

        changed = int(sample_rate) != self._sample_rate
        self._sample_rate = int(sample_rate)
        self._time_unit = TimeUnit.for_sample_rate(self._sample_rate)
        if not changed:
            return

        logger.debug(
            "Sample rate set to %d Hz (%s)", self._sample_rate, self._time_unit.name
        )
        self._notify(0)

    def set_sample_size(self, sample_size: int) -> None:
        if isinstance(sample_size, bool) or not isinstance(sample_size, Integral):
            raise InvalidArgument(f"Sample size must be an integer: {sample_size!r}")
        if not is_power_of_two(int(sample_size)):
            raise InvalidArgument(f"Sample size must be a power of two: {sample_size}")

        if int(sample_size) == self._sample_size:
            return
        self._sample_size = int(sample_size)

        logger.debug("Sample size set to %d", self._sample_size)
        self._notify(1)

    # ---------------------------------------------------------------- timing
    def get_sleep_interval(self) -> int:
        """
        Return the pause between samples, expressed in :attr:`time_unit` ticks.

        The division is done in decimal and rounded half-up to a whole tick,
        so e.g. 1000 Hz gives exactly 1 ms and 3 Hz gives 333 ms.
        """
        return int(divide_decimal(self._time_unit.value, self._sample_rate, 0))

    @property
    def sleep_interval_seconds(self) -> float:
        return self.get_sleep_interval() / self._time_unit.value

    # ------------------------------------------------------------- listeners
    def _notify(self, slot: int) -> None:
        """
        Run callback ``slot`` of every listener, in registration order.

        A failing listener does not stop the others from being told; the first
        error is re-raised once every listener has run.
        """
        first_error: Optional[Exception] = None
        for callbacks in list(self._listeners.values()):
            try:
                callbacks[slot]()
            except Exception as exc:
                if first_error is not None:
                    logger.exception("DSP value listener failed")
                    continue
                first_error = exc
        if first_error is not None:
            raise first_error

    def add_listener(self, listener: DSPValueListener) -> ListenerHandle:
        handle = ListenerHandle(next(_handle_ids))
        self._listeners[handle] = (
            listener.on_sample_rate_changed,
            listener.on_sample_size_changed,
        )
        return handle

    def remove_listener(self, handle: ListenerHandle) -> None:
        """Unregister ``handle``; raises ``KeyError`` if it is not registered."""
        del self._listeners[handle]

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return (
            f"AcquisitionConfig(sample_rate={self._sample_rate}, "
            f"sample_size={self._sample_size})"
        )


__all__ = [
    "AcquisitionConfig",
    "DSPValueListener",
    "ListenerHandle",
    "TimeUnit",
    "is_power_of_two",
    "ONE_THOUSAND",
    "ONE_MILLION",
    "ONE_BILLION",
]
