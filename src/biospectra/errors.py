"""Exception types raised by biospectra."""

from __future__ import annotations


class InvalidArgument(ValueError):
    """A caller-supplied argument violates an operation's precondition.

    Raised before any work is done, so no partial result is ever produced.
    """


__all__ = ["InvalidArgument"]
