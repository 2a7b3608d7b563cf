# inyourface/core/errors.py
from __future__ import annotations


class AcquisitionFault(RuntimeError):
    """
    Raised by a calendar source when events cannot be acquired: access denied,
    helper failure, unreadable payload, remote API error or timeout.

    The engine recovers by keeping the previous agenda and raising the sticky
    permission-error flag until the next successful acquisition.
    """


class HostSignalFault(RuntimeError):
    """
    Raised by a host bridge when a window-mode switch or link-open request
    could not be delivered. Always logged by the engine, never propagated.
    """
