"""Cancellation token threaded through one acquisition run."""

import threading

from .exceptions import AcquisitionCancelled

class CancellationToken:
    """
    Cooperative cancellation flag.

    A blocking request cannot be interrupted, so stages call
    raise_if_cancelled() between steps and right after each network call
    returns. Once cancelled, a token stays cancelled.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AcquisitionCancelled("Acquisition run was cancelled.")

# Shared token for callers that never cancel
NEVER_CANCELLED = CancellationToken()
