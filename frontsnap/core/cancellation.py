"""Cooperative cancellation for a single resolution flow."""

import threading

from frontsnap.errors import ResolutionCancelled


class CancellationToken:
    """Shared "is this flow still wanted" flag, checked at every collaborator boundary."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str = "") -> None:
        if self._event.is_set():
            raise ResolutionCancelled(f"resolution cancelled before {stage}" if stage else "resolution cancelled")


def ensure_token(token=None) -> CancellationToken:
    return token if token is not None else CancellationToken()
