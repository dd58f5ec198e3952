"""
Version-stamped store for the state the presentation layer observes.

Every operation takes a token from begin(). Writes carrying anything but the
latest issued token are discarded, so the most recently started operation
decides what is shown, whatever order results arrive in.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Set

from .models import AccountSnapshot, SubmissionResult

logger = logging.getLogger(__name__)

Listener = Callable[["StateView"], None]


@dataclass(frozen=True)
class StateView:
    """
    Read-only view of the observable slots.

    Attributes:
        snapshot: Currently displayed account snapshot, if any
        error: Current user-facing error message, if any
        busy: True while any operation is in flight
        submission: Latest transfer and its confirmation status, if any
    """
    snapshot: Optional[AccountSnapshot] = None
    error: Optional[str] = None
    busy: bool = False
    submission: Optional[SubmissionResult] = None


class StateStore:
    """Thread-safe holder of the snapshot, error, busy and submission slots."""

    def __init__(self):
        self._lock = threading.RLock()
        self._latest = 0
        self._open: Set[int] = set()
        self._view = StateView()
        self._listeners: List[Listener] = []

    @property
    def view(self) -> StateView:
        with self._lock:
            return self._view

    @property
    def latest_token(self) -> int:
        with self._lock:
            return self._latest

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with the new view after every change.

        Returns:
            A function that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _replace(self, **changes) -> None:
        # Caller holds the lock
        current = self._view
        self._view = StateView(
            snapshot=changes.get("snapshot", current.snapshot),
            error=changes.get("error", current.error),
            busy=bool(self._open),
            submission=changes.get("submission", current.submission),
        )

    def _notify(self, view: StateView) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(view)
            except Exception:
                logger.exception("State listener failed")

    def begin(self) -> int:
        """Start an operation: issue a new token, clear the error, mark busy."""
        with self._lock:
            self._latest += 1
            token = self._latest
            self._open.add(token)
            self._replace(error=None)
            view = self._view
        self._notify(view)
        return token

    def finish(self, token: int) -> None:
        """End an operation; busy clears once no operation is open."""
        with self._lock:
            self._open.discard(token)
            self._replace()
            view = self._view
        self._notify(view)

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._latest

    def _write(self, token: int, slot: str, **changes) -> bool:
        with self._lock:
            if token != self._latest:
                logger.debug(f"Discarding stale {slot} update from operation {token} (latest {self._latest})")
                return False
            self._replace(**changes)
            view = self._view
        self._notify(view)
        return True

    def set_snapshot(self, token: int, snapshot: Optional[AccountSnapshot]) -> bool:
        """Replace the displayed snapshot if token is current."""
        return self._write(token, "snapshot", snapshot=snapshot)

    def set_error(self, token: int, message: Optional[str]) -> bool:
        """Replace the error message if token is current."""
        return self._write(token, "error", error=message)

    def set_submission(self, token: int, submission: Optional[SubmissionResult]) -> bool:
        """Replace the tracked submission if token is current."""
        # Copy so later in-place status changes are not visible until published
        if submission is not None:
            submission = submission.model_copy()
        return self._write(token, "submission", submission=submission)
