"""
Confirmation poller: re-queries a transaction's status at a fixed interval
until it is confirmed, finalized, failed, cancelled, or the timeout elapses.
"""
import logging
import threading
import time
from typing import Callable, Optional

from .config import ClientConfig
from .models import ConfirmationStatus, SubmissionResult, SubmissionStatus
from .rpc import LedgerRpc

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_POLL_TIMEOUT = 60.0

_SUCCESS = {
    ConfirmationStatus.CONFIRMED: SubmissionStatus.CONFIRMED,
    ConfirmationStatus.FINALIZED: SubmissionStatus.FINALIZED,
}


class CancellationToken:
    """Thread-safe, one-way cancellation flag handed to a poll loop."""

    def __init__(self):
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def wait(self, seconds: float) -> bool:
        """Block for up to seconds; returns True as soon as the token is cancelled."""
        return self._event.wait(seconds)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason


class ConfirmationPoller:
    """
    Drives a SubmissionResult from PENDING to a terminal status.

    Only wall-clock time bounds the loop: there is no backoff and no maximum
    number of queries. A query that raises ends polling at once with FAILED.
    """

    def __init__(
        self,
        rpc: LedgerRpc,
        config: Optional[ClientConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], None]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the poller

        Args:
            rpc: Ledger RPC used for signature status queries
            config: Supplies poll interval and timeout (defaults: 2s / 60s)
            clock: Monotonic time source in seconds
            sleep: Wait function; by default the wait ends early on cancellation
            logger: Optional logger instance
        """
        self.rpc = rpc
        self.interval = config.poll_interval if config else DEFAULT_POLL_INTERVAL
        self.timeout = config.poll_timeout if config else DEFAULT_POLL_TIMEOUT
        self.clock = clock
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def _wait(self, seconds: float, token: CancellationToken) -> None:
        if self._sleep is None:
            token.wait(seconds)
        else:
            self._sleep(seconds)

    def _cancel(self, result: SubmissionResult, token: CancellationToken) -> SubmissionResult:
        result.status = SubmissionStatus.CANCELLED
        result.reason = token.reason
        self.logger.info(f"Stopped polling {result.signature[:12]}...: {token.reason}")
        return result

    def poll(
        self,
        result: SubmissionResult,
        cancel_token: Optional[CancellationToken] = None,
        on_confirmed: Optional[Callable[[SubmissionResult], None]] = None
    ) -> SubmissionResult:
        """
        Poll until result reaches a terminal status.

        Args:
            result: Submission to track; its status and reason are updated in place
            cancel_token: Checked before every wait and every query; cancelling also
                ends a default wait early
            on_confirmed: Called once when CONFIRMED or FINALIZED is reached

        Returns:
            The same result, now terminal
        """
        if result.is_terminal:
            return result

        token = cancel_token or CancellationToken()
        signature = result.signature
        started = self.clock()
        queries = 0

        while True:
            if token.cancelled:
                return self._cancel(result, token)

            queries += 1
            try:
                status = self.rpc.get_signature_status(signature)
            except Exception as e:
                result.status = SubmissionStatus.FAILED
                result.reason = f"status query failed: {e}"
                self.logger.error(f"Status query for {signature[:12]}... failed: {e}")
                return result

            if status.err is not None:
                result.status = SubmissionStatus.FAILED
                result.reason = f"transaction error: {status.err}"
                self.logger.error(f"Transaction {signature[:12]}... failed on chain: {status.err}")
                return result

            if status.confirmation_status in _SUCCESS:
                result.status = _SUCCESS[status.confirmation_status]
                self.logger.info(
                    f"Transaction {signature[:12]}... {result.status.value} after {queries} queries"
                )
                if on_confirmed is not None:
                    on_confirmed(result)
                return result

            elapsed = self.clock() - started
            if elapsed > self.timeout:
                result.status = SubmissionStatus.TIMED_OUT
                self.logger.warning(
                    f"Transaction {signature[:12]}... not confirmed within {self.timeout:g}s"
                )
                return result

            self.logger.debug(
                f"Transaction {signature[:12]}... still {status.confirmation_status.value} "
                f"({elapsed:.1f}s elapsed)"
            )
            if token.cancelled:
                return self._cancel(result, token)
            self._wait(self.interval, token)
