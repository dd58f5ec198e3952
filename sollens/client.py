"""
LensClient - orchestrates account reads, transfers and confirmation polling
for a presentation layer.
"""
import logging
import threading
import time
from typing import Callable, Dict, Optional, Union

from .address import Address
from .config import ClientConfig
from .exceptions import InvalidAddressError, NetworkError, SolLensError, ValidationError
from .models import AccountSnapshot, SubmissionResult, SubmissionStatus
from .poller import CancellationToken, ConfirmationPoller
from .reader import AccountReader
from .rpc import HttpRpc, LedgerRpc
from .signer import Signer
from .state import StateStore, StateView
from .submitter import TransferSubmitter
from .units import Amount

MISSING_ADDRESS_MESSAGE = "Please enter a public key"
READ_FAILED_MESSAGE = "Failed to fetch wallet info. Please check the public key and try again."


class LensClient:
    """
    Client-side orchestrator for one account view.

    This client handles:
    1. Reading balance and recent transactions for an address
    2. Sending a transfer through the connected signer
    3. Polling the transfer to a terminal status and refreshing on success

    Every operation catches its own failures and reports them through the
    single error slot of `state`; none of them raises to the caller.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        signer: Optional[Signer] = None,
        rpc: Optional[LedgerRpc] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], None]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the LensClient

        Args:
            config: Endpoint and polling settings (default: from SOLLENS_* env vars)
            signer: Connected signer, if a wallet is attached
            rpc: Ledger RPC implementation (default: HttpRpc for config.endpoint_url)
            clock: Monotonic time source for the poll timeout
            sleep: Wait between status queries (default: cancellable wait)
            logger: Optional logger instance to use for debug/info logging
        """
        self.config = config or ClientConfig.from_env()
        self.logger = logger or logging.getLogger(__name__)
        self.rpc = rpc or HttpRpc(
            self.config.endpoint_url,
            commitment=self.config.commitment,
            timeout=self.config.request_timeout,
            logger=self.logger,
        )
        self.reader = AccountReader(self.rpc, self.config, logger=self.logger)
        self.submitter = TransferSubmitter(signer, self.rpc, logger=self.logger)
        self.poller = ConfirmationPoller(
            self.rpc, self.config, clock=clock, sleep=sleep, logger=self.logger
        )

        self._state = StateStore()
        self._manual_address: Optional[str] = None
        self._polls: Dict[str, CancellationToken] = {}
        self._polls_lock = threading.Lock()

    @property
    def signer(self) -> Optional[Signer]:
        return self.submitter.signer

    @property
    def state(self) -> StateView:
        """Current snapshot, error message, busy flag and tracked submission."""
        return self._state.view

    def subscribe(self, listener: Callable[[StateView], None]) -> Callable[[], None]:
        """Call listener with every new StateView; returns an unsubscribe function."""
        return self._state.subscribe(listener)

    def set_signer(self, signer: Optional[Signer]) -> None:
        """Attach or detach a signer and react to the new connection state."""
        self.submitter.signer = signer
        self.handle_signer_change()

    def handle_signer_change(self) -> Optional[AccountSnapshot]:
        """
        React to a wallet-connection event.

        When the signer is connected, its account snapshot is fetched.
        """
        signer = self.signer
        if signer is not None and signer.connected and signer.address is not None:
            self.logger.debug(f"Signer connected: {signer.address.truncated()}")
            return self.request_snapshot(signer.address)
        return None

    def _fail(self, token: int, message: str) -> None:
        self._state.set_error(token, message)

    def request_snapshot(self, address: Optional[Union[Address, str]]) -> Optional[AccountSnapshot]:
        """
        Fetch and display the snapshot of an address.

        Args:
            address: Address or base58 string entered by the user

        Returns:
            The new snapshot, or None if the read failed
        """
        token = self._state.begin()
        try:
            if address is None or (isinstance(address, str) and not address.strip()):
                raise ValidationError(MISSING_ADDRESS_MESSAGE)
            if not isinstance(address, Address):
                self._manual_address = address.strip()
            snapshot = self.reader.fetch_snapshot(address)
            self._state.set_snapshot(token, snapshot)
            return snapshot
        except ValidationError as e:
            self._fail(token, str(e))
        except (InvalidAddressError, NetworkError) as e:
            self.logger.error(f"Error fetching wallet info: {e}")
            self._state.set_snapshot(token, None)
            self._fail(token, READ_FAILED_MESSAGE)
        except Exception as e:
            self.logger.exception(f"Unexpected error fetching wallet info: {e}")
            self._state.set_snapshot(token, None)
            self._fail(token, READ_FAILED_MESSAGE)
        finally:
            self._state.finish(token)
        return None

    def request_refresh(self) -> Optional[AccountSnapshot]:
        """
        Re-fetch the snapshot for the currently relevant address.

        The connected signer's address wins over the last manually entered one.
        """
        signer = self.signer
        if signer is not None and signer.connected and signer.address is not None:
            return self.request_snapshot(signer.address)
        return self.request_snapshot(self._manual_address)

    def _start_poll(self, sender: str) -> CancellationToken:
        token = CancellationToken()
        with self._polls_lock:
            previous = self._polls.get(sender)
            self._polls[sender] = token
        if previous is not None:
            previous.cancel("superseded by a newer transfer")
        return token

    def _end_poll(self, sender: str, token: CancellationToken) -> None:
        with self._polls_lock:
            if self._polls.get(sender) is token:
                del self._polls[sender]

    def request_transfer(
        self,
        amount: Optional[Amount],
        recipient: Optional[Union[str, Address]]
    ) -> Optional[SubmissionResult]:
        """
        Send amount (in SOL) to recipient and poll it to a terminal status.

        A transfer started for the same sender cancels this one's polling.
        On CONFIRMED or FINALIZED the sender's snapshot is refreshed once.

        Args:
            amount: Amount in SOL, as entered
            recipient: Recipient address, as entered

        Returns:
            The terminal SubmissionResult, or None if nothing was dispatched
        """
        token = self._state.begin()
        try:
            try:
                result = self.submitter.transfer(amount, recipient)
            except SolLensError as e:
                self.logger.error(f"Transfer not sent: {e}")
                self._fail(token, str(e))
                return None
            except Exception as e:
                self.logger.exception(f"Unexpected error sending transfer: {e}")
                self._fail(token, f"Unexpected error: {e}")
                return None

            self._state.set_submission(token, result)
            cancel_token = self._start_poll(result.sender)

            def on_confirmed(confirmed: SubmissionResult) -> None:
                # Publish the outcome before the refresh takes a newer token
                self._state.set_submission(token, confirmed)
                self.request_snapshot(Address(confirmed.sender))

            try:
                self.poller.poll(result, cancel_token=cancel_token, on_confirmed=on_confirmed)
            finally:
                self._end_poll(result.sender, cancel_token)

            if not result.succeeded:
                self._state.set_submission(token, result)
            if result.status == SubmissionStatus.FAILED:
                self._fail(token, f"Transaction {result.signature} failed: {result.reason}")
            return result
        finally:
            self._state.finish(token)

    def close(self) -> None:
        """Release the RPC connection."""
        self.rpc.close()

    def __enter__(self) -> "LensClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
