"""
Transfer submitter: validates transfer input, builds a single-instruction
transfer and hands it to the connected signer for signing and dispatch.
"""
import logging
from typing import Optional, Tuple, Union

from .address import Address
from .exceptions import (
    InvalidAddressError, NotConnectedError, SolLensError, SubmissionError, ValidationError
)
from .models import SubmissionResult, TransferRequest
from .rpc import LedgerRpc
from .signer import Signer
from .transaction import Transaction
from .units import Amount, parse_amount, to_smallest_unit

logger = logging.getLogger(__name__)


class TransferSubmitter:
    """
    Submits native transfers through a connected signer.

    The signer call is the only blocking step and cannot be cancelled once
    issued.
    """

    def __init__(
        self,
        signer: Optional[Signer],
        rpc: LedgerRpc,
        logger: Optional[logging.Logger] = None
    ):
        self.signer = signer
        self.rpc = rpc
        self.logger = logger or logging.getLogger(__name__)

    def _connected_address(self) -> Address:
        if self.signer is None or not self.signer.connected or self.signer.address is None:
            raise NotConnectedError("Connect a wallet before sending a transfer")
        return self.signer.address

    def transfer(self, amount: Optional[Amount], recipient: Optional[Union[str, Address]]) -> SubmissionResult:
        """
        Send amount (in SOL) from the connected signer to recipient.

        Raises:
            Same as submit()
        """
        sender = self._connected_address()
        return self.submit(TransferRequest(sender=sender, recipient=recipient, amount=amount))

    def _validate(self, request: TransferRequest) -> Tuple[Address, int]:
        """
        Check a request and convert it for dispatch.

        Returns:
            Tuple of (recipient Address, lamports)
        """
        if request.amount is None or (isinstance(request.amount, str) and not request.amount.strip()):
            raise ValidationError("Amount is required")
        recipient = request.recipient
        if recipient is None or (isinstance(recipient, str) and not recipient.strip()):
            raise ValidationError("Recipient address is required")

        amount = parse_amount(request.amount)
        if amount <= 0:
            raise ValidationError(f"Amount must be greater than zero, got {amount}")
        lamports = to_smallest_unit(amount)
        if lamports <= 0:
            raise ValidationError(f"Amount {amount} is below the smallest transferable unit")

        try:
            recipient = Address.parse(recipient)
        except InvalidAddressError as e:
            raise InvalidAddressError(f"Invalid recipient address: {e}") from e

        return recipient, lamports

    def submit(self, request: TransferRequest) -> SubmissionResult:
        """
        Validate, build, sign and dispatch a transfer.

        Args:
            request: Transfer input; sender must be the connected signer

        Returns:
            SubmissionResult in PENDING state

        Raises:
            NotConnectedError: If no signer is connected
            ValidationError: If amount or recipient is missing, the amount is
                not positive, or the sender is not the connected signer
            InvalidAddressError: If the recipient does not decode
            SubmissionError: If the signer rejects or dispatch fails
        """
        signer_address = self._connected_address()
        recipient, lamports = self._validate(request)

        if Address.parse(request.sender) != signer_address:
            raise ValidationError(
                f"Sender {request.sender} is not the connected signer {signer_address}"
            )

        transaction = Transaction.transfer(signer_address, recipient, lamports)
        self.logger.info(
            f"Submitting transfer of {lamports} lamports "
            f"{signer_address.truncated()} -> {recipient.truncated()}"
        )

        try:
            signature = self.signer.send_transaction(transaction, self.rpc)
        except NotConnectedError:
            raise
        except SolLensError as e:
            self.logger.error(f"Transfer dispatch failed: {e}")
            raise SubmissionError(f"Failed to send transaction: {e}") from e
        except Exception as e:
            self.logger.error(f"Transfer rejected by signer: {e}")
            raise SubmissionError(f"Transaction rejected: {e}") from e

        if not signature:
            raise SubmissionError("Signer returned no transaction signature")

        return SubmissionResult(
            signature=signature,
            sender=str(signer_address),
            recipient=str(recipient),
            lamports=lamports,
        )
