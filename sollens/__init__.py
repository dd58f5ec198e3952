"""
sol.lens SDK - account reads, transfers and confirmation polling for a
Solana-style ledger.
"""
from .address import Address
from .client import LensClient
from .config import ClientConfig, Commitment, NetworkConfig
from .exceptions import (
    SolLensError, InvalidAddressError, ValidationError, NotConnectedError,
    NetworkError, SubmissionError
)
from .models import (
    AccountSnapshot, ConfirmationStatus, SignatureStatus, SubmissionResult,
    SubmissionStatus, TransferRequest
)
from .poller import CancellationToken, ConfirmationPoller
from .reader import AccountReader
from .rpc import HttpRpc, LedgerRpc
from .signer import KeypairSigner, Signer
from .state import StateStore, StateView
from .submitter import TransferSubmitter
from .transaction import Transaction
from .units import LAMPORTS_PER_SOL, to_display_unit, to_smallest_unit
from .version import __version__

__all__ = [
    "Address",
    "LensClient",
    "ClientConfig",
    "Commitment",
    "NetworkConfig",
    "SolLensError",
    "InvalidAddressError",
    "ValidationError",
    "NotConnectedError",
    "NetworkError",
    "SubmissionError",
    "AccountSnapshot",
    "ConfirmationStatus",
    "SignatureStatus",
    "SubmissionResult",
    "SubmissionStatus",
    "TransferRequest",
    "CancellationToken",
    "ConfirmationPoller",
    "AccountReader",
    "HttpRpc",
    "LedgerRpc",
    "KeypairSigner",
    "Signer",
    "StateStore",
    "StateView",
    "TransferSubmitter",
    "Transaction",
    "LAMPORTS_PER_SOL",
    "to_display_unit",
    "to_smallest_unit",
    "__version__",
]
