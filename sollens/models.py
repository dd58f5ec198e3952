"""
Data models for the sol.lens SDK.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .address import Address
from .units import Amount, to_display_unit


class ConfirmationStatus(str, Enum):
    """Confirmation level reported by a signature status query."""
    NONE = "none"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"


class SubmissionStatus(str, Enum):
    """Lifecycle of a submitted transfer as tracked by the poller."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({
    SubmissionStatus.CONFIRMED,
    SubmissionStatus.FINALIZED,
    SubmissionStatus.TIMED_OUT,
    SubmissionStatus.FAILED,
    SubmissionStatus.CANCELLED,
})


class AccountSnapshot(BaseModel):
    """Balance and recent activity of one account at one point in time"""
    model_config = ConfigDict(frozen=True)

    address: str
    balance: int = Field(..., ge=0, description="Balance in lamports")
    recent_transaction_ids: Tuple[str, ...] = ()
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def display_balance(self) -> Decimal:
        """Balance in SOL"""
        return to_display_unit(self.balance)


class SignatureStatus(BaseModel):
    """Result of a single signature status query"""
    model_config = ConfigDict(frozen=True)

    confirmation_status: ConfirmationStatus = ConfirmationStatus.NONE
    err: Optional[Any] = None
    slot: Optional[int] = None


class SubmissionResult(BaseModel):
    """A dispatched transfer and its confirmation state"""
    model_config = ConfigDict(validate_assignment=True)

    signature: str = Field(..., min_length=1)
    sender: str
    recipient: str
    lamports: int = Field(..., gt=0)
    status: SubmissionStatus = SubmissionStatus.PENDING
    reason: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def succeeded(self) -> bool:
        return self.status in (SubmissionStatus.CONFIRMED, SubmissionStatus.FINALIZED)


@dataclass(frozen=True)
class TransferRequest:
    """
    Raw transfer input as collected from the user.

    Fields are kept as given; TransferSubmitter.submit validates them.

    Attributes:
        sender: Address of the connected signer
        recipient: Recipient address (string or Address)
        amount: Amount in SOL
    """
    sender: Address
    recipient: Optional[Union[str, Address]]
    amount: Optional[Amount]
