"""
Pytest fixtures for the sol.lens SDK tests.
"""
from typing import List, Optional
from unittest.mock import MagicMock

import base58
import pytest

from sollens._rate_limited_log import reset_rate_limits
from sollens.address import Address
from sollens.config import ClientConfig
from sollens.models import ConfirmationStatus, SignatureStatus
from sollens.rpc import LedgerRpc
from sollens.signer import KeypairSigner

# Constants for testing
TEST_RPC_URL = "https://rpc.example.com"
TEST_SEED = bytes(range(32))
SENDER = Address(KeypairSigner(TEST_SEED).public_key.raw)
RECIPIENT = Address(bytes([2] * 32))
OTHER_ADDRESS = Address(bytes([3] * 32))
TEST_BLOCKHASH = base58.b58encode(bytes([7] * 32)).decode("ascii")
TEST_SIGNATURE = "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW"
RECENT_SIGNATURES = [f"sig{i}" for i in range(5)]


@pytest.fixture(autouse=True)
def _clear_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


class FakeClock:
    """Monotonic clock that only moves when sleep() is called"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSigner:
    """Wallet-adapter stand-in that records what it was asked to send"""

    def __init__(self, address: Optional[Address] = SENDER, connected: bool = True,
                 signature: str = TEST_SIGNATURE, error: Optional[Exception] = None):
        self._address = address
        self.connected = connected
        self.signature = signature
        self.error = error
        self.sent = []

    @property
    def address(self) -> Optional[Address]:
        return self._address if self.connected else None

    def send_transaction(self, transaction, rpc):
        self.sent.append(transaction)
        if self.error is not None:
            raise self.error
        return self.signature


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def config():
    return ClientConfig(endpoint_url=TEST_RPC_URL)


@pytest.fixture
def mock_rpc():
    """LedgerRpc mock with a funded account and an immediately confirmed status"""
    rpc = MagicMock(spec=LedgerRpc)
    rpc.get_balance.return_value = 1_500_000_000
    rpc.get_recent_transaction_ids.side_effect = lambda address, limit: RECENT_SIGNATURES[:limit]
    rpc.get_signature_status.return_value = SignatureStatus(
        confirmation_status=ConfirmationStatus.CONFIRMED, slot=42
    )
    rpc.get_latest_blockhash.return_value = TEST_BLOCKHASH
    rpc.send_raw_transaction.return_value = TEST_SIGNATURE
    return rpc


@pytest.fixture
def fake_signer():
    return FakeSigner()


@pytest.fixture
def keypair_signer():
    return KeypairSigner(TEST_SEED)
