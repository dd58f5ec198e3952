"""
Signers: the components holding signing authority for an address.

The orchestrator only sees the Signer protocol; key material never leaves
the signer.
"""
import json
import logging
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .address import Address
from .exceptions import NotConnectedError
from .rpc import LedgerRpc
from .transaction import Transaction

logger = logging.getLogger(__name__)

SEED_LENGTH = 32
KEYPAIR_LENGTH = 64


@runtime_checkable
class Signer(Protocol):
    """Protocol for connected signers (wallet adapters, local keys)"""
    connected: bool
    address: Optional[Address]

    def send_transaction(self, transaction: Transaction, rpc: LedgerRpc) -> str:
        """Sign the transaction, dispatch it through rpc and return its signature"""
        ...


class KeypairSigner:
    """
    Signer backed by a local Ed25519 key.

    Accepts a cryptography private key, a 32-byte seed, a 64-byte keypair
    (seed followed by public key, as written by solana-keygen), or the base58
    encoding of either.
    """

    def __init__(
        self,
        private_key: Union[Ed25519PrivateKey, bytes, str],
        connected: bool = True
    ):
        """
        Initialize the signer

        Args:
            private_key: Key material in one of the accepted forms
            connected: Initial connection state

        Raises:
            ValueError: If the key material is malformed
        """
        self._key = self._load_key(private_key)
        public = self._key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        self._public_key = Address(public)
        self.connected = connected

    @staticmethod
    def _load_key(private_key: Union[Ed25519PrivateKey, bytes, str]) -> Ed25519PrivateKey:
        if isinstance(private_key, Ed25519PrivateKey):
            return private_key
        if isinstance(private_key, str):
            try:
                private_key = base58.b58decode(private_key.strip())
            except ValueError as e:
                raise ValueError(f"Private key is not valid base58: {e}") from e
        if not isinstance(private_key, (bytes, bytearray)):
            raise ValueError(f"Unsupported private key type: {type(private_key).__name__}")

        raw = bytes(private_key)
        if len(raw) not in (SEED_LENGTH, KEYPAIR_LENGTH):
            raise ValueError(f"Private key must be {SEED_LENGTH} or {KEYPAIR_LENGTH} bytes, got {len(raw)}")

        key = Ed25519PrivateKey.from_private_bytes(raw[:SEED_LENGTH])
        if len(raw) == KEYPAIR_LENGTH:
            public = key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
            if public != raw[SEED_LENGTH:]:
                raise ValueError("Keypair public key does not match its secret seed")
        return key

    @classmethod
    def generate(cls, connected: bool = True) -> "KeypairSigner":
        """Create a signer with a fresh random key."""
        return cls(Ed25519PrivateKey.generate(), connected=connected)

    @classmethod
    def from_keypair_file(cls, path: Union[str, Path], connected: bool = True) -> "KeypairSigner":
        """
        Load a keypair file as written by solana-keygen (JSON array of 64 bytes).

        Raises:
            ValueError: If the file does not hold a valid keypair
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list) or not all(isinstance(b, int) and 0 <= b <= 255 for b in data):
            raise ValueError(f"Keypair file {path} must contain a JSON array of bytes")
        return cls(bytes(data), connected=connected)

    @property
    def public_key(self) -> Address:
        """Address of this key, regardless of connection state."""
        return self._public_key

    @property
    def address(self) -> Optional[Address]:
        """Address exposed to the orchestrator; None while disconnected."""
        return self._public_key if self.connected else None

    def connect(self) -> None:
        self.connected = True
        logger.info(f"Signer connected: {self._public_key.truncated()}")

    def disconnect(self) -> None:
        self.connected = False
        logger.info(f"Signer disconnected: {self._public_key.truncated()}")

    def sign_message(self, message: bytes) -> bytes:
        """Return the 64-byte Ed25519 signature of message."""
        return self._key.sign(message)

    def send_transaction(self, transaction: Transaction, rpc: LedgerRpc) -> str:
        """
        Sign a transaction against a fresh blockhash and dispatch it.

        Args:
            transaction: Transaction whose only required signer is this key
            rpc: Ledger RPC used for the blockhash and for dispatch

        Returns:
            Transaction signature reported by the node

        Raises:
            NotConnectedError: If the signer is disconnected
            ValueError: If the transaction needs signatures this key cannot give
            NetworkError: If fetching the blockhash or dispatching fails
        """
        if not self.connected:
            raise NotConnectedError("Signer is not connected")
        if transaction.signers != [self._public_key]:
            raise ValueError("Transaction must be signed by this key alone")

        blockhash = rpc.get_latest_blockhash()
        message = transaction.compile_message(blockhash)
        signature = self.sign_message(message)
        local_signature = base58.b58encode(signature).decode("ascii")

        remote_signature = rpc.send_raw_transaction(Transaction.serialize(message, [signature]))
        if remote_signature != local_signature:
            logger.warning(
                f"Node reported signature {remote_signature[:12]}... for {local_signature[:12]}..."
            )
        return remote_signature
