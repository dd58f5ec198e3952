"""
Ledger account addresses.
"""
from typing import Union

import base58

from .exceptions import InvalidAddressError

PUBLIC_KEY_LENGTH = 32


class Address:
    """
    Validated, immutable account address.

    An address is the base58 encoding of a 32-byte Ed25519 public key.
    Construction fails with InvalidAddressError for anything that does not
    decode to exactly 32 bytes.
    """

    __slots__ = ("_raw", "_encoded")

    def __init__(self, value: Union[str, bytes, "Address"]):
        """
        Create an address.

        Args:
            value: Base58 string, raw 32-byte key, or another Address

        Raises:
            InvalidAddressError: If the value cannot be decoded to a 32-byte key
        """
        if isinstance(value, Address):
            raw = value.raw
        elif isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        elif isinstance(value, str):
            raw = self._decode(value)
        else:
            raise InvalidAddressError(
                f"Address must be a base58 string or bytes, got {type(value).__name__}"
            )

        if len(raw) != PUBLIC_KEY_LENGTH:
            raise InvalidAddressError(
                f"Address must decode to {PUBLIC_KEY_LENGTH} bytes, got {len(raw)}"
            )

        object.__setattr__(self, "_raw", raw)
        object.__setattr__(self, "_encoded", base58.b58encode(raw).decode("ascii"))

    @staticmethod
    def _decode(value: str) -> bytes:
        text = value.strip()
        if not text:
            raise InvalidAddressError("Address cannot be empty")
        try:
            return base58.b58decode(text)
        except ValueError as e:
            raise InvalidAddressError(f"Address is not valid base58: {e}") from e

    @classmethod
    def parse(cls, value: Union[str, bytes, "Address"]) -> "Address":
        """Return value unchanged if it is already an Address, else build one."""
        if isinstance(value, Address):
            return value
        return cls(value)

    @property
    def raw(self) -> bytes:
        """Raw 32-byte public key."""
        return self._raw

    def truncated(self) -> str:
        """Short form for logs, e.g. '7xKXtg...sgAsU'."""
        return f"{self._encoded[:6]}...{self._encoded[-4:]}"

    def __setattr__(self, name, value):
        raise AttributeError("Address is immutable")

    def __str__(self) -> str:
        return self._encoded

    def __repr__(self) -> str:
        return f"Address('{self._encoded}')"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)
