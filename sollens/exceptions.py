"""
Exceptions for the sol.lens SDK.
"""
from typing import Optional


class SolLensError(Exception):
    """Base exception for all sol.lens errors."""
    pass


class InvalidAddressError(SolLensError):
    """Raised when an address does not decode to a 32-byte public key."""
    pass


class ValidationError(SolLensError):
    """Raised when transfer input is missing or malformed."""
    pass


class NotConnectedError(SolLensError):
    """Raised when an operation needs a connected signer and none is available."""
    pass


class NetworkError(SolLensError):
    """Raised when an RPC call fails, times out, or returns an invalid response."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)


class SubmissionError(SolLensError):
    """Raised when the signer rejects a transaction or dispatch fails."""
    pass
