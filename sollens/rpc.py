"""
Ledger RPC layer.

LedgerRpc defines the operations the orchestrator needs from a ledger node;
HttpRpc implements them over JSON-RPC 2.0 with requests.
"""
import base64
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ._rate_limited_log import rate_limited_log
from .address import Address
from .config import Commitment
from .exceptions import NetworkError
from .models import ConfirmationStatus, SignatureStatus

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    None: ConfirmationStatus.NONE,
    "processed": ConfirmationStatus.PENDING,
    "confirmed": ConfirmationStatus.CONFIRMED,
    "finalized": ConfirmationStatus.FINALIZED,
}


class LedgerRpc(ABC):
    """
    Abstract ledger node client.

    Every method raises NetworkError when the call fails or the node returns
    something unusable.
    """

    @abstractmethod
    def get_balance(self, address: Address) -> int:
        """
        Get an account balance.

        Args:
            address: Account to query

        Returns:
            Balance in lamports
        """
        pass

    @abstractmethod
    def get_recent_transaction_ids(self, address: Address, limit: int) -> List[str]:
        """
        Get the signatures of the most recent transactions touching an account.

        Args:
            address: Account to query
            limit: Maximum number of signatures to return

        Returns:
            Signatures, most recent first
        """
        pass

    @abstractmethod
    def get_signature_status(self, signature: str) -> SignatureStatus:
        """Get the confirmation status of one transaction signature."""
        pass

    @abstractmethod
    def get_latest_blockhash(self) -> str:
        """Get a recent blockhash (base58) to sign a transaction against."""
        pass

    @abstractmethod
    def send_raw_transaction(self, raw: bytes) -> str:
        """
        Dispatch a signed, serialized transaction.

        Returns:
            Transaction signature reported by the node
        """
        pass

    def close(self) -> None:
        """Release any open connections."""
        pass


class HttpRpc(LedgerRpc):
    """
    JSON-RPC 2.0 client for a ledger node.

    The session is mounted with zero retries: a failed call surfaces
    immediately as NetworkError, and a sendTransaction is never repeated
    behind the caller's back.
    """

    def __init__(
        self,
        endpoint_url: str,
        commitment: Union[Commitment, str] = Commitment.CONFIRMED,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the RPC client

        Args:
            endpoint_url: JSON-RPC endpoint URL
            commitment: Commitment level for reads and preflight
            timeout: Timeout for a single HTTP request in seconds
            session: Optional pre-configured requests session
            logger: Optional logger instance
        """
        self.endpoint_url = endpoint_url
        self.commitment = Commitment(commitment)
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self._ids = itertools.count(1)
        self._ids_lock = threading.Lock()

        if session is None:
            session = requests.Session()
            retries = Retry(total=0, connect=0, read=0, other=0, raise_on_status=False)
            session.mount("http://", HTTPAdapter(max_retries=retries))
            session.mount("https://", HTTPAdapter(max_retries=retries))
        self.session = session

    def _next_id(self) -> int:
        with self._ids_lock:
            return next(self._ids)

    def _call(self, method: str, params: List[Any]) -> Any:
        """
        Perform one JSON-RPC call.

        Returns:
            The "result" member of the response

        Raises:
            NetworkError: On transport failure, HTTP error, invalid JSON or a
                JSON-RPC error object
        """
        payload = {"jsonrpc": "2.0", "id": self._next_id(), "method": method, "params": params}
        self.logger.debug(f"RPC {method} -> {self.endpoint_url}")

        try:
            response = self.session.post(self.endpoint_url, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            rate_limited_log(f"RPC endpoint {self.endpoint_url} timed out", logger_instance=self.logger)
            raise NetworkError(f"{method} timed out: {e}") from e
        except requests.RequestException as e:
            rate_limited_log(f"RPC endpoint {self.endpoint_url} unreachable: {e}", logger_instance=self.logger)
            raise NetworkError(f"{method} failed: {e}") from e

        if response.status_code >= 400:
            rate_limited_log(
                f"RPC endpoint {self.endpoint_url} returned HTTP {response.status_code}",
                logger_instance=self.logger
            )
            raise NetworkError(f"{method} failed with HTTP {response.status_code}: {response.text[:200]}")

        try:
            body = response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON response to {method}: {e}") from e

        if not isinstance(body, dict):
            raise NetworkError(f"Invalid JSON-RPC response to {method}: {body!r}")

        error = body.get("error")
        if error is not None:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", error) if isinstance(error, dict) else error
            self.logger.debug(f"RPC {method} error {code}: {message}")
            raise NetworkError(f"{method} failed: {message}", code=code)

        if "result" not in body:
            raise NetworkError(f"Missing result in {method} response")
        return body["result"]

    @staticmethod
    def _context_value(method: str, result: Any) -> Any:
        # Most read methods wrap their payload as {"context": {...}, "value": ...}
        if not isinstance(result, dict) or "value" not in result:
            raise NetworkError(f"Malformed {method} result: {result!r}")
        return result["value"]

    def get_balance(self, address: Address) -> int:
        result = self._call("getBalance", [str(address), {"commitment": self.commitment.value}])
        value = self._context_value("getBalance", result)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise NetworkError(f"Invalid balance in getBalance result: {value!r}")
        return value

    def get_recent_transaction_ids(self, address: Address, limit: int) -> List[str]:
        # getSignaturesForAddress rejects the "processed" commitment
        commitment = self.commitment
        if commitment == Commitment.PROCESSED:
            commitment = Commitment.CONFIRMED
        result = self._call(
            "getSignaturesForAddress",
            [str(address), {"limit": limit, "commitment": commitment.value}]
        )
        if not isinstance(result, list):
            raise NetworkError(f"Malformed getSignaturesForAddress result: {result!r}")
        signatures = []
        for entry in result:
            signature = entry.get("signature") if isinstance(entry, dict) else None
            if not isinstance(signature, str) or not signature:
                raise NetworkError(f"Malformed signature entry: {entry!r}")
            signatures.append(signature)
        return signatures

    def get_signature_status(self, signature: str) -> SignatureStatus:
        result = self._call(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": True}]
        )
        value = self._context_value("getSignatureStatuses", result)
        if not isinstance(value, list) or len(value) != 1:
            raise NetworkError(f"Malformed getSignatureStatuses value: {value!r}")

        entry = value[0]
        if entry is None:
            return SignatureStatus()
        if not isinstance(entry, dict):
            raise NetworkError(f"Malformed signature status: {entry!r}")

        level = entry.get("confirmationStatus")
        if level not in _STATUS_MAP:
            raise NetworkError(f"Unknown confirmation status: {level!r}")
        return SignatureStatus(
            confirmation_status=_STATUS_MAP[level],
            err=entry.get("err"),
            slot=entry.get("slot"),
        )

    def get_latest_blockhash(self) -> str:
        result = self._call("getLatestBlockhash", [{"commitment": self.commitment.value}])
        value = self._context_value("getLatestBlockhash", result)
        blockhash = value.get("blockhash") if isinstance(value, dict) else None
        if not isinstance(blockhash, str) or not blockhash:
            raise NetworkError(f"Malformed getLatestBlockhash value: {value!r}")
        return blockhash

    def send_raw_transaction(self, raw: bytes) -> str:
        encoded = base64.b64encode(raw).decode("ascii")
        result = self._call(
            "sendTransaction",
            [encoded, {"encoding": "base64", "preflightCommitment": self.commitment.value}]
        )
        if not isinstance(result, str) or not result:
            raise NetworkError(f"Malformed sendTransaction result: {result!r}")
        self.logger.info(f"Transaction sent: {result[:12]}...")
        return result

    def close(self) -> None:
        self.session.close()
