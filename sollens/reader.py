"""
Account reader: balance plus recent transaction ids for one address.
"""
import logging
from typing import Optional, Union

from .address import Address
from .config import ClientConfig
from .exceptions import NetworkError
from .models import AccountSnapshot
from .rpc import LedgerRpc

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 5


class AccountReader:
    """
    Fetches AccountSnapshots from a ledger node.

    Stateless per call; one reader may serve concurrent fetches.
    """

    def __init__(
        self,
        rpc: LedgerRpc,
        config: Optional[ClientConfig] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.rpc = rpc
        self.history_limit = config.history_limit if config else DEFAULT_HISTORY_LIMIT
        self.logger = logger or logging.getLogger(__name__)

    def fetch_snapshot(self, address: Union[Address, str]) -> AccountSnapshot:
        """
        Fetch the current balance and recent transaction ids of an account.

        The address is validated before any network call is made.

        Args:
            address: Account address (Address or base58 string)

        Returns:
            A new AccountSnapshot

        Raises:
            InvalidAddressError: If the address does not decode
            NetworkError: If either read fails or returns invalid data
        """
        address = Address.parse(address)
        self.logger.debug(f"Fetching snapshot for {address.truncated()}")

        try:
            balance = self.rpc.get_balance(address)
            signatures = self.rpc.get_recent_transaction_ids(address, self.history_limit)
        except NetworkError:
            raise
        except Exception as e:
            self.logger.error(f"Unexpected RPC failure reading {address.truncated()}: {e}")
            raise NetworkError(f"Failed to read account {address}: {e}") from e

        if not isinstance(balance, int) or isinstance(balance, bool) or balance < 0:
            raise NetworkError(f"Invalid balance for {address}: {balance!r}")

        snapshot = AccountSnapshot(
            address=str(address),
            balance=balance,
            recent_transaction_ids=tuple(signatures[:self.history_limit]),
        )
        self.logger.debug(
            f"Snapshot for {address.truncated()}: {snapshot.balance} lamports, "
            f"{len(snapshot.recent_transaction_ids)} recent transactions"
        )
        return snapshot
