"""
Configuration for the sol.lens SDK.

ClientConfig carries the settings injected into the reader, submitter and
poller. NetworkConfig resolves RPC endpoints for the known clusters.
"""
import importlib.resources
import json
import logging
import os
import urllib.parse
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "mainnet-beta"

LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


class Commitment(str, Enum):
    """Commitment level used for RPC reads"""
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"


class NetworkConfig:
    """Known ledger clusters, loaded from the bundled networks.json."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network definitions, caching them after the first read.

        Returns:
            Mapping of network name to its settings
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("sollens").joinpath("networks.json")
            with resource.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Get the settings for one network.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{network}'. Available networks: {available}")
        return networks[network]

    @classmethod
    def get_rpc_url(cls, network: str, override: Optional[str] = None) -> str:
        """
        Resolve the RPC URL for a network.

        Precedence: explicit override, then the <NETWORK>_RPC_URL environment
        variable (e.g. DEVNET_RPC_URL), then the bundled value.
        """
        if override:
            return override
        env_var = f"{network.upper().replace('-', '_')}_RPC_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            logger.debug(f"Using RPC URL from {env_var}")
            return env_url
        return cls.get_network(network)["rpc"]


class ClientConfig(BaseModel):
    """
    Settings shared by the account reader, transfer submitter and poller.

    Attributes:
        endpoint_url: JSON-RPC endpoint (https unless local)
        commitment: Commitment level for reads and preflight
        poll_interval_ms: Wait between signature status queries
        poll_timeout_ms: Wall-clock bound on confirmation polling
        history_limit: Number of recent transaction ids per snapshot
        request_timeout: HTTP timeout for a single RPC call, in seconds
    """
    model_config = ConfigDict(frozen=True)

    endpoint_url: str
    commitment: Commitment = Commitment.CONFIRMED
    poll_interval_ms: int = Field(2000, gt=0)
    poll_timeout_ms: int = Field(60000, gt=0)
    history_limit: int = Field(5, ge=1, le=1000)
    request_timeout: float = Field(30, gt=0)

    @field_validator("endpoint_url")
    @classmethod
    def _check_endpoint(cls, url: str) -> str:
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"endpoint_url must be an http(s) URL, got: {url!r}")
        is_local = parsed.hostname in LOCAL_HOSTS
        if parsed.scheme != "https" and not is_local:
            if os.environ.get("SOLLENS_INSECURE_RPC") != "1":
                raise ValueError(
                    f"endpoint_url must use https:// for security (got: {parsed.scheme}://). "
                    "Set SOLLENS_INSECURE_RPC=1 to allow HTTP for development."
                )
        return url

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds"""
        return self.poll_interval_ms / 1000.0

    @property
    def poll_timeout(self) -> float:
        """Poll timeout in seconds"""
        return self.poll_timeout_ms / 1000.0

    @classmethod
    def for_network(cls, network: str = DEFAULT_NETWORK, **overrides: Any) -> "ClientConfig":
        """Build a config pointing at a known network."""
        return cls(endpoint_url=NetworkConfig.get_rpc_url(network), **overrides)

    @classmethod
    def from_env(cls, network: Optional[str] = None, **overrides: Any) -> "ClientConfig":
        """
        Build a config from SOLLENS_* environment variables.

        Recognized variables: SOLLENS_RPC_URL, SOLLENS_NETWORK,
        SOLLENS_COMMITMENT, SOLLENS_POLL_INTERVAL_MS, SOLLENS_POLL_TIMEOUT_MS,
        SOLLENS_HISTORY_LIMIT. Keyword overrides win over the environment.
        """
        values: Dict[str, Any] = {}
        env_map = {
            "commitment": "SOLLENS_COMMITMENT",
            "poll_interval_ms": "SOLLENS_POLL_INTERVAL_MS",
            "poll_timeout_ms": "SOLLENS_POLL_TIMEOUT_MS",
            "history_limit": "SOLLENS_HISTORY_LIMIT",
        }
        for field_name, env_var in env_map.items():
            if os.environ.get(env_var):
                values[field_name] = os.environ[env_var]

        url = os.environ.get("SOLLENS_RPC_URL")
        if not url:
            network = network or os.environ.get("SOLLENS_NETWORK") or DEFAULT_NETWORK
            url = NetworkConfig.get_rpc_url(network)
        values["endpoint_url"] = url
        values.update(overrides)
        return cls(**values)
