"""Operator settings and network guard.

Settings are read from the process environment after loading a local .env
file. The network guard refuses to run any lifecycle operation until the
connected chain identity has been checked:
- A chain id must be reported and positive
- The network name used to index per-network tables is FORK when set,
  otherwise the configured network name
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from reserve_lifecycle.core.errors import ConfigurationError


@dataclass
class OperatorSettings:
    """Settings for a single lifecycle invocation."""

    market_name: str
    network: str
    fork: str | None = None
    rpc_url: str = "http://127.0.0.1:8545"
    private_key: str | None = None
    deployments_dir: Path = Path("deployments")
    artifacts_dir: Path = Path("artifacts")
    log_dir: Path = Path("logs")

    @classmethod
    def from_env(cls, **overrides: Any) -> OperatorSettings:
        """Load settings from environment variables.

        Args:
            **overrides: Values that take precedence over the environment
                (typically CLI flags). ``None`` values are ignored.

        Returns:
            Populated OperatorSettings.

        Raises:
            ConfigurationError: If the market or network is not configured.
        """
        load_dotenv()
        overrides = {k: v for k, v in overrides.items() if v is not None}

        market_name = overrides.get("market_name") or os.getenv("MARKET_NAME", "")
        if not market_name:
            raise ConfigurationError(
                "MARKET_NAME must be set in environment or passed with --market."
            )

        network = overrides.get("network") or os.getenv("NETWORK", "")
        if not network:
            raise ConfigurationError(
                "NETWORK must be set in environment or passed with --network."
            )

        return cls(
            market_name=market_name,
            network=network,
            fork=overrides.get("fork") or os.getenv("FORK") or None,
            rpc_url=overrides.get("rpc_url") or os.getenv("RPC_URL", cls.rpc_url),
            private_key=os.getenv("DEPLOYER_PRIVATE_KEY") or None,
            deployments_dir=Path(
                overrides.get("deployments_dir") or os.getenv("DEPLOYMENTS_DIR", "deployments")
            ),
            artifacts_dir=Path(
                overrides.get("artifacts_dir") or os.getenv("ARTIFACTS_DIR", "artifacts")
            ),
            log_dir=Path(overrides.get("log_dir") or os.getenv("LOG_DIR", "logs")),
        )

    @property
    def active_network(self) -> str:
        """Network name used to index per-network configuration tables."""
        return self.fork or self.network


@dataclass(frozen=True)
class NetworkContext:
    """Verified identity of the network and account a run operates on."""

    network: str
    chain_id: int
    deployer: str

    @classmethod
    def verify(cls, network: str, chain_id: int | None, deployer: str) -> NetworkContext:
        """Build a context after checking the chain identity.

        Raises:
            ConfigurationError: If the chain id is missing or invalid.
        """
        if not chain_id or chain_id <= 0:
            raise ConfigurationError("INVALID_CHAIN_ID")
        if not network:
            raise ConfigurationError("Active network name is empty.")
        return cls(network=network, chain_id=chain_id, deployer=deployer)

    def as_log_data(self) -> dict[str, Any]:
        return {
            "network": self.network,
            "chain_id": self.chain_id,
            "deployer": self.deployer,
        }
