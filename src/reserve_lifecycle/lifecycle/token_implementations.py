"""Token implementation provisioning.

Every reserve's tokens are proxies over four shared implementation
contracts. This module makes sure they exist once per pool and are locked:
- Each implementation is deployed under a fixed, market-scoped name
- Right after deployment it receives a seed ``initialize`` call with zero
  addresses and placeholder names, so nobody can initialize the bare
  implementation as if it were a live token
- On every later run the seed call is rejected with the "already
  initialized" reason, which is the expected steady state
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from reserve_lifecycle.core.errors import CallReverted, DeploymentError, TxFailed
from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.constants import (
    ALREADY_INITIALIZED_REVERT,
    ATOKEN_IMPL_ID_TEMPLATE,
    DELEGATION_AWARE_ATOKEN_IMPL_ID_TEMPLATE,
    IMPLEMENTATION_SEED_PARAMS,
    STABLE_DEBT_TOKEN_IMPL_ID_TEMPLATE,
    VARIABLE_DEBT_TOKEN_IMPL_ID_TEMPLATE,
    ZERO_ADDRESS,
)
from reserve_lifecycle.data.interfaces import (
    DeploymentRegistry,
    ImplementationInitializer,
    TransactionSubmitter,
)
from reserve_lifecycle.data.models import (
    DeployedArtifactHandle,
    TokenImplementationKind,
    TokenImplementations,
)

_ID_TEMPLATES = {
    TokenImplementationKind.ATOKEN: ATOKEN_IMPL_ID_TEMPLATE,
    TokenImplementationKind.DELEGATION_AWARE_ATOKEN: DELEGATION_AWARE_ATOKEN_IMPL_ID_TEMPLATE,
    TokenImplementationKind.STABLE_DEBT_TOKEN: STABLE_DEBT_TOKEN_IMPL_ID_TEMPLATE,
    TokenImplementationKind.VARIABLE_DEBT_TOKEN: VARIABLE_DEBT_TOKEN_IMPL_ID_TEMPLATE,
}

SEED_PLACEHOLDERS = {
    TokenImplementationKind.ATOKEN: "ATOKEN_IMPL",
    TokenImplementationKind.DELEGATION_AWARE_ATOKEN: "DELEGATION_AWARE_ATOKEN_IMPL",
    TokenImplementationKind.STABLE_DEBT_TOKEN: "STABLE_DEBT_TOKEN_IMPL",
    TokenImplementationKind.VARIABLE_DEBT_TOKEN: "VARIABLE_DEBT_TOKEN_IMPL",
}


class SeedOutcome(str, Enum):
    """Result of the lock call on an implementation."""

    LOCKED = "locked"  # seed call succeeded on this run
    ALREADY_LOCKED = "already_locked"  # rejected because a previous run locked it


def implementation_id(kind: TokenImplementationKind, market_name: str) -> str:
    return _ID_TEMPLATES[kind].format(market=market_name)


def seed_arguments(kind: TokenImplementationKind, pool_address: str) -> list[Any]:
    """Sentinel ``initialize`` arguments that lock an implementation."""
    placeholder = SEED_PLACEHOLDERS[kind]
    if kind.is_debt_token:
        # pool, underlying, incentives, decimals, name, symbol, params
        return [
            pool_address,
            ZERO_ADDRESS,
            ZERO_ADDRESS,
            0,
            placeholder,
            placeholder,
            IMPLEMENTATION_SEED_PARAMS,
        ]
    # pool, treasury, underlying, incentives, decimals, name, symbol, params
    return [
        pool_address,
        ZERO_ADDRESS,
        ZERO_ADDRESS,
        ZERO_ADDRESS,
        0,
        placeholder,
        placeholder,
        IMPLEMENTATION_SEED_PARAMS,
    ]


def is_already_initialized(reason: str) -> bool:
    return ALREADY_INITIALIZED_REVERT.lower() in reason.lower()


@dataclass
class ProvisionResult:
    """Implementation handles plus how each seed call ended."""

    implementations: TokenImplementations
    outcomes: dict[TokenImplementationKind, SeedOutcome] = field(default_factory=dict)

    @property
    def newly_deployed(self) -> list[str]:
        handles = (
            self.implementations.a_token,
            self.implementations.delegation_aware_a_token,
            self.implementations.stable_debt_token,
            self.implementations.variable_debt_token,
        )
        return [h.name for h in handles if h.newly_deployed]


class TokenImplementationProvisioner:
    """Ensure the four token implementations of a pool exist and are locked.

    Usage:
        provisioner = TokenImplementationProvisioner(
            registry, initializer, transactions, market_name, logger
        )
        result = provisioner.provision(pool.get_pool_address())
    """

    def __init__(
        self,
        registry: DeploymentRegistry,
        initializer: ImplementationInitializer,
        transactions: TransactionSubmitter,
        market_name: str,
        logger: OperationLogger | None = None,
    ) -> None:
        self.registry = registry
        self.initializer = initializer
        self.transactions = transactions
        self.market_name = market_name
        self.logger = logger

    def provision(self, pool_address: str) -> ProvisionResult:
        """Deploy missing implementations and lock each of them.

        Raises:
            DeploymentError: If a deployment fails, or a seed call fails for
                any reason other than the implementation already being locked.
        """
        handles: dict[TokenImplementationKind, DeployedArtifactHandle] = {}
        outcomes: dict[TokenImplementationKind, SeedOutcome] = {}

        for kind in TokenImplementationKind:
            handle = self._ensure_deployed(kind, pool_address)
            handles[kind] = handle
            outcomes[kind] = self.lock(kind, handle, pool_address)

        implementations = TokenImplementations(
            a_token=handles[TokenImplementationKind.ATOKEN],
            delegation_aware_a_token=handles[TokenImplementationKind.DELEGATION_AWARE_ATOKEN],
            stable_debt_token=handles[TokenImplementationKind.STABLE_DEBT_TOKEN],
            variable_debt_token=handles[TokenImplementationKind.VARIABLE_DEBT_TOKEN],
        )
        return ProvisionResult(implementations=implementations, outcomes=outcomes)

    def _ensure_deployed(
        self,
        kind: TokenImplementationKind,
        pool_address: str,
    ) -> DeployedArtifactHandle:
        name = implementation_id(kind, self.market_name)
        existing = self.registry.get(name)
        if existing is not None:
            return existing

        try:
            handle = self.registry.deploy(name, kind.value, [pool_address])
        except (CallReverted, TxFailed) as e:
            raise DeploymentError(name, e.reason) from e

        if self.logger:
            self.logger.info(f"Deployed {kind.value} implementation {name} at {handle.address}")
        return handle

    def lock(
        self,
        kind: TokenImplementationKind,
        handle: DeployedArtifactHandle,
        pool_address: str,
    ) -> SeedOutcome:
        """Send the seed initialization and classify its result."""
        try:
            tx_hash = self.initializer.initialize(handle, seed_arguments(kind, pool_address))
            self.transactions.wait_for_confirmation(tx_hash)
        except (CallReverted, TxFailed) as e:
            if not is_already_initialized(e.reason):
                raise DeploymentError(
                    handle.name, f"seed initialization failed: {e.reason}"
                ) from e
            if self.logger:
                self.logger.log_event(
                    "implementation_already_locked",
                    {"name": handle.name, "address": handle.address},
                )
            return SeedOutcome.ALREADY_LOCKED

        if self.logger:
            self.logger.log_event(
                "implementation_locked", {"name": handle.name, "address": handle.address}
            )
        return SeedOutcome.LOCKED
