"""Pytest configuration and fixtures for reserve lifecycle tests."""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any, Iterator

import pytest

from reserve_lifecycle.core.context import NetworkContext
from reserve_lifecycle.core.errors import CallReverted, DeploymentError, TxFailed
from reserve_lifecycle.core.logging import OperationLogger
from reserve_lifecycle.data.constants import ALREADY_INITIALIZED_REVERT
from reserve_lifecycle.data.interfaces import (
    DeploymentRegistry,
    ImplementationInitializer,
    PoolAdmin,
    PriceOracle,
    TokenRecordStore,
    TransactionSubmitter,
)
from reserve_lifecycle.data.models import (
    ConfigureReserveInput,
    DeployedArtifactHandle,
    EModeGroup,
    InitReserveInput,
    MarketConfiguration,
    ReserveParams,
    TxReceipt,
)
from reserve_lifecycle.lifecycle.pipeline import LifecycleCollaborators
from reserve_lifecycle.markets.plume import (
    RATE_STRATEGY_STABLE_ONE,
    RATE_STRATEGY_VOLATILE_ONE,
)

TEST_NETWORK = "testnet"
TEST_MARKET = "test"


def make_address(n: int) -> str:
    """Digit-only address, identical to its checksummed form."""
    return "0x" + str(n).rjust(40, "0")


ASSET_X = make_address(1)
ASSET_Z = make_address(3)
ASSET_EXTRA = make_address(4)
FEED_X = make_address(11)
FEED_EXTRA = make_address(14)
TREASURY = make_address(20)
DEPLOYER = make_address(99)
PROVIDER = make_address(50)
POOL = make_address(51)

OPEN_POSITIONS_REVERT = "UNDERLYING_CLAIMABLE_RIGHTS_NOT_ZERO"


def make_tx_hash(n: int) -> str:
    return "0x" + str(n).rjust(64, "0")


class FakeRegistry(DeploymentRegistry):
    """In-memory deployment registry that records every deployment."""

    def __init__(self) -> None:
        self.entries: dict[str, DeployedArtifactHandle] = {}
        self.deployments: list[str] = []
        self.fail_on: dict[str, str] = {}
        self._addresses = itertools.count(1000)

    def get(self, name: str) -> DeployedArtifactHandle | None:
        return self.entries.get(name)

    def deploy(self, name: str, contract: str, args: list[Any]) -> DeployedArtifactHandle:
        if name in self.entries:
            return self.entries[name]
        if name in self.fail_on:
            raise DeploymentError(name, self.fail_on[name])

        handle = DeployedArtifactHandle(
            name=name,
            address=make_address(next(self._addresses)),
            contract=contract,
            args=args,
            newly_deployed=True,
        )
        self.entries[name] = handle.model_copy(update={"newly_deployed": False})
        self.deployments.append(name)
        return handle

    def save(self, handle: DeployedArtifactHandle) -> None:
        self.entries[handle.name] = handle

    def delete(self, name: str) -> bool:
        return self.entries.pop(name, None) is not None


class FakeTransactions(TransactionSubmitter):
    """Confirms every hash unless a failure reason is set."""

    def __init__(self) -> None:
        self.confirmed: list[str] = []
        self.fail_reason: str | None = None
        self._blocks = itertools.count(1)

    def wait_for_confirmation(self, tx_hash: str) -> TxReceipt:
        if self.fail_reason is not None:
            raise TxFailed(tx_hash, self.fail_reason)
        self.confirmed.append(tx_hash)
        return TxReceipt(tx_hash=tx_hash, block_number=next(self._blocks), gas_used=21000)


class FakeImplementationInitializer(ImplementationInitializer):
    """Implementation contracts that can be initialized exactly once."""

    def __init__(self) -> None:
        self.locked: set[str] = set()
        self.calls: list[tuple[str, list[Any]]] = []
        self.error_reason: str | None = None
        self._hashes = itertools.count(1)

    def initialize(self, handle: DeployedArtifactHandle, args: list[Any]) -> str:
        self.calls.append((handle.name, args))
        if self.error_reason is not None:
            raise CallReverted(self.error_reason)
        if handle.address in self.locked:
            raise CallReverted(ALREADY_INITIALIZED_REVERT)
        self.locked.add(handle.address)
        return make_tx_hash(next(self._hashes))


class FakePool(PoolAdmin):
    """Pool that tracks reserves, their configuration and e-mode categories."""

    def __init__(self) -> None:
        self.initialized: dict[str, InitReserveInput] = {}
        self.configuration: dict[str, ConfigureReserveInput] = {}
        self.emode_categories: dict[int, EModeGroup] = {}
        self.emode_assets: dict[str, int] = {}
        self.init_batches: list[list[InitReserveInput]] = []
        self.configure_batches: list[list[ConfigureReserveInput]] = []
        self.drops: list[str] = []
        self.open_positions: set[str] = set()
        self.init_error: str | None = None
        self._hashes = itertools.count(100)

    @property
    def addresses_provider(self) -> str:
        return PROVIDER

    def get_pool_address(self) -> str:
        return POOL

    def is_reserve_initialized(self, asset: str) -> bool:
        return asset in self.initialized

    def _tx(self) -> str:
        return make_tx_hash(next(self._hashes))

    def init_reserves(self, batch: list[InitReserveInput]) -> str:
        if self.init_error is not None:
            raise CallReverted(self.init_error)
        self.init_batches.append(batch)
        for entry in batch:
            self.initialized[entry.underlying_asset] = entry
        return self._tx()

    def configure_reserves(self, batch: list[ConfigureReserveInput]) -> str:
        for entry in batch:
            if entry.asset not in self.initialized:
                raise CallReverted("ASSET_NOT_LISTED")
        self.configure_batches.append(batch)
        for entry in batch:
            self.configuration[entry.asset] = entry
        return self._tx()

    def configure_emode(self, group: EModeGroup, assets: dict[str, str]) -> str:
        self.emode_categories[group.id] = group
        for asset in assets.values():
            self.emode_assets[asset] = group.id
        return self._tx()

    def drop_reserve(self, asset: str) -> str:
        if asset not in self.initialized:
            raise CallReverted("ASSET_NOT_LISTED")
        if asset in self.open_positions:
            raise CallReverted(OPEN_POSITIONS_REVERT)
        self.drops.append(asset)
        self.initialized.pop(asset, None)
        self.configuration.pop(asset, None)
        return self._tx()


class FakeOracle(PriceOracle):
    def __init__(self) -> None:
        self.sources: dict[str, str] = {}
        self.calls: list[tuple[list[str], list[str]]] = []
        self.error_reason: str | None = None
        self._hashes = itertools.count(500)

    def set_asset_sources(self, assets: list[str], sources: list[str]) -> str:
        if self.error_reason is not None:
            raise CallReverted(self.error_reason)
        self.calls.append((assets, sources))
        self.sources.update(zip(assets, sources))
        return make_tx_hash(next(self._hashes))


class FakeTokenRecords(TokenRecordStore):
    """Token bookkeeping keyed by record name."""

    def __init__(self, market_name: str = TEST_MARKET) -> None:
        self.market_name = market_name
        self.records: dict[str, str] = {}
        self.delete_calls: list[dict[str, str]] = []

    def _names(self, symbol: str) -> list[str]:
        return [
            f"{symbol}-AToken-{self.market_name}",
            f"{symbol}-StableDebtToken-{self.market_name}",
            f"{symbol}-VariableDebtToken-{self.market_name}",
        ]

    def save_token_records(self, reserves: dict[str, str]) -> list[str]:
        saved = []
        for symbol, asset in reserves.items():
            for name in self._names(symbol):
                self.records[name] = asset
                saved.append(name)
        return saved

    def delete_token_records(self, reserves: dict[str, str]) -> list[str]:
        self.delete_calls.append(dict(reserves))
        removed = []
        for symbol in reserves:
            for name in self._names(symbol):
                if self.records.pop(name, None) is not None:
                    removed.append(name)
        return removed


def _reserve(strategy: str, ltv: int = 7500, threshold: int = 8000) -> ReserveParams:
    return ReserveParams(
        strategy=strategy,
        base_ltv_as_collateral=ltv,
        liquidation_threshold=threshold,
        liquidation_bonus=10500,
        liquidation_protocol_fee=1000,
        reserve_decimals=18,
        reserve_factor=1000,
        supply_cap=2000,
        borrow_cap=1000,
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep operator settings out of the test environment."""
    for name in (
        "MARKET_NAME",
        "NETWORK",
        "FORK",
        "RPC_URL",
        "DEPLOYER_PRIVATE_KEY",
        "DEPLOYMENTS_DIR",
        "ARTIFACTS_DIR",
        "LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_log_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for log files."""
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    return log_dir


@pytest.fixture
def run_logger(temp_log_dir: Path) -> Iterator[OperationLogger]:
    run_logger = OperationLogger.create_run("test", TEST_MARKET, temp_log_dir)
    yield run_logger
    run_logger.close()


@pytest.fixture
def market_config() -> MarketConfiguration:
    """Market with a listable X, an unlisted Y and a feedless Z.

    EXTRA has an address and a feed but no reserve configuration.
    """
    return MarketConfiguration(
        market_id="Test Market",
        a_token_name_prefix="Test",
        stable_debt_token_name_prefix="Test",
        variable_debt_token_name_prefix="Test",
        symbol_prefix="tst",
        provider_id=1,
        reserves_config={
            "X": _reserve(RATE_STRATEGY_STABLE_ONE.name, ltv=8000, threshold=8300),
            "Y": _reserve(RATE_STRATEGY_VOLATILE_ONE.name),
            "Z": _reserve(RATE_STRATEGY_VOLATILE_ONE.name),
        },
        rate_strategies={
            RATE_STRATEGY_STABLE_ONE.name: RATE_STRATEGY_STABLE_ONE,
            RATE_STRATEGY_VOLATILE_ONE.name: RATE_STRATEGY_VOLATILE_ONE,
        },
        reserve_assets={
            TEST_NETWORK: {"X": ASSET_X, "Z": ASSET_Z, "EXTRA": ASSET_EXTRA},
        },
        chainlink_aggregator={
            TEST_NETWORK: {"X": FEED_X, "EXTRA": FEED_EXTRA},
        },
        reserve_factor_treasury_address={TEST_NETWORK: TREASURY},
        e_modes={
            "Correlated": EModeGroup(
                id=1,
                ltv=9000,
                liquidation_threshold=9300,
                liquidation_bonus=10100,
                label="Correlated",
                assets=("X", "Y"),
            ),
        },
    )


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def fake_transactions() -> FakeTransactions:
    return FakeTransactions()


@pytest.fixture
def fake_initializer() -> FakeImplementationInitializer:
    return FakeImplementationInitializer()


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def fake_token_records() -> FakeTokenRecords:
    return FakeTokenRecords()


@pytest.fixture
def collaborators(
    fake_registry: FakeRegistry,
    fake_pool: FakePool,
    fake_oracle: FakeOracle,
    fake_transactions: FakeTransactions,
    fake_initializer: FakeImplementationInitializer,
    fake_token_records: FakeTokenRecords,
) -> LifecycleCollaborators:
    return LifecycleCollaborators(
        registry=fake_registry,
        pool=fake_pool,
        oracle=fake_oracle,
        transactions=fake_transactions,
        implementation_initializer=fake_initializer,
        token_records=fake_token_records,
    )


@pytest.fixture
def network_context() -> NetworkContext:
    return NetworkContext.verify(TEST_NETWORK, 31337, DEPLOYER)
