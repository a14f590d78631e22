"""Aave v3 contract adapters backed by web3.py.

Implements the lifecycle collaborators against a live node:
- Transaction confirmation
- PoolConfigurator / Pool administration (init, configure, e-mode, drop)
- AaveOracle asset sources
- Token implementation initialization
- Per-reserve token records read from the pool data provider

All write calls are sent from the deployer account. A call the node rejects
before mining, or any other node error on a call, raises CallReverted with
the node's reason.
"""

from __future__ import annotations

from typing import Any

from web3 import Web3
from web3.contract import Contract
from web3.contract.contract import ContractFunction
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from reserve_lifecycle.core.errors import CallReverted, ConfigurationError, TxFailed
from reserve_lifecycle.data.constants import (
    ACL_MANAGER_ABI,
    ADDRESSES_PROVIDER_ABI,
    ATOKEN_INITIALIZE_ABI,
    ATOKEN_RECORD_SUFFIX,
    DEBT_TOKEN_INITIALIZE_ABI,
    ORACLE_ABI,
    POOL_ABI,
    POOL_CONFIGURATOR_ABI,
    POOL_DATA_PROVIDER_ABI,
    RESERVES_SETUP_HELPER_ABI,
    STABLE_DEBT_RECORD_SUFFIX,
    VARIABLE_DEBT_RECORD_SUFFIX,
    ZERO_ADDRESS,
)
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
    ReserveTokenAddresses,
    TxReceipt,
)


def _transact(function: ContractFunction, sender: str) -> str:
    """Send a contract call and return its transaction hash."""
    try:
        tx_hash = function.transact({"from": sender})
    except ContractLogicError as e:
        raise CallReverted(e.message or str(e)) from e
    except Web3Exception as e:
        # Funding, nonce and transport errors from the node
        raise CallReverted(str(e)) from e
    return Web3.to_hex(tx_hash)


def _call(function: ContractFunction) -> Any:
    """Read through ``eth_call``."""
    try:
        return function.call()
    except ContractLogicError as e:
        raise CallReverted(e.message or str(e)) from e
    except Web3Exception as e:
        raise CallReverted(str(e)) from e


class Web3TransactionSubmitter(TransactionSubmitter):
    """Waits for receipts through ``eth_getTransactionReceipt`` polling."""

    def __init__(self, web3: Web3, timeout: float = 120.0) -> None:
        self.web3 = web3
        self.timeout = timeout

    def wait_for_confirmation(self, tx_hash: str) -> TxReceipt:
        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.timeout)
        except TimeExhausted as e:
            raise TxFailed(tx_hash, f"not confirmed within {self.timeout}s") from e
        except Web3Exception as e:
            raise TxFailed(tx_hash, str(e)) from e

        if receipt["status"] != 1:
            raise TxFailed(tx_hash)

        return TxReceipt(
            tx_hash=tx_hash,
            block_number=receipt["blockNumber"],
            status=receipt["status"],
            gas_used=receipt.get("gasUsed", 0),
            contract_address=receipt.get("contractAddress"),
        )


class Web3PoolAdmin(PoolAdmin):
    """Pool administration through the PoolConfigurator.

    Risk parameters go through the ReservesSetupHelper in one batched call;
    the helper is granted the risk admin role only for the duration of it.
    Without a helper address the adapter can initialize and drop reserves
    but not configure them.

    Usage:
        pool = Web3PoolAdmin(web3, provider_address, deployer, transactions, helper_address)
        tx_hash = pool.init_reserves(batch)
    """

    def __init__(
        self,
        web3: Web3,
        addresses_provider: str,
        deployer: str,
        transactions: TransactionSubmitter,
        setup_helper: str | None = None,
    ) -> None:
        self.web3 = web3
        self.deployer = deployer
        self.transactions = transactions
        self._addresses_provider = Web3.to_checksum_address(addresses_provider)

        provider: Contract = web3.eth.contract(
            address=self._addresses_provider, abi=ADDRESSES_PROVIDER_ABI
        )
        try:
            pool_address = provider.functions.getPool().call()
            configurator_address = provider.functions.getPoolConfigurator().call()
            acl_manager_address = provider.functions.getACLManager().call()
        except Web3Exception as e:
            raise ConfigurationError(
                f"Cannot read pool contracts from addresses provider "
                f"{self._addresses_provider}: {e}"
            ) from e

        self._pool: Contract = web3.eth.contract(address=pool_address, abi=POOL_ABI)
        self._configurator: Contract = web3.eth.contract(
            address=configurator_address, abi=POOL_CONFIGURATOR_ABI
        )
        self._acl_manager: Contract = web3.eth.contract(
            address=acl_manager_address, abi=ACL_MANAGER_ABI
        )
        self._setup_helper: Contract | None = None
        if setup_helper is not None:
            self._setup_helper = web3.eth.contract(
                address=Web3.to_checksum_address(setup_helper), abi=RESERVES_SETUP_HELPER_ABI
            )

    @property
    def addresses_provider(self) -> str:
        return self._addresses_provider

    def get_pool_address(self) -> str:
        return self._pool.address

    def is_reserve_initialized(self, asset: str) -> bool:
        reserve_data = _call(
            self._pool.functions.getReserveData(Web3.to_checksum_address(asset))
        )
        a_token_address = reserve_data[8]
        return a_token_address != ZERO_ADDRESS

    def _confirm(self, function: ContractFunction) -> TxReceipt:
        return self.transactions.wait_for_confirmation(_transact(function, self.deployer))

    def _run_steps(self, steps: list[ContractFunction]) -> str:
        """Send steps in order, confirming all but the last."""
        for function in steps[:-1]:
            self._confirm(function)
        return _transact(steps[-1], self.deployer)

    def init_reserves(self, batch: list[InitReserveInput]) -> str:
        inputs = [item.as_abi_tuple() for item in batch]
        return _transact(self._configurator.functions.initReserves(inputs), self.deployer)

    def configure_reserves(self, batch: list[ConfigureReserveInput]) -> str:
        if self._setup_helper is None:
            raise ConfigurationError("Configuring reserves requires a ReservesSetupHelper.")

        helper = self._setup_helper.address
        acl = self._acl_manager.functions
        self._confirm(acl.addRiskAdmin(helper))
        try:
            self._confirm(
                self._setup_helper.functions.configureReserves(
                    self._configurator.address,
                    [item.as_helper_tuple() for item in batch],
                )
            )
        except (CallReverted, TxFailed) as e:
            try:
                self._confirm(acl.removeRiskAdmin(helper))
            except (CallReverted, TxFailed) as revoke_error:
                raise CallReverted(
                    f"{e.reason}; removeRiskAdmin also failed, {helper} keeps the "
                    f"risk admin role: {revoke_error.reason}"
                ) from e
            raise
        self._confirm(acl.removeRiskAdmin(helper))

        # Isolation-mode fields are not covered by the helper
        configurator = self._configurator.functions
        steps: list[ContractFunction] = []
        for item in batch:
            asset = Web3.to_checksum_address(item.asset)
            steps.append(configurator.setLiquidationProtocolFee(asset, item.liquidation_protocol_fee))
            steps.append(configurator.setDebtCeiling(asset, item.debt_ceiling))
            steps.append(configurator.setBorrowableInIsolation(asset, item.borrowable_isolation))
        return self._run_steps(steps)

    def configure_emode(self, group: EModeGroup, assets: dict[str, str]) -> str:
        configurator = self._configurator.functions
        steps: list[ContractFunction] = [
            configurator.setEModeCategory(
                group.id,
                group.ltv,
                group.liquidation_threshold,
                group.liquidation_bonus,
                Web3.to_checksum_address(group.price_source),
                group.label,
            )
        ]
        for address in assets.values():
            steps.append(
                configurator.setAssetEModeCategory(Web3.to_checksum_address(address), group.id)
            )
        return self._run_steps(steps)

    def drop_reserve(self, asset: str) -> str:
        return _transact(
            self._configurator.functions.dropReserve(Web3.to_checksum_address(asset)),
            self.deployer,
        )


class Web3PriceOracle(PriceOracle):
    """AaveOracle asset source management."""

    def __init__(self, web3: Web3, oracle_address: str, deployer: str) -> None:
        self.deployer = deployer
        self._oracle: Contract = web3.eth.contract(
            address=Web3.to_checksum_address(oracle_address), abi=ORACLE_ABI
        )

    def set_asset_sources(self, assets: list[str], sources: list[str]) -> str:
        return _transact(
            self._oracle.functions.setAssetSources(
                [Web3.to_checksum_address(a) for a in assets],
                [Web3.to_checksum_address(s) for s in sources],
            ),
            self.deployer,
        )


class Web3ImplementationInitializer(ImplementationInitializer):
    """Calls ``initialize`` on token implementation contracts."""

    def __init__(self, web3: Web3, deployer: str) -> None:
        self.web3 = web3
        self.deployer = deployer

    def initialize(self, handle: DeployedArtifactHandle, args: list[Any]) -> str:
        abi = handle.abi or (
            DEBT_TOKEN_INITIALIZE_ABI if "DebtToken" in handle.contract else ATOKEN_INITIALIZE_ABI
        )
        implementation = self.web3.eth.contract(
            address=Web3.to_checksum_address(handle.address), abi=abi
        )
        return _transact(implementation.functions.initialize(*args), self.deployer)


class RegistryTokenRecordStore(TokenRecordStore):
    """Token records kept as deployment registry entries.

    Each reserve gets three records named after its symbol, pointing at the
    proxies the pool created for it.
    """

    def __init__(
        self,
        web3: Web3,
        registry: DeploymentRegistry,
        data_provider_address: str,
        market_name: str,
    ) -> None:
        self.registry = registry
        self.market_name = market_name
        self._data_provider: Contract = web3.eth.contract(
            address=Web3.to_checksum_address(data_provider_address),
            abi=POOL_DATA_PROVIDER_ABI,
        )

    def _record_names(self, symbol: str) -> tuple[str, str, str]:
        return (
            symbol + ATOKEN_RECORD_SUFFIX.format(market=self.market_name),
            symbol + STABLE_DEBT_RECORD_SUFFIX.format(market=self.market_name),
            symbol + VARIABLE_DEBT_RECORD_SUFFIX.format(market=self.market_name),
        )

    def get_reserve_tokens(self, asset: str) -> ReserveTokenAddresses:
        a_token, stable_debt, variable_debt = _call(
            self._data_provider.functions.getReserveTokensAddresses(
                Web3.to_checksum_address(asset)
            )
        )
        return ReserveTokenAddresses(
            a_token=a_token,
            stable_debt_token=stable_debt,
            variable_debt_token=variable_debt,
        )

    def save_token_records(self, reserves: dict[str, str]) -> list[str]:
        saved: list[str] = []
        for symbol, asset in reserves.items():
            tokens = self.get_reserve_tokens(asset)
            a_name, stable_name, variable_name = self._record_names(symbol)
            for name, address, contract in (
                (a_name, tokens.a_token, "AToken"),
                (stable_name, tokens.stable_debt_token, "StableDebtToken"),
                (variable_name, tokens.variable_debt_token, "VariableDebtToken"),
            ):
                self.registry.save(
                    DeployedArtifactHandle(name=name, address=address, contract=contract)
                )
                saved.append(name)
        return saved

    def delete_token_records(self, reserves: dict[str, str]) -> list[str]:
        removed: list[str] = []
        for symbol in reserves:
            for name in self._record_names(symbol):
                if self.registry.delete(name):
                    removed.append(name)
        return removed
