"""Data models for reserve listing and delisting.

Pydantic models for representing:
- Interest-rate curves and per-asset risk parameters
- A complete per-market configuration with per-network tables
- Handles to deployed contracts and transaction receipts
- Batch inputs submitted to the pool configurator

Configuration models are frozen: a market is constructed once and threaded
through the lifecycle stages unchanged.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any

from eth_utils import to_checksum_address
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from reserve_lifecycle.data.constants import (
    RAY_DECIMALS,
    RESERVE_INIT_PARAMS,
    ZERO_ADDRESS,
)

# Addresses are stored in EIP-55 checksum form
Address = Annotated[str, AfterValidator(to_checksum_address)]


def parse_units(value: str, decimals: int = RAY_DECIMALS) -> int:
    """Scale a decimal string to a fixed-point integer.

    Args:
        value: Human-readable decimal (e.g. "0.785").
        decimals: Number of decimal places of the fixed-point scale.

    Returns:
        The scaled integer (e.g. 785 * 10**24 for "0.785" at 27 decimals).

    Raises:
        ValueError: If the value has more fractional digits than the scale.
    """
    scaled = Decimal(value).scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value} has more than {decimals} decimal places")
    return int(scaled)


class TokenImplementationKind(str, Enum):
    """The four reusable token implementations behind every reserve."""

    ATOKEN = "AToken"
    DELEGATION_AWARE_ATOKEN = "DelegationAwareAToken"
    STABLE_DEBT_TOKEN = "StableDebtToken"
    VARIABLE_DEBT_TOKEN = "VariableDebtToken"

    @property
    def is_debt_token(self) -> bool:
        return self in (
            TokenImplementationKind.STABLE_DEBT_TOKEN,
            TokenImplementationKind.VARIABLE_DEBT_TOKEN,
        )


class RateStrategyParams(BaseModel):
    """Named interest-rate curve.

    All values are ray-scaled (27 decimals). A deployed strategy is never
    mutated: changing a curve means declaring a new name.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    optimal_usage_ratio: int = Field(ge=0)
    base_variable_borrow_rate: int = Field(ge=0)
    variable_rate_slope1: int = Field(ge=0)
    variable_rate_slope2: int = Field(ge=0)
    stable_rate_slope1: int = Field(ge=0)
    stable_rate_slope2: int = Field(ge=0)
    base_stable_rate_offset: int = Field(ge=0)
    stable_rate_excess_offset: int = Field(ge=0)
    optimal_stable_to_total_debt_ratio: int = Field(ge=0)

    def constructor_args(self, provider_address: str) -> list[Any]:
        """Constructor arguments of the on-chain strategy contract."""
        return [
            provider_address,
            self.optimal_usage_ratio,
            self.base_variable_borrow_rate,
            self.variable_rate_slope1,
            self.variable_rate_slope2,
            self.stable_rate_slope1,
            self.stable_rate_slope2,
            self.base_stable_rate_offset,
            self.stable_rate_excess_offset,
            self.optimal_stable_to_total_debt_ratio,
        ]


class ReserveParams(BaseModel):
    """Per-asset risk configuration.

    Percentages are basis points (10000 = 100%). Caps are in whole tokens,
    0 meaning unlimited. ``reserve_decimals`` must match the underlying
    token; this is the caller's responsibility and is not checked on-chain.
    """

    model_config = ConfigDict(frozen=True)

    strategy: str = Field(description="Name of a RateStrategyParams entry")
    base_ltv_as_collateral: int = Field(ge=0, le=10000)
    liquidation_threshold: int = Field(ge=0, le=10000)
    liquidation_bonus: int = Field(ge=0)
    liquidation_protocol_fee: int = Field(ge=0, le=10000)
    borrowing_enabled: bool = True
    stable_borrow_rate_enabled: bool = False
    flash_loan_enabled: bool = True
    reserve_decimals: int = Field(ge=0, le=77)
    a_token_impl: TokenImplementationKind = TokenImplementationKind.ATOKEN
    reserve_factor: int = Field(ge=0, le=10000)
    supply_cap: int = Field(ge=0, default=0)
    borrow_cap: int = Field(ge=0, default=0)
    debt_ceiling: int = Field(ge=0, default=0)
    borrowable_isolation: bool = False

    @field_validator("a_token_impl")
    @classmethod
    def interest_bearing_variant(cls, v: TokenImplementationKind) -> TokenImplementationKind:
        if v.is_debt_token:
            raise ValueError(f"{v.value} is not an interest-bearing token implementation")
        return v

    @model_validator(mode="after")
    def threshold_covers_ltv(self) -> ReserveParams:
        if self.liquidation_threshold < self.base_ltv_as_collateral:
            raise ValueError(
                f"liquidation_threshold ({self.liquidation_threshold}) must be >= "
                f"base_ltv_as_collateral ({self.base_ltv_as_collateral})"
            )
        return self


class EModeGroup(BaseModel):
    """Category of correlated assets sharing relaxed risk parameters."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1, le=255)
    ltv: int = Field(ge=0, le=10000)
    liquidation_threshold: int = Field(ge=0, le=10000)
    liquidation_bonus: int = Field(ge=0)
    label: str
    assets: tuple[str, ...] = ()
    price_source: Address = ZERO_ADDRESS

    @model_validator(mode="after")
    def threshold_covers_ltv(self) -> EModeGroup:
        if self.liquidation_threshold < self.ltv:
            raise ValueError(
                f"e-mode {self.label}: liquidation_threshold must be >= ltv"
            )
        return self


class IncentivesConfig(BaseModel):
    """Incentive reward wiring per network."""

    model_config = ConfigDict(frozen=True)

    enabled: dict[str, bool] = Field(default_factory=dict)
    rewards: dict[str, dict[str, Address]] = Field(default_factory=dict)
    rewards_oracle: dict[str, dict[str, Address]] = Field(default_factory=dict)

    def is_enabled(self, network: str) -> bool:
        return self.enabled.get(network, False)


class MarketConfiguration(BaseModel):
    """Root configuration of one lending market."""

    model_config = ConfigDict(frozen=True)

    market_id: str
    a_token_name_prefix: str
    stable_debt_token_name_prefix: str
    variable_debt_token_name_prefix: str
    symbol_prefix: str
    provider_id: int = Field(ge=0)

    reserves_config: dict[str, ReserveParams]
    rate_strategies: dict[str, RateStrategyParams]

    # Per-network tables: network -> symbol -> address
    reserve_assets: dict[str, dict[str, Address]] = Field(default_factory=dict)
    chainlink_aggregator: dict[str, dict[str, Address]] = Field(default_factory=dict)

    # Per-network single addresses
    reserve_factor_treasury_address: dict[str, Address] = Field(default_factory=dict)
    fallback_oracle: dict[str, Address] = Field(default_factory=dict)

    e_modes: dict[str, EModeGroup] = Field(default_factory=dict)
    incentives: IncentivesConfig = Field(default_factory=IncentivesConfig)

    @model_validator(mode="after")
    def check_references(self) -> MarketConfiguration:
        for key, strategy in self.rate_strategies.items():
            if key != strategy.name:
                raise ValueError(
                    f"rate strategy registered as '{key}' is named '{strategy.name}'"
                )

        listed_somewhere = set()
        for assets in self.reserve_assets.values():
            listed_somewhere.update(assets)

        for symbol, params in self.reserves_config.items():
            if symbol in listed_somewhere and params.strategy not in self.rate_strategies:
                raise ValueError(
                    f"reserve {symbol} references unknown rate strategy '{params.strategy}'"
                )

        for group_name, group in self.e_modes.items():
            unknown = [s for s in group.assets if s not in self.reserves_config]
            if unknown:
                raise ValueError(
                    f"e-mode {group_name} references undeclared reserves {unknown}"
                )
        return self

    def strategy_for(self, symbol: str) -> RateStrategyParams:
        return self.rate_strategies[self.reserves_config[symbol].strategy]


class DeployedArtifactHandle(BaseModel):
    """Reference to a contract recorded in the deployment registry."""

    model_config = ConfigDict(frozen=True)

    name: str
    address: Address
    contract: str
    args: list[Any] = Field(default_factory=list)
    abi: list[dict[str, Any]] = Field(default_factory=list, repr=False)
    newly_deployed: bool = False


class TxReceipt(BaseModel):
    """Confirmed transaction outcome."""

    tx_hash: str
    block_number: int = Field(ge=0)
    status: int = 1
    gas_used: int = Field(ge=0, default=0)
    contract_address: Address | None = None


class TokenImplementations(BaseModel):
    """Handles of the four token implementations of a pool."""

    model_config = ConfigDict(frozen=True)

    a_token: DeployedArtifactHandle
    delegation_aware_a_token: DeployedArtifactHandle
    stable_debt_token: DeployedArtifactHandle
    variable_debt_token: DeployedArtifactHandle

    def interest_bearing(self, kind: TokenImplementationKind) -> DeployedArtifactHandle:
        if kind == TokenImplementationKind.DELEGATION_AWARE_ATOKEN:
            return self.delegation_aware_a_token
        return self.a_token


class InitReserveInput(BaseModel):
    """One entry of the pool configurator's bulk initialization batch."""

    symbol: str
    a_token_impl: Address
    stable_debt_token_impl: Address
    variable_debt_token_impl: Address
    underlying_asset_decimals: int = Field(ge=0, le=255)
    interest_rate_strategy_address: Address
    underlying_asset: Address
    treasury: Address
    incentives_controller: Address
    a_token_name: str
    a_token_symbol: str
    variable_debt_token_name: str
    variable_debt_token_symbol: str
    stable_debt_token_name: str
    stable_debt_token_symbol: str
    params: bytes = RESERVE_INIT_PARAMS

    def as_abi_tuple(self) -> tuple[Any, ...]:
        return (
            self.a_token_impl,
            self.stable_debt_token_impl,
            self.variable_debt_token_impl,
            self.underlying_asset_decimals,
            self.interest_rate_strategy_address,
            self.underlying_asset,
            self.treasury,
            self.incentives_controller,
            self.a_token_name,
            self.a_token_symbol,
            self.variable_debt_token_name,
            self.variable_debt_token_symbol,
            self.stable_debt_token_name,
            self.stable_debt_token_symbol,
            self.params,
        )


class ConfigureReserveInput(BaseModel):
    """Risk parameters pushed to one already-initialized reserve."""

    symbol: str
    asset: Address
    base_ltv: int
    liquidation_threshold: int
    liquidation_bonus: int
    liquidation_protocol_fee: int
    reserve_factor: int
    borrow_cap: int
    supply_cap: int
    stable_borrowing_enabled: bool
    borrowing_enabled: bool
    flash_loan_enabled: bool
    debt_ceiling: int
    borrowable_isolation: bool

    @classmethod
    def from_params(cls, symbol: str, asset: str, params: ReserveParams) -> ConfigureReserveInput:
        return cls(
            symbol=symbol,
            asset=asset,
            base_ltv=params.base_ltv_as_collateral,
            liquidation_threshold=params.liquidation_threshold,
            liquidation_bonus=params.liquidation_bonus,
            liquidation_protocol_fee=params.liquidation_protocol_fee,
            reserve_factor=params.reserve_factor,
            borrow_cap=params.borrow_cap,
            supply_cap=params.supply_cap,
            stable_borrowing_enabled=params.stable_borrow_rate_enabled,
            borrowing_enabled=params.borrowing_enabled,
            flash_loan_enabled=params.flash_loan_enabled,
            debt_ceiling=params.debt_ceiling,
            borrowable_isolation=params.borrowable_isolation,
        )

    def as_helper_tuple(self) -> tuple[Any, ...]:
        """Fields accepted by the batched ReservesSetupHelper call."""
        return (
            self.asset,
            self.base_ltv,
            self.liquidation_threshold,
            self.liquidation_bonus,
            self.reserve_factor,
            self.borrow_cap,
            self.supply_cap,
            self.stable_borrowing_enabled,
            self.borrowing_enabled,
            self.flash_loan_enabled,
        )


class ReserveTokenAddresses(BaseModel):
    """Token contracts the pool created for one reserve."""

    a_token: Address
    stable_debt_token: Address
    variable_debt_token: Address
