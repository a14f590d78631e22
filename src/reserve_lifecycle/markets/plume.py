"""Mystic Market on Plume."""

from __future__ import annotations

from reserve_lifecycle.data.constants import ZERO_ADDRESS
from reserve_lifecycle.data.models import (
    EModeGroup,
    IncentivesConfig,
    MarketConfiguration,
    RateStrategyParams,
    ReserveParams,
    parse_units,
)

PLUME = "plume"
PLUME_TESTNET = "plumeTestnet"


def _curve(name: str, **values: str) -> RateStrategyParams:
    return RateStrategyParams(name=name, **{k: parse_units(v) for k, v in values.items()})


RATE_STRATEGY_VOLATILE_ONE = _curve(
    "rateStrategyVolatileOne",
    optimal_usage_ratio="0.785",
    base_variable_borrow_rate="0",
    variable_rate_slope1="0.07",
    variable_rate_slope2="3.04",
    stable_rate_slope1="0.05",
    stable_rate_slope2="3",
    base_stable_rate_offset="0.02",
    stable_rate_excess_offset="0.05",
    optimal_stable_to_total_debt_ratio="0.2",
)

RATE_STRATEGY_STABLE_ONE = _curve(
    "rateStrategyStableOne",
    optimal_usage_ratio="0.8",
    base_variable_borrow_rate="0.01",
    variable_rate_slope1="0.117",
    variable_rate_slope2="0.5",
    stable_rate_slope1="0.1",
    stable_rate_slope2="0.5",
    base_stable_rate_offset="0.01",
    stable_rate_excess_offset="0.08",
    optimal_stable_to_total_debt_ratio="0.2",
)

# Curve shared by the Nest vault tokens
RATE_STRATEGY_STABLE_TWO = _curve(
    "rateStrategyStableTwo",
    optimal_usage_ratio="0.5",
    base_variable_borrow_rate="0",
    variable_rate_slope1="0.06",
    variable_rate_slope2="3.04",
    stable_rate_slope1="0.05",
    stable_rate_slope2="3",
    base_stable_rate_offset="0.01",
    stable_rate_excess_offset="0.05",
    optimal_stable_to_total_debt_ratio="0.2",
)

STRATEGY_PUSD = ReserveParams(
    strategy=RATE_STRATEGY_STABLE_ONE.name,
    base_ltv_as_collateral=8000,
    liquidation_threshold=8300,
    liquidation_bonus=10500,
    liquidation_protocol_fee=1000,
    borrowing_enabled=True,
    stable_borrow_rate_enabled=False,
    flash_loan_enabled=True,
    reserve_decimals=6,
    reserve_factor=1000,
    borrowable_isolation=True,
)

STRATEGY_NEST = ReserveParams(
    strategy=RATE_STRATEGY_STABLE_TWO.name,
    base_ltv_as_collateral=7500,
    liquidation_threshold=8000,
    liquidation_bonus=10500,
    liquidation_protocol_fee=1000,
    borrowing_enabled=True,
    stable_borrow_rate_enabled=False,
    flash_loan_enabled=True,
    reserve_decimals=6,
    reserve_factor=1000,
    borrowable_isolation=True,
)

STRATEGY_WETH = ReserveParams(
    strategy=RATE_STRATEGY_VOLATILE_ONE.name,
    base_ltv_as_collateral=7850,
    liquidation_threshold=8100,
    liquidation_bonus=10500,
    liquidation_protocol_fee=1000,
    borrowing_enabled=True,
    stable_borrow_rate_enabled=False,
    flash_loan_enabled=True,
    reserve_decimals=18,
    reserve_factor=1000,
    borrowable_isolation=False,
)

_PLUME_REWARD_SYMBOLS = ("NRWA", "NTBILL", "NELIXIR", "WETH", "USDT", "USDC", "PETH")

PLUME_CONFIG = MarketConfiguration(
    market_id="Mystic Market",
    a_token_name_prefix="Mystic",
    stable_debt_token_name_prefix="Mystic",
    variable_debt_token_name_prefix="Mystic",
    symbol_prefix="my",
    provider_id=8080,
    reserves_config={
        "NRWA": STRATEGY_NEST,
        "NTBILL": STRATEGY_NEST,
        "NELIXIR": STRATEGY_NEST,
        "WPLUME": STRATEGY_WETH,
        "WETH": STRATEGY_WETH,
        "PETH": STRATEGY_WETH,
        "PUSD": STRATEGY_PUSD,
        "NYIELD": STRATEGY_NEST,
        "NBASIS": STRATEGY_NEST,
    },
    rate_strategies={
        s.name: s
        for s in (
            RATE_STRATEGY_VOLATILE_ONE,
            RATE_STRATEGY_STABLE_ONE,
            RATE_STRATEGY_STABLE_TWO,
        )
    },
    reserve_assets={
        PLUME: {
            "PUSD": "0xdddD73F5Df1F0DC31373357beAC77545dC5A6f3F",
            "NRWA": "0x593cCcA4c4bf58b7526a4C164cEEf4003C6388db",
            "NTBILL": "0xe72fe64840f4ef80e3ec73a1c749491b5c938cb9",
            "NELIXIR": "0x9fbC367B9Bb966a2A537989817A088AFCaFFDC4c",
            "WETH": "0xca59cA09E5602fAe8B629DeE83FfA819741f14be",
            "PETH": "0x39d1F90eF89C52dDA276194E9a832b484ee45574",
            "USDC": "0x78adD880A697070c1e765Ac44D65323a0DcCE913",
            "USDT": "0xda6087E69C51E7D31b6DBAD276a3c44703DFdCAd",
            "NYIELD": "0x892DFf5257B39f7afB7803dd7C81E8ECDB6af3E8",
            "NBASIS": "0x11113Ff3a60C2450F4b22515cB760417259eE94B",
        },
    },
    chainlink_aggregator={
        PLUME: {
            "NRWA": "0xd411131B1Efc61006fc249D67C7BDD61fcd368F4",
            "NTBILL": "0x69b8Fcb74a5FbcCddE7bDb9b7Ec59a8Cb1AA5e2C",
            "NELIXIR": "0x42D4bf80e77114eBB049CBea29E1AB5A0727e9CA",
            "WETH": "0x8De37B451C353AA6EEAc39dc28B6Ee82554BBa55",
            "PETH": "0x8aC34D137daac9F47a5F9a93C429F0c7324c70da",
            "USDC": "0x0D9154F5453dCb0a271D9FF415Abc085d7B03b6c",
            "PUSD": "0x0D9154F5453dCb0a271D9FF415Abc085d7B03b6c",
            "USDT": "0x0D9154F5453dCb0a271D9FF415Abc085d7B03b6c",
            "NYIELD": "0xc68FE3Ea42885339B1c7549d53deC463Ea6a571F",
            "NBASIS": "0x46C686299DBCF56ae8D00716FD52367ff81c5236",
        },
    },
    reserve_factor_treasury_address={PLUME: ZERO_ADDRESS},
    fallback_oracle={PLUME: ZERO_ADDRESS},
    e_modes={
        "StableEMode": EModeGroup(
            id=1,
            ltv=9500,
            liquidation_threshold=9750,
            liquidation_bonus=10200,
            label="USD Correlated",
            assets=("NRWA", "NTBILL", "NELIXIR"),
        ),
    },
    incentives=IncentivesConfig(
        enabled={PLUME: True},
        rewards={PLUME: {symbol: ZERO_ADDRESS for symbol in _PLUME_REWARD_SYMBOLS}},
        rewards_oracle={PLUME: {symbol: ZERO_ADDRESS for symbol in _PLUME_REWARD_SYMBOLS}},
    ),
)
