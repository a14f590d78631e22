"""Constants for Aave v3 reserve listing.

Deployment ids, sentinel values, and minimal ABIs.
"""

from __future__ import annotations

# =============================================================================
# Sentinels and fixed-point scales
# =============================================================================

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Ray (27 decimals) used for rate curve parameters
RAY_DECIMALS = 27
RAY = 10**RAY_DECIMALS

# Percentage factor (10000 = 100%)
PERCENTAGE_FACTOR = 10000

# Params blob passed to token initialization when a reserve is listed
RESERVE_INIT_PARAMS = b"\x10"

# Params blob for the one-time lock of an implementation contract
IMPLEMENTATION_SEED_PARAMS = b"\x00"

# VersionedInitializable revert reason once an instance is initialized
ALREADY_INITIALIZED_REVERT = "Contract instance has already been initialized"

# =============================================================================
# Deployment registry ids
# =============================================================================

POOL_ADDRESSES_PROVIDER_ID = "PoolAddressesProvider"
POOL_DATA_PROVIDER_ID = "PoolDataProvider"
ORACLE_ID = "AaveOracle"
INCENTIVES_PROXY_ID = "IncentivesProxy"
TREASURY_PROXY_ID = "TreasuryProxy"
RESERVES_SETUP_HELPER_ID = "ReservesSetupHelper"

RATE_STRATEGY_CONTRACT = "DefaultReserveInterestRateStrategy"
RATE_STRATEGY_ID_TEMPLATE = "ReserveStrategy-{name}"

# Implementation ids are scoped by market name
ATOKEN_IMPL_ID_TEMPLATE = "AToken-{market}"
DELEGATION_AWARE_ATOKEN_IMPL_ID_TEMPLATE = "DelegationAwareAToken-{market}"
STABLE_DEBT_TOKEN_IMPL_ID_TEMPLATE = "StableDebtToken-{market}"
VARIABLE_DEBT_TOKEN_IMPL_ID_TEMPLATE = "VariableDebtToken-{market}"

# Per-reserve token bookkeeping records: "{symbol}" + suffix
ATOKEN_RECORD_SUFFIX = "-AToken-{market}"
STABLE_DEBT_RECORD_SUFFIX = "-StableDebtToken-{market}"
VARIABLE_DEBT_RECORD_SUFFIX = "-VariableDebtToken-{market}"

# =============================================================================
# Minimal ABIs (only functions we need)
# =============================================================================

ADDRESSES_PROVIDER_ABI = [
    {
        "inputs": [],
        "name": "getPool",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getPoolConfigurator",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getACLManager",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]

_INIT_RESERVE_INPUT_COMPONENTS = [
    {"name": "aTokenImpl", "type": "address"},
    {"name": "stableDebtTokenImpl", "type": "address"},
    {"name": "variableDebtTokenImpl", "type": "address"},
    {"name": "underlyingAssetDecimals", "type": "uint8"},
    {"name": "interestRateStrategyAddress", "type": "address"},
    {"name": "underlyingAsset", "type": "address"},
    {"name": "treasury", "type": "address"},
    {"name": "incentivesController", "type": "address"},
    {"name": "aTokenName", "type": "string"},
    {"name": "aTokenSymbol", "type": "string"},
    {"name": "variableDebtTokenName", "type": "string"},
    {"name": "variableDebtTokenSymbol", "type": "string"},
    {"name": "stableDebtTokenName", "type": "string"},
    {"name": "stableDebtTokenSymbol", "type": "string"},
    {"name": "params", "type": "bytes"},
]


def _setter(name: str, *inputs: tuple[str, str]) -> dict:
    return {
        "inputs": [{"name": arg, "type": typ} for arg, typ in inputs],
        "name": name,
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    }


POOL_CONFIGURATOR_ABI = [
    {
        "inputs": [
            {
                "components": _INIT_RESERVE_INPUT_COMPONENTS,
                "name": "input",
                "type": "tuple[]",
            }
        ],
        "name": "initReserves",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    _setter("dropReserve", ("asset", "address")),
    _setter("setLiquidationProtocolFee", ("asset", "address"), ("newFee", "uint256")),
    _setter("setDebtCeiling", ("asset", "address"), ("newDebtCeiling", "uint256")),
    _setter("setBorrowableInIsolation", ("asset", "address"), ("borrowable", "bool")),
    _setter(
        "setEModeCategory",
        ("categoryId", "uint8"),
        ("ltv", "uint16"),
        ("liquidationThreshold", "uint16"),
        ("liquidationBonus", "uint16"),
        ("oracle", "address"),
        ("label", "string"),
    ),
    _setter("setAssetEModeCategory", ("asset", "address"), ("newCategoryId", "uint8")),
]

RESERVES_SETUP_HELPER_ABI = [
    {
        "inputs": [
            {"name": "configurator", "type": "address"},
            {
                "components": [
                    {"name": "asset", "type": "address"},
                    {"name": "baseLTV", "type": "uint256"},
                    {"name": "liquidationThreshold", "type": "uint256"},
                    {"name": "liquidationBonus", "type": "uint256"},
                    {"name": "reserveFactor", "type": "uint256"},
                    {"name": "borrowCap", "type": "uint256"},
                    {"name": "supplyCap", "type": "uint256"},
                    {"name": "stableBorrowingEnabled", "type": "bool"},
                    {"name": "borrowingEnabled", "type": "bool"},
                    {"name": "flashLoanEnabled", "type": "bool"},
                ],
                "name": "inputParams",
                "type": "tuple[]",
            },
        ],
        "name": "configureReserves",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

ACL_MANAGER_ABI = [
    _setter("addRiskAdmin", ("admin", "address")),
    _setter("removeRiskAdmin", ("admin", "address")),
]

POOL_ABI = [
    {
        "inputs": [{"name": "asset", "type": "address"}],
        "name": "getReserveData",
        "outputs": [
            {
                "components": [
                    {"name": "configuration", "type": "uint256"},
                    {"name": "liquidityIndex", "type": "uint128"},
                    {"name": "currentLiquidityRate", "type": "uint128"},
                    {"name": "variableBorrowIndex", "type": "uint128"},
                    {"name": "currentVariableBorrowRate", "type": "uint128"},
                    {"name": "currentStableBorrowRate", "type": "uint128"},
                    {"name": "lastUpdateTimestamp", "type": "uint40"},
                    {"name": "id", "type": "uint16"},
                    {"name": "aTokenAddress", "type": "address"},
                    {"name": "stableDebtTokenAddress", "type": "address"},
                    {"name": "variableDebtTokenAddress", "type": "address"},
                    {"name": "interestRateStrategyAddress", "type": "address"},
                    {"name": "accruedToTreasury", "type": "uint128"},
                    {"name": "unbacked", "type": "uint128"},
                    {"name": "isolationModeTotalDebt", "type": "uint128"},
                ],
                "name": "",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

ORACLE_ABI = [
    _setter("setAssetSources", ("assets", "address[]"), ("sources", "address[]")),
]

POOL_DATA_PROVIDER_ABI = [
    {
        "inputs": [{"name": "asset", "type": "address"}],
        "name": "getReserveTokensAddresses",
        "outputs": [
            {"name": "aTokenAddress", "type": "address"},
            {"name": "stableDebtTokenAddress", "type": "address"},
            {"name": "variableDebtTokenAddress", "type": "address"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

ATOKEN_INITIALIZE_ABI = [
    _setter(
        "initialize",
        ("initializingPool", "address"),
        ("treasury", "address"),
        ("underlyingAsset", "address"),
        ("incentivesController", "address"),
        ("aTokenDecimals", "uint8"),
        ("aTokenName", "string"),
        ("aTokenSymbol", "string"),
        ("params", "bytes"),
    ),
]

DEBT_TOKEN_INITIALIZE_ABI = [
    _setter(
        "initialize",
        ("initializingPool", "address"),
        ("underlyingAsset", "address"),
        ("incentivesController", "address"),
        ("debtTokenDecimals", "uint8"),
        ("debtTokenName", "string"),
        ("debtTokenSymbol", "string"),
        ("params", "bytes"),
    ),
]
