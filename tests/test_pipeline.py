"""End-to-end tests for the list and delist pipelines."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import (
    ASSET_X,
    ASSET_Z,
    FEED_X,
    OPEN_POSITIONS_REVERT,
    TEST_MARKET,
    TEST_NETWORK,
    FakeOracle,
    FakePool,
    FakeRegistry,
    FakeTokenRecords,
    make_address,
)
from reserve_lifecycle.core.context import NetworkContext
from reserve_lifecycle.core.errors import (
    ConfigurationError,
    DeploymentError,
    OnChainCallFailure,
)
from reserve_lifecycle.core.logging import OperationLogger, verify_log_integrity
from reserve_lifecycle.data.constants import INCENTIVES_PROXY_ID, TREASURY_PROXY_ID
from reserve_lifecycle.data.models import DeployedArtifactHandle, MarketConfiguration
from reserve_lifecycle.lifecycle.pipeline import (
    EMPTY_ASSET_WARNING,
    DelistingPipeline,
    LifecycleCollaborators,
    ListingPipeline,
)
from reserve_lifecycle.markets import load_market_config
from reserve_lifecycle.markets.plume import PLUME


def _log_text(run_logger: OperationLogger) -> str:
    return Path(run_logger.get_log_summary()["json_log_path"]).read_text()


@pytest.fixture
def listing(
    market_config: MarketConfiguration,
    network_context: NetworkContext,
    collaborators: LifecycleCollaborators,
    run_logger: OperationLogger,
) -> ListingPipeline:
    return ListingPipeline(market_config, network_context, collaborators, TEST_MARKET, run_logger)


@pytest.fixture
def delisting(
    market_config: MarketConfiguration,
    network_context: NetworkContext,
    collaborators: LifecycleCollaborators,
    run_logger: OperationLogger,
) -> DelistingPipeline:
    return DelistingPipeline(
        market_config, network_context, collaborators, TEST_MARKET, run_logger
    )


class TestListingPipeline:
    """Tests for ListingPipeline."""

    def test_lists_reserve_end_to_end(
        self,
        listing: ListingPipeline,
        fake_registry: FakeRegistry,
        fake_pool: FakePool,
        fake_oracle: FakeOracle,
    ) -> None:
        """X gets its strategy, is initialized, configured and bound to its feed."""
        assert listing.run() is True

        strategy = fake_registry.get("ReserveStrategy-rateStrategyStableOne")
        assert strategy is not None
        assert fake_registry.deployments.count("ReserveStrategy-rateStrategyStableOne") == 1

        x = fake_pool.initialized[ASSET_X]
        assert x.interest_rate_strategy_address == strategy.address
        assert fake_pool.configuration[ASSET_X].base_ltv == 8000
        assert fake_pool.configuration[ASSET_X].liquidation_threshold == 8300
        assert fake_oracle.sources == {ASSET_X: FEED_X}

    def test_symbol_without_address_never_reaches_a_stage(
        self,
        listing: ListingPipeline,
        fake_pool: FakePool,
        fake_token_records: FakeTokenRecords,
        run_logger: OperationLogger,
    ) -> None:
        """Y is skipped with a warning and nothing is sent for it."""
        assert listing.run() is True

        batch_symbols = [e.symbol for batch in fake_pool.init_batches for e in batch]
        configured = [e.symbol for batch in fake_pool.configure_batches for e in batch]
        assert "Y" not in batch_symbols
        assert "Y" not in configured
        assert not any(name.startswith("Y-") for name in fake_token_records.records)
        assert "- Skipping Y" in _log_text(run_logger)

    def test_reserve_without_feed_still_listed(
        self,
        listing: ListingPipeline,
        fake_pool: FakePool,
        fake_oracle: FakeOracle,
    ) -> None:
        listing.run()
        assert ASSET_Z in fake_pool.initialized
        assert ASSET_Z in fake_pool.configuration
        assert ASSET_Z not in fake_oracle.sources

    def test_emode_and_records(
        self,
        listing: ListingPipeline,
        fake_pool: FakePool,
        fake_token_records: FakeTokenRecords,
    ) -> None:
        listing.run()
        assert fake_pool.emode_assets == {ASSET_X: 1}
        assert fake_token_records.records[f"X-AToken-{TEST_MARKET}"] == ASSET_X
        assert fake_token_records.records[f"Z-VariableDebtToken-{TEST_MARKET}"] == ASSET_Z

    def test_rerun_deploys_nothing_new(
        self,
        listing: ListingPipeline,
        fake_registry: FakeRegistry,
        fake_pool: FakePool,
    ) -> None:
        """A second run reuses strategies and implementations and initializes nothing."""
        listing.run()
        deployments = list(fake_registry.deployments)
        configuration = dict(fake_pool.configuration)

        assert listing.run() is True

        assert fake_registry.deployments == deployments
        assert len(fake_pool.init_batches) == 1
        assert fake_pool.configuration == configuration

    def test_stage_log_lines(
        self, listing: ListingPipeline, run_logger: OperationLogger
    ) -> None:
        listing.run()
        log_text = _log_text(run_logger)

        assert "[Deployment] Initialized all reserves" in log_text
        assert "[Deployment] Configured all reserves" in log_text
        assert "Updated all reserves oracle" in log_text
        assert "stage_completed" in log_text

        is_valid, errors = verify_log_integrity(
            Path(run_logger.get_log_summary()["json_log_path"])
        )
        assert is_valid, errors

    def test_empty_asset_list(
        self,
        market_config: MarketConfiguration,
        collaborators: LifecycleCollaborators,
        run_logger: OperationLogger,
        fake_pool: FakePool,
        fake_oracle: FakeOracle,
    ) -> None:
        """A network with no addresses is a warning, not a failure."""
        context = NetworkContext.verify("staging", 1, make_address(99))
        pipeline = ListingPipeline(
            market_config, context, collaborators, TEST_MARKET, run_logger
        )

        assert pipeline.run() is True
        assert fake_pool.init_batches == []
        assert fake_pool.configure_batches == []
        assert fake_oracle.calls == []
        assert EMPTY_ASSET_WARNING in _log_text(run_logger)

    def test_failure_halts_and_rerun_resumes(
        self,
        listing: ListingPipeline,
        fake_pool: FakePool,
        fake_oracle: FakeOracle,
    ) -> None:
        """Earlier stages stay done after an oracle failure and are reused on retry."""
        fake_oracle.error_reason = "CALLER_NOT_ASSET_LISTING_OR_POOL_ADMIN"

        with pytest.raises(OnChainCallFailure, match="setAssetSources"):
            listing.run()
        assert ASSET_X in fake_pool.configuration

        fake_oracle.error_reason = None
        assert listing.run() is True
        assert len(fake_pool.init_batches) == 1
        assert fake_oracle.sources == {ASSET_X: FEED_X}

    def test_strategy_failure_stops_before_pool_calls(
        self,
        listing: ListingPipeline,
        fake_registry: FakeRegistry,
        fake_pool: FakePool,
    ) -> None:
        fake_registry.fail_on["ReserveStrategy-rateStrategyVolatileOne"] = "out of gas"

        with pytest.raises(DeploymentError):
            listing.run()
        assert fake_pool.init_batches == []

    def test_missing_treasury(
        self,
        market_config: MarketConfiguration,
        network_context: NetworkContext,
        collaborators: LifecycleCollaborators,
        run_logger: OperationLogger,
        fake_pool: FakePool,
    ) -> None:
        config = market_config.model_copy(update={"reserve_factor_treasury_address": {}})
        pipeline = ListingPipeline(config, network_context, collaborators, TEST_MARKET, run_logger)

        with pytest.raises(ConfigurationError, match=TREASURY_PROXY_ID):
            pipeline.run()
        assert fake_pool.init_batches == []

    def test_plume_market(
        self,
        collaborators: LifecycleCollaborators,
        fake_registry: FakeRegistry,
        fake_pool: FakePool,
        fake_oracle: FakeOracle,
        run_logger: OperationLogger,
    ) -> None:
        """The shipped market lists every reserve that has a Plume address."""
        treasury = make_address(70)
        controller = make_address(71)
        fake_registry.save(
            DeployedArtifactHandle(name=TREASURY_PROXY_ID, address=treasury, contract="Proxy")
        )
        fake_registry.save(
            DeployedArtifactHandle(name=INCENTIVES_PROXY_ID, address=controller, contract="Proxy")
        )
        config = load_market_config("plume")
        context = NetworkContext.verify(PLUME, 98866, make_address(99))

        assert ListingPipeline(config, context, collaborators, "plume", run_logger).run()

        batch = fake_pool.init_batches[0]
        assert [e.symbol for e in batch] == [
            "NRWA", "NTBILL", "NELIXIR", "WETH", "PETH", "PUSD", "NYIELD", "NBASIS",
        ]
        assert all(e.treasury == treasury for e in batch)
        assert all(e.incentives_controller == controller for e in batch)
        assert batch[0].a_token_name == "Mystic NRWA"
        assert batch[0].a_token_symbol == "amyNRWA"
        assert sorted(fake_pool.emode_assets.values()) == [1, 1, 1]
        assert len(fake_oracle.sources) == 8


class TestDelistingPipeline:
    """Tests for DelistingPipeline."""

    def test_delists_listed_reserves(
        self,
        listing: ListingPipeline,
        delisting: DelistingPipeline,
        fake_pool: FakePool,
        fake_token_records: FakeTokenRecords,
        fake_registry: FakeRegistry,
        run_logger: OperationLogger,
    ) -> None:
        listing.run()
        deployments = list(fake_registry.deployments)

        assert delisting.run() is True

        assert fake_pool.drops == [ASSET_X, ASSET_Z]
        assert fake_token_records.records == {}
        assert fake_registry.deployments == deployments
        assert "[Deployment] Dropped all reserves" in _log_text(run_logger)

    def test_open_positions(
        self,
        listing: ListingPipeline,
        delisting: DelistingPipeline,
        fake_pool: FakePool,
        fake_token_records: FakeTokenRecords,
    ) -> None:
        """The run fails and X keeps its token records."""
        listing.run()
        fake_pool.open_positions.add(ASSET_X)

        with pytest.raises(OnChainCallFailure, match=OPEN_POSITIONS_REVERT):
            delisting.run()

        assert f"X-AToken-{TEST_MARKET}" in fake_token_records.records
        assert ASSET_X in fake_pool.initialized

    def test_rerun_finishes_interrupted_delist(
        self,
        listing: ListingPipeline,
        delisting: DelistingPipeline,
        fake_pool: FakePool,
        fake_token_records: FakeTokenRecords,
    ) -> None:
        """X is dropped on the first run; the second run only drops Z."""
        listing.run()
        fake_pool.open_positions.add(ASSET_Z)
        with pytest.raises(OnChainCallFailure):
            delisting.run()

        fake_pool.open_positions.clear()
        assert delisting.run() is True

        assert fake_pool.drops == [ASSET_X, ASSET_Z]
        assert fake_pool.initialized == {}
        assert fake_token_records.records == {}

    def test_empty_asset_list(
        self,
        market_config: MarketConfiguration,
        collaborators: LifecycleCollaborators,
        run_logger: OperationLogger,
        fake_pool: FakePool,
        fake_registry: FakeRegistry,
    ) -> None:
        """Strategies are still resolved when there is nothing to drop."""
        context = NetworkContext.verify("staging", 1, make_address(99))
        pipeline = DelistingPipeline(
            market_config, context, collaborators, TEST_MARKET, run_logger
        )

        assert pipeline.run() is True
        assert fake_pool.drops == []
        assert fake_registry.get("ReserveStrategy-rateStrategyStableOne") is not None
        assert EMPTY_ASSET_WARNING in _log_text(run_logger)


def test_network_context_threads_active_network(
    market_config: MarketConfiguration,
    collaborators: LifecycleCollaborators,
    run_logger: OperationLogger,
    fake_pool: FakePool,
) -> None:
    """Per-network tables are indexed by the context's network."""
    context = NetworkContext.verify(TEST_NETWORK, 1, make_address(99))
    ListingPipeline(market_config, context, collaborators, TEST_MARKET, run_logger).run()
    assert set(fake_pool.initialized) == {ASSET_X, ASSET_Z}
