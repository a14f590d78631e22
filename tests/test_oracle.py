"""Tests for price feed wiring."""

from __future__ import annotations

import pytest

from conftest import (
    ASSET_X,
    ASSET_Z,
    FEED_X,
    TEST_NETWORK,
    FakeOracle,
    FakeTransactions,
    make_address,
)
from reserve_lifecycle.core.errors import OnChainCallFailure
from reserve_lifecycle.data.models import MarketConfiguration
from reserve_lifecycle.lifecycle.oracle import OracleWirer


class TestOracleWirer:
    """Tests for OracleWirer."""

    def test_skips_reserve_without_feed(
        self,
        market_config: MarketConfiguration,
        fake_oracle: FakeOracle,
        fake_transactions: FakeTransactions,
    ) -> None:
        """Z has no feed; X is still bound."""
        receipt = OracleWirer(market_config, fake_oracle, fake_transactions).wire(
            {"X": ASSET_X, "Z": ASSET_Z}, TEST_NETWORK
        )

        assert receipt is not None
        assert fake_oracle.calls == [([ASSET_X], [FEED_X])]

    def test_feed_without_reserve_not_bound(
        self,
        market_config: MarketConfiguration,
        fake_oracle: FakeOracle,
        fake_transactions: FakeTransactions,
    ) -> None:
        """Feeds are only set for reserves in the mapping."""
        OracleWirer(market_config, fake_oracle, fake_transactions).wire(
            {"X": ASSET_X}, TEST_NETWORK
        )
        assert list(fake_oracle.sources) == [ASSET_X]

    def test_no_feeds_sends_nothing(
        self,
        market_config: MarketConfiguration,
        fake_oracle: FakeOracle,
        fake_transactions: FakeTransactions,
    ) -> None:
        receipt = OracleWirer(market_config, fake_oracle, fake_transactions).wire(
            {"Z": ASSET_Z}, TEST_NETWORK
        )
        assert receipt is None
        assert fake_oracle.calls == []

    def test_idempotent(
        self,
        market_config: MarketConfiguration,
        fake_oracle: FakeOracle,
        fake_transactions: FakeTransactions,
    ) -> None:
        wirer = OracleWirer(market_config, fake_oracle, fake_transactions)
        wirer.wire({"X": ASSET_X}, TEST_NETWORK)
        wirer.wire({"X": ASSET_X}, TEST_NETWORK)
        assert fake_oracle.sources == {ASSET_X: FEED_X}

    def test_bindings_are_parallel(self, market_config: MarketConfiguration) -> None:
        feed_z = make_address(13)
        config = market_config.model_copy(
            update={"chainlink_aggregator": {TEST_NETWORK: {"X": FEED_X, "Z": feed_z}}}
        )
        assets, sources = OracleWirer(config, FakeOracle(), FakeTransactions()).bindings(
            {"X": ASSET_X, "Z": ASSET_Z}, TEST_NETWORK
        )
        assert assets == [ASSET_X, ASSET_Z]
        assert sources == [FEED_X, feed_z]

    def test_oracle_rejection(
        self,
        market_config: MarketConfiguration,
        fake_oracle: FakeOracle,
        fake_transactions: FakeTransactions,
    ) -> None:
        fake_oracle.error_reason = "CALLER_NOT_ASSET_LISTING_OR_POOL_ADMIN"

        with pytest.raises(OnChainCallFailure, match="setAssetSources"):
            OracleWirer(market_config, fake_oracle, fake_transactions).wire(
                {"X": ASSET_X}, TEST_NETWORK
            )
