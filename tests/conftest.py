"""Shared fixtures for substrate_payouts tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from substrate_payouts.models.config import LogConfig, PayoutsConfig, SubmissionPolicy

from tests.mocks import MockLedgerGateway, MockSigner

TEST_WS = "ws://127.0.0.1:9944"

# Standard BIP-39 test vector; checksum-valid.
TEST_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
TEST_HEX_SEED = "0x" + "ab" * 32

VALIDATOR_A = "5ValidatorAlpha"
VALIDATOR_B = "5ValidatorBravo"
VALIDATOR_C = "5ValidatorCharlie"
NOMINATOR = "5NominatorDelta"


def pytest_configure(config):
    """Add run info to the report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Chain"] = "in-memory mock ledger"
    meta["Endpoint"] = TEST_WS


def make_test_config(**overrides) -> PayoutsConfig:
    """Build a PayoutsConfig suitable for testing."""
    defaults = dict(
        ws=TEST_WS,
        era_depth=2,
        on_failure=SubmissionPolicy.FAIL_FAST,
        lookup_concurrency=4,
        portion=0.5,
        log=LogConfig(level="debug", verbose=True),
    )
    defaults.update(overrides)
    return PayoutsConfig(**defaults)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep PAYOUTS_* variables from the outer shell out of the tests."""
    for name in (
        "WS", "SURI_FILE", "STASHES_FILE", "ERA_DEPTH", "ON_FAILURE", "DEBUG",
    ):
        monkeypatch.delenv(f"PAYOUTS_{name}", raising=False)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture
def gateway():
    return MockLedgerGateway()


@pytest.fixture
def signer():
    return MockSigner()
