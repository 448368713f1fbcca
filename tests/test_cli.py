"""CLI commands, wired to the mock ledger."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from substrate_payouts import cli as cli_module
from substrate_payouts.cli import cli

from tests.conftest import TEST_MNEMONIC, TEST_WS, VALIDATOR_A, VALIDATOR_B
from tests.mocks import MockLedgerGateway


@pytest.fixture
def chain(monkeypatch):
    """Mock ledger with pending payouts, swapped in for the real gateway."""
    gateway = MockLedgerGateway(current_era=14)
    gateway.add_validator(VALIDATOR_A, claimed=[10], eligible={11, 12, 13})
    gateway.add_validator(VALIDATOR_B, claimed=[13])
    monkeypatch.setattr(cli_module, "SubstrateLedgerGateway", lambda *a, **k: gateway)
    return gateway


@pytest.fixture
def suri_file(tmp_path):
    path = tmp_path / "key.txt"
    path.write_text(TEST_MNEMONIC + "\n")
    return str(path)


def test_ls_lists_without_submitting(chain):
    result = CliRunner().invoke(cli, ["ls", "-w", TEST_WS, "-s", VALIDATOR_A, "-s", VALIDATOR_B])

    assert result.exit_code == 0, result.output
    assert f"staking.payoutStakers({VALIDATOR_A}, 12)" in result.output
    assert "Total of 3 unclaimed payouts." in result.output
    assert chain.submit_attempts == 0
    assert chain.closed


def test_collect_submits_one_batch(chain, suri_file):
    result = CliRunner().invoke(
        cli, ["collect", "-w", TEST_WS, "-s", VALIDATOR_A, "--suri-file", suri_file],
    )

    assert result.exit_code == 0, result.output
    assert "1 succeeded, 0 failed" in result.output
    assert chain.submit_attempts == 1


def test_collect_is_the_default_command(chain, suri_file, tmp_path):
    stashes = tmp_path / "stashes.json"
    stashes.write_text(json.dumps([VALIDATOR_A]))
    config = tmp_path / "payouts.toml"
    config.write_text(
        f'[chain]\nws = "{TEST_WS}"\n'
        f'[payouts]\nstashes_file = "{stashes}"\nsuri_file = "{suri_file}"\n'
    )

    result = CliRunner().invoke(cli, ["-c", str(config)])

    assert result.exit_code == 0, result.output
    assert chain.submit_attempts == 1


def test_collect_flags_without_subcommand(chain, suri_file):
    result = CliRunner().invoke(cli, ["-w", TEST_WS, "-s", VALIDATOR_A, "-k", suri_file])

    assert result.exit_code == 0, result.output
    assert "1 succeeded, 0 failed" in result.output
    assert chain.submit_attempts == 1


def test_subcommand_flags_win_over_group_flags(chain):
    result = CliRunner().invoke(
        cli, ["-w", TEST_WS, "-s", VALIDATOR_B, "ls", "-s", VALIDATOR_A],
    )

    assert result.exit_code == 0, result.output
    assert "Total of 3 unclaimed payouts." in result.output


def test_collect_exits_nonzero_on_failed_tx(chain, suri_file):
    chain.failing_submissions = {1}

    result = CliRunner().invoke(
        cli, ["collect", "-w", TEST_WS, "-s", VALIDATOR_A, "-k", suri_file],
    )

    assert result.exit_code == 1
    assert "0 succeeded, 1 failed" in result.output


def test_collect_rejects_bad_seed_before_connecting(chain, tmp_path):
    bad = tmp_path / "key.txt"
    bad.write_text("definitely not a mnemonic\n")

    result = CliRunner().invoke(
        cli, ["collect", "-w", TEST_WS, "-s", VALIDATOR_A, "-k", str(bad)],
    )

    assert result.exit_code == 1
    assert not chain.connected


def test_missing_inputs_exit_nonzero(chain, suri_file):
    runner = CliRunner()

    no_ws = runner.invoke(cli, ["ls", "-s", VALIDATOR_A])
    no_stashes = runner.invoke(cli, ["ls", "-w", TEST_WS])
    no_suri = runner.invoke(cli, ["collect", "-w", TEST_WS, "-s", VALIDATOR_A])

    assert no_ws.exit_code == 1
    assert no_stashes.exit_code == 1
    assert no_suri.exit_code == 1
    assert not chain.connected


def test_ls_nominators(chain):
    chain.add_nominator("5NomBig", [VALIDATOR_A], active=900)
    chain.add_nominator("5NomSmall", [VALIDATOR_A], active=5)

    result = CliRunner().invoke(
        cli, ["ls-nominators", "-w", TEST_WS, "-s", VALIDATOR_A, "--portion", "0.004"],
    )

    assert result.exit_code == 0, result.output
    assert f"Nominations to remove from validator {VALIDATOR_A}: 1" in result.output
    assert "5NomSmall 5" in result.output
