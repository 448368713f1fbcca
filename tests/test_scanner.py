"""Eligibility scanner: windows, skips, ordering and fail-closed probes."""

from __future__ import annotations

import logging

import pytest

from substrate_payouts.models.config import LogConfig
from substrate_payouts.payouts.scanner import (
    EligibilityScanner,
    backward_window,
    forward_window,
)

from tests.conftest import NOMINATOR, VALIDATOR_A, VALIDATOR_B, VALIDATOR_C
from tests.mocks import MockLedgerGateway


def _scanner(gateway: MockLedgerGateway) -> EligibilityScanner:
    return EligibilityScanner(gateway, lookup_concurrency=4, log_cfg=LogConfig(verbose=True))


# ── Windows ───────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "last_era, era_depth, current_era",
    [(10, 2, 14), (50, 0, 51), (84, 84, 90), (5, 3, 5)],
)
def test_windows_are_exact(last_era, era_depth, current_era):
    assert list(backward_window(last_era, era_depth)) == list(
        range(last_era - era_depth, last_era)
    )
    assert list(forward_window(last_era, current_era)) == list(
        range(last_era + 1, current_era)
    )
    assert current_era not in forward_window(last_era, current_era)


def test_backward_window_stops_at_era_zero():
    assert list(backward_window(2, 5)) == [0, 1]


# ── Scenario 1: backward and forward gaps ─────────────────────────


async def test_backward_then_forward_gaps(gateway):
    """claimed=[10], depth 2, active era 14 → eras 8,9 then 11,12,13."""
    gateway.current = 14
    gateway.add_validator(VALIDATOR_A, claimed=[10], eligible={7, 8, 9, 11, 12, 13})

    gaps = await _scanner(gateway).scan([VALIDATOR_A], era_depth=2)

    assert [g.era for g in gaps] == [8, 9, 11, 12, 13]
    assert [g.window for g in gaps] == ["backward"] * 2 + ["forward"] * 3
    assert all(g.account == VALIDATOR_A for g in gaps)


async def test_claimed_eras_never_reported(gateway):
    gateway.current = 20
    claimed = [10, 12, 15]
    gateway.add_validator(VALIDATOR_A, claimed=claimed, eligible=set(range(0, 20)))

    gaps = await _scanner(gateway).scan([VALIDATOR_A], era_depth=6)

    eras = [g.era for g in gaps]
    assert eras == [9, 11, 13, 14, 16, 17, 18, 19]
    assert not set(eras) & set(claimed)
    # Claimed eras are not even probed.
    assert not {e for _, e in gateway.exposure_calls} & set(claimed)


async def test_last_era_is_max_not_last_element(gateway):
    gateway.current = 13
    gateway.add_validator(VALIDATOR_A, claimed=[11, 9], eligible={10, 12})

    gaps = await _scanner(gateway).scan([VALIDATOR_A], era_depth=2)

    assert [g.era for g in gaps] == [10, 12]


async def test_ineligible_eras_skipped(gateway):
    gateway.current = 14
    gateway.add_validator(VALIDATOR_A, claimed=[10], eligible={12})

    gaps = await _scanner(gateway).scan([VALIDATOR_A], era_depth=2)

    assert [g.era for g in gaps] == [12]


# ── Scenario 3: no active era ─────────────────────────────────────


async def test_no_active_era_returns_empty():
    gateway = MockLedgerGateway(current_era=None)
    gateway.add_validator(VALIDATOR_A, claimed=[10], eligible={11})

    gaps = await _scanner(gateway).scan([VALIDATOR_A], era_depth=2)

    assert gaps == []
    assert gateway.exposure_calls == []


# ── Scenario 4: skipped accounts ──────────────────────────────────


async def test_missing_controller_is_skipped(gateway):
    gateway.current = 12
    gateway.add_validator(VALIDATOR_B, claimed=[10], eligible={11})

    gaps = await _scanner(gateway).scan([VALIDATOR_A, VALIDATOR_B], era_depth=0)

    assert [(g.account, g.era) for g in gaps] == [(VALIDATOR_B, 11)]


async def test_missing_ledger_is_skipped(gateway):
    gateway.current = 12
    gateway.add_validator(VALIDATOR_A, claimed=[10], eligible={11})
    gateway.add_validator(VALIDATOR_B, claimed=[10], eligible={11})
    del gateway.ledgers[f"{VALIDATOR_A}_ctrl"]

    gaps = await _scanner(gateway).scan([VALIDATOR_A, VALIDATOR_B], era_depth=0)

    assert [g.account for g in gaps] == [VALIDATOR_B]


async def test_read_errors_skip_only_that_account(gateway):
    gateway.current = 12
    gateway.add_validator(VALIDATOR_A, claimed=[10], eligible={11})
    gateway.add_validator(VALIDATOR_B, claimed=[10], eligible={11})
    gateway.broken_addresses.add(VALIDATOR_A)

    gaps = await _scanner(gateway).scan([VALIDATOR_A, VALIDATOR_B], era_depth=0)

    assert [g.account for g in gaps] == [VALIDATOR_B]


async def test_empty_claimed_record_is_skipped(gateway):
    gateway.current = 12
    gateway.add_validator(VALIDATOR_A, claimed=[], eligible={10, 11})

    assert await _scanner(gateway).scan([VALIDATOR_A], era_depth=2) == []


async def test_probe_failure_fails_closed(gateway):
    gateway.current = 14
    gateway.add_validator(VALIDATOR_A, claimed=[10], eligible={11, 12, 13})
    gateway.broken_probes.add((VALIDATOR_A, 12))

    gaps = await _scanner(gateway).scan([VALIDATOR_A], era_depth=0)

    assert [g.era for g in gaps] == [11, 13]


# ── Nominators & ordering ─────────────────────────────────────────


async def test_nominator_expands_to_targets_in_order(gateway):
    gateway.current = 12
    gateway.add_validator(VALIDATOR_A, claimed=[10], eligible={11})
    gateway.add_validator(VALIDATOR_B, claimed=[10], eligible={11})
    gateway.add_validator(VALIDATOR_C, claimed=[10], eligible={11})
    gateway.add_nominator(NOMINATOR, [VALIDATOR_C, VALIDATOR_B])

    scanner = _scanner(gateway)
    accounts = await scanner.resolve_accounts([VALIDATOR_A, NOMINATOR])
    gaps = await scanner.scan([VALIDATOR_A, NOMINATOR], era_depth=0)

    assert [(a.address, a.tracked) for a in accounts] == [
        (VALIDATOR_A, VALIDATOR_A),
        (VALIDATOR_C, NOMINATOR),
        (VALIDATOR_B, NOMINATOR),
    ]
    assert [g.account for g in gaps] == [VALIDATOR_A, VALIDATOR_C, VALIDATOR_B]


async def test_duplicate_validators_scanned_once(gateway):
    gateway.current = 12
    gateway.add_validator(VALIDATOR_A, claimed=[10], eligible={11})
    gateway.add_nominator(NOMINATOR, [VALIDATOR_A])

    gaps = await _scanner(gateway).scan([VALIDATOR_A, NOMINATOR, VALIDATOR_A], era_depth=0)

    assert [(g.account, g.era) for g in gaps] == [(VALIDATOR_A, 11)]


async def test_order_independent_of_lookup_completion(gateway):
    """Slow first lookups still come out first."""
    gateway.current = 12
    for stash in (VALIDATOR_A, VALIDATOR_B, VALIDATOR_C):
        gateway.add_validator(stash, claimed=[10], eligible={11})
    gateway.resolve_delays = {VALIDATOR_A: 0.05, VALIDATOR_B: 0.0, VALIDATOR_C: 0.02}

    gaps = await _scanner(gateway).scan([VALIDATOR_A, VALIDATOR_B, VALIDATOR_C], era_depth=0)

    assert [g.account for g in gaps] == [VALIDATOR_A, VALIDATOR_B, VALIDATOR_C]


async def test_rescan_is_idempotent(gateway):
    gateway.current = 30
    gateway.add_validator(VALIDATOR_A, claimed=[20, 22], eligible={18, 19, 21, 25, 29})
    gateway.add_validator(VALIDATOR_B, claimed=[27], eligible={24, 28})

    scanner = _scanner(gateway)
    first = await scanner.scan([VALIDATOR_A, VALIDATOR_B], era_depth=4)
    second = await scanner.scan([VALIDATOR_A, VALIDATOR_B], era_depth=4)

    assert first == second
    assert [(g.account, g.era) for g in first] == [
        (VALIDATOR_A, 18), (VALIDATOR_A, 19), (VALIDATOR_A, 21),
        (VALIDATOR_A, 25), (VALIDATOR_A, 29),
        (VALIDATOR_B, 24), (VALIDATOR_B, 28),
    ]


async def test_verbose_log_names_window_and_tracked_address(gateway, caplog):
    gateway.current = 12
    gateway.add_validator(VALIDATOR_A, claimed=[10], eligible={9, 11})
    gateway.add_nominator(NOMINATOR, [VALIDATOR_A])

    with caplog.at_level(logging.DEBUG, logger="substrate_payouts.payouts.scanner"):
        await _scanner(gateway).scan([NOMINATOR], era_depth=1)

    assert f"Unclaimed era 9 for {VALIDATOR_A} (backward window, tracked via {NOMINATOR})" in caplog.text
    assert f"Unclaimed era 11 for {VALIDATOR_A} (forward window, tracked via {NOMINATOR})" in caplog.text
