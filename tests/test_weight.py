"""Weight parsing and comparisons."""

from __future__ import annotations

from substrate_payouts.models.weight import Weight


def test_from_chain_formats():
    assert Weight.from_chain(1_500_000_000) == Weight(1_500_000_000, 0)
    assert Weight.from_chain({"ref_time": 7, "proof_size": 3}) == Weight(7, 3)
    assert Weight.from_chain({"refTime": 7, "proofSize": 3}) == Weight(7, 3)
    assert Weight.from_chain(None) == Weight()


def test_large_values_keep_precision():
    huge = 2**80 + 1
    w = Weight.from_chain({"ref_time": huge, "proof_size": huge})
    assert w.ref_time == huge
    assert Weight(huge - 1, 0).fits_within(Weight(huge, 0))
    assert not w.fits_within(Weight(huge, huge + 1))


def test_fits_within_is_strict():
    ceiling = Weight(100, 50)
    assert Weight(99, 49).fits_within(ceiling)
    assert not Weight(100, 10).fits_within(ceiling)
    assert not Weight(10, 50).fits_within(ceiling)


def test_zero_proof_ceiling_is_unlimited():
    assert Weight(10, 10**12).fits_within(Weight(100, 0))
