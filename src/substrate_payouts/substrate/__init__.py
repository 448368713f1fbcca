"""Substrate chain integration components."""

from substrate_payouts.substrate.gateway import SubstrateLedgerGateway
from substrate_payouts.substrate.keys import derive_signer, is_valid_seed

__all__ = ["SubstrateLedgerGateway", "derive_signer", "is_valid_seed"]
