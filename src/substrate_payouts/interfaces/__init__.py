"""Protocol interfaces for substrate_payouts components."""

from substrate_payouts.interfaces.gateway import LedgerGateway
from substrate_payouts.interfaces.signer import Signer

__all__ = ["LedgerGateway", "Signer"]
