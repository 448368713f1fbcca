"""Claim operation builder - turns eligible gaps into payout_stakers calls."""

from __future__ import annotations

from substrate_payouts.interfaces.gateway import LedgerGateway
from substrate_payouts.models.records import ClaimOperation, EligibleGap


class ClaimOperationBuilder:
    """Stateless mapping from (account, era) to a composed call."""

    def __init__(self, gateway: LedgerGateway) -> None:
        self._gateway = gateway

    def build(self, gap: EligibleGap) -> ClaimOperation:
        call = self._gateway.build_claim_operation(gap.account, gap.era)
        return ClaimOperation(account=gap.account, era=gap.era, call=call)

    def build_all(self, gaps: list[EligibleGap]) -> list[ClaimOperation]:
        return [self.build(gap) for gap in gaps]
