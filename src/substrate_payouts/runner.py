"""Payout runner - wires scanner, builder, batcher and driver together."""

from __future__ import annotations

import logging

from substrate_payouts.errors import SubmissionAborted
from substrate_payouts.interfaces.gateway import LedgerGateway
from substrate_payouts.interfaces.signer import Signer
from substrate_payouts.models.config import PayoutsConfig
from substrate_payouts.models.records import ClaimOperation, NominatorStake, RunReport
from substrate_payouts.payouts.batcher import MAX_CALLS_PER_BATCH, WeightBoundedBatcher
from substrate_payouts.payouts.builder import ClaimOperationBuilder
from substrate_payouts.payouts.nominators import LowestNominatorsReport
from substrate_payouts.payouts.scanner import EligibilityScanner
from substrate_payouts.payouts.submitter import SubmissionDriver

log = logging.getLogger(__name__)


class PayoutRunner:
    """One-shot payout collection over a LedgerGateway.

    Scans for unclaimed eras, builds payout_stakers calls, packs them under
    the chain's weight limit and submits them in order.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        cfg: PayoutsConfig,
        max_calls: int = MAX_CALLS_PER_BATCH,
    ) -> None:
        self._cfg = cfg
        self._max_calls = max_calls
        self.gateway = gateway
        self.scanner = EligibilityScanner(gateway, cfg.lookup_concurrency, cfg.log)
        self.builder = ClaimOperationBuilder(gateway)
        self.driver = SubmissionDriver(gateway, cfg.on_failure, cfg.log)

    async def list_pending_payouts(
        self, stashes: list[str], report: RunReport | None = None,
    ) -> list[ClaimOperation]:
        """Find and build every pending payout without submitting anything."""
        gaps = await self.scanner.scan(stashes, self._cfg.era_depth)
        operations = self.builder.build_all(gaps)
        if report is not None:
            report.gaps = gaps
            report.operations = operations

        if operations:
            log.info(
                "The following unclaimed payouts were found:\n%s",
                "\n".join(op.describe() for op in operations),
            )
            log.info("Total of %d unclaimed payouts.", len(operations))
        return operations

    async def collect_payouts(self, stashes: list[str], signer: Signer) -> RunReport:
        """Claim every pending payout for ``stashes``.

        Never raises for a failed submission; failures are in the report and
        ``report.aborted`` is set when the fail-fast policy stopped the run.
        """
        report = RunReport()
        operations = await self.list_pending_payouts(stashes, report)
        if not operations:
            log.info("No payouts to claim")
            return report

        log.info(
            "Transactions are being created. This may take some time if there "
            "are many unclaimed eras."
        )
        ceiling = await self.gateway.max_allowed_weight()
        batcher = WeightBoundedBatcher(self.gateway, ceiling, self._max_calls, self._cfg.log)
        report.batches = await batcher.pack(operations, signer)
        report.dropped = list(batcher.dropped)

        try:
            report.results = await self.driver.submit_all(report.batches, signer)
        except SubmissionAborted as exc:
            report.results = exc.results
            report.aborted = True
            log.error("%s", exc)

        log.info(
            "Submitted %d of %d transactions: %d succeeded, %d failed",
            report.attempted, len(report.batches), report.succeeded, report.failed,
        )
        if report.dropped:
            log.warning(
                "%d payouts exceed the weight limit on their own and were not sent",
                len(report.dropped),
            )
        return report

    async def list_lowest_nominators(
        self, stashes: list[str], portion: float | None = None,
    ) -> dict[str, list[NominatorStake]]:
        """Nominators of each stash that fall outside ``portion`` of the rewarded set."""
        reporter = LowestNominatorsReport(self.gateway, self._cfg.lookup_concurrency)
        to_kick = await reporter.build(
            stashes, self._cfg.portion if portion is None else portion,
        )
        for stash, backers in to_kick.items():
            log.info("Nominations to remove from validator %s", stash)
            for backer in backers:
                log.info("Nominator: %s, %d", backer.nominator, backer.active)
        return to_kick
