"""Submission driver - signs and sends batches one after another."""

from __future__ import annotations

import logging

from substrate_payouts.errors import SubmissionAborted, SubmissionError
from substrate_payouts.interfaces.gateway import LedgerGateway
from substrate_payouts.interfaces.signer import Signer
from substrate_payouts.models.config import LogConfig, SubmissionPolicy
from substrate_payouts.models.records import Batch, SubmissionResult

log = logging.getLogger(__name__)


def _describe(batch: Batch) -> str:
    if batch.is_composite:
        return f"utility.batch ({len(batch)} calls)"
    return batch.operations[0].describe()


class SubmissionDriver:
    """Submits batches strictly in order with a single signer.

    Nonces are allocated locally: fetched once, advanced only when the node
    accepts a transaction, so a rejected transaction does not leave a gap.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        policy: SubmissionPolicy = SubmissionPolicy.FAIL_FAST,
        log_cfg: LogConfig | None = None,
    ) -> None:
        self._gateway = gateway
        self._policy = policy
        self._log_cfg = log_cfg or LogConfig()

    @property
    def policy(self) -> SubmissionPolicy:
        return self._policy

    def wrap(self, batch: Batch):
        if batch.is_composite:
            return self._gateway.build_composite_operation([op.call for op in batch.operations])
        return batch.operations[0].call

    async def submit_all(self, batches: list[Batch], signer: Signer) -> list[SubmissionResult]:
        """Submit every batch; see SubmissionPolicy for failure handling.

        Raises SubmissionAborted under FAIL_FAST after the first failure.
        """
        total = len(batches)
        results: list[SubmissionResult] = []
        if not total:
            return results

        if self._log_cfg.verbose:
            log.debug("Sender address: %s", signer.ss58_address)
        log.info("Getting ready to send %d transactions.", total)

        nonce = await self._gateway.next_nonce(signer)

        for i, batch in enumerate(batches, start=1):
            log.info("Sending %s (tx %d/%d)", _describe(batch), i, total)
            try:
                receipt = await self._gateway.sign_and_submit(self.wrap(batch), signer, nonce)
            except SubmissionError as exc:
                log.error("Tx failed to sign and send (tx %d/%d): %s", i, total, exc)
                results.append(SubmissionResult(
                    index=i, total=total, batch=batch, success=False, error=str(exc),
                ))
                if self._policy == SubmissionPolicy.FAIL_FAST:
                    raise SubmissionAborted(
                        f"Submission {i}/{total} failed; {total - i} not sent",
                        results,
                    ) from exc
                continue

            nonce += 1
            log.info("Node response to tx %d/%d: %s", i, total, receipt.extrinsic_hash)
            results.append(SubmissionResult(
                index=i, total=total, batch=batch, success=True, receipt=receipt,
            ))

        return results
