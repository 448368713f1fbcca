"""Weight-bounded batcher - packs payout calls into utility batches.

The node reports weight as a step function of batch size and content, so
the batcher probes instead of predicting: each chunk is shrunk one call at a
time until the node says it fits under the per-extrinsic ceiling. Removed
calls are carried to the back of the queue and probed again later.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any

from substrate_payouts.interfaces.gateway import LedgerGateway
from substrate_payouts.interfaces.signer import Signer
from substrate_payouts.models.config import LogConfig
from substrate_payouts.models.records import Batch, ClaimOperation
from substrate_payouts.models.weight import Weight

log = logging.getLogger(__name__)

# Nominal calls per batch. Chunks above the weight ceiling shrink from here.
MAX_CALLS_PER_BATCH = 9


def chunk(operations: list[ClaimOperation], size: int) -> deque[list[ClaimOperation]]:
    """Split operations into consecutive chunks of at most ``size``."""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    return deque(
        list(operations[i:i + size]) for i in range(0, len(operations), size)
    )


class WeightBoundedBatcher:
    """Groups claim operations so every extrinsic stays under the weight limit.

    Packing is not guaranteed to be minimal; the ceiling invariant is.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        ceiling: Weight,
        max_calls: int = MAX_CALLS_PER_BATCH,
        log_cfg: LogConfig | None = None,
    ) -> None:
        self._gateway = gateway
        self._ceiling = ceiling
        self._max_calls = max_calls
        self._log_cfg = log_cfg or LogConfig()
        self.dropped: list[ClaimOperation] = []

    @property
    def ceiling(self) -> Weight:
        return self._ceiling

    def wrap(self, operations: list[ClaimOperation]) -> Any:
        """The call actually submitted for a group: bare if alone, else batched."""
        if len(operations) == 1:
            return operations[0].call
        return self._gateway.build_composite_operation([op.call for op in operations])

    async def pack(self, operations: list[ClaimOperation], signer: Signer) -> list[Batch]:
        """Return batches in submission order.

        Cost-probe failures propagate: without a probe the ceiling cannot be
        guaranteed.
        """
        self.dropped = []
        queue = chunk(operations, self._max_calls)
        batches: list[Batch] = []

        while queue:
            calls = queue.popleft()
            weight = await self._probe(calls, signer)

            while calls and not weight.fits_within(self._ceiling):
                removed = calls.pop()
                if not calls:
                    # Even alone this call exceeds the ceiling.
                    log.warning(
                        "%s weighs %s, at or above the limit %s; skipping it",
                        removed.describe(), weight, self._ceiling,
                    )
                    self.dropped.append(removed)
                    break

                if not queue or len(queue[-1]) >= self._max_calls:
                    queue.append([removed])
                else:
                    queue[-1].append(removed)
                weight = await self._probe(calls, signer)

            if calls:
                batches.append(Batch(operations=calls, weight=weight))

        if self._log_cfg.verbose:
            log.debug("Calls per tx %s", ",".join(str(len(b)) for b in batches))
        return batches

    async def _probe(self, calls: list[ClaimOperation], signer: Signer) -> Weight:
        weight = await self._gateway.estimate_cost(self.wrap(calls), signer)
        if self._log_cfg.verbose:
            log.debug("Probed %d calls: %s (limit %s)", len(calls), weight, self._ceiling)
        return weight
