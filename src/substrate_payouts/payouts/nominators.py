"""Lowest-nominator report - which backers fall outside the rewarded set."""

from __future__ import annotations

import asyncio
import logging
import math

from substrate_payouts.interfaces.gateway import LedgerGateway
from substrate_payouts.models.records import NominatorStake

log = logging.getLogger(__name__)

# Nominators rewarded per validator per era.
MAX_NOMINATORS_REWARDED = 256


def max_backers(portion: float) -> int:
    return math.floor(MAX_NOMINATORS_REWARDED * portion)


class LowestNominatorsReport:
    """For each validator, lists the smallest backers beyond a cut-off.

    The cut-off is ``floor(256 * portion)`` backers ranked by active stake.
    """

    def __init__(self, gateway: LedgerGateway, lookup_concurrency: int = 4) -> None:
        self._gateway = gateway
        self._lookup_concurrency = max(lookup_concurrency, 1)

    async def build(self, stashes: list[str], portion: float) -> dict[str, list[NominatorStake]]:
        limit = max_backers(portion)
        log.info("Max backers per validator: %d", limit)

        tracked = set(stashes)
        entries = [
            (nominator, targets)
            for nominator, targets in await self._gateway.nominator_entries()
            if tracked.intersection(targets)
        ]
        stakes = await self._active_stakes([n for n, _ in entries])

        backers: dict[str, list[NominatorStake]] = {s: [] for s in stashes}
        for (nominator, targets), active in zip(entries, stakes):
            if active is None:
                continue
            for stash in backers:
                if stash in targets:
                    backers[stash].append(NominatorStake(nominator=nominator, active=active))

        to_kick: dict[str, list[NominatorStake]] = {}
        for stash, stake_list in backers.items():
            stake_list.sort(key=lambda s: s.active, reverse=True)
            to_kick[stash] = stake_list[limit:]
        return to_kick

    async def _active_stakes(self, nominators: list[str]) -> list[int | None]:
        semaphore = asyncio.Semaphore(self._lookup_concurrency)

        async def _one(nominator: str) -> int | None:
            async with semaphore:
                controller = await self._gateway.bonded_controller(nominator)
                if controller is None:
                    log.warning("Could not find controller for %s", nominator)
                    return None
                ledger = await self._gateway.ledger_of(controller)
                if ledger is None:
                    log.warning("Staking ledger for %s was not found.", nominator)
                    return None
                return ledger.active

        return list(await asyncio.gather(*[_one(n) for n in nominators]))
