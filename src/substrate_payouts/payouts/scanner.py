"""Eligibility scanner - finds unclaimed, claimable eras per validator."""

from __future__ import annotations

import asyncio
import logging

from substrate_payouts.interfaces.gateway import LedgerGateway
from substrate_payouts.models.config import LogConfig
from substrate_payouts.models.records import EligibleGap, LedgerInfo, ResolvedAccount

log = logging.getLogger(__name__)


def backward_window(last_era: int, era_depth: int) -> range:
    """Eras ``[last_era - era_depth, last_era)``, never below era 0."""
    return range(max(last_era - era_depth, 0), last_era)


def forward_window(last_era: int, current_era: int) -> range:
    """Eras ``(last_era, current_era)``; the active era is never claimable."""
    return range(last_era + 1, current_era)


class EligibilityScanner:
    """Gathers uncollected payouts for each tracked address.

    Checks every era since the last claimed payout, and additionally
    ``era_depth`` eras before it. The lookback catches the case where a
    recent era was claimed (possibly by someone else) while earlier eras were
    left unclaimed.

    Nominator addresses are expanded to the validators they nominate.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        lookup_concurrency: int = 4,
        log_cfg: LogConfig | None = None,
    ) -> None:
        self._gateway = gateway
        self._lookup_concurrency = max(lookup_concurrency, 1)
        self._log_cfg = log_cfg or LogConfig()

    async def scan(self, addresses: list[str], era_depth: int) -> list[EligibleGap]:
        """Return every eligible gap, in tracked-address then era order."""
        current_era = await self._gateway.current_era()
        if current_era is None:
            log.warning("ActiveEra is None, pending payouts could not be fetched.")
            return []

        accounts = await self.resolve_accounts(addresses)

        gaps: list[EligibleGap] = []
        for account in accounts:
            found = await self.scan_account(account, era_depth, current_era)
            if self._log_cfg.verbose:
                for gap in found:
                    log.debug(
                        "Unclaimed era %d for %s (%s window, tracked via %s)",
                        gap.era, gap.account, gap.window, account.tracked,
                    )
            gaps.extend(found)
        return gaps

    # ── Resolution ─────────────────────────────────────────

    async def resolve_accounts(self, addresses: list[str]) -> list[ResolvedAccount]:
        """Expand nominators to their targets, preserving input order.

        Lookups run concurrently; results are stitched back by input index.
        A validator reached through several tracked addresses is kept once,
        at its first position.
        """
        semaphore = asyncio.Semaphore(self._lookup_concurrency)

        async def _resolve_one(address: str) -> list[ResolvedAccount]:
            async with semaphore:
                return await self._resolve(address)

        resolved = await asyncio.gather(*[_resolve_one(a) for a in addresses])

        seen: set[str] = set()
        accounts: list[ResolvedAccount] = []
        for group in resolved:
            for account in group:
                if account.address in seen:
                    log.debug("%s already queued, skipping duplicate", account.address)
                    continue
                seen.add(account.address)
                accounts.append(account)
        return accounts

    async def _resolve(self, address: str) -> list[ResolvedAccount]:
        try:
            targets = await self._gateway.resolve_delegation_targets(address)
        except Exception as exc:
            log.warning("Could not resolve nominations for %s: %s", address, exc)
            return []

        if targets is not None:
            if self._log_cfg.verbose:
                log.debug(
                    "Nominator address detected: %s. Adding its targets: %s",
                    address, ", ".join(targets),
                )
            return [ResolvedAccount(address=t, tracked=address) for t in targets]

        if self._log_cfg.verbose:
            log.debug("Validator address detected: %s", address)
        return [ResolvedAccount(address=address, tracked=address)]

    # ── Per-account scan ───────────────────────────────────

    async def scan_account(
        self, account: ResolvedAccount, era_depth: int, current_era: int,
    ) -> list[EligibleGap]:
        """Backward-window gaps first, then forward-window gaps."""
        stash = account.address
        ledger = await self._load_ledger(stash)
        if ledger is None:
            return []

        claimed = set(ledger.claimed_rewards)
        if self._log_cfg.verbose:
            log.debug("%s claimed rewards for eras: %s", stash, sorted(claimed))

        if not claimed:
            # Nothing anchors the scan window.
            log.debug("%s has no claimed rewards, skipping", stash)
            return []
        last_era = max(claimed)

        gaps: list[EligibleGap] = []
        windows = (
            ("backward", backward_window(last_era, era_depth)),
            ("forward", forward_window(last_era, current_era)),
        )
        for window, eras in windows:
            for era in eras:
                if era in claimed:
                    continue
                if await self._is_eligible(stash, era):
                    gaps.append(EligibleGap(account=stash, era=era, window=window))
        return gaps

    async def _load_ledger(self, stash: str) -> LedgerInfo | None:
        try:
            controller = await self._gateway.bonded_controller(stash)
            if controller is None:
                log.warning("%s is not a valid stash address.", stash)
                return None

            ledger = await self._gateway.ledger_of(controller)
            if ledger is None:
                log.warning("Staking ledger for %s was not found.", stash)
                return None
        except Exception as exc:
            log.warning("Could not load staking ledger for %s: %s", stash, exc)
            return None
        return ledger

    async def _is_eligible(self, stash: str, era: int) -> bool:
        try:
            return await self._gateway.has_exposure_or_points(stash, era)
        except Exception as exc:
            log.debug("Eligibility check for %s in era %d failed: %s", stash, era, exc)
            return False
