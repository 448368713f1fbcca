"""Substrate RPC gateway for staking queries and extrinsic submission."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

from substrateinterface import Keypair, SubstrateInterface
from substrateinterface.exceptions import SubstrateRequestException

from substrate_payouts.errors import (
    CostEstimateError,
    GatewayConnectionError,
    GatewayError,
    SubmissionError,
)
from substrate_payouts.models.records import LedgerInfo, Receipt
from substrate_payouts.models.weight import Weight

log = logging.getLogger(__name__)


def _value(result: Any) -> Any:
    """Unwrap a ScaleType query result to its decoded value."""
    if result is None:
        return None
    return getattr(result, "value", result)


def _exposure_total(exposure: Any) -> int:
    if not exposure:
        return 0
    return int(exposure.get("total", 0) or 0)


class SubstrateLedgerGateway:
    """LedgerGateway backed by substrate-interface.

    substrate-interface is a blocking client with one websocket, so every
    call runs in a worker thread and calls are serialized behind a lock.
    """

    def __init__(
        self,
        url: str,
        ss58_format: int | None = None,
        call_timeout: float = 0,
    ) -> None:
        self.url = url
        self._ss58_format = ss58_format
        self._timeout = call_timeout or None
        self._substrate: SubstrateInterface | None = None
        self._lock = asyncio.Lock()
        self._client_lock = threading.Lock()

    async def connect(self) -> None:
        """Open the websocket and load runtime metadata."""
        try:
            self._substrate = await asyncio.to_thread(
                SubstrateInterface,
                url=self.url,
                ss58_format=self._ss58_format,
                auto_reconnect=True,
            )
        except Exception as exc:
            raise GatewayConnectionError(f"Cannot connect to {self.url}: {exc}") from exc
        log.info(
            "Connected to %s (chain=%s, ss58=%s)",
            self.url, self._substrate.chain, self._substrate.ss58_format,
        )

    async def close(self) -> None:
        if self._substrate is not None:
            substrate, self._substrate = self._substrate, None

            def _close() -> None:
                with self._client_lock:
                    substrate.close()

            await asyncio.to_thread(_close)

    @property
    def substrate(self) -> SubstrateInterface:
        if self._substrate is None:
            raise GatewayError("Not connected. Call connect() first.")
        return self._substrate

    async def _call(self, fn, *args, **kwargs) -> Any:
        """Run a blocking client call in a worker thread.

        The thread lock is held by the worker itself, so a call abandoned on
        timeout still blocks the next one until the client is free again.
        """

        def _locked() -> Any:
            with self._client_lock:
                return fn(*args, **kwargs)

        async with self._lock:
            coro = asyncio.to_thread(_locked)
            if self._timeout:
                return await asyncio.wait_for(coro, self._timeout)
            return await coro

    async def _query(self, storage_function: str, params: list | None = None) -> Any:
        try:
            result = await self._call(
                self.substrate.query, "Staking", storage_function, params or [],
            )
        except (SubstrateRequestException, asyncio.TimeoutError, OSError) as exc:
            raise GatewayError(f"Staking.{storage_function}({params}) failed: {exc}") from exc
        return _value(result)

    # ── Reads ──────────────────────────────────────────────

    async def current_era(self) -> int | None:
        active = await self._query("ActiveEra")
        if not active:
            return None
        return int(active["index"])

    async def resolve_delegation_targets(self, address: str) -> list[str] | None:
        nominations = await self._query("Nominators", [address])
        if not nominations:
            return None
        return [str(t) for t in nominations.get("targets", [])]

    async def bonded_controller(self, address: str) -> str | None:
        controller = await self._query("Bonded", [address])
        return str(controller) if controller else None

    async def ledger_of(self, controller: str) -> LedgerInfo | None:
        ledger = await self._query("Ledger", [controller])
        if not ledger:
            return None
        claimed = ledger.get("claimed_rewards")
        if claimed is None:
            claimed = ledger.get("legacy_claimed_rewards", [])
        return LedgerInfo(
            stash=str(ledger.get("stash", "")),
            claimed_rewards=[int(e) for e in claimed or []],
            active=int(ledger.get("active", 0) or 0),
        )

    async def has_exposure_or_points(self, account: str, era: int) -> bool:
        try:
            exposure = await self._query("ErasStakers", [era, account])
            if _exposure_total(exposure) > 0:
                return True

            points = await self._query("ErasRewardPoints", [era])
            individual = (points or {}).get("individual", [])
            return any(
                str(who) == account and int(pts) > 0 for who, pts in individual
            )
        except Exception as exc:
            log.debug("Exposure lookup for %s in era %d failed: %s", account, era, exc)
            return False

    async def nominator_entries(self) -> list[tuple[str, list[str]]]:
        def _fetch():
            entries = []
            for key, nominations in self.substrate.query_map("Staking", "Nominators"):
                info = _value(nominations)
                if not info:
                    continue
                targets = [str(t) for t in info.get("targets", [])]
                entries.append((str(_value(key)), targets))
            return entries

        try:
            return await self._call(_fetch)
        except (SubstrateRequestException, asyncio.TimeoutError, OSError) as exc:
            raise GatewayError(f"Staking.Nominators entries failed: {exc}") from exc

    # ── Calls ──────────────────────────────────────────────

    def build_claim_operation(self, account: str, era: int) -> Any:
        return self.substrate.compose_call(
            call_module="Staking",
            call_function="payout_stakers",
            call_params={"validator_stash": account, "era": era},
        )

    def build_composite_operation(self, calls: list[Any]) -> Any:
        return self.substrate.compose_call(
            call_module="Utility",
            call_function="batch",
            call_params={"calls": calls},
        )

    async def estimate_cost(self, call: Any, signer: Keypair) -> Weight:
        try:
            info = await self._call(self.substrate.get_payment_info, call=call, keypair=signer)
        except Exception as exc:
            raise CostEstimateError(f"payment_info failed: {exc}") from exc
        if not info or "weight" not in info:
            raise CostEstimateError(f"payment_info returned no weight: {info}")
        return Weight.from_chain(info["weight"])

    async def max_allowed_weight(self) -> Weight:
        try:
            constant = await self._call(self.substrate.get_constant, "System", "BlockWeights")
        except Exception as exc:
            raise GatewayError(f"System.BlockWeights lookup failed: {exc}") from exc
        weights = _value(constant) or {}
        normal = weights.get("per_class", {}).get("normal", {})
        max_extrinsic = normal.get("max_extrinsic")
        if max_extrinsic is None:
            # Unlimited class: fall back to the whole block.
            max_extrinsic = weights.get("max_block")
        if max_extrinsic is None:
            raise GatewayError("System.BlockWeights has no max_extrinsic")
        return Weight.from_chain(max_extrinsic)

    async def next_nonce(self, signer: Keypair) -> int:
        try:
            return int(await self._call(self.substrate.get_account_nonce, signer.ss58_address))
        except Exception as exc:
            raise GatewayError(f"Nonce lookup for {signer.ss58_address} failed: {exc}") from exc

    async def sign_and_submit(
        self, call: Any, signer: Keypair, nonce_hint: int | None = None,
    ) -> Receipt:
        try:
            extrinsic = await self._call(
                self.substrate.create_signed_extrinsic,
                call=call,
                keypair=signer,
                nonce=nonce_hint,
            )
            receipt = await self._call(
                self.substrate.submit_extrinsic, extrinsic, wait_for_inclusion=False,
            )
        except Exception as exc:
            raise SubmissionError(str(exc)) from exc
        return Receipt(
            extrinsic_hash=receipt.extrinsic_hash,
            block_hash=receipt.block_hash,
        )
