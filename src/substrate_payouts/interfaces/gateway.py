"""LedgerGateway protocol - read/write access to the staking pallet."""

from __future__ import annotations

from typing import Any, Protocol

from substrate_payouts.interfaces.signer import Signer
from substrate_payouts.models.records import LedgerInfo, Receipt
from substrate_payouts.models.weight import Weight


class LedgerGateway(Protocol):
    """Chain access consumed by the payout pipeline.

    Reads return ``None`` where the chain has no value. Call construction is
    local and synchronous; everything that talks to the node is async.
    """

    async def current_era(self) -> int | None:
        """Index of the active era, or None between eras."""
        ...

    async def resolve_delegation_targets(self, address: str) -> list[str] | None:
        """Validator targets if ``address`` is a nominator, else None."""
        ...

    async def bonded_controller(self, address: str) -> str | None:
        ...

    async def ledger_of(self, controller: str) -> LedgerInfo | None:
        ...

    async def has_exposure_or_points(self, account: str, era: int) -> bool:
        """True if the validator was exposed or earned points in ``era``.

        Fails closed: returns False on a query error.
        """
        ...

    def build_claim_operation(self, account: str, era: int) -> Any:
        """Compose a payout_stakers call (no network round trip)."""
        ...

    def build_composite_operation(self, calls: list[Any]) -> Any:
        """Wrap calls into a single utility batch call."""
        ...

    async def estimate_cost(self, call: Any, signer: Signer) -> Weight:
        """Weight the node charges for ``call`` signed by ``signer``."""
        ...

    async def max_allowed_weight(self) -> Weight:
        """Per-extrinsic weight ceiling (chain constant)."""
        ...

    async def next_nonce(self, signer: Signer) -> int:
        ...

    async def sign_and_submit(
        self, call: Any, signer: Signer, nonce_hint: int | None = None,
    ) -> Receipt:
        """Sign and submit, returning once the node accepts the extrinsic.

        Raises SubmissionError on rejection.
        """
        ...

    async def nominator_entries(self) -> list[tuple[str, list[str]]]:
        """Every (nominator, targets) pair on chain."""
        ...

    async def close(self) -> None:
        ...
