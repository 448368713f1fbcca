"""Record types flowing through the payout pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ResolvedAccount:
    """A validator stash derived from a tracked address.

    ``tracked`` is the operator-supplied address it came from; for a
    validator it equals ``address``, for a nominator it is the nominator.
    """

    address: str
    tracked: str


@dataclass
class LedgerInfo:
    """The parts of a staking ledger the scanner needs."""

    stash: str
    claimed_rewards: list[int] = field(default_factory=list)
    active: int = 0  # planck


@dataclass(frozen=True)
class EligibleGap:
    """An unclaimed, finalized era in which the account earned rewards."""

    account: str
    era: int
    window: str = "forward"  # "backward" | "forward"


@dataclass(frozen=True)
class ClaimOperation:
    """A payout_stakers(account, era) call.

    Identity is (account, era); ``call`` is the opaque chain-built handle.
    """

    account: str
    era: int
    call: Any = field(default=None, compare=False, hash=False, repr=False)

    def describe(self) -> str:
        return f"staking.payoutStakers({self.account}, {self.era})"


@dataclass
class Batch:
    """Operations submitted together as one extrinsic."""

    operations: list[ClaimOperation]
    weight: Any = None  # Weight estimated when the batch was committed

    def __len__(self) -> int:
        return len(self.operations)

    @property
    def is_composite(self) -> bool:
        return len(self.operations) > 1


@dataclass
class Receipt:
    """Node acknowledgment of an accepted extrinsic."""

    extrinsic_hash: str
    block_hash: str | None = None


@dataclass
class SubmissionResult:
    """Outcome of submitting one Batch."""

    index: int  # 1-based position in the submission order
    total: int
    batch: Batch
    success: bool
    receipt: Receipt | None = None
    error: str | None = None


@dataclass
class NominatorStake:
    """A nominator backing a validator, with its active bonded stake."""

    nominator: str
    active: int  # planck


@dataclass
class RunReport:
    """Summary of a collect run."""

    gaps: list[EligibleGap] = field(default_factory=list)
    operations: list[ClaimOperation] = field(default_factory=list)
    batches: list[Batch] = field(default_factory=list)
    results: list[SubmissionResult] = field(default_factory=list)
    dropped: list[ClaimOperation] = field(default_factory=list)
    aborted: bool = False

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return len([r for r in self.results if r.success])

    @property
    def failed(self) -> int:
        return len([r for r in self.results if not r.success])
