"""Data models for substrate_payouts."""

from substrate_payouts.models.config import LogConfig, PayoutsConfig, SubmissionPolicy
from substrate_payouts.models.records import (
    Batch,
    ClaimOperation,
    EligibleGap,
    LedgerInfo,
    NominatorStake,
    Receipt,
    ResolvedAccount,
    RunReport,
    SubmissionResult,
)
from substrate_payouts.models.weight import Weight

__all__ = [
    "LogConfig", "PayoutsConfig", "SubmissionPolicy",
    "Batch", "ClaimOperation", "EligibleGap", "LedgerInfo", "NominatorStake",
    "Receipt", "ResolvedAccount", "RunReport", "SubmissionResult",
    "Weight",
]
