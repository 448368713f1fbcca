"""Payout discovery, batching and submission."""

from substrate_payouts.payouts.batcher import MAX_CALLS_PER_BATCH, WeightBoundedBatcher
from substrate_payouts.payouts.builder import ClaimOperationBuilder
from substrate_payouts.payouts.nominators import LowestNominatorsReport
from substrate_payouts.payouts.scanner import EligibilityScanner
from substrate_payouts.payouts.submitter import SubmissionDriver

__all__ = [
    "MAX_CALLS_PER_BATCH",
    "WeightBoundedBatcher",
    "ClaimOperationBuilder",
    "LowestNominatorsReport",
    "EligibilityScanner",
    "SubmissionDriver",
]
