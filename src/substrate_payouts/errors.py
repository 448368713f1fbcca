"""Exception hierarchy for substrate_payouts."""

from __future__ import annotations


class PayoutsError(Exception):
    """Base exception for all payout collection errors."""


class ConfigError(PayoutsError):
    """Configuration or input files could not be loaded."""


class InvalidSeedError(PayoutsError):
    """Secret URI is not a valid mnemonic or hex seed."""


class GatewayError(PayoutsError):
    """A chain query or call failed."""


class GatewayConnectionError(GatewayError):
    """Cannot connect to the RPC endpoint."""


class CostEstimateError(GatewayError):
    """The node could not estimate the weight of a call."""


class SubmissionError(GatewayError):
    """Signing or submitting an extrinsic failed."""


class SubmissionAborted(PayoutsError):
    """A submission failed under the fail-fast policy.

    ``results`` holds every SubmissionResult collected before and including
    the failure; batches after it were never sent.
    """

    def __init__(self, message: str, results: list | None = None) -> None:
        super().__init__(message)
        self.results = results or []
