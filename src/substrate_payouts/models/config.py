"""Configuration models for payout collection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum


class SubmissionPolicy(str, Enum):
    """What the submission driver does after a failed transaction."""

    FAIL_FAST = "fail_fast"  # stop, remaining batches are not sent
    BEST_EFFORT = "best_effort"  # log and move on to the next batch


@dataclass
class LogConfig:
    """Logging settings handed to each component at construction."""

    level: str = "info"
    verbose: bool = False  # per-component diagnostic lines

    @property
    def effective_level(self) -> int:
        if self.verbose:
            return logging.DEBUG
        return getattr(logging, self.level.upper(), logging.INFO)


@dataclass
class PayoutsConfig:
    """Complete payout collection configuration."""

    # Chain
    ws: str = ""  # e.g. wss://kusama-rpc.polkadot.io
    ss58_format: int | None = None
    call_timeout: float = 0  # seconds per gateway call, 0 disables

    # Inputs
    stashes: list[str] = field(default_factory=list)
    stashes_file: str | None = None
    suri_file: str | None = None

    # Payouts
    era_depth: int = 0
    on_failure: SubmissionPolicy = SubmissionPolicy.FAIL_FAST
    lookup_concurrency: int = 4
    portion: float = 0.5  # fraction of rewarded nominator slots to keep

    # Logging
    log: LogConfig = field(default_factory=LogConfig)
