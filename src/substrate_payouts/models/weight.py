"""Arbitrary-precision extrinsic weight."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Weight:
    """Two-dimensional weight as reported by the node.

    Legacy runtimes report a single ``u64`` which maps to ``ref_time`` with a
    zero ``proof_size``. A ceiling with ``proof_size == 0`` does not limit
    proof size.
    """

    ref_time: int = 0
    proof_size: int = 0

    @classmethod
    def from_chain(cls, value: Any) -> Weight:
        """Parse a scalar or WeightV2 value from a decoded chain response."""
        if value is None:
            return cls()
        if isinstance(value, Weight):
            return value
        if isinstance(value, dict):
            ref_time = value.get("ref_time", value.get("refTime", 0))
            proof_size = value.get("proof_size", value.get("proofSize", 0))
            return cls(int(ref_time or 0), int(proof_size or 0))
        return cls(int(value), 0)

    def fits_within(self, ceiling: Weight) -> bool:
        """True when this weight is strictly below ``ceiling``."""
        if self.ref_time >= ceiling.ref_time:
            return False
        if ceiling.proof_size and self.proof_size >= ceiling.proof_size:
            return False
        return True

    def __str__(self) -> str:
        if self.proof_size:
            return f"ref_time={self.ref_time} proof_size={self.proof_size}"
        return f"ref_time={self.ref_time}"
