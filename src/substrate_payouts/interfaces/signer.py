"""Signer protocol - the signing capability used for submissions."""

from __future__ import annotations

from typing import Protocol


class Signer(Protocol):
    """Anything that can sign extrinsics for one account.

    ``substrateinterface.Keypair`` satisfies this protocol.
    """

    @property
    def ss58_address(self) -> str:
        ...

    def sign(self, data: bytes | str) -> bytes:
        ...
