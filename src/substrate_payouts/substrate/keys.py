"""Secret URI validation and sr25519 key derivation."""

from __future__ import annotations

import logging
import re

from bip39 import bip39_validate
from substrateinterface import Keypair, KeypairType

from substrate_payouts.errors import InvalidSeedError

log = logging.getLogger(__name__)

SEED_LENGTHS = [12, 15, 18, 21, 24]

_HEX_RE = re.compile(r"^0x[0-9a-fA-F]*$")
_HEX_256_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def extract_phrase(suri: str) -> str:
    """Strip the derivation path (``//hard/soft``) and ``///password``."""
    return suri.strip().split("/", 1)[0].strip()


def is_valid_seed(suri: str) -> bool:
    """Validate a mnemonic or hex seed, logging why it is rejected."""
    phrase = extract_phrase(suri)
    if not phrase:
        log.error("Secret URI is empty")
        return False

    if _HEX_RE.match(phrase):
        if not _HEX_256_RE.match(phrase):
            log.error("Hex seed needs to be 256-bits")
            return False
        return True

    if len(phrase.split()) not in SEED_LENGTHS:
        log.error(
            "Mnemonic needs to contain %s words", ", ".join(str(n) for n in SEED_LENGTHS),
        )
        return False

    if not bip39_validate(" ".join(phrase.split())):
        log.error("Not a valid mnemonic seed")
        return False

    return True


def derive_signer(suri: str) -> Keypair:
    """Build an sr25519 keypair from a validated secret URI."""
    if not is_valid_seed(suri):
        raise InvalidSeedError("Suri is invalid")
    try:
        return Keypair.create_from_uri(suri.strip(), crypto_type=KeypairType.SR25519)
    except Exception as exc:
        raise InvalidSeedError(f"Could not derive keypair: {exc}") from exc
