"""Commit-reveal scheme for the creator's hidden move.

The preimage is the 1-byte move tag followed by the salt as a uint256
big-endian integer, the same packed ``uint8, uint256`` layout as the on-chain
deployment this service settles for. The digest is SHA-256 (``SCHEME_ID``
``rpsls-sha256-v1``), not keccak256, so commitments produced by keccak-based
wallet clients will not verify here; clients should obtain commitments from
``POST /commitments`` or hash the same preimage with SHA-256.
"""

from __future__ import annotations

import hashlib
import secrets
from typing import Final

from rpsls.errors import InvalidInput
from rpsls.moves import Move

SCHEME_ID: Final[str] = "rpsls-sha256-v1"
SALT_BITS: Final[int] = 256
SALT_BYTES: Final[int] = SALT_BITS // 8
COMMITMENT_HEX_LEN: Final[int] = 64


def generate_salt() -> int:
    # secrets, never random: the salt is what keeps the move hidden.
    return secrets.randbits(SALT_BITS)


def encode(move: Move, salt: int) -> bytes:
    """Byte layout: 1-byte move tag followed by the salt as uint256 big-endian."""

    if not 0 <= salt < 2**SALT_BITS:
        raise InvalidInput(f"Salt must be an unsigned {SALT_BITS}-bit integer")
    return bytes([int(move)]) + salt.to_bytes(SALT_BYTES, "big")


def commit(move: Move, salt: int) -> str:
    return "0x" + hashlib.sha256(encode(move, salt)).hexdigest()


def normalize_commitment(value: str) -> str:
    raw = value.strip().lower()
    if raw.startswith("0x"):
        raw = raw[2:]
    if len(raw) != COMMITMENT_HEX_LEN or any(c not in "0123456789abcdef" for c in raw):
        raise InvalidInput("Commitment must be a 32-byte hex digest")
    return "0x" + raw


def verify(move: Move, salt: int, commitment: str) -> bool:
    try:
        computed = commit(move, salt)
    except InvalidInput:
        return False
    return secrets.compare_digest(computed, normalize_commitment(commitment))


def parse_salt(value: str | int) -> int:
    """Accept a salt as int, decimal string or 0x-prefixed hex string."""

    if isinstance(value, bool):
        raise InvalidInput("Salt must be an integer")
    if isinstance(value, int):
        salt = value
    else:
        raw = value.strip().lower()
        try:
            salt = int(raw, 16) if raw.startswith("0x") else int(raw, 10)
        except ValueError as e:
            raise InvalidInput("Salt must be a decimal or 0x-prefixed hex integer") from e
    if not 0 <= salt < 2**SALT_BITS:
        raise InvalidInput(f"Salt must be an unsigned {SALT_BITS}-bit integer")
    return salt
