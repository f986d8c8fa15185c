"""Chain detection from contract address syntax."""

import re
from dataclasses import dataclass
from enum import Enum

from src.scanner.errors import InputValidationError

_BNB_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
# Base58 alphabet: no 0, O, I, l
_SOLANA_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


class ChainFamily(str, Enum):
    SOLANA = "solana"
    BNB = "bnb"

    @property
    def display_name(self) -> str:
        return "BNB/BSC" if self is ChainFamily.BNB else "Solana"

    @property
    def default_decimals(self) -> int:
        """Native fungible-token convention: BEP-20 uses 18, SPL mints 9."""
        return 18 if self is ChainFamily.BNB else 9


@dataclass(frozen=True)
class Address:
    value: str
    chain: ChainFamily

    def __str__(self) -> str:
        return self.value


def detect_chain(raw: str) -> ChainFamily | None:
    """Return the chain family for an address, or None if it matches neither pattern.

    The ``0x`` prefix contains a zero, which is outside the base58 alphabet,
    so the two patterns can never both match.
    """
    if not isinstance(raw, str):
        return None
    trimmed = raw.strip()
    if _BNB_RE.match(trimmed):
        return ChainFamily.BNB
    if _SOLANA_RE.match(trimmed):
        return ChainFamily.SOLANA
    return None


def classify_address(raw: str) -> Address:
    """Validate and tag a raw address string. Raises InputValidationError."""
    chain = detect_chain(raw)
    if chain is None:
        raise InputValidationError(
            "Contract address must be a valid Solana address (32-44 base58 characters) "
            "or BNB/BSC address (0x followed by 40 hex characters)"
        )
    return Address(value=raw.strip(), chain=chain)
