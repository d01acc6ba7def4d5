"""
Leaf encoding for airdrop entitlement records.

A leaf commits to exactly one ``(address, amount)`` pair. The preimage is
built from fixed-width fields (20- or 32-byte address word, 32-byte
big-endian amount) so two distinct records never share a preimage.

Two disciplines are supported and must never be mixed within one tree:

- ``standard``: ``keccak(keccak(abi.encode(address, uint256)))``. The outer
  hash separates leaf digests from the 64-byte preimages of internal nodes,
  so an internal node cannot be presented as a leaf. Compatible with
  OpenZeppelin's ``StandardMerkleTree``/``MerkleProof.verify``.
- ``packed``: ``keccak(abi.encodePacked(address, uint256))``, a single pass
  over the 52-byte preimage.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from eth_utils import decode_hex, keccak

from ..errors import EncodingError

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
AMOUNT_PATTERN = re.compile(r"^[0-9]+$")
UINT256_MAX = 2**256 - 1
UINT256_MAX_DIGITS = len(str(UINT256_MAX))

ADDRESS_SIZE = 20
WORD_SIZE = 32


class LeafEncoding(str, Enum):
    """Pinned leaf preimage discipline."""

    STANDARD = "standard"
    PACKED = "packed"


def _check_address(address: Any) -> str:
    if not isinstance(address, str):
        raise EncodingError(f"Address must be a string, got {type(address).__name__}")
    address = address.strip()
    if not ADDRESS_PATTERN.match(address):
        raise EncodingError(f"Invalid address (expected 0x + 40 hex chars): {address!r}")
    return address


def _check_amount(amount: Any) -> int:
    if isinstance(amount, bool):
        raise EncodingError(f"Amount must be an unsigned integer, got {amount!r}")
    if isinstance(amount, str):
        text = amount.strip()
        if not AMOUNT_PATTERN.match(text):
            raise EncodingError(f"Amount must be a non-negative decimal integer: {amount!r}")
        digits = text.lstrip("0") or "0"
        if len(digits) > UINT256_MAX_DIGITS:
            raise EncodingError(f"Amount {digits[:20]}... ({len(digits)} digits) does not fit in uint256")
        amount = int(digits)
    if not isinstance(amount, int):
        raise EncodingError(f"Amount must be an unsigned integer, got {type(amount).__name__}")
    if amount < 0 or amount > UINT256_MAX:
        raise EncodingError(f"Amount {amount} does not fit in uint256")
    return amount


@dataclass(frozen=True)
class Entry:
    """One entitlement record: an address and the amount it may claim."""

    address: str
    amount: int

    def __post_init__(self):
        object.__setattr__(self, "address", _check_address(self.address))
        object.__setattr__(self, "amount", _check_amount(self.amount))

    @property
    def address_bytes(self) -> bytes:
        """The 20 raw address bytes."""
        return decode_hex(self.address)

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary; amounts are decimal strings to survive JSON."""
        return {"address": self.address, "amount": str(self.amount)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entry":
        """Create from dictionary."""
        return cls(address=data["address"], amount=data["amount"])


class LeafEncoder:
    """
    Turns entries into 32-byte leaf digests.

    Usage:
        encoder = LeafEncoder(LeafEncoding.STANDARD)
        leaf = encoder.encode(Entry("0x...", 100))
    """

    def __init__(self, encoding: LeafEncoding | str = LeafEncoding.STANDARD):
        try:
            self.encoding = LeafEncoding(encoding)
        except ValueError:
            raise EncodingError(f"Unsupported leaf encoding: {encoding!r}") from None

    def preimage(self, entry: Entry) -> bytes:
        """Fixed-width byte encoding of the entry, before hashing."""
        amount = entry.amount.to_bytes(WORD_SIZE, "big")
        if self.encoding is LeafEncoding.PACKED:
            return entry.address_bytes + amount
        return entry.address_bytes.rjust(WORD_SIZE, b"\x00") + amount

    def encode(self, entry: Entry) -> bytes:
        """Compute the leaf digest of one entry."""
        digest = keccak(self.preimage(entry))
        if self.encoding is LeafEncoding.STANDARD:
            digest = keccak(digest)
        return digest

    def encode_fields(self, address: str, amount: int | str) -> bytes:
        """Validate raw fields and encode them."""
        return self.encode(Entry(address, amount))

    def encode_many(self, entries: Iterable[Entry]) -> list[bytes]:
        """Encode entries in order; the first invalid entry aborts."""
        return [self.encode(entry) for entry in entries]
