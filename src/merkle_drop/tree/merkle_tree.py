"""
Merkle Tree implementation for airdrop entitlement commitments.

Each leaf is the digest of one (address, amount) record and each internal
node is ``keccak(min(a, b) || max(a, b))`` of its two children. Because
siblings are sorted before hashing, a proof is just the list of sibling
digests: the verifier never needs to know which side a sibling sits on.

Odd-node policy: when a level has an odd number of nodes the last one is
promoted unchanged to the next level. It is never duplicated or hashed with
itself, so no phantom leaf exists. Build, proof and verify all follow this
rule; a verifier expecting duplicate-last will reject these proofs.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from eth_utils import decode_hex, encode_hex, keccak

from ..errors import EncodingError, IndexOutOfRange, MalformedTreeError
from .leaf import WORD_SIZE, Entry, LeafEncoder, LeafEncoding

logger = logging.getLogger("merkle_drop.tree")

Digest = bytes


def hash_pair(a: Digest, b: Digest) -> Digest:
    """Sorted-pair hash of two sibling digests."""
    if b < a:
        a, b = b, a
    return keccak(a + b)


def as_digest(value: str | bytes) -> Digest:
    """
    Coerce a digest given as bytes or 0x-prefixed hex into 32 raw bytes.

    Raises:
        EncodingError: if the value is not valid hex or not 32 bytes wide
    """
    if isinstance(value, str):
        if not value.startswith(("0x", "0X")):
            raise EncodingError(f"Digest must be 0x-prefixed hex: {value!r}")
        try:
            value = decode_hex(value)
        except ValueError as e:
            raise EncodingError(f"Digest is not valid hex: {value!r}") from e
    if not isinstance(value, (bytes, bytearray)):
        raise EncodingError(f"Digest must be bytes or hex, got {type(value).__name__}")
    if len(value) != WORD_SIZE:
        raise EncodingError(f"Digest must be {WORD_SIZE} bytes, got {len(value)}")
    return bytes(value)


def compute_levels(leaves: Sequence[Digest]) -> list[tuple[Digest, ...]]:
    """
    Hash a leaf level up to the root.

    Returns:
        Levels bottom-up; ``levels[0]`` are the leaves, ``levels[-1]`` is
        ``(root,)``.
    """
    if not leaves:
        raise ValueError("Cannot build empty tree")

    current_level = tuple(leaves)
    levels = [current_level]

    while len(current_level) > 1:
        next_level = [
            hash_pair(current_level[i], current_level[i + 1])
            for i in range(0, len(current_level) - 1, 2)
        ]
        # Promote the unpaired node unchanged
        if len(current_level) % 2:
            next_level.append(current_level[-1])

        logger.debug("Level %d: %d -> %d nodes", len(levels), len(current_level), len(next_level))
        current_level = tuple(next_level)
        levels.append(current_level)

    return levels


@dataclass(frozen=True)
class MerkleProof:
    """Proof that a leaf is part of the Merkle Tree."""

    leaf: Digest
    leaf_index: int
    siblings: tuple[Digest, ...]
    root: Digest

    @property
    def hex_siblings(self) -> list[str]:
        """Sibling digests as 0x hex strings."""
        return [encode_hex(s) for s in self.siblings]

    def verify(self) -> bool:
        """Check this proof against the root it was issued for."""
        return verify_proof(self.leaf, self.siblings, self.root)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "leaf": encode_hex(self.leaf),
            "leaf_index": self.leaf_index,
            "proof": self.hex_siblings,
            "root": encode_hex(self.root),
        }


class MerkleTree:
    """
    Immutable sorted-pair Merkle Tree.

    Usage:
        tree = MerkleTree.build(leaves)
        proof = tree.get_proof(0)
        is_valid = verify_proof(proof.leaf, proof.siblings, tree.root)

    The constructor takes an already computed layout (used when reloading a
    dump); it is trusted as-is. Call ``validate()`` to recompute it.
    """

    def __init__(self, levels: Sequence[Sequence[Digest]]):
        if not levels or not levels[0]:
            raise ValueError("Cannot build empty tree")
        self._levels: tuple[tuple[Digest, ...], ...] = tuple(tuple(level) for level in levels)

    @classmethod
    def build(cls, leaves: Iterable[Digest]) -> "MerkleTree":
        """
        Build the tree from an ordered sequence of 32-byte leaf digests.

        Leaf order is preserved; leaves are not sorted.
        """
        leaves = list(leaves)
        for i, leaf in enumerate(leaves):
            if not isinstance(leaf, (bytes, bytearray)) or len(leaf) != WORD_SIZE:
                raise EncodingError(f"Leaf {i} is not a {WORD_SIZE}-byte digest")

        tree = cls(compute_levels([bytes(leaf) for leaf in leaves]))
        logger.info(
            "Built Merkle tree",
            extra={"leaf_count": tree.leaf_count, "root": tree.root_hex},
        )
        return tree

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[Entry],
        encoding: LeafEncoding | str = LeafEncoding.STANDARD,
    ) -> "MerkleTree":
        """Encode entries and build the tree over their leaves."""
        return cls.build(LeafEncoder(encoding).encode_many(entries))

    @property
    def root(self) -> Digest:
        """Get the Merkle Root."""
        return self._levels[-1][0]

    @property
    def root_hex(self) -> str:
        return encode_hex(self.root)

    @property
    def leaves(self) -> tuple[Digest, ...]:
        return self._levels[0]

    @property
    def levels(self) -> tuple[tuple[Digest, ...], ...]:
        """Node layout bottom-up, leaves first and root last."""
        return self._levels

    @property
    def leaf_count(self) -> int:
        """Get number of leaves."""
        return len(self._levels[0])

    @property
    def depth(self) -> int:
        """Number of hashing levels above the leaves."""
        return len(self._levels) - 1

    def get_proof(self, leaf_index: int) -> MerkleProof:
        """
        Generate a Merkle Proof for a leaf.

        Args:
            leaf_index: Index of the leaf (0-based, input order)

        Returns:
            MerkleProof with sibling digests from the leaf level upwards

        Raises:
            IndexOutOfRange: if the index is not a valid leaf position
        """
        if (
            isinstance(leaf_index, bool)
            or not isinstance(leaf_index, int)
            or not 0 <= leaf_index < self.leaf_count
        ):
            raise IndexOutOfRange(f"Leaf index {leaf_index!r} out of range")

        siblings: list[Digest] = []
        index = leaf_index

        for level in self._levels[:-1]:  # Exclude root level
            sibling_index = index ^ 1
            # No sibling means this node was promoted unchanged
            if sibling_index < len(level):
                siblings.append(level[sibling_index])
            index //= 2

        return MerkleProof(
            leaf=self.leaves[leaf_index],
            leaf_index=leaf_index,
            siblings=tuple(siblings),
            root=self.root,
        )

    def get_hex_proof(self, leaf_index: int) -> list[str]:
        """Proof for a leaf as a list of 0x hex strings."""
        return self.get_proof(leaf_index).hex_siblings

    def validate(self) -> None:
        """
        Recompute every level from the leaves and compare with the layout.

        Raises:
            MalformedTreeError: on the first level that does not match
        """
        expected = compute_levels(self.leaves)
        if len(expected) != len(self._levels):
            raise MalformedTreeError(
                f"Tree has {len(self._levels)} levels, expected {len(expected)}"
            )
        for depth, (stored, computed) in enumerate(zip(self._levels, expected)):
            if stored != computed:
                raise MalformedTreeError(f"Level {depth} does not match its children")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MerkleTree):
            return NotImplemented
        return self._levels == other._levels

    def __hash__(self) -> int:
        return hash(self._levels)

    def __repr__(self) -> str:
        return f"MerkleTree(leaves={self.leaf_count}, root={self.root_hex})"


def verify_proof(
    leaf: str | bytes,
    proof: Iterable[str | bytes],
    root: str | bytes,
) -> bool:
    """
    Verify a Merkle Proof.

    Folds the proof siblings into the leaf with sorted-pair hashing and
    compares the result with the expected root. Malformed digests make the
    proof invalid rather than raising.

    Args:
        leaf: Leaf digest (bytes or 0x hex)
        proof: Sibling digests, leaf level first
        root: Expected root

    Returns:
        True if the proof reproduces the root
    """
    try:
        current = as_digest(leaf)
        for sibling in proof:
            current = hash_pair(current, as_digest(sibling))
        return current == as_digest(root)
    except EncodingError:
        return False


def verify_entry(
    entry: Entry,
    proof: Iterable[str | bytes],
    root: str | bytes,
    encoding: LeafEncoding | str = LeafEncoding.STANDARD,
) -> bool:
    """Verify that a raw record is committed to by ``root``."""
    return verify_proof(LeafEncoder(encoding).encode(entry), proof, root)
