"""
Airdrop - entries plus the tree that commits to them.

Ties the engine to the per-address records the distribution and claim files
are made of. Index ``i`` of the entry list is leaf ``i`` of the tree.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Sequence

from eth_utils import encode_hex

from .errors import EncodingError, MalformedTreeError
from .tree import Entry, LeafEncoder, LeafEncoding, MerkleProof, MerkleTree, TreeCodec
from .tree.merkle_tree import verify_proof

logger = logging.getLogger("merkle_drop.airdrop")


@dataclass(frozen=True)
class Airdrop:
    """A built airdrop: ordered entries, their tree and the leaf encoding used."""

    entries: tuple[Entry, ...]
    tree: MerkleTree
    encoding: LeafEncoding = LeafEncoding.STANDARD
    _index: dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        if len(self.entries) != self.tree.leaf_count:
            raise ValueError(
                f"{len(self.entries)} entries for a tree with {self.tree.leaf_count} leaves"
            )
        for i, entry in enumerate(self.entries):
            key = entry.address.lower()
            if key in self._index:
                raise EncodingError(
                    f"Duplicate address {entry.address} at rows {self._index[key]} and {i}"
                )
            self._index[key] = i

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[Entry],
        encoding: LeafEncoding | str = LeafEncoding.STANDARD,
    ) -> "Airdrop":
        """
        Encode every entry and build the tree.

        Raises:
            EncodingError: on the first invalid or duplicate entry; no tree
                is produced
        """
        entries = tuple(entries)
        if not entries:
            raise EncodingError("No entries to build an airdrop from")

        encoder = LeafEncoder(encoding)
        tree = MerkleTree.build(encoder.encode_many(entries))
        airdrop = cls(entries=entries, tree=tree, encoding=encoder.encoding)

        logger.info(
            f"Airdrop built for {len(entries)} addresses",
            extra={"action": "build", "leaf_count": len(entries), "root": tree.root_hex},
        )
        return airdrop

    @property
    def root_hex(self) -> str:
        return self.tree.root_hex

    def index_of(self, address: str) -> int:
        """Leaf index of an address (case-insensitive). Raises KeyError."""
        try:
            return self._index[address.strip().lower()]
        except KeyError:
            raise KeyError(f"Address {address} is not part of this airdrop") from None

    def entry_for(self, address: str) -> Entry:
        return self.entries[self.index_of(address)]

    def proof_for(self, address: str) -> MerkleProof:
        return self.tree.get_proof(self.index_of(address))

    def distribution_records(self) -> dict[str, dict[str, Any]]:
        """address -> {leaf, proof} for every entry."""
        records = {}
        for i, entry in enumerate(self.entries):
            proof = self.tree.get_proof(i)
            records[entry.address] = {
                "leaf": encode_hex(proof.leaf),
                "proof": proof.hex_siblings,
            }
        return records

    def claim_records(self) -> dict[str, Any]:
        """address -> {address, amount} plus the drop details holding the root."""
        claims: dict[str, Any] = {
            entry.address: {"address": entry.address, "amount": str(entry.amount)}
            for entry in self.entries
        }
        claims["dropDetails"] = {"merkleroot": self.root_hex}
        return claims

    def verify_claim(
        self,
        address: str,
        amount: int | str,
        proof: Sequence[str | bytes] | None = None,
        root: str | bytes | None = None,
    ) -> bool:
        """
        Check a claim against a root (this airdrop's root by default).

        When no proof is given the one issued for ``address`` is used; an
        address outside the airdrop then fails verification.

        Raises:
            EncodingError: if address or amount cannot be encoded
        """
        leaf = LeafEncoder(self.encoding).encode_fields(address, amount)
        if proof is None:
            try:
                proof = self.proof_for(address).siblings
            except KeyError:
                return False
        return verify_proof(leaf, proof, self.tree.root if root is None else root)

    def validate(self) -> None:
        """Re-encode every entry and rehash the whole tree."""
        encoder = LeafEncoder(self.encoding)
        for i, entry in enumerate(self.entries):
            if encoder.encode(entry) != self.tree.leaves[i]:
                raise MalformedTreeError(f"Leaf {i} does not match entry {entry.address}")
        self.tree.validate()

    def to_dict(self) -> dict[str, Any]:
        return TreeCodec.serialize(self.tree, self.entries, self.encoding)

    @classmethod
    def _restore(
        cls,
        tree: MerkleTree,
        entries: Sequence[Entry],
        encoding: LeafEncoding,
    ) -> "Airdrop":
        if not entries:
            raise MalformedTreeError("Tree document holds no entries")
        try:
            return cls(entries=tuple(entries), tree=tree, encoding=encoding)
        except EncodingError as e:
            raise MalformedTreeError(str(e)) from e

    @classmethod
    def from_dict(cls, data: Any) -> "Airdrop":
        """
        Restore from ``to_dict`` output.

        Raises:
            MalformedTreeError: if the document is invalid or carries no entries
        """
        return cls._restore(
            TreeCodec.deserialize(data),
            TreeCodec.deserialize_entries(data),
            TreeCodec.leaf_encoding(data),
        )

    def dump(self, path: Path, indent: int = 2) -> None:
        TreeCodec.dump(path, self.tree, self.entries, self.encoding, indent=indent)

    @classmethod
    def load(cls, path: Path) -> "Airdrop":
        """Load an airdrop from a tree dump file."""
        return cls._restore(*TreeCodec.load(path))
