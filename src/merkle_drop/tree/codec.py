"""
TreeCodec - durable JSON representation of a built tree.

The dump keeps the full node layout so proofs can be served from another
process without rehashing. Entries are stored next to the layout, index
aligned with the leaves, never inside it.

Document shape::

    {
      "format": "merkle-drop-v1",
      "leaf_encoding": "standard",
      "root": "0x...",
      "leaves": ["0x...", ...],
      "levels": [["0x...", ...], ..., ["0x<root>"]],
      "entries": [{"address": "0x...", "amount": "100"}, ...]
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Sequence

from eth_utils import encode_hex
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import EncodingError, MalformedTreeError
from .leaf import Entry, LeafEncoding
from .merkle_tree import MerkleTree, as_digest

logger = logging.getLogger("merkle_drop.codec")

FORMAT_VERSION = "merkle-drop-v1"


class EntryDocument(BaseModel):
    """Serialized entry."""

    address: str
    amount: str | int


class TreeDocument(BaseModel):
    """Schema of a serialized tree."""

    format: str = Field(..., description="Format version tag")
    leaf_encoding: LeafEncoding
    root: str
    leaves: list[str] = Field(..., min_length=1)
    levels: list[list[str]] = Field(..., min_length=1)
    entries: list[EntryDocument] = Field(default_factory=list)

    @field_validator("format")
    @classmethod
    def check_format(cls, value: str) -> str:
        if value != FORMAT_VERSION:
            raise ValueError(f"unsupported format {value!r}, expected {FORMAT_VERSION!r}")
        return value


def _decode_digest(value: str, where: str) -> bytes:
    try:
        return as_digest(value)
    except EncodingError as e:
        raise MalformedTreeError(f"{where}: {e}") from e


def _check_layout(
    leaves: Sequence[bytes],
    levels: Sequence[Sequence[bytes]],
    root: bytes,
) -> None:
    """Structural checks that need no hashing."""
    if list(levels[0]) != list(leaves):
        raise MalformedTreeError("First level does not match the leaf list")

    for depth in range(1, len(levels)):
        if len(levels[depth - 1]) == 1:
            raise MalformedTreeError(f"Level {depth} sits above a single-node level")
        expected = (len(levels[depth - 1]) + 1) // 2
        if len(levels[depth]) != expected:
            raise MalformedTreeError(
                f"Level {depth} has {len(levels[depth])} nodes, expected {expected}"
            )
        # Promoted node must be carried over unchanged
        below = levels[depth - 1]
        if len(below) % 2 and levels[depth][-1] != below[-1]:
            raise MalformedTreeError(f"Level {depth} does not carry the unpaired node")

    if len(levels[-1]) != 1:
        raise MalformedTreeError(f"Top level has {len(levels[-1])} nodes, expected 1")
    if levels[-1][0] != root:
        raise MalformedTreeError("Top level does not match the root")


class TreeCodec:
    """Serializes trees to plain dicts / JSON files and back."""

    @staticmethod
    def serialize(
        tree: MerkleTree,
        entries: Sequence[Entry] = (),
        encoding: LeafEncoding | str = LeafEncoding.STANDARD,
    ) -> dict[str, Any]:
        """
        Build the durable representation of a tree.

        Args:
            tree: Built tree
            entries: Records in leaf order (may be empty)
            encoding: Leaf discipline the tree was built with
        """
        if entries and len(entries) != tree.leaf_count:
            raise ValueError(
                f"Got {len(entries)} entries for a tree with {tree.leaf_count} leaves"
            )

        return {
            "format": FORMAT_VERSION,
            "leaf_encoding": LeafEncoding(encoding).value,
            "root": tree.root_hex,
            "leaves": [encode_hex(leaf) for leaf in tree.leaves],
            "levels": [[encode_hex(node) for node in level] for level in tree.levels],
            "entries": [entry.to_dict() for entry in entries],
        }

    @staticmethod
    def parse(data: Any) -> TreeDocument:
        """Validate the document schema."""
        try:
            return TreeDocument.model_validate(data)
        except ValidationError as e:
            raise MalformedTreeError(f"Invalid tree document: {e}") from e

    @classmethod
    def deserialize(cls, data: Any) -> MerkleTree:
        """
        Rebuild a tree from its representation without rehashing.

        Raises:
            MalformedTreeError: on any structural inconsistency
        """
        doc = cls.parse(data)

        leaves = [_decode_digest(v, f"leaves[{i}]") for i, v in enumerate(doc.leaves)]
        levels = [
            [_decode_digest(v, f"levels[{d}][{i}]") for i, v in enumerate(level)]
            for d, level in enumerate(doc.levels)
        ]
        root = _decode_digest(doc.root, "root")

        _check_layout(leaves, levels, root)
        if doc.entries and len(doc.entries) != len(leaves):
            raise MalformedTreeError(
                f"Document has {len(doc.entries)} entries for {len(leaves)} leaves"
            )

        return MerkleTree(levels)

    @classmethod
    def deserialize_entries(cls, data: Any) -> list[Entry]:
        """Entries stored with the tree, in leaf order."""
        doc = cls.parse(data)
        try:
            return [Entry(e.address, e.amount) for e in doc.entries]
        except EncodingError as e:
            raise MalformedTreeError(f"Invalid entry in tree document: {e}") from e

    @classmethod
    def leaf_encoding(cls, data: Any) -> LeafEncoding:
        return cls.parse(data).leaf_encoding

    @classmethod
    def dump(
        cls,
        path: Path,
        tree: MerkleTree,
        entries: Sequence[Entry] = (),
        encoding: LeafEncoding | str = LeafEncoding.STANDARD,
        indent: int = 2,
    ) -> None:
        """Write the tree to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(cls.serialize(tree, entries, encoding), f, indent=indent)
        logger.info(f"Wrote tree dump to {path}", extra={"root": tree.root_hex})

    @classmethod
    def load(cls, path: Path) -> tuple[MerkleTree, list[Entry], LeafEncoding]:
        """
        Read a JSON tree dump.

        Returns:
            Tuple of (tree, entries, leaf encoding)
        """
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise MalformedTreeError(f"{path} is not valid JSON: {e}") from e

        tree = cls.deserialize(data)
        entries = cls.deserialize_entries(data)
        logger.info(f"Loaded tree dump from {path}", extra={"root": tree.root_hex})
        return tree, entries, cls.leaf_encoding(data)
