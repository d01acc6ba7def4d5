"""Tree module - leaf encoding, Merkle tree, proofs and tree dumps."""

from .codec import TreeCodec
from .leaf import Entry, LeafEncoder, LeafEncoding
from .merkle_tree import MerkleProof, MerkleTree, hash_pair, verify_entry, verify_proof

__all__ = [
    "Entry",
    "LeafEncoder",
    "LeafEncoding",
    "MerkleProof",
    "MerkleTree",
    "TreeCodec",
    "hash_pair",
    "verify_entry",
    "verify_proof",
]
