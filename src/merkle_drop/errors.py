"""
Exception taxonomy for the Merkle drop engine.

Each error also subclasses the builtin it specialises so callers that only
know about ``ValueError``/``IndexError`` keep working.
"""


class MerkleDropError(Exception):
    """Base class for all merkle_drop errors."""


class EncodingError(MerkleDropError, ValueError):
    """An entry (or digest) does not fit the fixed-width leaf encoding."""


class IndexOutOfRange(MerkleDropError, IndexError):
    """A proof was requested for a leaf position the tree does not have."""


class MalformedTreeError(MerkleDropError, ValueError):
    """A serialized tree failed structural validation on load."""
