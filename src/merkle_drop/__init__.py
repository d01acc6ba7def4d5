"""Merkle Drop - Merkle roots and claim proofs for token airdrops."""

__version__ = "0.1.0"
