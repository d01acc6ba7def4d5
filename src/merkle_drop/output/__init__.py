"""Output module - JSON files derived from a built airdrop."""

from .writer import OutputPaths, write_claims, write_distribution, write_json, write_outputs

__all__ = ["OutputPaths", "write_claims", "write_distribution", "write_json", "write_outputs"]
