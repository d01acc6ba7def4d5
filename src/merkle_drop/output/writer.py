"""
Output writer - distribution, claim and tree files.

All records are derived from a finished ``Airdrop``, so a failed build never
leaves partial output behind.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..airdrop import Airdrop
from ..config import Settings, get_settings

logger = logging.getLogger("merkle_drop.output")


@dataclass
class OutputPaths:
    """Where a build writes its files."""

    distribution_file: Path
    claim_file: Path
    tree_file: Path

    @classmethod
    def from_settings(cls, settings: Settings) -> "OutputPaths":
        return cls(
            distribution_file=settings.distribution_file,
            claim_file=settings.claim_file,
            tree_file=settings.tree_file,
        )

    @classmethod
    def in_directory(cls, directory: Path, settings: Settings) -> "OutputPaths":
        """Keep the configured file names, but place them in ``directory``."""
        directory = Path(directory)
        return cls(
            distribution_file=directory / settings.distribution_file.name,
            claim_file=directory / settings.claim_file.name,
            tree_file=directory / settings.tree_file.name,
        )


def write_json(path: Path, data: Any, indent: int = 4) -> None:
    """Write data as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=indent)
        f.write("\n")


def write_distribution(path: Path, airdrop: Airdrop, indent: int = 4) -> None:
    """Write address -> {leaf, proof} for every entry."""
    write_json(path, airdrop.distribution_records(), indent=indent)
    logger.info(f"Wrote distribution to {path}", extra={"action": "write_distribution"})


def write_claims(path: Path, airdrop: Airdrop, indent: int = 4) -> None:
    """Write address -> {address, amount} plus the drop details."""
    write_json(path, airdrop.claim_records(), indent=indent)
    logger.info(f"Wrote claims to {path}", extra={"action": "write_claims"})


def write_outputs(
    airdrop: Airdrop,
    paths: OutputPaths | None = None,
    settings: Settings | None = None,
) -> OutputPaths:
    """
    Write every output file of a build.

    Args:
        airdrop: Built airdrop
        paths: Target files (default: from settings)
        settings: Settings for defaults and indentation

    Returns:
        The paths written
    """
    settings = settings or get_settings()
    paths = paths or OutputPaths.from_settings(settings)

    write_distribution(paths.distribution_file, airdrop, indent=settings.json_indent)
    write_claims(paths.claim_file, airdrop, indent=settings.json_indent)
    airdrop.dump(paths.tree_file, indent=settings.json_indent)

    logger.info(
        f"{paths.distribution_file} has been written with a root hash of: {airdrop.root_hex}",
        extra={"action": "write_outputs", "root": airdrop.root_hex},
    )
    return paths
