"""
Configuration management using Pydantic Settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FILE_NAMES = {
    "feed_file": "addresses.csv",
    "distribution_file": "merkle-proof.json",
    "claim_file": "claim-deets.json",
    "tree_file": "tree.json",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MERKLE_DROP_",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Merkle Drop"
    debug: bool = False
    log_level: str = "INFO"

    # Leaf preimage discipline, pinned per tree and recorded in the dump
    leaf_encoding: Literal["standard", "packed"] = "standard"

    # Feed and output files; unset files live under data_dir
    data_dir: Path = Path("./feed-files")
    feed_file: Path | None = None
    distribution_file: Path | None = None
    claim_file: Path | None = None
    tree_file: Path | None = None
    json_indent: int = 4

    # Proof service
    host: str = "127.0.0.1"
    port: int = 8000

    def model_post_init(self, __context) -> None:
        """Place files that were not set explicitly under data_dir."""
        for name, file_name in DEFAULT_FILE_NAMES.items():
            if getattr(self, name) is None:
                setattr(self, name, self.data_dir / file_name)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
