"""
Shared dependencies for the API routes.
"""

from functools import lru_cache
from pathlib import Path

from fastapi import HTTPException

from ..airdrop import Airdrop
from ..config import get_settings
from ..errors import MalformedTreeError


@lru_cache(maxsize=8)
def load_airdrop(tree_file: Path) -> Airdrop:
    """Load and cache an airdrop dump; the tree is read-only once loaded."""
    return Airdrop.load(tree_file)


def get_airdrop() -> Airdrop:
    """Airdrop served by this process, from the configured tree file."""
    tree_file = get_settings().tree_file
    try:
        return load_airdrop(tree_file)
    except FileNotFoundError:
        raise HTTPException(status_code=503, detail=f"Tree file {tree_file} not found")
    except (OSError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=503, detail=f"Tree file {tree_file} cannot be read: {e}")
    except MalformedTreeError as e:
        raise HTTPException(status_code=503, detail=f"Tree file {tree_file} is invalid: {e}")
