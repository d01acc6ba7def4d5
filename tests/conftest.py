"""
Shared fixtures for merkle_drop tests.
"""

import pytest

from merkle_drop.airdrop import Airdrop
from merkle_drop.config import get_settings
from merkle_drop.tree import Entry

ADDR_1 = "0x" + "aa" * 19 + "01"
ADDR_2 = "0x" + "aa" * 19 + "02"
ADDR_3 = "0x" + "aa" * 19 + "03"

FEED_CSV = f"""user_address,amount
{ADDR_1},100
{ADDR_2},200
{ADDR_3},300
"""


def flip_bit(data: bytes, bit: int = 0) -> bytes:
    """Return a copy of data with one bit inverted."""
    buf = bytearray(data)
    buf[bit // 8] ^= 1 << (bit % 8)
    return bytes(buf)


def make_entries(count: int) -> list[Entry]:
    return [Entry(f"0x{i + 1:040x}", (i + 1) * 1000) for i in range(count)]


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; drop the cache around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def three_entries() -> list[Entry]:
    return [Entry(ADDR_1, 100), Entry(ADDR_2, 200), Entry(ADDR_3, "300")]


@pytest.fixture
def airdrop(three_entries) -> Airdrop:
    return Airdrop.from_entries(three_entries)


@pytest.fixture
def feed_file(tmp_path):
    path = tmp_path / "addresses.csv"
    path.write_text(FEED_CSV)
    return path
