"""
Feed file reader.

The feed is a CSV file with a header row naming an address column
(``user_address``, or ``address``) and an ``amount`` column.
"""

import csv
import logging
from pathlib import Path
from typing import Iterable

from ..errors import EncodingError
from ..tree import Entry

logger = logging.getLogger("merkle_drop.ingestion")

ADDRESS_COLUMNS = ("user_address", "address")
AMOUNT_COLUMN = "amount"


def _address_column(fieldnames: Iterable[str]) -> str:
    names = [name.strip() for name in fieldnames]
    for column in ADDRESS_COLUMNS:
        if column in names:
            return column
    raise EncodingError(
        f"Feed header needs one of {', '.join(ADDRESS_COLUMNS)}; got {', '.join(names)}"
    )


def parse_rows(lines: Iterable[str], source: str = "<feed>") -> list[Entry]:
    """
    Parse CSV lines into entries.

    Args:
        lines: CSV text lines, header first
        source: Name used in error messages

    Raises:
        EncodingError: on a missing column, an invalid row or an empty feed
    """
    reader = csv.DictReader(lines, skipinitialspace=True)
    if not reader.fieldnames:
        raise EncodingError(f"{source}: feed is empty")

    reader.fieldnames = [name.strip() for name in reader.fieldnames]
    address_column = _address_column(reader.fieldnames)
    if AMOUNT_COLUMN not in reader.fieldnames:
        raise EncodingError(f"{source}: feed header has no {AMOUNT_COLUMN!r} column")

    entries: list[Entry] = []
    for row in reader:
        address = (row.get(address_column) or "").strip()
        amount = (row.get(AMOUNT_COLUMN) or "").strip()
        if not address and not amount:
            continue

        try:
            entries.append(Entry(address, amount))
        except EncodingError as e:
            raise EncodingError(f"{source}, line {reader.line_num}: {e}") from e

    if not entries:
        raise EncodingError(f"{source}: feed has no entries")

    logger.info(f"Read {len(entries)} entries from {source}", extra={"leaf_count": len(entries)})
    return entries


def read_entries(path: Path) -> list[Entry]:
    """Read all entries from a CSV feed file, in file order."""
    path = Path(path)
    with open(path, "r", newline="", encoding="utf-8") as f:
        return parse_rows(f, source=str(path))
