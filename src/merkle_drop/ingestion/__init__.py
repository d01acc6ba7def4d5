"""Ingestion module - feed file parsing."""

from .reader import parse_rows, read_entries

__all__ = ["parse_rows", "read_entries"]
