"""Recipient data sources."""

from .excel import load_addresses

__all__ = ["load_addresses"]
