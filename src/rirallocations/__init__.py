"""
IP allocations by country, straight from the Regional Internet Registries.

This library downloads the delegated files published by AFRINIC, APNIC,
ARIN, LACNIC and RIPE NCC, turns them into per-country lists of IPv4 and
IPv6 prefixes and caches the result on disk for a day. If a refresh fails
the last cached copy keeps being served.
"""

__version__ = "1.0.0"

from .cache import CacheEntry, CacheStore, FileCacheStore
from .errors import (
    CacheCorrupt,
    CacheWriteError,
    FeedParseError,
    FetchError,
    InvalidArgument,
    RIRAllocationsError,
)
from .service import AllocationService, rir_allocations

__all__ = [
    "rir_allocations",
    "AllocationService",
    "CacheStore",
    "FileCacheStore",
    "CacheEntry",
    "RIRAllocationsError",
    "InvalidArgument",
    "FetchError",
    "FeedParseError",
    "CacheCorrupt",
    "CacheWriteError",
]


def main():
    """Entry point for the CLI."""
    from .cli import cli  # pylint: disable=import-outside-toplevel

    cli()
