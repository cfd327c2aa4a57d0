"""
Liveness Cache

Last value per OSC address, with age based eviction. Used only for display.

Not thread-safe: the bus consumer loop is the only caller of both
upsert() and sweep().
"""

import logging
from typing import Dict, List, Tuple

from .model import CacheEntry, EncodedValue

logger = logging.getLogger(__name__)


def format_value(value: EncodedValue) -> str:
    """Format an encoded value for the dashboard table."""
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


class LivenessCache:
    """
    Table of address -> (timestamp, value).

    One entry per address, last write wins. Entries older than the TTL are
    removed by sweep().
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, address: str) -> bool:
        return address in self._entries

    def get(self, address: str):
        return self._entries.get(address)

    def upsert(self, address: str, value: EncodedValue, now: float) -> None:
        """Insert or overwrite the entry for `address`."""
        self._entries[address] = CacheEntry(timestamp=now, value=value)

    def sweep(self, now: float, ttl: float) -> None:
        """
        Drop every entry whose age is strictly greater than `ttl`.

        An entry exactly `ttl` seconds old survives.
        """
        expired = [
            address for address, entry in self._entries.items()
            if now - entry.timestamp > ttl
        ]
        for address in expired:
            del self._entries[address]

        if expired:
            logger.debug(f"Evicted {len(expired)} stale addresses")

    def snapshot(self) -> List[Tuple[str, EncodedValue]]:
        """(address, value) pairs sorted by address so rows keep their place."""
        return [
            (address, entry.value)
            for address, entry in sorted(self._entries.items())
        ]

    def rows(self) -> Tuple[Tuple[str, str], ...]:
        """snapshot() with values formatted for display."""
        return tuple((address, format_value(value)) for address, value in self.snapshot())
