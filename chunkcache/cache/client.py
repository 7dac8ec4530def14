"""
Store Client Boundary

Defines the interface the cache expects from the underlying key-value store
and wraps the store's boolean write answer in an explicit result type.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, Optional, Protocol

from .entry import CacheEntry

logger = logging.getLogger(__name__)


class StoreClient(Protocol):
    """
    Key-value store with a hard per-entry size ceiling.

    Each call is atomic for its own key; nothing spans several keys.
    """

    def set(self, key: str, entry: CacheEntry) -> bool:
        ...

    def get(self, key: str) -> Optional[CacheEntry]:
        ...

    def get_multi(self, keys: Iterable[str]) -> Dict[str, CacheEntry]:
        ...

    def delete(self, key: str) -> bool:
        ...


class SetResult(Enum):
    """
    Outcome of a single store write.

    The store answers with a plain boolean, so a rejection for size cannot be
    told apart from any other failure. REJECTED covers both.
    """
    STORED = "stored"
    REJECTED = "rejected"


def write_entry(client: StoreClient, entry: CacheEntry) -> SetResult:
    """Write ``entry`` under its own key and classify the store's answer."""
    if client.set(entry.key, entry):
        return SetResult.STORED
    logger.debug(f"Store rejected {entry.key} ({entry.size} bytes)")
    return SetResult.REJECTED
