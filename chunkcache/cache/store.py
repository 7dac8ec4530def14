"""
Key-Value Store Module

This module implements an in-memory key-value store with a hard per-entry
size ceiling, standing in for a memcached-style backend.

Features:
- Entries larger than ``max_entry_size`` are rejected (set returns False)
- TTL (Time-To-Live) support for store-driven expiration
- LRU eviction when the key limit is reached
- Bulk reads via get_multi
"""

import logging
import time
from collections import OrderedDict
from typing import Optional, Tuple, Dict, Any, Iterable

from ..config.settings import settings
from .entry import CacheEntry

logger = logging.getLogger(__name__)


class KVStore:
    """
    In-memory key-value store with an entry size ceiling, TTL and LRU eviction.

    This class provides O(1) average-case time complexity for:
    - set: Insert or update an entry
    - get: Retrieve an entry by key
    - delete: Remove an entry
    - exists: Check if a key exists

    Internal Storage:
        Uses OrderedDict for O(1) operations with LRU ordering.
        Format: key -> (entry, expiration_timestamp)
        expiration_timestamp = 0 means no expiration

    The store's expiration is its own eviction mechanism and is independent
    of the ``expire`` field carried inside an entry.

    Attributes:
        max_size: Maximum number of keys allowed in the store
        max_entry_size: Maximum payload size of a single entry, in bytes
    """

    def __init__(self, max_size: int = None, max_entry_size: int = None):
        """
        Initialize the KV store.

        Args:
            max_size: Maximum number of keys (default from settings.MAX_KEYS)
            max_entry_size: Entry ceiling in bytes (default from settings.MAX_ENTRY_SIZE)

        Raises:
            ValueError: If either limit is not positive
        """
        self.max_size = max_size if max_size is not None else settings.MAX_KEYS
        self.max_entry_size = (
            max_entry_size if max_entry_size is not None else settings.MAX_ENTRY_SIZE
        )
        if self.max_size <= 0:
            raise ValueError("max_size must be positive")
        if self.max_entry_size <= 0:
            raise ValueError("max_entry_size must be positive")

        # OrderedDict gives O(1) operations and keeps insertion/access order
        self._store: "OrderedDict[str, Tuple[CacheEntry, float]]" = OrderedDict()
        self._rejected_writes = 0
        self._evictions = 0

    def set(self, key: str, entry: CacheEntry, ttl: int = 0) -> bool:
        """
        Insert or update an entry.

        Args:
            key: The key to store
            entry: The entry to associate with the key
            ttl: Store-level time-to-live in seconds (0 = no expiration)

        Returns:
            True on success, False if the entry exceeds the size ceiling
        """
        if entry.size > self.max_entry_size:
            self._rejected_writes += 1
            return False

        expires_at = time.time() + ttl if ttl and ttl > 0 else 0

        if key in self._store:
            # Update entry/TTL and mark as most recently used
            self._store[key] = (entry, expires_at)
            self._store.move_to_end(key)
            return True

        # Evict LRU if at capacity
        if len(self._store) >= self.max_size:
            evicted, _ = self._store.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Evicted least recently used key {evicted}")

        self._store[key] = (entry, expires_at)
        return True

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Retrieve the entry for a given key.

        Returns:
            The entry if found and not expired, None otherwise
        """
        if key not in self._store:
            return None

        entry, expires_at = self._store[key]
        if expires_at and expires_at <= time.time():
            # Lazy expiration
            self._store.pop(key, None)
            return None

        # Mark as most recently used
        self._store.move_to_end(key)
        return entry

    def get_multi(self, keys: Iterable[str]) -> Dict[str, CacheEntry]:
        """
        Retrieve several entries at once.

        Keys that are missing or expired are absent from the result;
        partial misses are not an error.
        """
        found = {}
        for key in keys:
            entry = self.get(key)
            if entry is not None:
                found[key] = entry
        return found

    def delete(self, key: str) -> bool:
        """
        Delete an entry.

        Returns:
            True if key was deleted, False if key didn't exist or had expired
        """
        if key not in self._store:
            return False

        _, expires_at = self._store.pop(key)
        if expires_at and expires_at <= time.time():
            # Expired keys count as non-existent
            return False
        return True

    def exists(self, key: str) -> bool:
        """Check if a key exists (and is not expired)."""
        if key not in self._store:
            return False

        _, expires_at = self._store[key]
        if expires_at and expires_at <= time.time():
            # Lazy cleanup for expired keys
            self._store.pop(key, None)
            return False

        return True

    def size(self) -> int:
        """
        Get the current number of keys in the store.

        Note: This may include expired keys that haven't been cleaned up yet.
        """
        return len(self._store)

    def clear(self) -> None:
        """Remove all keys from the store."""
        self._store.clear()

    def cleanup_expired(self) -> int:
        """
        Remove all expired keys from the store (active expiration).

        Returns:
            Number of keys removed
        """
        now = time.time()
        to_delete = [k for k, (_, exp) in self._store.items() if exp and exp <= now]
        for key in to_delete:
            self._store.pop(key, None)
        return len(to_delete)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the store.

        Returns:
            Dictionary containing:
            - total_keys: Total keys in store
            - expired_keys: Count of expired (but not yet cleaned) keys
            - active_keys: Count of non-expired keys
            - max_size: Maximum capacity
            - max_entry_size: Entry size ceiling in bytes
            - rejected_writes: Writes refused for exceeding the ceiling
            - evictions: Keys dropped by LRU eviction
            - utilization: Current usage as fraction of max_size
        """
        now = time.time()
        total = len(self._store)
        expired = sum(1 for _, (_, expires_at) in self._store.items() if 0 < expires_at < now)

        return {
            "total_keys": total,
            "expired_keys": expired,
            "active_keys": total - expired,
            "max_size": self.max_size,
            "max_entry_size": self.max_entry_size,
            "rejected_writes": self._rejected_writes,
            "evictions": self._evictions,
            "utilization": total / self.max_size,
        }
