"""
Cache Entry Module

This module defines the unit stored under one key in the underlying store
and the payloads an entry can carry.

A payload is one of three tagged variants:
- Direct: the caller's value, serialized
- Reference: the ordered child keys of a value that was split
- Chunk: one raw slice of a split value, held by a child entry

Readers dispatch on ``payload.kind``, never on the payload's Python type.
"""

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple, Union


class PayloadKind(Enum):
    """Tag identifying which payload variant an entry carries."""
    DIRECT = "direct"
    REFERENCE = "reference"
    CHUNK = "chunk"


@dataclass(frozen=True)
class Direct:
    """Serialized form of the caller's value, stored in a single entry."""
    data: bytes
    kind: PayloadKind = field(default=PayloadKind.DIRECT, init=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Reference:
    """
    Stand-in payload for a parent entry whose value was split.

    Attributes:
        child_keys: Child entry keys in chunk index order. Concatenating the
            children's chunks in this order reproduces the serialized value.
    """
    child_keys: Tuple[str, ...]
    kind: PayloadKind = field(default=PayloadKind.REFERENCE, init=False)

    @property
    def size(self) -> int:
        return sum(len(key.encode()) for key in self.child_keys)


@dataclass(frozen=True)
class Chunk:
    """One contiguous slice of a split value."""
    data: bytes
    kind: PayloadKind = field(default=PayloadKind.CHUNK, init=False)

    @property
    def size(self) -> int:
        return len(self.data)


Payload = Union[Direct, Reference, Chunk]


@dataclass(frozen=True)
class CacheEntry:
    """
    An immutable entry as written to the store.

    Attributes:
        key: Store key, unique within a bin
        payload: Direct, Reference or Chunk payload
        created: Write timestamp; copied verbatim from a parent to its children
        expire: Absolute expiration timestamp (0 = permanent). Children
            never carry one of their own.
        tags: Cache tags, passed through untouched
    """
    key: str
    payload: Payload
    created: float
    expire: float = 0
    tags: Tuple[str, ...] = ()

    @property
    def size(self) -> int:
        """Payload size in bytes, measured against the store's entry ceiling."""
        return self.payload.size

    def is_valid(self, now: Optional[float] = None) -> bool:
        """Return False once the entry's expiration time has passed."""
        if not self.expire:
            return True
        now = time.time() if now is None else now
        return self.expire > now

    def with_payload(self, payload: Payload) -> "CacheEntry":
        """Return a copy carrying ``payload`` and the same metadata."""
        return replace(self, payload=payload)
