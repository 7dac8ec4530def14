"""
Chunking Module

Splits an oversized serialized value into child entries small enough for the
store, and joins child entries back into the serialized value.

Child key format:
    <parent key><sep><write seed><sep><chunk index>

The write seed is drawn once per split. Two splits of the same key, even
back to back, therefore never share a child key, so a reader holding an
older Reference can never see a mix of old and new chunks.
"""

import secrets
from typing import Callable, List, Mapping, Optional

from ..config.settings import settings
from .entry import CacheEntry, Chunk, PayloadKind, Reference


def generate_token() -> str:
    """Return a fresh 128-bit random token as hex."""
    return secrets.token_hex(16)


def child_key(parent_key: str, seed: str, index: int, separator: str = None) -> str:
    """Build the key of chunk ``index`` for one split of ``parent_key``."""
    sep = separator if separator is not None else settings.KEY_SEPARATOR
    return f"{parent_key}{sep}{seed}{sep}{index}"


class ChunkSplitter:
    """
    Partitions serialized values into bounded child entries.

    Usage:
        splitter = ChunkSplitter(chunk_size=10)
        children = splitter.split("k", b"abcdefghijklmno", created=time.time())
        # two children: 10 bytes and 5 bytes

    Attributes:
        chunk_size: Maximum payload size of one child entry, in bytes
        token_factory: Callable producing a fresh write seed per split
        separator: String placed between key, seed and index
    """

    def __init__(
            self,
            chunk_size: int = None,
            token_factory: Callable[[], str] = generate_token,
            separator: str = None,
    ):
        self.chunk_size = chunk_size if chunk_size is not None else settings.MAX_CHUNK_SIZE
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.token_factory = token_factory
        self.separator = separator if separator is not None else settings.KEY_SEPARATOR

    def split(self, key: str, data: bytes, created: float) -> List[CacheEntry]:
        """
        Split ``data`` into child entries.

        Args:
            key: Parent key the children belong to
            data: Full serialized value
            created: Parent creation timestamp, copied onto every child

        Returns:
            Child entries in chunk index order. An empty ``data`` yields no
            children. Every chunk is ``chunk_size`` bytes except possibly
            the last.
        """
        seed = self.token_factory()
        view = memoryview(data)
        return [
            CacheEntry(
                key=child_key(key, seed, index, self.separator),
                payload=Chunk(bytes(view[offset:offset + self.chunk_size])),
                created=created,
            )
            for index, offset in enumerate(range(0, len(data), self.chunk_size))
        ]


def build_reference(children: List[CacheEntry]) -> Reference:
    """Return the Reference listing ``children`` in the order given."""
    return Reference(tuple(child.key for child in children))


def reassemble(reference: Reference, children: Mapping[str, CacheEntry]) -> Optional[bytes]:
    """
    Join the chunks listed by ``reference`` back into the serialized value.

    ``children`` may be in any order; the Reference's key order decides the
    concatenation order.

    Returns:
        The serialized value, or None if a child is missing or does not hold
        a chunk.
    """
    parts = []
    for key in reference.child_keys:
        child = children.get(key)
        if child is None or child.payload.kind is not PayloadKind.CHUNK:
            return None
        parts.append(child.payload.data)
    return b"".join(parts)
