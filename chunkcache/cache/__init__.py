"""Cache module for chunkcache."""

from .backend import ChunkedCache
from .chunking import ChunkSplitter, generate_token
from .client import SetResult, StoreClient
from .codec import Codec, PickleCodec, Utf8Codec
from .entry import CacheEntry, Chunk, Direct, PayloadKind, Reference
from .store import KVStore

__all__ = [
    "CacheEntry",
    "ChunkSplitter",
    "ChunkedCache",
    "Chunk",
    "Codec",
    "Direct",
    "KVStore",
    "PayloadKind",
    "PickleCodec",
    "Reference",
    "SetResult",
    "StoreClient",
    "Utf8Codec",
    "generate_token",
]
