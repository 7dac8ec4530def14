"""
Chunked Cache Backend

Stores values of any size in a store whose entries are capped at a fixed
size. Values that fit are written as a single entry. Values the store
rejects are split into chunk entries plus a parent entry holding a
Reference to them; reads resolve the Reference transparently.

Marker budget: the parent entry holding a Reference is subject to the same
entry ceiling as every chunk. A Reference is measured as the summed length
of its child keys, so a key split into N chunks needs roughly
N * (len(key) + len(seed) + 2 + digits(N)) bytes of marker. The largest value
a ceiling C can hold is therefore about

    chunk_size * floor(C / (len(key) + len(seed) + 2 + digits))

which, with 128-bit hex seeds, a 1 MiB ceiling and short keys, is on the
order of 25 GiB. Splits whose marker would exceed the ceiling fail before
any chunk is written.

Known leak: children of a split are never deleted by this layer. A split
that fails part-way, a parent write that fails after its children were
written, an overwrite, and a delete of the parent all leave child entries
behind until the store evicts them. No marker ever points at a partial set
of children.
"""

import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from ..config.settings import settings
from .chunking import ChunkSplitter, build_reference, reassemble
from .client import SetResult, StoreClient, write_entry
from .codec import Codec, PickleCodec
from .entry import CacheEntry, Direct, PayloadKind

logger = logging.getLogger(__name__)

Validator = Callable[[CacheEntry, float], bool]


def default_validator(entry: CacheEntry, now: float) -> bool:
    """Accept entries that have not expired."""
    return entry.is_valid(now)


class ChunkedCache:
    """
    Cache backend that hides the store's per-entry size ceiling.

    Usage:
        cache = ChunkedCache(KVStore())
        cache.set("report", big_value)
        cache.get("report")        # -> big_value, or None on a miss

    Writes never retry. A failed direct write is taken to mean "too large"
    and triggers a split; if the store failed for another reason the split
    fails as well and the write reports failure.

    Attributes:
        store: The underlying store client
        codec: Serializer for caller values
        splitter: ChunkSplitter used on the fallback path
        validator: Policy deciding whether a fetched entry is still usable
        max_entry_size: Entry ceiling used to budget the marker entry;
            taken from the store when it exposes one
    """

    def __init__(
            self,
            store: StoreClient,
            codec: Codec = None,
            splitter: ChunkSplitter = None,
            validator: Validator = default_validator,
            clock: Callable[[], float] = time.time,
            max_entry_size: int = None,
    ):
        self.store = store
        self.codec = codec if codec is not None else PickleCodec()
        self.splitter = splitter if splitter is not None else ChunkSplitter()
        self.validator = validator
        self.clock = clock
        if max_entry_size is None:
            max_entry_size = getattr(store, "max_entry_size", settings.MAX_ENTRY_SIZE)
        self.max_entry_size = max_entry_size

        self._stats = {
            "direct_writes": 0,
            "split_writes": 0,
            "failed_writes": 0,
            "oversized_markers": 0,
            "reassembled_reads": 0,
            "chunk_misses": 0,
        }

    def set(self, key: str, value: Any, expire: float = 0, tags: Sequence[str] = ()) -> bool:
        """
        Store ``value`` under ``key``.

        Args:
            key: Cache key
            value: Any value the codec accepts
            expire: Absolute expiration timestamp (0 = permanent)
            tags: Cache tags, stored on the parent entry untouched

        Returns:
            True if the value is now readable under ``key``
        """
        data = self.codec.serialize(value)
        entry = CacheEntry(
            key=key,
            payload=Direct(data),
            created=self.clock(),
            expire=expire,
            tags=tuple(tags),
        )

        if write_entry(self.store, entry) is SetResult.STORED:
            self._stats["direct_writes"] += 1
            return True

        logger.debug(f"Direct write of {key} failed, splitting {len(data)} bytes")
        return self._split_write(entry, data)

    def _split_write(self, entry: CacheEntry, data: bytes) -> bool:
        """Check the marker fits, write ``data`` as chunks, then the marker."""
        children = self.splitter.split(entry.key, data, entry.created)
        reference = build_reference(children)
        if reference.size > self.max_entry_size:
            logger.warning(
                f"Marker for {entry.key} needs {reference.size} bytes for {len(children)} chunks, "
                f"over the {self.max_entry_size} byte ceiling; not storing"
            )
            self._stats["oversized_markers"] += 1
            self._stats["failed_writes"] += 1
            return False

        for child in children:
            if write_entry(self.store, child) is not SetResult.STORED:
                # Abandon the whole split; no retry, no marker
                logger.warning(f"Chunk write {child.key} failed, abandoning split of {entry.key}")
                self._stats["failed_writes"] += 1
                return False

        parent = entry.with_payload(reference)
        if write_entry(self.store, parent) is not SetResult.STORED:
            logger.warning(
                f"Marker write for {entry.key} failed, {len(children)} chunks left orphaned"
            )
            self._stats["failed_writes"] += 1
            return False

        logger.debug(f"Stored {entry.key} as {len(children)} chunks")
        self._stats["split_writes"] += 1
        return True

    def get_multiple_raw(
            self,
            keys: Iterable[str],
            allow_invalid: bool = False,
    ) -> Dict[str, CacheEntry]:
        """
        Fetch entries for ``keys`` with split values resolved.

        Invalid entries are dropped unless ``allow_invalid`` is set. Entries
        whose chunks cannot all be fetched are dropped as misses. Returned
        entries always carry a Direct payload holding the serialized value.
        """
        fetched = self.store.get_multi(list(keys))
        now = self.clock()

        result = {}
        for key, entry in fetched.items():
            if not allow_invalid and not self.validator(entry, now):
                continue

            kind = entry.payload.kind
            if kind is PayloadKind.DIRECT:
                result[key] = entry
            elif kind is PayloadKind.REFERENCE:
                resolved = self._resolve(entry)
                if resolved is not None:
                    result[key] = resolved
            else:
                logger.debug(f"Ignoring chunk entry {key} read as a parent")
        return result

    def _resolve(self, entry: CacheEntry) -> Optional[CacheEntry]:
        """Replace a Reference payload by the reassembled value, or None on a miss."""
        reference = entry.payload
        children = self.store.get_multi(list(reference.child_keys))
        if len(children) < len(reference.child_keys):
            logger.debug(
                f"{entry.key}: {len(reference.child_keys) - len(children)} of "
                f"{len(reference.child_keys)} chunks missing, treating as a miss"
            )
            self._stats["chunk_misses"] += 1
            return None

        data = reassemble(reference, children)
        if data is None:
            self._stats["chunk_misses"] += 1
            return None

        self._stats["reassembled_reads"] += 1
        return entry.with_payload(Direct(data))

    def get_multiple(self, keys: Iterable[str], allow_invalid: bool = False) -> Dict[str, Any]:
        """
        Return a mapping of key to value for every key that was found.

        A key absent from the result is a miss.
        """
        entries = self.get_multiple_raw(keys, allow_invalid=allow_invalid)
        return {key: self.codec.deserialize(entry.payload.data) for key, entry in entries.items()}

    def get(self, key: str, allow_invalid: bool = False, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default`` on a miss."""
        return self.get_multiple([key], allow_invalid=allow_invalid).get(key, default)

    def exists(self, key: str, allow_invalid: bool = False) -> bool:
        """
        Return True if ``get`` would find ``key``.

        Split values are checked by counting their chunks in the store;
        nothing is joined or decoded.
        """
        entry = self.store.get_multi([key]).get(key)
        if entry is None:
            return False
        if not allow_invalid and not self.validator(entry, self.clock()):
            return False

        kind = entry.payload.kind
        if kind is PayloadKind.DIRECT:
            return True
        if kind is PayloadKind.REFERENCE:
            child_keys = entry.payload.child_keys
            children = self.store.get_multi(list(child_keys))
            return all(
                child_key in children and children[child_key].payload.kind is PayloadKind.CHUNK
                for child_key in child_keys
            )
        return False

    def delete(self, key: str) -> bool:
        """
        Delete the entry stored under ``key``.

        Only the parent is removed; the chunks of a split value stay in the
        store until it evicts them.
        """
        return self.store.delete(key)

    def get_stats(self) -> Dict[str, Any]:
        """Return cache counters, plus store statistics when available."""
        stats = dict(self._stats)
        store_stats = getattr(self.store, "get_stats", None)
        if store_stats is not None:
            stats["store_stats"] = store_stats()
        return stats
