"""
Serialization Codecs

A codec turns a value into bytes and back. Codecs must be deterministic:
the same value always serializes to the same bytes.
"""

import pickle
from typing import Any, Protocol


class Codec(Protocol):
    """Interface every codec implements."""

    def serialize(self, value: Any) -> bytes:
        ...

    def deserialize(self, data: bytes) -> Any:
        ...


class PickleCodec:
    """
    Codec for arbitrary Python values, backed by pickle.

    A fixed protocol version is used so the same value always produces the
    same byte sequence across processes sharing the store.
    """

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL):
        self.protocol = protocol

    def serialize(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=self.protocol)

    def deserialize(self, data: bytes) -> Any:
        return pickle.loads(data)


class Utf8Codec:
    """Codec for text values; the serialized form is the UTF-8 encoding."""

    def serialize(self, value: str) -> bytes:
        return value.encode("utf-8")

    def deserialize(self, data: bytes) -> str:
        return data.decode("utf-8")
