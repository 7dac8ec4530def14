"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import itertools
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator, Callable

from chunkcache.cache.backend import ChunkedCache
from chunkcache.cache.chunking import ChunkSplitter
from chunkcache.cache.codec import Utf8Codec
from chunkcache.cache.store import KVStore
from chunkcache.network.tcp_server import CacheServer
from chunkcache.protocol.parser import ProtocolParser


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# KVStore Fixtures
# ============================================================================

@pytest.fixture
def store() -> KVStore:
    """Create a fresh KVStore instance (100 keys, default entry ceiling)."""
    return KVStore(max_size=100)


@pytest.fixture
def small_store() -> KVStore:
    """Create a KVStore with small capacity for eviction testing (5 keys)."""
    return KVStore(max_size=5)


@pytest.fixture
def tiny_store() -> KVStore:
    """
    Create a KVStore whose entries are capped at 14 bytes.

    Pairs with a 10 byte chunk size: 4 bytes of headroom for markers.
    """
    return KVStore(max_size=100, max_entry_size=14)


# ============================================================================
# Chunking Fixtures
# ============================================================================

@pytest.fixture
def seeds() -> Callable[[], str]:
    """Deterministic write seed factory producing s0, s1, s2, ..."""
    counter = itertools.count()
    return lambda: f"s{next(counter)}"


@pytest.fixture
def splitter(seeds) -> ChunkSplitter:
    """Create a ChunkSplitter with 10 byte chunks and deterministic seeds."""
    return ChunkSplitter(chunk_size=10, token_factory=seeds)


@pytest.fixture
def text_cache(tiny_store: KVStore, splitter: ChunkSplitter) -> ChunkedCache:
    """Create a text cache over the 14 byte store."""
    return ChunkedCache(tiny_store, codec=Utf8Codec(), splitter=splitter)


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def parser() -> ProtocolParser:
    """Create a ProtocolParser instance."""
    return ProtocolParser()


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest.fixture
def server_cache() -> ChunkedCache:
    """Text cache over a store capped at 1 KiB, chunked at 512 bytes."""
    store = KVStore(max_size=1000, max_entry_size=1024)
    return ChunkedCache(store, codec=Utf8Codec(), splitter=ChunkSplitter(chunk_size=512))


@pytest_asyncio.fixture
async def server(server_port: int, server_cache: ChunkedCache) -> AsyncGenerator[CacheServer, None]:
    """
    Create and start a server instance for testing.

    This fixture:
    1. Creates a CacheServer on a random free port
    2. Starts it in a background task
    3. Yields the server for testing
    4. Cleans up after the test
    """
    srv = CacheServer(host='127.0.0.1', port=server_port, cache=server_cache)

    server_task = asyncio.create_task(srv.start())

    # Wait for server to be ready
    await asyncio.sleep(0.1)

    yield srv

    await srv.stop()
    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass


# ============================================================================
# Client Fixtures
# ============================================================================

class AsyncClient:
    """
    Helper class for testing server interactions.

    Usage:
        async with AsyncClient('127.0.0.1', 7171) as client:
            response = await client.send_command("PUT key value")
            assert response == "OK stored"
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.reader = None
        self.writer = None

    async def connect(self) -> None:
        """Establish connection to server."""
        self.reader, self.writer = await asyncio.open_connection(
            self.host, self.port, limit=4 * 1024 * 1024
        )

    async def disconnect(self) -> None:
        """Close connection to server."""
        if self.writer:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except ConnectionError:
                pass

    async def send_command(self, command: str) -> str:
        """
        Send a command and receive the response.

        Returns:
            Response string (stripped of trailing newline)
        """
        if not command.endswith('\n'):
            command += '\n'

        self.writer.write(command.encode())
        await self.writer.drain()

        response = await self.reader.readline()
        return response.decode().strip()

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()


@pytest.fixture
def client_factory(server_port: int):
    """
    Factory fixture to create test clients.

    Usage:
        async def test_something(server, client_factory):
            async with client_factory() as client:
                response = await client.send_command("GET key")
    """
    def factory() -> AsyncClient:
        return AsyncClient('127.0.0.1', server_port)
    return factory


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
