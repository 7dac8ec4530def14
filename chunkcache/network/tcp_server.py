"""
Async TCP Server Module

This module implements the asynchronous TCP server exposing a ChunkedCache
over the text protocol. Values sent by clients may be larger than the
store's entry ceiling; the cache splits and reassembles them.
"""

import asyncio
import logging
import time
from asyncio import StreamReader, StreamWriter
from typing import Optional

from ..cache.backend import ChunkedCache
from ..cache.codec import Utf8Codec
from ..cache.store import KVStore
from ..config.settings import settings
from ..protocol.commands import Command, CommandType, Response
from ..protocol.parser import ProtocolParser

logger = logging.getLogger(__name__)


class CacheServer:
    """
    Asynchronous TCP server for the chunked cache.

    Each client connection is handled in a separate coroutine. All
    connections share one ChunkedCache.

    Usage:
        server = CacheServer(host='0.0.0.0', port=7171)
        await server.start()  # Runs forever

    Attributes:
        host: Server bind address (e.g., '0.0.0.0')
        port: Server port number (e.g., 7171)
        cache: The ChunkedCache shared by all connections
        parser: The ProtocolParser for parsing commands
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            cache: ChunkedCache = None,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address (default from settings)
            port: Port number (default from settings)
            cache: ChunkedCache instance (a text cache over a new KVStore
                if not provided)
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.cache = cache if cache is not None else ChunkedCache(KVStore(), codec=Utf8Codec())
        self.parser = ProtocolParser()

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._running = False
        self._connection_count = 0
        self._total_requests = 0

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Reads commands until the client disconnects, sends QUIT, stays idle
        longer than settings.CONNECTION_TIMEOUT or sends an oversized line.
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        logger.debug(f"Client connected: {addr}")

        try:
            while True:
                try:
                    data = await asyncio.wait_for(
                        reader.readline(), timeout=settings.CONNECTION_TIMEOUT
                    )
                except asyncio.TimeoutError:
                    logger.debug(f"Idle timeout: {addr}")
                    break
                except ValueError:
                    # Line exceeded the stream limit; the stream can't be resynced
                    response = Response.error("line too long")
                    writer.write(self.parser.format_response(response).encode())
                    await writer.drain()
                    break

                if not data:
                    logger.debug(f"Client disconnected: {addr}")
                    break

                try:
                    raw = data.decode().rstrip('\r\n')
                except UnicodeDecodeError:
                    response = Response.error("invalid encoding")
                    writer.write(self.parser.format_response(response).encode())
                    await writer.drain()
                    continue

                command = self.parser.parse_request(raw)

                if command.type == CommandType.QUIT:
                    logger.debug(f"Client requested quit: {addr}")
                    break

                if not command.is_valid:
                    response = Response.error("invalid command")
                else:
                    self._total_requests += 1
                    response = self._execute_command(command)

                writer.write(self.parser.format_response(response).encode())
                await writer.drain()

        except ConnectionResetError:
            logger.debug(f"Connection reset by client: {addr}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {addr}: {exc}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass

    def _execute_command(self, command: Command) -> Response:
        """
        Execute a parsed command on the cache.

        Args:
            command: The Command object to execute

        Returns:
            Response object with the result
        """
        if command.type == CommandType.PUT:
            expire = time.time() + command.ttl if command.ttl else 0
            if self.cache.set(command.key, command.value, expire=expire):
                return Response.stored()
            return Response.not_stored()

        if command.type == CommandType.GET:
            found = self.cache.get_multiple([command.key])
            if command.key in found:
                return Response.value_response(found[command.key])
            return Response.key_not_found()

        if command.type == CommandType.MGET:
            found = self.cache.get_multiple(command.keys)
            return Response.values_response(
                {key: found[key] for key in command.keys if key in found}
            )

        if command.type == CommandType.DELETE:
            deleted = self.cache.delete(command.key)
            return Response.deleted() if deleted else Response.key_not_found()

        if command.type == CommandType.EXISTS:
            return Response.exists_response(self.cache.exists(command.key))

        return Response.error("invalid command")

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        Runs until cancelled or stopped.

        Example:
            server = CacheServer(port=7171)
            asyncio.run(server.start())
        """
        if self._running:
            return

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
            limit=settings.READ_BUFFER_SIZE,
        )
        self._running = True

        addrs = ', '.join(str(sock.getsockname()) for sock in self._server.sockets or [])
        logger.info(f"Serving on {addrs}")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug("Server start cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """Stop the server and wait for it to shut down."""
        if self._server is None:
            return

        self._server.close()
        try:
            await self._server.wait_closed()
        finally:
            self._server = None
            self._running = False

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with connection and request counts plus cache
            statistics.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "cache_stats": self.cache.get_stats(),
        }
