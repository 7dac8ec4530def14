#!/usr/bin/env python3
"""
chunkcache Server Entry Point

Usage:
    python -m chunkcache.server                      # Default settings (0.0.0.0:7171)
    python -m chunkcache.server --port 8080          # Custom port
    python -m chunkcache.server --max-entry-size 4096 --chunk-size 3584
    python -m chunkcache.server --debug              # Enable debug logging

Environment Variables:
    CHUNKCACHE_HOST            - Server bind address
    CHUNKCACHE_PORT            - Server port
    CHUNKCACHE_MAX_KEYS        - Maximum number of store keys
    CHUNKCACHE_MAX_ENTRY_SIZE  - Store entry ceiling in bytes
    CHUNKCACHE_MAX_CHUNK_SIZE  - Chunk payload size in bytes
    CHUNKCACHE_DEBUG           - Enable debug mode (true/false)
    CHUNKCACHE_LOG_LEVEL       - Log level when not in debug mode
"""

import argparse
import asyncio
import logging
import signal
import sys

from .cache.backend import ChunkedCache
from .cache.chunking import ChunkSplitter
from .cache.codec import Utf8Codec
from .cache.store import KVStore
from .config.settings import settings
from .network.tcp_server import CacheServer


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="chunkcache: cache server for values of any size",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--max-keys",
        type=int,
        default=settings.MAX_KEYS,
        help="Maximum number of keys in the store",
    )

    parser.add_argument(
        "--max-entry-size",
        type=int,
        default=settings.MAX_ENTRY_SIZE,
        help="Maximum size of a single store entry in bytes",
    )

    parser.add_argument(
        "--chunk-size",
        type=int,
        default=settings.MAX_CHUNK_SIZE,
        help="Payload size of one chunk of a split value in bytes",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def build_server(args: argparse.Namespace) -> CacheServer:
    """Create the store, cache and server described by ``args``."""
    store = KVStore(max_size=args.max_keys, max_entry_size=args.max_entry_size)
    cache = ChunkedCache(
        store,
        codec=Utf8Codec(),
        splitter=ChunkSplitter(chunk_size=args.chunk_size),
    )
    return CacheServer(host=args.host, port=args.port, cache=cache)


def main() -> None:
    """Main entry point for the server."""
    args = parse_args()

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    if args.chunk_size >= args.max_entry_size:
        logger.warning(
            f"Chunk size {args.chunk_size} leaves no headroom below the "
            f"entry ceiling {args.max_entry_size}; split writes will fail"
        )

    server = build_server(args)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    async def shutdown(sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {sig.name}, initiating shutdown...")
        await server.stop()

    # Register signal handlers (Unix only)
    if sys.platform != 'win32':
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(
                sig,
                lambda s=sig: asyncio.create_task(shutdown(s))
            )

    logger.info("Starting chunkcache server")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Max keys: {args.max_keys}")
    logger.info(f"  Max entry size: {args.max_entry_size}")
    logger.info(f"  Chunk size: {args.chunk_size}")
    logger.info(f"  Debug: {args.debug}")

    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
