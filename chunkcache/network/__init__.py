"""Network module for chunkcache."""

from .tcp_server import CacheServer

__all__ = ["CacheServer"]
