"""
chunkcache: Oversized-Item Caching Layer

A caching layer that stores values of any size in a key-value store whose
entries are capped at a fixed maximum size, splitting oversized values
into chunk entries and reassembling them transparently on read.
"""

__version__ = "1.0.0"
