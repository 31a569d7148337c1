"""Adapters - I/O implementations of ports."""

from .json_store import JsonDocumentStore
from .memory_store import MemoryDocumentStore
from .scheduler_ticker import SchedulerTicker

__all__ = [
    "JsonDocumentStore",
    "MemoryDocumentStore",
    "SchedulerTicker",
]
