"""Persistence layer – storage ports backed by a JSON file or by memory."""

from ._base import JsonStore
from .keyed import KeyedJsonStore
from .memory import MemoryStore

__all__ = [
    "JsonStore",
    "KeyedJsonStore",
    "MemoryStore",
]
