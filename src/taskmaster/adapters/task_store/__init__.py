"""
Task store adapters.
"""

from .json_store import JsonTaskStore
from .memory import InMemoryTaskStore


__all__ = ["InMemoryTaskStore", "JsonTaskStore"]
