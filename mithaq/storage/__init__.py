"""Persistence backends for the matching service."""

from mithaq.storage.base import MatchStore
from mithaq.storage.memory import InMemoryStore

__all__ = ["MatchStore", "InMemoryStore"]
