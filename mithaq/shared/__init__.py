"""Mithaq Shared Utilities"""

from .hashing import (
    canonicalize,
    snapshot_hash,
    bytes_fingerprint,
    verify_snapshot,
)
from .result import (
    AgentError,
    AgentException,
    ErrorKind,
    Result,
)

__all__ = [
    "canonicalize",
    "snapshot_hash",
    "bytes_fingerprint",
    "verify_snapshot",
    "AgentError",
    "AgentException",
    "ErrorKind",
    "Result",
]
