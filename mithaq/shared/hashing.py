"""
Mithaq Canonical Hashing
Deterministic fingerprints for frozen snapshots (compatibility scores
embedded in matches, verification documents).
"""

import hashlib
import json
from typing import Any

# Fields excluded from snapshot hashes (volatile/generated)
VOLATILE_FIELDS = frozenset([
    "created_at",
    "updated_at",
    "timestamp",
    "completed_at",
])


def canonicalize(obj: Any, exclude_volatile: bool = True) -> str:
    """
    Convert object to canonical JSON string.
    Deterministic: same input always produces same output.
    """
    def _clean(o: Any) -> Any:
        if hasattr(o, "model_dump"):
            o = o.model_dump(mode="json")
        if isinstance(o, dict):
            return {
                k: _clean(v)
                for k, v in sorted(o.items())
                if not (exclude_volatile and k in VOLATILE_FIELDS)
            }
        elif isinstance(o, (list, tuple)):
            return [_clean(i) for i in o]
        elif isinstance(o, float):
            # Normalize floats to avoid precision issues
            return round(o, 6)
        return o

    cleaned = _clean(obj)
    return json.dumps(cleaned, sort_keys=True, separators=(',', ':'), ensure_ascii=True)


def snapshot_hash(obj: Any, exclude_volatile: bool = True) -> str:
    """
    Hash a snapshot (dict or pydantic model).
    Returns: "sha256:<64-char-hex>"
    """
    canonical = canonicalize(obj, exclude_volatile)
    digest = hashlib.sha256(canonical.encode('utf-8')).hexdigest()
    return f"sha256:{digest}"


def bytes_fingerprint(data: bytes) -> str:
    """Fingerprint raw bytes (documents are never inlined into prompts)."""
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def verify_snapshot(obj: Any, expected_hash: str) -> bool:
    """Check a snapshot still matches the hash recorded with it."""
    return snapshot_hash(obj) == expected_hash
