"""Canonical hashing helpers for deterministic ids and config fingerprints.

Every id the engine emits (violations, action items) is derived from the
data that defines it, so re-running an audit over the same inputs
reproduces the same ids.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Serialize *obj* so equal data always yields equal bytes.

    Keys are sorted, separators carry no whitespace and non-ASCII text is
    escaped before UTF-8 encoding.
    """
    text = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True)
    return text.encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def short_id(prefix: str, obj: Any, length: int = 12) -> str:
    """Return a short, stable id such as ``v-1a2b3c4d5e6f`` for *obj*."""
    return f"{prefix}-{sha256_hex(canonical_json_bytes(obj))[:length]}"


def compute_config_hash(config_dump: dict[str, Any]) -> str:
    """SHA-256 of the canonical audit configuration.

    Recorded on every result so two results can be compared for
    reproducibility: same config hash + same raw inputs = same result.
    Secrets must be stripped by the caller before hashing.
    """
    return sha256_hex(canonical_json_bytes({"config": config_dump}))
