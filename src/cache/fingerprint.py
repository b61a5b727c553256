# src/cache/fingerprint.py — v3
"""Request fingerprints: deterministic keys derived from normalized input.

The same fingerprint keys the in-memory tier, the durable tier and the
in-flight deduplication table.
"""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """Stable, order-sensitive JSON serialization.

    Dict keys are sorted; list order is preserved.

    Raises:
        TypeError: If ``value`` contains non-JSON-serializable objects.
    """
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def compute_fingerprint(operation: str, **params: Any) -> str:
    """SHA-256 hex digest of the operation name and its normalized params.

    Args:
        operation: Logical operation ("resume", "linkedin", ...).
        **params: Already-normalized call parameters.

    Returns:
        64-char hex fingerprint.
    """
    payload = canonical_json({"op": operation, "params": params})
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def storage_key(namespace: str, fingerprint: str) -> str:
    """Durable-tier key of the form ``<namespace>_<base64(fingerprint)>``.

    URL-safe alphabet without padding so the key is also a valid filename.
    """
    encoded = base64.urlsafe_b64encode(fingerprint.encode("utf-8")).decode("ascii")
    return f"{namespace}_{encoded.rstrip('=')}"
