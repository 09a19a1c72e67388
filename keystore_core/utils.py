"""
keystore_core.utils
-------------------
Small helpers shared by the storage bindings: base64 codecs for opaque key
material, canonical JSON, and deadline arithmetic for per-call timeouts.
"""

from __future__ import annotations
import base64, json, time
from typing import Any, Dict, Optional


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    # strict: non-alphabet characters raise binascii.Error
    return base64.b64decode(s.encode("ascii"), validate=True)


def canonical_json(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def deadline_after(timeout: Optional[float]) -> Optional[float]:
    """Absolute monotonic deadline for a relative timeout (None = no deadline)."""
    if timeout is None:
        return None
    return time.monotonic() + timeout


def deadline_passed(deadline: Optional[float]) -> bool:
    return deadline is not None and time.monotonic() >= deadline
