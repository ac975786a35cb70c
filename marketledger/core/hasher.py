"""Hashing for the notification log's tamper-evident chain.

Each log entry is sealed with the SHA-256 of its canonical JSON form, which
includes the previous entry's seal.  ``verify_chain`` recomputes the seals
from the stored payloads, so the encoding here must never change for an
existing ledger.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Encode *obj* so that equal notifications always produce equal bytes.

    Keys are sorted, separators carry no whitespace, and non-ASCII text is
    escaped.  Amounts stay JSON integers of any size.
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def compute_entry_hash(entry_dict: dict[str, Any]) -> str:
    """Seal a log entry: sequence, event payload and previous seal.

    An ``entry_hash`` key, if present, is ignored so a stored row can be
    re-hashed as-is.
    """
    fields = {k: v for k, v in entry_dict.items() if k != "entry_hash"}
    return sha256_hex(canonical_json_bytes(fields))
