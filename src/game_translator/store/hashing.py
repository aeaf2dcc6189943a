"""Canonical serialisation and content hashing for translation stores.

The content hash is the only signal used to detect that the remote copy of
a store has drifted from the local one, so it must match, byte for byte,
whatever the remote counterpart computes.

Canonical form
--------------
- Translation keys only (metadata keys dropped) plus ``"_uuid"``.
- Each entry serialised as ``{"t": <letter>, "v": <value>}``.
- Keys sorted by code point at every level.  For UTF-8 this is the same as
  byte-ordinal order, which is what the remote side sorts by.
- No insignificant whitespace, Unicode left unescaped.
- SHA-256 over the UTF-8 bytes, lowercase hex digest.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping

from game_translator.store.entry import Entry, is_metadata_key


def canonicalize(payload: Mapping[str, object]) -> str:
    """Serialise ``payload`` to its canonical JSON string."""
    return json.dumps(
        payload,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
    )


def hash_payload(entries: Mapping[str, Entry], uuid: str) -> dict[str, object]:
    """Build the dict that :func:`compute_content_hash` serialises."""
    payload: dict[str, object] = {
        key: entry.to_json() for key, entry in entries.items() if not is_metadata_key(key)
    }
    payload["_uuid"] = uuid
    return payload


def compute_content_hash(entries: Mapping[str, Entry], uuid: str) -> str:
    """Return the SHA-256 hex digest of the canonical store content.

    Two stores holding the same entries and the same identity hash
    identically regardless of insertion order.
    """
    content = canonicalize(hash_payload(entries, uuid))
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
