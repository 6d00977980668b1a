from __future__ import annotations

import hashlib
import json

from prism_core.config import PrismConfig

HASH_LENGTH = 16


def compute_review_hash(diff_content: str, config: PrismConfig) -> str:
    """Short stable id for (diff, model, provider, profile).

    Callers compare it with the hash of their previous review to skip
    re-posting when nothing relevant changed. The payload is compact,
    non-ASCII-escaped JSON with keys in a fixed order.
    """
    payload = json.dumps(
        {
            "diff": diff_content,
            "model": config.model,
            "provider": config.provider,
            "profile": config.profile,
        },
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:HASH_LENGTH]
