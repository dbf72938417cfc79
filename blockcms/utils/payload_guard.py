# blockcms/utils/payload_guard.py
from __future__ import annotations

import json
from typing import Any

from fastapi import HTTPException

from blockcms.core.settings import settings


def payload_kb(value: Any) -> float:
    # compact JSON to measure the stored size
    raw = json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    return len(raw) / 1024.0


def enforce_blocks_size(blocks: Any) -> None:
    """
    Caps the serialized size of a record's ``content_blocks``.
    Raises HTTP 413 on overflow, 400 if the value is not JSON-serializable.
    """
    limit_kb = float(settings.MAX_CONTENT_BLOCKS_KB or 0)
    if limit_kb <= 0 or blocks is None:
        return
    try:
        kb = payload_kb(blocks)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="Invalid JSON in content_blocks")
    if kb > limit_kb:
        raise HTTPException(
            status_code=413,
            detail=f"Payload too large: content_blocks is {kb:.1f}KB, limit is {limit_kb:.0f}KB",
        )
