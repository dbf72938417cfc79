# tests/helpers.py
from __future__ import annotations

from typing import Any, Dict

ADMIN_EMAIL = "editor@acme.io"
ADMIN_PASSWORD = "Sup3rSecret"


def hero_block(block_id: str = "hero-1", order: int = 0, variants: Dict[str, Any] | None = None, **data: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"title": "Default headline", "subtitle": "Default subtitle"}
    payload.update(data)
    if variants is not None:
        payload["personalization"] = {"enabled": True, "industryVariants": variants}
    return {"id": block_id, "type": "hero", "order": order, "data": payload}


def callout_block(block_id: str, order: int = 0, content: str = "<p>Note</p>") -> Dict[str, Any]:
    return {"id": block_id, "type": "callout", "order": order, "data": {"title": block_id, "content": content}}


def steps_block(block_id: str = "steps-1", order: int = 0, structured: bool = True) -> Dict[str, Any]:
    return {
        "id": block_id,
        "type": "steps",
        "order": order,
        "data": {
            "heading": "How it works",
            "structuredData": structured,
            "steps": [
                {"title": "Audit", "description": "Look at the data"},
                {"title": "Test", "description": "Ship experiments"},
            ],
        },
    }
