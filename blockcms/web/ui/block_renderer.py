# blockcms/web/ui/block_renderer.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from markupsafe import Markup
from pydantic import ValidationError

from blockcms.schemas.blocks import (
    CalloutData,
    ContactFormData,
    StepsData,
    TwoColumnData,
    parse_block_data,
)
from blockcms.schemas.personalization import PersonalizationState
from blockcms.services.personalization_service import resolve
from blockcms.utils.html import clean_html, safe_image_url
from blockcms.web.templating import templates

logger = logging.getLogger(__name__)

# ===================== Output models =====================

@dataclass
class RenderedBlock:
    id: str
    type: str
    html: Markup
    full_width: bool
    data: Dict[str, Any]      # effective (personalized) data, as stored


@dataclass
class RenderResult:
    nodes: List[RenderedBlock] = field(default_factory=list)
    structured_data: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ids(self) -> List[str]:
        return [n.id for n in self.nodes]


# Blocks that draw their own full-bleed background
FULL_WIDTH_TYPES = frozenset({"two_column", "cta_banner"})

# Presenter: (block id, parsed data) -> (extra template context, structured data or None)
Presenter = Callable[[str, Any], Tuple[Dict[str, Any], Optional[Dict[str, Any]]]]


# ===================== Presenters =====================

def _plain(block_id: str, data: Any):
    return {}, None


def _present_steps(block_id: str, data: StepsData):
    if not data.structured_data:
        return {}, None
    howto: Dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": "HowTo",
        "name": data.heading or "",
        "step": [
            {
                "@type": "HowToStep",
                "position": i,
                "name": s.title,
                "text": s.description,
            }
            for i, s in enumerate(data.steps, start=1)
        ],
    }
    if data.subheading:
        howto["description"] = data.subheading
    return {}, howto


def _present_callout(block_id: str, data: CalloutData):
    return {"body": clean_html(data.content)}, None


def _present_contact_form(block_id: str, data: ContactFormData):
    return {"headline": data.headline or data.subheading}, None


def _column_html(col) -> Markup:
    if col.type == "image":
        src = safe_image_url(col.content)
        if not src:
            return Markup("")
        return Markup('<img src="{}" alt="" loading="lazy">').format(src)
    return clean_html(col.content)


def _present_two_column(block_id: str, data: TwoColumnData):
    return {"left": _column_html(data.left_column), "right": _column_html(data.right_column)}, None


_PRESENTERS: Dict[str, Presenter] = {
    "hero": _plain,
    "feature_grid": _plain,
    "trust_cards": _plain,
    "steps": _present_steps,
    "cta_banner": _plain,
    "callout": _present_callout,
    "logo_grid": _plain,
    "contact_form": _present_contact_form,
    "two_column": _present_two_column,
    "martech_integrations": _plain,
}


# ===================== Render =====================

def _order_key(block: Mapping[str, Any]) -> int:
    order = block.get("order")
    if isinstance(order, bool) or not isinstance(order, (int, float)):
        return 0
    return int(order)


def render_blocks(
    blocks: Sequence[Mapping[str, Any]],
    state: PersonalizationState | None = None,
) -> RenderResult:
    """
    Render a page's blocks in ``order`` (stable for ties). Unknown types and
    blocks whose effective data does not validate are logged and skipped.
    """
    result = RenderResult()
    for block in sorted(blocks, key=_order_key):
        block_type = block.get("type")
        block_id = str(block.get("id") or "")

        presenter = _PRESENTERS.get(block_type)
        if presenter is None:
            logger.warning("Skipping block %r: unknown type %r", block_id, block_type)
            continue

        effective = resolve(block, state)
        try:
            parsed = parse_block_data(block_type, effective)
        except ValidationError as exc:
            logger.warning(
                "Skipping %s block %r: invalid data (%d errors)", block_type, block_id, exc.error_count()
            )
            continue

        extra, structured = presenter(block_id, parsed)
        html = templates.get_template(f"blocks/{block_type}.html").render(
            block_id=block_id, d=parsed, **extra
        )
        result.nodes.append(
            RenderedBlock(
                id=block_id,
                type=block_type,
                html=Markup(html),
                full_width=block_type in FULL_WIDTH_TYPES,
                data=effective,
            )
        )
        if structured:
            result.structured_data.append(structured)
    return result
