# blockcms/web/templating.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from fastapi.templating import Jinja2Templates
from markupsafe import Markup

from blockcms.core.settings import settings
from blockcms.utils.html import safe_image_url, safe_url

PACKAGE_DIR = Path(__file__).resolve().parent.parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"


def json_ld(value: Any) -> Markup:
    """Serialize a JSON-LD fragment for a <script> tag (no '</' breakout)."""
    raw = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return Markup(raw.replace("</", "<\\/"))


templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["json_ld"] = json_ld
templates.env.filters["safe_url"] = safe_url
templates.env.filters["safe_image_url"] = safe_image_url
templates.env.globals["site_name"] = settings.SITE_NAME
templates.env.globals["site_url"] = settings.SITE_BASE
