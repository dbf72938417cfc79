# tests/test_personalization_resolver.py
from __future__ import annotations

from helpers import hero_block

from blockcms.schemas.personalization import PersonalizationState
from blockcms.services.personalization_service import resolve

HEALTHCARE = PersonalizationState(industry="Healthcare")


def test_no_personalization_returns_defaults():
    block = hero_block()
    assert resolve(block, HEALTHCARE) == block["data"]


def test_disabled_personalization_ignores_variants():
    block = hero_block(variants={"Healthcare": {"title": "For clinics"}})
    block["data"]["personalization"]["enabled"] = False
    assert resolve(block, HEALTHCARE)["title"] == "Default headline"


def test_matching_industry_shallow_merges_variant():
    block = hero_block(variants={"Healthcare": {"title": "For clinics"}})
    out = resolve(block, HEALTHCARE)
    assert out["title"] == "For clinics"
    # keys the variant does not mention keep their defaults
    assert out["subtitle"] == "Default subtitle"


def test_unknown_industry_and_empty_state_fall_back():
    block = hero_block(variants={"Healthcare": {"title": "For clinics"}})
    assert resolve(block, PersonalizationState(industry="Retail"))["title"] == "Default headline"
    assert resolve(block, PersonalizationState())["title"] == "Default headline"
    assert resolve(block, None)["title"] == "Default headline"


def test_empty_variant_is_ignored_but_empty_string_overrides():
    empty = hero_block(variants={"Healthcare": {}})
    assert resolve(empty, HEALTHCARE)["title"] == "Default headline"

    blanked = hero_block(variants={"Healthcare": {"subtitle": ""}})
    assert resolve(blanked, HEALTHCARE)["subtitle"] == ""


def test_resolve_never_mutates_and_tolerates_garbage():
    block = hero_block(variants={"Healthcare": {"title": "For clinics"}})
    resolve(block, HEALTHCARE)
    assert block["data"]["title"] == "Default headline"

    assert resolve({"id": "x", "type": "hero"}, HEALTHCARE) == {}
    assert resolve({"data": {"personalization": "yes"}}, HEALTHCARE) == {"personalization": "yes"}
