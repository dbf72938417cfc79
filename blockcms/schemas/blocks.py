# blockcms/schemas/blocks.py
"""
Content block model.

A page body is an ordered list of blocks ``{"id", "type", "order", "data"}``.
``type`` is the discriminator of a closed set of ten variants; each variant
has its own ``data`` payload model below. ``data.personalization`` may carry
per-industry partial payloads that are shallow-merged over ``data`` at render
time (see ``blockcms.services.personalization_service``).

Two entry points:
  * ``validate_blocks``   strict, used when an editor saves a record.
  * ``coerce_block_list`` lenient, used when rendering stored data.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ===================== Personalization =====================

class PersonalizationSpec(_Payload):
    enabled: bool = False
    industry_variants: Dict[str, Any] = Field(default_factory=dict, alias="industryVariants")


class _BlockData(_Payload):
    personalization: Optional[PersonalizationSpec] = None


# ===================== Shared items =====================

class Button(_Payload):
    text: str
    href: str
    variant: Literal["primary", "secondary"] = "primary"


class LinkButton(_Payload):
    text: str
    href: str


class TitledItem(_Payload):
    title: str
    description: str = ""


class ColoredItem(TitledItem):
    color: Optional[str] = None


class Feature(TitledItem):
    icon: Optional[str] = None


class Logo(_Payload):
    name: str
    color: Optional[str] = None


class Integration(Logo):
    font_size: Optional[str] = Field(default=None, alias="fontSize")


class Column(_Payload):
    type: Literal["text", "image", "custom"] = "text"
    content: str = ""


class FormConfig(_Payload):
    name_field: bool = Field(default=True, alias="nameField")
    email_field: bool = Field(default=True, alias="emailField")
    message_field: bool = Field(default=True, alias="messageField")
    submit_text: str = Field(default="Send Message", alias="submitText")
    success_message: str = Field(
        default="Thanks for reaching out! We'll get back to you soon.", alias="successMessage"
    )
    error_message: str = Field(
        default="Something went wrong. Please try again.", alias="errorMessage"
    )


# ===================== Payloads per type =====================

class HeroData(_BlockData):
    title: str
    subtitle: Optional[str] = None
    buttons: List[Button] = Field(default_factory=list)
    alignment: Literal["left", "center", "right"] = "center"


class FeatureGridData(_BlockData):
    heading: Optional[str] = None
    features: List[Feature] = Field(default_factory=list)


class TrustCardsData(_BlockData):
    heading: Optional[str] = None
    cards: List[ColoredItem] = Field(default_factory=list)


class StepsData(_BlockData):
    heading: Optional[str] = None
    subheading: Optional[str] = None
    steps: List[ColoredItem] = Field(default_factory=list)
    structured_data: bool = Field(default=False, alias="structuredData")


class CtaBannerData(_BlockData):
    heading: str
    description: Optional[str] = None
    button: Optional[LinkButton] = None
    gradient: Optional[str] = None


class CalloutData(_BlockData):
    icon: Optional[str] = None
    title: Optional[str] = None
    content: str = ""  # HTML
    variant: Literal["info", "warning", "success", "error"] = "info"
    color: Optional[str] = None


class LogoGridData(_BlockData):
    heading: Optional[str] = None
    subheading: Optional[str] = None
    logos: List[Logo] = Field(default_factory=list)
    columns: int = Field(default=4, ge=2, le=5)


class ContactFormData(_BlockData):
    heading: Optional[str] = None
    subheading: Optional[str] = None
    headline: Optional[str] = None  # set by industry variants
    reasons: List[TitledItem] = Field(default_factory=list)
    form_config: FormConfig = Field(default_factory=FormConfig, alias="formConfig")


class TwoColumnData(_BlockData):
    left_column: Column = Field(default_factory=Column, alias="leftColumn")
    right_column: Column = Field(default_factory=Column, alias="rightColumn")
    variant: Literal["equal", "left-heavy", "right-heavy"] = "equal"
    background: Optional[str] = None


class MartechIntegrationsData(_BlockData):
    heading: Optional[str] = None
    subheading: Optional[str] = None
    integrations: List[Integration] = Field(default_factory=list)
    columns: int = Field(default=4, ge=2, le=6)


BLOCK_DATA_MODELS: Dict[str, type[_BlockData]] = {
    "hero": HeroData,
    "feature_grid": FeatureGridData,
    "trust_cards": TrustCardsData,
    "steps": StepsData,
    "cta_banner": CtaBannerData,
    "callout": CalloutData,
    "logo_grid": LogoGridData,
    "contact_form": ContactFormData,
    "two_column": TwoColumnData,
    "martech_integrations": MartechIntegrationsData,
}

BLOCK_TYPES = tuple(BLOCK_DATA_MODELS)


# ===================== Blocks (tagged union) =====================

class _Block(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1, max_length=128)
    order: int = 0


class HeroBlock(_Block):
    type: Literal["hero"]
    data: HeroData


class FeatureGridBlock(_Block):
    type: Literal["feature_grid"]
    data: FeatureGridData


class TrustCardsBlock(_Block):
    type: Literal["trust_cards"]
    data: TrustCardsData


class StepsBlock(_Block):
    type: Literal["steps"]
    data: StepsData


class CtaBannerBlock(_Block):
    type: Literal["cta_banner"]
    data: CtaBannerData


class CalloutBlock(_Block):
    type: Literal["callout"]
    data: CalloutData


class LogoGridBlock(_Block):
    type: Literal["logo_grid"]
    data: LogoGridData


class ContactFormBlock(_Block):
    type: Literal["contact_form"]
    data: ContactFormData


class TwoColumnBlock(_Block):
    type: Literal["two_column"]
    data: TwoColumnData


class MartechIntegrationsBlock(_Block):
    type: Literal["martech_integrations"]
    data: MartechIntegrationsData


ContentBlock = Annotated[
    Union[
        HeroBlock,
        FeatureGridBlock,
        TrustCardsBlock,
        StepsBlock,
        CtaBannerBlock,
        CalloutBlock,
        LogoGridBlock,
        ContactFormBlock,
        TwoColumnBlock,
        MartechIntegrationsBlock,
    ],
    Field(discriminator="type"),
]

_block_adapter: TypeAdapter = TypeAdapter(ContentBlock)


class BlockValidationError(ValueError):
    pass


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


def validate_blocks(raw: Any) -> List[Dict[str, Any]]:
    """
    Strict validation for editor input. Returns ``raw`` itself (not the parsed
    models) so the stored array is exactly what the editor submitted.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise BlockValidationError("content_blocks must be a list")

    seen: set[str] = set()
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise BlockValidationError(f"content_blocks[{index}] must be an object")
        try:
            block = _block_adapter.validate_python(item)
        except ValidationError as exc:
            raise BlockValidationError(f"content_blocks[{index}] {_first_error(exc)}") from exc
        if block.id in seen:
            raise BlockValidationError(f"content_blocks[{index}] duplicate block id '{block.id}'")
        seen.add(block.id)
    return raw


def coerce_block_list(raw: Any) -> List[Dict[str, Any]]:
    """Render-time normalization: anything malformed yields an empty list."""
    if not isinstance(raw, list):
        return []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("type"), str):
            return []
    return raw


def parse_block_data(block_type: str, data: Dict[str, Any]) -> Optional[_BlockData]:
    """Validate effective (already personalized) data for one block. None if unknown type."""
    model = BLOCK_DATA_MODELS.get(block_type)
    if model is None:
        return None
    return model.model_validate(data)
