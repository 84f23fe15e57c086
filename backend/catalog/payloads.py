"""
Structured draft payloads.

A submission arrives as loosely-typed JSON (image URL lists, variant
blobs).  ``DraftPayload.parse`` turns it into typed values **once**,
collecting every violated constraint into a single
``DomainValidationError`` so the seller can fix them in one round-trip.
The state machine only ever sees a validated ``DraftPayload``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Mapping

from django.conf import settings

from core.constants import MIN_DRAFT_IMAGES, MIN_DRAFT_VARIANTS
from core.domain.exceptions import DomainValidationError


#: Widths of the columns a payload is copied into on approval.
MAX_LENGTHS = {
    "name": 255,
    "short_description": 500,
    "material": 255,
    "country_of_origin": 100,
}
VARIANT_MAX_LENGTHS = {
    "color": 50,
    "size": 50,
    "color_hex": 9,
    "color_name": 100,
    "size_name": 100,
    "image_url": 1000,
}
IMAGE_URL_MAX_LENGTH = 1000
MAX_DIMENSION_CM = Decimal("999999.99")

_LABELS = {
    "name": "Name",
    "short_description": "Short description",
    "material": "Material",
    "country_of_origin": "Country of origin",
    "length_cm": "Length (cm)",
    "width_cm": "Width (cm)",
    "height_cm": "Height (cm)",
}


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _dimension(value: Any) -> Decimal | None:
    number = _to_decimal(value)
    if number is None or not 0 < number <= MAX_DIMENSION_CM:
        return None
    number = number.quantize(Decimal("0.01"), rounding=ROUND_DOWN)
    return number if number > 0 else None


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


@dataclass(frozen=True)
class VariantSpec:
    """One colour/size combination of a submitted product."""

    color: str
    size: str
    sell_price: Decimal
    color_hex: str = ""
    color_name: str = ""
    size_name: str = ""
    image_url: str = ""

    def to_json(self) -> dict[str, Any]:
        data = asdict(self)
        data["sell_price"] = str(self.sell_price)
        return data


@dataclass(frozen=True)
class DraftPayload:
    """The validated content of a draft."""

    name: str
    base_sell_price: Decimal
    images: list[str]
    variants: list[VariantSpec]
    description: str = ""
    short_description: str = ""
    weight_grams: int | None = None
    material: str = ""
    care_instructions: str = ""
    country_of_origin: str = ""
    length_cm: Decimal | None = None
    width_cm: Decimal | None = None
    height_cm: Decimal | None = None
    tags: list[str] = field(default_factory=list)

    #: Keys a client may send; anything else is ignored.
    FIELDS = (
        "name", "base_sell_price", "images", "variants", "description",
        "short_description", "weight_grams", "material",
        "care_instructions", "country_of_origin", "length_cm",
        "width_cm", "height_cm", "tags",
    )

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "DraftPayload":
        """
        Validate ``data`` and build a payload.

        Raises:
            DomainValidationError: listing every violated constraint.
        """
        min_images = getattr(settings, "CATALOG_MIN_DRAFT_IMAGES", MIN_DRAFT_IMAGES)
        min_variants = getattr(settings, "CATALOG_MIN_DRAFT_VARIANTS", MIN_DRAFT_VARIANTS)
        errors: list[str] = []

        name = _text(data.get("name"))
        if not name:
            errors.append("Name is required")
        for key, limit in MAX_LENGTHS.items():
            if len(_text(data.get(key))) > limit:
                errors.append(f"{_LABELS[key]} must be at most {limit} characters")

        base_price = _to_decimal(data.get("base_sell_price"))
        if base_price is None or base_price <= 0:
            errors.append("Base sell price must be greater than 0")

        raw_images = data.get("images") or []
        if not isinstance(raw_images, (list, tuple)):
            raw_images = []
        images = [url.strip() for url in raw_images if isinstance(url, str) and url.strip()]
        if len(images) != len(raw_images):
            errors.append("Every image must be a non-empty URL")
        if any(len(url) > IMAGE_URL_MAX_LENGTH for url in images):
            errors.append(f"Image URLs must be at most {IMAGE_URL_MAX_LENGTH} characters")
        if len(images) < min_images:
            errors.append(f"At least {min_images} images are required")

        raw_variants = data.get("variants") or []
        if not isinstance(raw_variants, (list, tuple)):
            raw_variants = []
        if len(raw_variants) < min_variants:
            noun = "variant is" if min_variants == 1 else "variants are"
            errors.append(f"At least {min_variants} {noun} required")

        variants: list[VariantSpec] = []
        for index, raw in enumerate(raw_variants, start=1):
            if not isinstance(raw, Mapping):
                errors.append(f"Variant {index} must be an object")
                continue
            color = _text(raw.get("color"))
            size = _text(raw.get("size"))
            price = _to_decimal(raw.get("sell_price"))
            if not color:
                errors.append(f"Variant {index}: color is required")
            if not size:
                errors.append(f"Variant {index}: size is required")
            if price is None or price <= 0:
                errors.append(f"Variant {index}: sell price must be greater than 0")
            too_long = [
                key for key, limit in VARIANT_MAX_LENGTHS.items()
                if len(_text(raw.get(key))) > limit
            ]
            for key in too_long:
                errors.append(
                    f"Variant {index}: {key.replace('_', ' ')} must be at most "
                    f"{VARIANT_MAX_LENGTHS[key]} characters"
                )
            if color and size and price is not None and price > 0 and not too_long:
                variants.append(VariantSpec(
                    color=color,
                    size=size,
                    sell_price=price,
                    color_hex=_text(raw.get("color_hex")),
                    color_name=_text(raw.get("color_name")),
                    size_name=_text(raw.get("size_name")),
                    image_url=_text(raw.get("image_url")),
                ))

        combos = [(v.color.lower(), v.size.lower()) for v in variants]
        if len(set(combos)) != len(combos):
            errors.append("Variants must have unique color/size combinations")

        weight = data.get("weight_grams")
        if weight is not None and (isinstance(weight, bool) or not isinstance(weight, int) or weight < 0):
            errors.append("Weight must be a non-negative whole number of grams")
            weight = None

        dimensions: dict[str, Decimal | None] = {}
        for key in ("length_cm", "width_cm", "height_cm"):
            dimensions[key] = _dimension(data.get(key))
            if data.get(key) is not None and dimensions[key] is None:
                errors.append(
                    f"{_LABELS[key]} must be greater than 0 and at most {MAX_DIMENSION_CM}"
                )

        tags = data.get("tags") or []
        if not isinstance(tags, (list, tuple)) or not all(isinstance(t, str) for t in tags):
            errors.append("Tags must be a list of strings")
            tags = []

        if errors:
            raise DomainValidationError(errors)

        return cls(
            name=name,
            base_sell_price=base_price,
            images=images,
            variants=variants,
            description=_text(data.get("description")),
            short_description=_text(data.get("short_description")),
            weight_grams=weight,
            material=_text(data.get("material")),
            care_instructions=_text(data.get("care_instructions")),
            country_of_origin=_text(data.get("country_of_origin")),
            **dimensions,
            tags=[t.strip() for t in tags if t.strip()],
        )

    @classmethod
    def from_draft(cls, draft) -> dict[str, Any]:
        """Return the stored payload of ``draft`` as raw input data."""
        return {name: getattr(draft, name) for name in cls.FIELDS}

    def model_fields(self) -> dict[str, Any]:
        """Field values ready to assign onto a ``ProductDraft``."""
        return {
            "name": self.name,
            "base_sell_price": self.base_sell_price,
            "images": list(self.images),
            "variants": [v.to_json() for v in self.variants],
            "description": self.description,
            "short_description": self.short_description,
            "weight_grams": self.weight_grams,
            "material": self.material,
            "care_instructions": self.care_instructions,
            "country_of_origin": self.country_of_origin,
            "length_cm": self.length_cm,
            "width_cm": self.width_cm,
            "height_cm": self.height_cm,
            "tags": list(self.tags),
        }
