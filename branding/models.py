from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

NO_BRANDING_VALUE = "none"
NO_BRANDING_LABEL = "No branding"


def parse_quantity(value: Any) -> int:
    """Parse a quantity field; anything absent, unparsable or below 1 becomes 1."""
    try:
        qty = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    return qty if qty >= 1 else 1


def variant_ref(value: Any) -> int | str:
    """Cart API accepts numeric variant ids; keep anything else untouched."""
    s = str(value).strip()
    return int(s) if s.isdigit() else s


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclass(frozen=True)
class BrandingOption:
    label: str
    value: str
    price: float = 0.0
    fee_variant_id: str | None = None

    @property
    def is_branded(self) -> bool:
        return self.value != NO_BRANDING_VALUE

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BrandingOption":
        try:
            price = float(data.get("price") or 0)
        except (TypeError, ValueError):
            price = 0.0
        value = str(data.get("value") or "").strip() or NO_BRANDING_VALUE
        return cls(
            label=str(data.get("label") or value),
            value=value,
            price=price,
            fee_variant_id=_optional_str(data.get("feeVariantId")),
        )

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "value": self.value,
            "price": self.price,
            "feeVariantId": self.fee_variant_id,
        }


NO_BRANDING = BrandingOption(label=NO_BRANDING_LABEL, value=NO_BRANDING_VALUE)


@dataclass(frozen=True)
class BrandingConfig:
    """Branding options and fee references for one product, fixed for a page view."""

    product_id: str
    options: tuple[BrandingOption, ...]
    setup_fee_variant_id: str | None = None
    category: str | None = None
    fee_scheme: str = "product"

    @classmethod
    def from_dict(
        cls,
        product_id: str,
        data: Mapping[str, Any],
        setup_fee_variant_id: str | None = None,
    ) -> "BrandingConfig":
        options = [BrandingOption.from_dict(o) for o in (data.get("options") or []) if isinstance(o, Mapping)]
        # The first entry always stands for "no branding"
        if not options or options[0].value != NO_BRANDING_VALUE:
            options = [NO_BRANDING] + [o for o in options if o.value != NO_BRANDING_VALUE]
        fee = setup_fee_variant_id
        if fee is None:
            fee = data.get("setupFeeVariantId") or data.get("feeProductVariantId")
        return cls(
            product_id=str(product_id),
            options=tuple(options),
            setup_fee_variant_id=_optional_str(fee),
            category=_optional_str(data.get("category")),
            fee_scheme=str(data.get("feeScheme") or "product"),
        )

    def option(self, value: str | None) -> BrandingOption | None:
        for opt in self.options:
            if opt.value == value:
                return opt
        return None

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "options": [o.to_dict() for o in self.options],
            "setupFeeVariantId": self.setup_fee_variant_id,
            "category": self.category,
            "feeScheme": self.fee_scheme,
        }


@dataclass(frozen=True)
class CartLineRequest:
    id: int | str
    quantity: int = 1
    properties: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "id", variant_ref(self.id))
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    def to_payload(self) -> dict:
        return {"id": self.id, "quantity": self.quantity, "properties": dict(self.properties)}


@dataclass(frozen=True)
class UploadResult:
    url: str


@dataclass(frozen=True)
class ArtworkFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class SelectionState:
    option: BrandingOption = NO_BRANDING
    quantity: int = 1
    artwork: ArtworkFile | None = None

    @property
    def is_branded(self) -> bool:
        return self.option.is_branded
