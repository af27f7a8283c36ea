import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

import httpx

from ..models import BrandingConfig, CartLineRequest, SelectionState
from ..services.branding_service import BrandingServiceClient
from ..services.storefront_cart import StorefrontCart

logger = logging.getLogger(__name__)

CART_URL = "/cart"
OPTION_PROPERTY = "_branding_option"
FILE_PROPERTY = "_branding_file"
PARENT_KEY_PROPERTY = "_branding_parent_key"
CATEGORY_PROPERTY = "_branding_category"
NOTE_PROPERTY = "_note"
SETUP_FEE_NOTE = "Branding Setup Fee"
UNIT_FEE_NOTE = "Branding Fee"


@dataclass
class MutationResult:
    main_line: dict | None = None
    setup_fee_line: dict | None = None
    unit_fee_line: dict | None = None
    fell_back: bool = False
    navigated_to: str | None = None


def _pairs(form_data: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> list[tuple[str, Any]]:
    if isinstance(form_data, Mapping):
        return list(form_data.items())
    return list(form_data)


def _line_properties(pairs: list[tuple[str, Any]]) -> dict[str, str]:
    props = {}
    for name, value in pairs:
        if name.startswith("properties[") and name.endswith("]"):
            props[name[len("properties["):-1]] = str(value)
    return props


class CartMutator:
    """Adds a branded product to the cart followed by its fee lines, strictly in order."""

    def __init__(
        self,
        cart: StorefrontCart,
        config: BrandingConfig,
        native_submit: Callable[[], Any],
        navigate: Callable[[str], None],
        service: BrandingServiceClient | None = None,
        manages_own_cart: bool = False,
    ):
        self.cart = cart
        self.config = config
        self.native_submit = native_submit
        self.navigate = navigate
        self.service = service
        self.manages_own_cart = manages_own_cart

    def submit_branded_order(self, form_data, selection: SelectionState) -> MutationResult:
        pairs = _pairs(form_data)
        variant_id = next((str(v) for k, v in pairs if k == "id" and str(v).strip()), None)
        if variant_id is None:
            logger.error("Product form has no variant id; using native submission")
            self.native_submit()
            return MutationResult(fell_back=True)

        properties = _line_properties(pairs)
        properties[OPTION_PROPERTY] = selection.option.label
        if selection.is_branded and selection.artwork is not None and self.service is not None:
            uploaded = self.service.upload_artwork(selection.artwork)
            if uploaded is not None:
                properties[FILE_PROPERTY] = uploaded.url

        line = CartLineRequest(id=variant_id, quantity=selection.quantity, properties=properties)
        try:
            main_line = self.cart.add(line)
        except (httpx.HTTPError, ValueError):
            logger.exception("Failed to add branded product %s to cart; using native submission", variant_id)
            self.native_submit()
            return MutationResult(fell_back=True)

        result = self.add_fee_lines(main_line, selection)
        if self.manages_own_cart:
            logger.info("Storefront updates its own cart display; not navigating")
        else:
            self.navigate(CART_URL)
            result.navigated_to = CART_URL
        return result

    def add_fee_lines(self, main_line: dict, selection: SelectionState) -> MutationResult:
        """Setup fee (once per cart) then the per-unit fee for an already added main line."""
        result = MutationResult(main_line=main_line)
        option = selection.option
        if not option.is_branded:
            return result

        if self.config.setup_fee_variant_id:
            try:
                result.setup_fee_line = self._add_setup_fee()
            except (httpx.HTTPError, ValueError):
                logger.exception("Failed to add branding setup fee %s", self.config.setup_fee_variant_id)

        if not option.fee_variant_id:
            logger.warning("No per-unit fee variant configured for branding option %r", option.value)
            return result

        fee_line = CartLineRequest(
            id=option.fee_variant_id,
            quantity=selection.quantity,
            properties={
                NOTE_PROPERTY: UNIT_FEE_NOTE,
                OPTION_PROPERTY: option.label,
                PARENT_KEY_PROPERTY: str(main_line.get("key") or ""),
            },
        )
        try:
            result.unit_fee_line = self.cart.add(fee_line)
        except (httpx.HTTPError, ValueError):
            logger.exception("Failed to add per-unit branding fee %s", option.fee_variant_id)
        return result

    def _by_category(self) -> bool:
        return self.config.fee_scheme == "category" and bool(self.config.category)

    def _is_setup_fee(self, item: dict) -> bool:
        variant = item.get("variant_id") or item.get("id")
        if str(variant) != str(self.config.setup_fee_variant_id):
            return False
        if self._by_category():
            props = item.get("properties") or {}
            return props.get(CATEGORY_PROPERTY) == self.config.category
        return True

    def _add_setup_fee(self) -> dict | None:
        # Read-then-write: two rapid submissions can still both add the fee
        if any(self._is_setup_fee(item) for item in self.cart.items()):
            logger.info("Branding setup fee already in cart")
            return None
        properties = {NOTE_PROPERTY: SETUP_FEE_NOTE}
        if self._by_category():
            properties[CATEGORY_PROPERTY] = self.config.category
        return self.cart.add(CartLineRequest(id=self.config.setup_fee_variant_id, quantity=1, properties=properties))
