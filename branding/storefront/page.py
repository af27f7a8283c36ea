"""Reading a storefront product page: product JSON, the product form, price and cart elements."""
import json
import logging
from typing import Any

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

# Tried in order; the first match is the product form
PRODUCT_FORM_SELECTORS = (
    "form[data-branding-form]",
    "form[data-product-form]",
    "form#product-form",
    "form[id^='product-form']",
    "form.product-form",
    "form.product-single__form",
    "form[action^='/cart/add']",
    "form[action^='/cart']",
)
PRICE_SELECTORS = "[data-product-price], .product__price, .price__regular, .price-item"
CART_DRAWER_SELECTORS = "cart-drawer, cart-notification, [data-cart-drawer]"
SKIPPED_INPUT_TYPES = {"file", "submit", "button", "image", "reset"}


def parse_page(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def _is_product(obj: Any) -> bool:
    return isinstance(obj, dict) and bool(obj.get("id")) and "variants" in obj


def get_product_data(soup: BeautifulSoup) -> dict | None:
    """Find the product JSON themes embed in the page."""
    tagged = soup.select_one("script[data-product]")
    if tagged is not None:
        try:
            return json.loads(tagged.get_text().strip())
        except ValueError as e:
            logger.warning("Failed to parse product JSON from data-product: %s", e)

    for script in soup.select('script[type="application/json"]'):
        try:
            data = json.loads(script.get_text().strip())
        except ValueError:
            continue
        if _is_product(data):
            return data
    return None


def find_product_form(soup: BeautifulSoup) -> Tag | None:
    for selector in PRODUCT_FORM_SELECTORS:
        form = soup.select_one(selector)
        if form is not None:
            return form
    return None


def selected_variant(product: dict, form: Tag | None = None) -> dict | None:
    variants = product.get("variants") or []
    chosen = product.get("selected_or_first_available_variant")
    if isinstance(chosen, dict) and chosen.get("id"):
        return chosen

    if form is not None:
        id_input = form.select_one('[name="id"]')
        if id_input is not None:
            if id_input.name == "select":
                opt = id_input.select_one("option[selected]") or id_input.select_one("option")
                wanted = opt.get("value") if opt is not None else None
            else:
                wanted = id_input.get("value")
            for v in variants:
                if str(v.get("id")) == str(wanted):
                    return v
            if wanted:
                return {"id": wanted}
    return variants[0] if variants else None


def base_unit_price(product: dict, variant: dict | None = None) -> float:
    """Unit price in store currency; product JSON prices are in cents."""
    cents = None
    if variant is not None:
        cents = variant.get("price")
    if cents is None:
        cents = product.get("price")
    if cents is None and product.get("variants"):
        cents = product["variants"][0].get("price")
    try:
        return int(cents) / 100
    except (TypeError, ValueError):
        return 0.0


def find_price_element(soup: BeautifulSoup) -> Tag | None:
    return soup.select_one(PRICE_SELECTORS)


def manages_own_cart(soup: BeautifulSoup) -> bool:
    """Themes with a cart drawer or notification refresh the cart themselves."""
    return soup.select_one(CART_DRAWER_SELECTORS) is not None


def form_fields(form: Tag) -> list[tuple[str, str]]:
    """The name/value pairs a browser would submit for this form."""
    fields = []
    for el in form.select("input, select, textarea"):
        name = el.get("name")
        if not name or el.has_attr("disabled"):
            continue
        if el.name == "input":
            kind = (el.get("type") or "text").lower()
            if kind in SKIPPED_INPUT_TYPES:
                continue
            if kind in ("checkbox", "radio") and not el.has_attr("checked"):
                continue
            fields.append((name, el.get("value", "on" if kind in ("checkbox", "radio") else "")))
        elif el.name == "select":
            opt = el.select_one("option[selected]") or el.select_one("option")
            if opt is not None:
                fields.append((name, opt.get("value", opt.get_text())))
        else:
            fields.append((name, el.get_text()))
    return fields
