import re

from bs4 import BeautifulSoup

from ..models import BrandingOption
from .page import find_price_element

DEFAULT_MONEY_FORMAT = "R{{amount}}"

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

# Shopify money format placeholders: (precision, thousands separator, decimal separator)
_MONEY_STYLES = {
    "amount": (2, ",", "."),
    "amount_no_decimals": (0, ",", "."),
    "amount_with_comma_separator": (2, ".", ","),
    "amount_no_decimals_with_comma_separator": (0, ".", ","),
    "amount_with_apostrophe_separator": (2, "'", "."),
    "amount_with_space_separator": (2, " ", ","),
}


def _delimit(amount: float, precision: int, thousands: str, decimal: str) -> str:
    text = f"{amount:,.{precision}f}"
    whole, _, frac = text.partition(".")
    whole = whole.replace(",", thousands)
    return f"{whole}{decimal}{frac}" if frac else whole


def format_money(amount: float, money_format: str = DEFAULT_MONEY_FORMAT) -> str:
    """Render an amount with a Shopify ``money_format`` string, e.g. ``"R{{amount}}"``."""
    def _sub(match: re.Match) -> str:
        style = _MONEY_STYLES.get(match.group(1), _MONEY_STYLES["amount"])
        return _delimit(amount, *style)

    if not _PLACEHOLDER.search(money_format):
        return _delimit(amount, *_MONEY_STYLES["amount"])
    return _PLACEHOLDER.sub(_sub, money_format)


class PriceReflector:
    """Writes base price plus the selected option's extra into the page's price element."""

    def __init__(self, money_format: str = DEFAULT_MONEY_FORMAT):
        self.money_format = money_format

    @staticmethod
    def unit_price(base_price: float, option: BrandingOption) -> float:
        return round(base_price + option.price, 2)

    def reflect(self, soup: BeautifulSoup, base_price: float, option: BrandingOption) -> str | None:
        el = find_price_element(soup)
        if el is None:
            return None
        text = format_money(self.unit_price(base_price, option), self.money_format)
        el.string = text
        return text
