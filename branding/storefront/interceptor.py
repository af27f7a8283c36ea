import logging
import re
from dataclasses import dataclass
from typing import Callable

import httpx
from bs4 import Tag

from .cart_mutator import CartMutator, MutationResult
from .dispatcher import DispatchedCall, OutboundDispatcher
from .injector import FormState
from .page import form_fields

logger = logging.getLogger(__name__)

CART_ADD_PATTERN = re.compile(r"/cart/add(\.js)?/?$")
INTERCEPTION_MODES = ("form-events", "network", "both")


@dataclass
class SubmitEvent:
    type: str = "submit"
    default_prevented: bool = False

    def prevent_default(self):
        self.default_prevented = True


def form_payload(pairs: list[tuple[str, str]]) -> dict[str, str | list[str]]:
    """Form pairs as an httpx ``data`` mapping; repeated names become lists."""
    data: dict[str, str | list[str]] = {}
    for name, value in pairs:
        if name in data:
            prev = data[name]
            data[name] = (prev if isinstance(prev, list) else [prev]) + [value]
        else:
            data[name] = value
    return data


class NativeSubmitter:
    """Sends the product form to its action the way the browser would without us."""

    def __init__(self, dispatcher: OutboundDispatcher, form: Tag, self_originated: bool = False):
        self.dispatcher = dispatcher
        self.form = form
        self.self_originated = self_originated

    def __call__(self) -> httpx.Response:
        action = self.form.get("action") or "/cart/add"
        method = (self.form.get("method") or "post").upper()
        data = form_payload(form_fields(self.form))
        if method == "GET":
            return self.dispatcher.request(method, action, params=data, self_originated=self.self_originated)
        return self.dispatcher.request(method, action, data=data, self_originated=self.self_originated)


class FormInterceptor:
    """Takes over submit and add-to-cart clicks while a branding option is selected."""

    def __init__(self, state: FormState, on_branded_submit: Callable[[], MutationResult]):
        self.state = state
        self.on_branded_submit = on_branded_submit

    def on_submit(self, event: SubmitEvent) -> MutationResult | None:
        if not self.state.selection.is_branded:
            return None
        event.prevent_default()
        return self.on_branded_submit()

    def on_add_to_cart_click(self, event: SubmitEvent) -> MutationResult | None:
        return self.on_submit(event)


class CartAddObserver:
    """Adds fee lines after cart additions the theme made on its own."""

    def __init__(self, state: FormState, mutator: CartMutator):
        self.state = state
        self.mutator = mutator

    def matches(self, call: DispatchedCall) -> bool:
        return (
            call.request.method == "POST"
            and CART_ADD_PATTERN.search(call.request.url.path) is not None
            and call.response.is_success
        )

    def _main_line(self, response: httpx.Response) -> dict | None:
        try:
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        if "items" not in data:
            return data if data.get("key") else None
        items = [i for i in (data.get("items") or []) if isinstance(i, dict)]
        for item in items:
            if str(item.get("product_id")) == self.state.config.product_id:
                return item
        return items[0] if items else None

    def __call__(self, call: DispatchedCall):
        if not self.matches(call) or not self.state.selection.is_branded:
            return
        main_line = self._main_line(call.response)
        if main_line is None:
            logger.warning("Cart add response has no line item; branding fees not added")
            return
        logger.info("Theme added %s to cart; adding branding fees", main_line.get("key"))
        self.mutator.add_fee_lines(main_line, self.state.selection)
