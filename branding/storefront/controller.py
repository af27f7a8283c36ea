import logging
from functools import partial
from typing import Any, Mapping

import httpx

from ..models import ArtworkFile, BrandingConfig
from ..services.branding_service import BrandingServiceClient
from ..services.storefront_cart import StorefrontCart
from .cart_mutator import CartMutator, MutationResult
from .dispatcher import OutboundDispatcher
from .injector import FormState, UIInjector
from .interceptor import INTERCEPTION_MODES, CartAddObserver, FormInterceptor, NativeSubmitter, SubmitEvent
from .page import (
    base_unit_price,
    find_product_form,
    form_fields,
    get_product_data,
    manages_own_cart,
    parse_page,
    selected_variant,
)
from .pricing import DEFAULT_MONEY_FORMAT, PriceReflector

logger = logging.getLogger(__name__)


class PageController:
    """One storefront product page with branding wired in.

    Owns the page document, the outbound dispatcher every call goes through and
    the state of the product form it injected into.
    """

    def __init__(
        self,
        html: str,
        *,
        storefront_url: str = "",
        service_url: str = "",
        interception: str = "form-events",
        money_format: str = DEFAULT_MONEY_FORMAT,
        skip_cart_redirect: bool = False,
        dispatcher: OutboundDispatcher | None = None,
    ):
        if interception not in INTERCEPTION_MODES:
            raise ValueError(f"interception must be one of {INTERCEPTION_MODES}")
        self.soup = parse_page(html)
        self.dispatcher = dispatcher or OutboundDispatcher(base_url=storefront_url)
        self.service = BrandingServiceClient(service_url, self.dispatcher)
        self.cart = StorefrontCart(self.dispatcher)
        self.interception = interception
        self.skip_cart_redirect = skip_cart_redirect
        self.injector = UIInjector(money_format)
        self.reflector = PriceReflector(money_format)

        self.location: str | None = None
        self.product: dict | None = None
        self.state: FormState | None = None
        self.mutator: CartMutator | None = None
        self.interceptor: FormInterceptor | None = None
        self.observer: CartAddObserver | None = None

    @classmethod
    def from_config(cls, html: str, config: Mapping[str, Any], **kwargs) -> "PageController":
        kwargs.setdefault("interception", config.get("INTERCEPTION", "form-events"))
        kwargs.setdefault("money_format", config.get("MONEY_FORMAT", DEFAULT_MONEY_FORMAT))
        kwargs.setdefault("skip_cart_redirect", bool(config.get("SKIP_CART_REDIRECT")))
        return cls(html, **kwargs)

    def init(self) -> FormState | None:
        """Look up the page's product and inject branding; None leaves the page untouched."""
        product = get_product_data(self.soup)
        if not product or not product.get("id"):
            return None
        config = self.service.fetch_options(str(product["id"]), category=product.get("type"))
        if config is None:
            return None
        return self.attach(product, config)

    def attach(self, product: dict, config: BrandingConfig) -> FormState | None:
        form = find_product_form(self.soup)
        if form is None:
            logger.info("No product form found; branding disabled")
            return None

        state = self.injector.inject(self.soup, form, config)
        if state is self.state:
            return state

        self.product = product
        self.state = state
        self.mutator = CartMutator(
            self.cart,
            config,
            native_submit=partial(self._native_submit, self_originated=True),
            navigate=self.navigate,
            service=self.service,
            manages_own_cart=self.skip_cart_redirect or manages_own_cart(self.soup),
        )
        if self.interception in ("form-events", "both"):
            self.interceptor = FormInterceptor(state, self._submit_branded)
        if self.interception in ("network", "both"):
            self.observer = CartAddObserver(state, self.mutator)
            self.dispatcher.add_observer(self.observer)
        self.reflect_price()
        return state

    def navigate(self, url: str):
        logger.info("Navigating to %s", url)
        self.location = url

    def reflect_price(self) -> str | None:
        if self.state is None or self.product is None:
            return None
        variant = selected_variant(self.product, self.state.form)
        return self.reflector.reflect(self.soup, base_unit_price(self.product, variant), self.state.selection.option)

    def select_option(self, value: str):
        self.state.choose(value)
        self.reflect_price()

    def set_quantity(self, value):
        self.state.set_quantity(value)
        self.reflect_price()

    def attach_artwork(self, artwork: ArtworkFile | None):
        self.state.attach_artwork(artwork)

    def _submit_branded(self) -> MutationResult:
        pairs = form_fields(self.state.form)
        if not any(name == "id" for name, _ in pairs):
            variant = selected_variant(self.product, self.state.form)
            if variant is not None:
                pairs.append(("id", str(variant["id"])))
        return self.mutator.submit_branded_order(pairs, self.state.selection)

    def _dispatch(self, event: SubmitEvent) -> MutationResult | None:
        if self.interceptor is not None:
            if event.type == "click":
                result = self.interceptor.on_add_to_cart_click(event)
            else:
                result = self.interceptor.on_submit(event)
            if event.default_prevented:
                return result
        self._native_submit()
        return None

    def submit(self) -> MutationResult | None:
        """The product form is being submitted."""
        return self._dispatch(SubmitEvent("submit"))

    def click_add_to_cart(self) -> MutationResult | None:
        return self._dispatch(SubmitEvent("click"))

    def _native_submit(self, self_originated: bool = False) -> httpx.Response | None:
        form = self.state.form if self.state is not None else find_product_form(self.soup)
        if form is None:
            return None
        try:
            response = NativeSubmitter(self.dispatcher, form, self_originated=self_originated)()
        except httpx.HTTPError:
            logger.exception("Native product form submission failed")
            return None
        if response.is_redirect:
            self.navigate(response.headers.get("location", "/cart"))
        return response

    def html(self) -> str:
        return str(self.soup)

    def close(self):
        if self.observer is not None:
            self.dispatcher.remove_observer(self.observer)
        self.dispatcher.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
