from ..models import CartLineRequest
from ..storefront.dispatcher import OutboundDispatcher


class StorefrontCart:
    """Shopify's storefront AJAX cart API (``/cart/add.js``, ``/cart.js``)."""

    def __init__(self, dispatcher: OutboundDispatcher):
        self.dispatcher = dispatcher
        self.headers = {"Accept": "application/json"}

    def add(self, line: CartLineRequest) -> dict:
        """Add one line and return the created line item (includes its ``key``)."""
        r = self.dispatcher.post("/cart/add.js", headers=self.headers, json=line.to_payload(), self_originated=True)
        r.raise_for_status()
        return r.json()

    def get(self) -> dict:
        r = self.dispatcher.get("/cart.js", headers=self.headers, self_originated=True)
        r.raise_for_status()
        return r.json()

    def items(self) -> list[dict]:
        return list(self.get().get("items") or [])
