"""
Shared test fixtures and configuration for the branding options tests.
"""
import json
from pathlib import Path
from urllib.parse import parse_qsl

import httpx
import pytest
import respx
from flask import Flask
from flask.testing import FlaskClient

from branding import create_app
from branding.config import TestConfig
from branding.models import BrandingConfig
from branding.storage.settings_store import SettingsStore
from branding.storage.upload_store import UploadStore


STOREFRONT_URL = "https://test-store.myshopify.com"
SERVICE_URL = "https://branding.example.com"

PRODUCT_ID = 7000000000001
VARIANT_ID = 41000000000001
SETUP_FEE_VARIANT_ID = 40000000000003
EMBROIDERY_FEE_VARIANT_ID = 40000000000011

SAMPLE_SETTINGS = {
    "setupFeeVariantId": "40000000000001",
    "categories": {
        "T-Shirts": {
            "setupFeeVariantId": "40000000000002",
            "options": [
                {"label": "No branding", "value": "none", "price": 0},
                {"label": "Screen print", "value": "screen-print", "price": 15, "feeVariantId": "40000000000010"},
            ],
        },
        "Caps": {"setupFeeVariantId": "40000000000004"},
    },
    "products": {
        str(PRODUCT_ID): {
            "category": "Caps",
            "feeProductVariantId": str(SETUP_FEE_VARIANT_ID),
            "options": [
                {"label": "No branding", "value": "none", "price": 0},
                {"label": "Embroidery", "value": "embroidery", "price": 25,
                 "feeVariantId": str(EMBROIDERY_FEE_VARIANT_ID)},
                {"label": "Printed patch", "value": "patch", "price": 18.5},
            ],
        }
    },
}

SAMPLE_PRODUCT = {
    "id": PRODUCT_ID,
    "title": "Classic Cap",
    "type": "Caps",
    "price": 10000,
    "variants": [
        {"id": VARIANT_ID, "price": 10000, "title": "Black"},
        {"id": 41000000000002, "price": 12000, "title": "White"},
    ],
}


class FakeCart:
    """In-memory Shopify AJAX cart used as a respx side effect."""

    def __init__(self, items=None):
        self.items = list(items or [])
        self.add_payloads = []
        self.native_payloads = []
        self.failing_variants = set()
        self.unreachable_variants = set()
        self._seq = 0

    def _line(self, variant_id, quantity, properties):
        self._seq += 1
        vid = int(variant_id)
        item = {
            "id": vid,
            "variant_id": vid,
            "key": f"{vid}:{self._seq}",
            "quantity": int(quantity),
            "properties": properties or {},
        }
        self.items.append(item)
        return item

    def add(self, request):
        payload = json.loads(request.content)
        self.add_payloads.append({"payload": payload, "headers": dict(request.headers)})
        vid = str(payload["id"])
        if vid in self.unreachable_variants:
            raise httpx.ConnectError("storefront unreachable", request=request)
        if vid in self.failing_variants:
            return httpx.Response(422, json={"status": 422, "description": "Cannot add"})
        return httpx.Response(200, json=self._line(vid, payload.get("quantity", 1), payload.get("properties")))

    def read(self, request):
        return httpx.Response(200, json={"items": self.items, "item_count": len(self.items)})

    def native_add(self, request):
        form = dict(parse_qsl(request.content.decode()))
        self.native_payloads.append({"form": form, "headers": dict(request.headers)})
        props = {k[len("properties["):-1]: v for k, v in form.items() if k.startswith("properties[")}
        self._line(form["id"], form.get("quantity", 1), props)
        return httpx.Response(302, headers={"Location": "/cart"})

    def lines_for(self, variant_id):
        return [i for i in self.items if i["variant_id"] == int(variant_id)]


@pytest.fixture(scope="session")
def app() -> Flask:
    """Create and configure a test Flask application instance."""
    app = create_app(TestConfig)
    app.config.update({
        "TESTING": True,
    })
    yield app


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create a Flask test client."""
    return app.test_client()


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """Write the sample settings to a temporary settings.json."""
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(SAMPLE_SETTINGS), encoding="utf-8")
    return path


@pytest.fixture
def settings_store(settings_file: Path) -> SettingsStore:
    return SettingsStore(settings_file)


@pytest.fixture
def upload_store(tmp_path: Path) -> UploadStore:
    return UploadStore(
        tmp_path / "uploads",
        allowed_exts=TestConfig.ALLOWED_EXTS,
        raster_exts=TestConfig.RASTER_EXTS,
    )


@pytest.fixture
def branding_config(settings_store: SettingsStore) -> BrandingConfig:
    return settings_store.resolve(str(PRODUCT_ID))


@pytest.fixture
def sample_product() -> dict:
    return json.loads(json.dumps(SAMPLE_PRODUCT))


@pytest.fixture
def make_page():
    """Factory for product page HTML."""
    def _make(
        product: dict | None = SAMPLE_PRODUCT,
        form_attrs: str = 'id="product-form-main" class="product-form" action="/cart/add" method="post"',
        quantity: bool = True,
        body_extra: str = "",
    ) -> str:
        product_json = (
            f'<script type="application/json" data-product>{json.dumps(product)}</script>' if product else ""
        )
        quantity_html = '<input type="number" name="quantity" value="1" min="1">' if quantity else ""
        variant_id = (product or {}).get("variants", [{}])[0].get("id", "")
        return f"""<!doctype html>
<html><head><title>Product</title></head>
<body>
  <div class="product">
    <span class="price-item" data-product-price>R100.00</span>
    <form {form_attrs}>
      <input type="hidden" name="id" value="{variant_id}">
      {quantity_html}
      <button type="submit" name="add">Add to cart</button>
    </form>
  </div>
  {product_json}
  {body_extra}
</body></html>"""

    return _make


@pytest.fixture
def fake_cart() -> FakeCart:
    return FakeCart()


@pytest.fixture
def shop(fake_cart: FakeCart):
    """Mock the storefront cart API backed by ``fake_cart``."""
    with respx.mock(assert_all_called=False) as router:
        router.post(f"{STOREFRONT_URL}/cart/add.js", name="cart_add").mock(side_effect=fake_cart.add)
        router.get(f"{STOREFRONT_URL}/cart.js", name="cart_read").mock(side_effect=fake_cart.read)
        router.post(f"{STOREFRONT_URL}/cart/add", name="native_add").mock(side_effect=fake_cart.native_add)
        yield router


@pytest.fixture
def sample_png() -> bytes:
    """Bytes of a small valid PNG."""
    from io import BytesIO
    from PIL import Image

    buf = BytesIO()
    Image.new("RGBA", (20, 20), (255, 0, 0, 255)).save(buf, "PNG")
    return buf.getvalue()
