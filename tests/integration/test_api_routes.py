"""
Integration tests for the config/upload service routes.
"""
import io
import json

import pytest
from bs4 import BeautifulSoup

from branding.storage.settings_store import SettingsStore


@pytest.fixture
def use_settings(mocker, settings_store):
    mocker.patch("branding.routes.api.settings_store", settings_store)
    return settings_store


@pytest.fixture
def use_uploads(mocker, upload_store):
    mocker.patch("branding.routes.api.upload_store", upload_store)
    mocker.patch("branding.routes.pages.upload_store", upload_store)
    return upload_store


@pytest.mark.integration
class TestOptionsRoute:
    """Tests for GET /api/options."""

    def test_missing_product_id(self, client):
        response = client.get("/api/options")

        assert response.status_code == 400
        assert response.get_json() == {"success": False, "message": "Missing productId"}

    def test_configured_product(self, client, use_settings):
        response = client.get("/api/options?productId=7000000000001")

        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["options"]["setupFeeVariantId"] == "40000000000003"
        assert [o["value"] for o in data["options"]["options"]] == ["none", "embroidery", "patch"]

    def test_unconfigured_product(self, client, use_settings):
        response = client.get("/api/options?productId=1")

        assert response.status_code == 200
        assert response.get_json() == {"success": False, "options": None}

    def test_category_fallback(self, client, use_settings):
        response = client.get("/api/options?productId=1&category=T-Shirts")

        data = response.get_json()
        assert data["success"] is True
        assert data["options"]["category"] == "T-Shirts"

    def test_fee_only_category_is_unconfigured(self, client, use_settings):
        response = client.get("/api/options?productId=1&category=Caps")

        assert response.get_json() == {"success": False, "options": None}

    def test_store_is_consulted(self, client, mocker):
        mock_store = mocker.Mock(spec=SettingsStore)
        mock_store.resolve.return_value = None
        mocker.patch("branding.routes.api.settings_store", mock_store)

        client.get("/api/options?productId=abc&category=Caps")

        mock_store.resolve.assert_called_once_with("abc", category="Caps")


@pytest.mark.integration
class TestUploadRoute:
    """Tests for POST /api/upload."""

    def test_missing_file(self, client, use_uploads):
        response = client.post("/api/upload", data={}, content_type="multipart/form-data")

        assert response.status_code == 400
        assert response.get_json() == {"success": False, "message": "No file uploaded"}

    def test_upload_and_serve(self, client, use_uploads, sample_png):
        response = client.post(
            "/api/upload",
            data={"file": (io.BytesIO(sample_png), "logo.png")},
            content_type="multipart/form-data",
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["url"].startswith("/uploads/")

        served = client.get(data["url"])
        assert served.status_code == 200
        assert served.data == sample_png

    def test_wrong_extension(self, client, use_uploads):
        response = client.post(
            "/api/upload",
            data={"file": (io.BytesIO(b"#!/bin/sh"), "run.sh")},
            content_type="multipart/form-data",
        )

        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_too_large(self, app, client, use_uploads):
        previous = app.config["MAX_CONTENT_LENGTH"]
        app.config["MAX_CONTENT_LENGTH"] = 1024
        try:
            response = client.post(
                "/api/upload",
                data={"file": (io.BytesIO(b"x" * 4096), "logo.pdf")},
                content_type="multipart/form-data",
            )
        finally:
            app.config["MAX_CONTENT_LENGTH"] = previous

        assert response.status_code == 413


@pytest.mark.integration
class TestInjectRoute:
    """Tests for POST /api/inject."""

    def test_injects_configured_product(self, client, use_settings, make_page):
        response = client.post("/api/inject", json={"html": make_page()})

        data = response.get_json()
        assert response.status_code == 200
        assert data["injected"] is True
        assert data["price"] == "R100.00"
        assert 'name="properties[_branding_option]"' in data["html"]
        assert 'name="branding_file"' in data["html"]

    def test_raw_html_body(self, client, use_settings, make_page):
        response = client.post("/api/inject", data=make_page(), content_type="text/html")

        assert response.get_json()["injected"] is True

    def test_preselected_option(self, client, use_settings, make_page):
        data = client.post("/api/inject", json={"html": make_page(), "option": "embroidery"}).get_json()

        soup = BeautifulSoup(data["html"], "lxml")
        assert data["price"] == "R125.00"
        assert soup.select_one("option[selected]")["value"] == "embroidery"
        assert soup.select_one('input[name="branding_file"]')["style"] == "display:block"

    def test_preselected_option_with_raw_body(self, client, use_settings, make_page):
        response = client.post("/api/inject?option=patch", data=make_page(), content_type="text/html")

        assert response.get_json()["price"] == "R118.50"

    def test_unknown_option_falls_back_to_no_branding(self, client, use_settings, make_page):
        data = client.post("/api/inject", json={"html": make_page(), "option": "laser"}).get_json()

        assert data["injected"] is True
        assert data["price"] == "R100.00"

    def test_unconfigured_product_left_untouched(self, client, use_settings, make_page, sample_product):
        sample_product["id"] = 1
        html = make_page(product=sample_product)

        data = client.post("/api/inject", json={"html": html}).get_json()

        assert data["injected"] is False
        assert data["html"] == html

    def test_page_without_product(self, client, use_settings):
        html = "<html><body><h1>Contact</h1></body></html>"

        data = client.post("/api/inject", json={"html": html}).get_json()

        assert data == {"success": True, "injected": False, "html": html}

    def test_missing_html(self, client):
        response = client.post("/api/inject", json={})

        assert response.status_code == 400


@pytest.mark.integration
class TestPages:
    """Tests for health and static files."""

    def test_health(self, client):
        assert client.get("/health").get_json() == {"status": "ok"}

    def test_public_file(self, app, client, tmp_path):
        (tmp_path / "branding.css").write_text(".branding-options{margin:1rem 0}", encoding="utf-8")
        previous = app.config["PUBLIC_DIR"]
        app.config["PUBLIC_DIR"] = tmp_path
        try:
            response = client.get("/public/branding.css")
        finally:
            app.config["PUBLIC_DIR"] = previous

        assert response.status_code == 200
        assert b"branding-options" in response.data

    def test_missing_upload(self, client, use_uploads):
        assert client.get("/uploads/nope.png").status_code == 404
