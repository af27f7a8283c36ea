from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from ..extensions import settings_store, upload_store
from ..storage.upload_store import UploadRejected
from ..storefront.controller import PageController
from ..storefront.page import get_product_data

bp = Blueprint("api", __name__)


@bp.get("/options")
def get_options():
    """Branding configuration for a product; success is false when it has none."""
    product_id = (request.args.get("productId") or "").strip()
    if not product_id:
        return jsonify({"success": False, "message": "Missing productId"}), 400
    config = settings_store.resolve(product_id, category=request.args.get("category"))
    if config:
        return jsonify({"success": True, "options": config.to_dict()})
    return jsonify({"success": False, "options": None})


@bp.post("/upload")
def upload_artwork():
    """
    Multipart form-data:
      - file (artwork)
    Stores the file under a unique name and returns its public URL.
    """
    try:
        result = upload_store.save(request.files.get("file"))
    except UploadRejected as e:
        current_app.logger.info("Upload rejected: %s", e)
        return jsonify({"success": False, "message": str(e)}), 400
    return jsonify({"success": True, "url": result.url})


@bp.errorhandler(RequestEntityTooLarge)
def upload_too_large(e):
    return jsonify({"success": False, "message": "File too large"}), 413


@bp.post("/inject")
def inject_page():
    """Render the branding controls into a product page.

    Accepts JSON ``{"html": ..., "option": ...}`` or the raw page as the request
    body with ``?option=`` in the query string. ``option`` preselects a branding
    option by value.
    """
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        html, option = payload.get("html"), payload.get("option")
    else:
        html, option = request.get_data(as_text=True), request.args.get("option")
    if not html:
        return jsonify({"success": False, "message": "Missing html"}), 400

    with PageController.from_config(html, current_app.config) as controller:
        product = get_product_data(controller.soup)
        if not product or not product.get("id"):
            return jsonify({"success": True, "injected": False, "html": html})

        config = settings_store.resolve(str(product["id"]), category=product.get("type"))
        state = controller.attach(product, config) if config else None
        if state is None:
            return jsonify({"success": True, "injected": False, "html": html})
        if isinstance(option, str) and option:
            controller.select_option(option)
        return jsonify({
            "success": True,
            "injected": True,
            "options": config.to_dict(),
            "price": controller.reflect_price(),
            "html": controller.html(),
        })
