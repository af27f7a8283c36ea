from flask import Blueprint, current_app, jsonify, send_from_directory

from ..extensions import upload_store

bp = Blueprint("pages", __name__)


@bp.get("/health")
def health():
    return jsonify({"status": "ok"})


@bp.get("/public/<path:filename>")
def public_file(filename):
    return send_from_directory(current_app.config["PUBLIC_DIR"], filename)


@bp.get("/uploads/<path:filename>")
def uploaded_file(filename):
    return send_from_directory(upload_store.uploads_dir, filename)
