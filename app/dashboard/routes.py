from flask import Blueprint, current_app, render_template, send_from_directory

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    return render_template("public/index.html")


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for probes. No DB access, minimal overhead.
    """
    return "ok", 200


@bp.get("/customers/<path:filename>")
def customer_image(filename: str):
    """Serve uploaded profile images; send_from_directory refuses paths outside UPLOAD_DIR."""
    return send_from_directory(current_app.config["UPLOAD_DIR"], filename)
