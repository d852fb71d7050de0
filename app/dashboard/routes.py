from flask import Blueprint, abort, g, redirect, render_template, send_file, url_for
from werkzeug.utils import safe_join

from app.dashboard.auth import login_required
from app.dashboard.cache import cached_view_data
from app.dashboard.db import db_session
from app.dashboard.modules.invoices.service import fetch_card_data, fetch_latest_invoices
from app.dashboard.storage import LocalStorage, StorageError, current_storage

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    if getattr(g, "current_user", None):
        return redirect(url_for("routes.dashboard"))
    return redirect(url_for("auth.login_get"))


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for load balancer probes. No DB access, minimal overhead.
    """
    return "ok", 200


@bp.get("/dashboard")
@login_required
def dashboard():
    def _load() -> dict:
        s = db_session()
        return {"cards": fetch_card_data(s), "latest_invoices": fetch_latest_invoices(s)}

    data = cached_view_data(_load)
    return render_template("dashboard/index.html", cards=data["cards"], latest_invoices=data["latest_invoices"])


@bp.get("/uploads/<path:key>")
def uploads(key: str):
    """Serve files from the local storage backend (S3 objects are served by the bucket)."""
    storage = current_storage()
    if not isinstance(storage, LocalStorage) or safe_join(str(storage.root), key) is None:
        abort(404)
    try:
        fobj = storage.open(key)
    except StorageError:
        abort(404)
    return send_file(fobj, download_name=key.rsplit("/", 1)[-1], max_age=3600)
