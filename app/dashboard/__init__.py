import logging
import os
from datetime import timedelta

from flask import Flask, flash, g, redirect, render_template, request, session, url_for
from dotenv import load_dotenv

from app.dashboard.cache import ViewCache
from app.dashboard.config import load_config, missing_s3_settings, production_problems
from app.dashboard.db import init_db, teardown_db_session
from app.dashboard.routes import bp as routes_bp
from app.dashboard.auth import bp as auth_bp, load_current_user
from app.dashboard.modules.invoices.admin import bp as invoices_bp
from app.dashboard.modules.customers.admin import bp as customers_bp
from app.dashboard.security import ensure_csrf_token, validate_csrf
from app.dashboard.storage import LocalStorage, storage_from_config
from app.dashboard.utils import format_currency

_PUBLIC_PREFIXES = ("/static/", "/uploads/", "/health", "/healthz")


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL") or "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.logger.setLevel(level)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    _configure_logging(app)

    @app.context_processor
    def _inject_globals() -> dict:
        return {
            "csrf_token": ensure_csrf_token(),
            "current_user": getattr(g, "current_user", None),
        }

    app.add_template_filter(format_currency, "currency")

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%b %d, %Y") -> str:
        if value is None:
            return "-"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        return str(value)

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(_PUBLIC_PREFIXES):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # Login/logout are reachable without a prior session.
            if (request.endpoint or "").startswith("auth."):
                return None
            if not validate_csrf(request):
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

    problems = production_problems(app.config)
    if problems:
        raise RuntimeError(" ".join(problems))

    init_db(app)

    if hasattr(os, "register_at_fork"):
        def _after_fork_child():
            engine = app.extensions.get("sqlalchemy_engine")
            if engine:
                engine.dispose()
                app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

        os.register_at_fork(after_in_child=_after_fork_child)

    app.extensions["view_cache"] = ViewCache(
        enabled=bool(app.config.get("VIEW_CACHE_ENABLED", True)),
        ttl=float(app.config.get("VIEW_CACHE_TTL", 60)),
    )

    storage = storage_from_config(app.config)
    app.extensions["storage"] = storage
    missing_s3 = missing_s3_settings(app.config)
    if missing_s3:
        app.logger.error("STORAGE CONFIG ERROR: Missing required S3 env vars: %s", ", ".join(missing_s3))
    elif isinstance(storage, LocalStorage):
        app.logger.info("Using local storage at %s", storage.root)

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(invoices_bp, url_prefix="/dashboard")
    app.register_blueprint(customers_bp, url_prefix="/dashboard")

    def _load_user_wrapper():
        if request.path.startswith(_PUBLIC_PREFIXES):
            g.current_user = None
            return None
        return load_current_user()

    app.before_request(_load_user_wrapper)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        flash("File too large. Maximum size is 5MB.", "danger")
        referrer = request.referrer
        if referrer and referrer.startswith(request.host_url):
            return redirect(referrer), 302
        return redirect(url_for("customers.customers_list")), 302

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
