from __future__ import annotations

import uuid
from collections.abc import Mapping

from flask import Blueprint, abort, current_app, flash, g, redirect, render_template, request, url_for

from app.dashboard.auth import login_required
from app.dashboard.cache import cached_view_data, revalidate_path
from app.dashboard.db import db_session
from app.dashboard.forms import FormValidationError
from app.dashboard.modules.customers.schemas import parse_customer_form
from app.dashboard.modules.customers.service import (
    create_customer,
    delete_customer,
    fetch_customer_count,
    fetch_filtered_customers,
    get_customer,
    update_customer,
)
from app.dashboard.storage import current_storage
from app.dashboard.utils import generate_pagination, parse_page, total_pages

bp = Blueprint("customers", __name__)

LIST_PATH = "/dashboard/customers"


def _placeholder_url() -> str:
    return current_app.config["PLACEHOLDER_IMAGE_URL"]


def _revalidate() -> None:
    revalidate_path(LIST_PATH)
    # Invoice listings and the overview show customer name/email/avatar.
    revalidate_path("/dashboard/invoices")
    revalidate_path("/dashboard")


def _render_form(
    *,
    customer_id: uuid.UUID | None = None,
    image_url: str | None = None,
    values: Mapping[str, str | None] | None = None,
    errors: dict[str, list[str]] | None = None,
    message: str | None = None,
    status: int = 200,
):
    return (
        render_template(
            "dashboard/customers/form.html",
            customer_id=customer_id,
            image_url=image_url,
            values=values or {},
            errors=errors or {},
            message=message,
        ),
        status,
    )


# ---------- List ----------
@bp.get("/customers")
@login_required
def customers_list():
    query = (request.args.get("query") or "").strip()
    page = parse_page(request.args.get("page"))

    def _load() -> dict:
        s = db_session()
        return {
            "customers": fetch_filtered_customers(s, query, page),
            "pages": total_pages(fetch_customer_count(s, query)),
        }

    data = cached_view_data(_load)
    return render_template(
        "dashboard/customers/list.html",
        customers=data["customers"],
        query=query,
        page=page,
        pages=data["pages"],
        page_links=generate_pagination(page, data["pages"]),
    )


# ---------- Create ----------
@bp.get("/customers/create")
@login_required
def customers_create_get():
    return _render_form()


@bp.post("/customers/create")
@login_required
def customers_create_post():
    try:
        form = parse_customer_form(request.form, request.files)
    except FormValidationError as e:
        return _render_form(
            values=request.form,
            errors=e.by_field(),
            message="Missing Fields. Failed to Create Customer.",
            status=400,
        )

    s = db_session()
    try:
        create_customer(s, current_storage(), form, placeholder_url=_placeholder_url())
        s.commit()
    except Exception:
        s.rollback()
        current_app.logger.exception("Create customer failed (request_id=%s)", getattr(g, "request_id", None))
        return _render_form(values=request.form, message="Database Error: Failed to Create Customer.", status=500)

    _revalidate()
    return redirect(url_for("customers.customers_list"))


# ---------- Edit ----------
@bp.get("/customers/<uuid:customer_id>/edit")
@login_required
def customers_edit_get(customer_id: uuid.UUID):
    customer = get_customer(db_session(), customer_id)
    if not customer:
        abort(404)
    return _render_form(
        customer_id=customer_id,
        image_url=customer.image_url,
        values={"name": customer.name, "email": customer.email},
    )


@bp.post("/customers/<uuid:customer_id>/edit")
@login_required
def customers_edit_post(customer_id: uuid.UUID):
    s = db_session()
    customer = get_customer(s, customer_id)
    if not customer:
        abort(404)
    current_image_url = customer.image_url

    try:
        form = parse_customer_form(request.form, request.files)
    except FormValidationError as e:
        return _render_form(
            customer_id=customer_id,
            image_url=current_image_url,
            values=request.form,
            errors=e.by_field(),
            message="Missing Fields. Failed to Update Customer.",
            status=400,
        )

    try:
        update_customer(s, current_storage(), customer_id, form, placeholder_url=_placeholder_url())
        s.commit()
    except Exception:
        s.rollback()
        current_app.logger.exception("Update customer %s failed (request_id=%s)", customer_id, getattr(g, "request_id", None))
        return _render_form(
            customer_id=customer_id,
            image_url=current_image_url,
            values=request.form,
            message="Database Error: Failed to Update Customer.",
            status=500,
        )

    _revalidate()
    return redirect(url_for("customers.customers_list"))


# ---------- Delete ----------
@bp.post("/customers/<uuid:customer_id>/delete")
@login_required
def customers_delete_post(customer_id: uuid.UUID):
    s = db_session()
    if not get_customer(s, customer_id):
        abort(404)

    try:
        delete_customer(s, current_storage(), customer_id, placeholder_url=_placeholder_url())
        s.commit()
    except Exception:
        s.rollback()
        current_app.logger.exception("Delete customer %s failed", customer_id)
        flash("Database Error: Failed to Delete Customer.", "danger")
        return redirect(url_for("customers.customers_list"))

    _revalidate()
    flash("Deleted Customer.", "success")
    return redirect(url_for("customers.customers_list"))
