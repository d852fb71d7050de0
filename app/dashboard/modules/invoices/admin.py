from __future__ import annotations

import uuid
from collections.abc import Mapping

from flask import Blueprint, abort, current_app, flash, g, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.dashboard.auth import login_required
from app.dashboard.cache import cached_view_data, revalidate_path
from app.dashboard.db import db_session
from app.dashboard.forms import FormValidationError
from app.dashboard.modules.customers.service import fetch_customers
from app.dashboard.modules.invoices.schemas import parse_invoice_form
from app.dashboard.modules.invoices.service import (
    create_invoice,
    delete_invoice,
    fetch_filtered_invoices,
    fetch_invoice_count,
    get_invoice,
    update_invoice,
)
from app.dashboard.utils import generate_pagination, parse_page, total_pages

bp = Blueprint("invoices", __name__)

LIST_PATH = "/dashboard/invoices"


def _revalidate() -> None:
    revalidate_path(LIST_PATH)
    revalidate_path("/dashboard")
    # Customer totals are computed from invoices.
    revalidate_path("/dashboard/customers")


def _render_form(
    *,
    invoice_id: uuid.UUID | None = None,
    values: Mapping[str, str | None] | None = None,
    errors: dict[str, list[str]] | None = None,
    message: str | None = None,
    status: int = 200,
):
    customers = fetch_customers(db_session())
    return (
        render_template(
            "dashboard/invoices/form.html",
            invoice_id=invoice_id,
            customers=customers,
            values=values or {},
            errors=errors or {},
            message=message,
        ),
        status,
    )


# ---------- List ----------
@bp.get("/invoices")
@login_required
def invoices_list():
    query = (request.args.get("query") or "").strip()
    page = parse_page(request.args.get("page"))

    def _load() -> dict:
        s = db_session()
        return {
            "invoices": fetch_filtered_invoices(s, query, page),
            "pages": total_pages(fetch_invoice_count(s, query)),
        }

    data = cached_view_data(_load)
    return render_template(
        "dashboard/invoices/list.html",
        invoices=data["invoices"],
        query=query,
        page=page,
        pages=data["pages"],
        page_links=generate_pagination(page, data["pages"]),
    )


# ---------- Create ----------
@bp.get("/invoices/create")
@login_required
def invoices_create_get():
    return _render_form(values={"status": "pending"})


@bp.post("/invoices/create")
@login_required
def invoices_create_post():
    try:
        form = parse_invoice_form(request.form)
    except FormValidationError as e:
        return _render_form(
            values=request.form,
            errors=e.by_field(),
            message="Missing Fields. Failed to Create Invoice.",
            status=400,
        )

    s = db_session()
    try:
        create_invoice(s, form)
        s.commit()
    except SQLAlchemyError:
        s.rollback()
        current_app.logger.exception("Create invoice failed (request_id=%s)", getattr(g, "request_id", None))
        return _render_form(values=request.form, message="Database Error: Failed to Create Invoice.", status=500)

    _revalidate()
    return redirect(url_for("invoices.invoices_list"))


# ---------- Edit ----------
@bp.get("/invoices/<uuid:invoice_id>/edit")
@login_required
def invoices_edit_get(invoice_id: uuid.UUID):
    invoice = get_invoice(db_session(), invoice_id)
    if not invoice:
        abort(404)
    values = {
        "customerId": str(invoice.customer_id),
        "amount": f"{invoice.amount / 100:.2f}",
        "status": invoice.status,
    }
    return _render_form(invoice_id=invoice_id, values=values)


@bp.post("/invoices/<uuid:invoice_id>/edit")
@login_required
def invoices_edit_post(invoice_id: uuid.UUID):
    s = db_session()
    if not get_invoice(s, invoice_id):
        abort(404)

    try:
        form = parse_invoice_form(request.form)
    except FormValidationError as e:
        return _render_form(
            invoice_id=invoice_id,
            values=request.form,
            errors=e.by_field(),
            message="Missing Fields. Failed to Update Invoice.",
            status=400,
        )

    try:
        update_invoice(s, invoice_id, form)
        s.commit()
    except SQLAlchemyError:
        s.rollback()
        current_app.logger.exception("Update invoice %s failed (request_id=%s)", invoice_id, getattr(g, "request_id", None))
        return _render_form(
            invoice_id=invoice_id,
            values=request.form,
            message="Database Error: Failed to Update Invoice.",
            status=500,
        )

    _revalidate()
    return redirect(url_for("invoices.invoices_list"))


# ---------- Delete ----------
@bp.post("/invoices/<uuid:invoice_id>/delete")
@login_required
def invoices_delete_post(invoice_id: uuid.UUID):
    s = db_session()
    if not get_invoice(s, invoice_id):
        abort(404)

    try:
        delete_invoice(s, invoice_id)
        s.commit()
    except SQLAlchemyError:
        s.rollback()
        current_app.logger.exception("Delete invoice %s failed", invoice_id)
        flash("Database Error: Failed to Delete Invoice.", "danger")
        return redirect(url_for("invoices.invoices_list"))

    _revalidate()
    flash("Deleted Invoice.", "success")
    return redirect(url_for("invoices.invoices_list"))
