from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy import String, cast, delete, func, insert, or_, select, update

from app.dashboard.modules.customers.models import Customer
from app.dashboard.modules.invoices.models import Invoice
from app.dashboard.utils import ITEMS_PER_PAGE, dollars_to_cents, utc_today

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.dashboard.modules.invoices.schemas import InvoiceForm

logger = logging.getLogger(__name__)


# ---------- Mutations ----------
def create_invoice(s: "Session", form: "InvoiceForm", *, today: date | None = None) -> uuid.UUID:
    """Insert a new invoice dated today (UTC). Amount is persisted in cents."""
    invoice_id = uuid.uuid4()
    s.execute(
        insert(Invoice).values(
            id=invoice_id,
            customer_id=form.customer_id,
            amount=dollars_to_cents(form.amount),
            status=form.status,
            date=today or utc_today(),
        )
    )
    logger.info("invoice.create id=%s customer_id=%s", invoice_id, form.customer_id)
    return invoice_id


def update_invoice(s: "Session", invoice_id: uuid.UUID, form: "InvoiceForm") -> None:
    s.execute(
        update(Invoice)
        .where(Invoice.id == invoice_id)
        .values(
            customer_id=form.customer_id,
            amount=dollars_to_cents(form.amount),
            status=form.status,
        )
    )
    logger.info("invoice.update id=%s", invoice_id)


def delete_invoice(s: "Session", invoice_id: uuid.UUID) -> None:
    s.execute(delete(Invoice).where(Invoice.id == invoice_id))
    logger.info("invoice.delete id=%s", invoice_id)


def delete_invoices_for_customer(s: "Session", customer_id: uuid.UUID) -> int:
    result = s.execute(delete(Invoice).where(Invoice.customer_id == customer_id))
    return result.rowcount or 0


# ---------- Reads ----------
def get_invoice(s: "Session", invoice_id: uuid.UUID) -> Invoice | None:
    return s.get(Invoice, invoice_id)


def _filtered(query: str):
    stmt = select(Invoice, Customer).join(Customer, Invoice.customer_id == Customer.id)
    query = (query or "").strip()
    if query:
        like = f"%{query}%"
        stmt = stmt.where(
            or_(
                Customer.name.ilike(like),
                Customer.email.ilike(like),
                cast(Invoice.amount, String).ilike(like),
                cast(Invoice.date, String).ilike(like),
                Invoice.status.ilike(like),
            )
        )
    return stmt


def _row(invoice: Invoice, customer: Customer) -> dict[str, Any]:
    return {
        "id": str(invoice.id),
        "customer_id": str(customer.id),
        "name": customer.name,
        "email": customer.email,
        "image_url": customer.image_url,
        "amount": invoice.amount,
        "status": invoice.status,
        "date": invoice.date,
    }


def fetch_filtered_invoices(s: "Session", query: str, page: int) -> list[dict[str, Any]]:
    offset = (max(page, 1) - 1) * ITEMS_PER_PAGE
    stmt = (
        _filtered(query)
        .order_by(Invoice.date.desc(), Invoice.created_at.desc())
        .limit(ITEMS_PER_PAGE)
        .offset(offset)
    )
    return [_row(inv, cust) for inv, cust in s.execute(stmt).all()]


def fetch_invoice_count(s: "Session", query: str) -> int:
    stmt = select(func.count()).select_from(_filtered(query).subquery())
    return int(s.execute(stmt).scalar_one())


def fetch_latest_invoices(s: "Session", limit: int = 5) -> list[dict[str, Any]]:
    stmt = (
        select(Invoice, Customer)
        .join(Customer, Invoice.customer_id == Customer.id)
        .order_by(Invoice.date.desc(), Invoice.created_at.desc())
        .limit(limit)
    )
    return [_row(inv, cust) for inv, cust in s.execute(stmt).all()]


def fetch_card_data(s: "Session") -> dict[str, int]:
    paid = s.execute(select(func.coalesce(func.sum(Invoice.amount), 0)).where(Invoice.status == "paid")).scalar_one()
    pending = s.execute(
        select(func.coalesce(func.sum(Invoice.amount), 0)).where(Invoice.status == "pending")
    ).scalar_one()
    invoices = s.execute(select(func.count(Invoice.id))).scalar_one()
    customers = s.execute(select(func.count(Customer.id))).scalar_one()
    return {
        "total_paid": int(paid),
        "total_pending": int(pending),
        "invoice_count": int(invoices),
        "customer_count": int(customers),
    }
