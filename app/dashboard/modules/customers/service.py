"""
Customer mutations and reads.

Avatar lifecycle:
- create: upload first (if an image was supplied), then insert the row;
  without an image the row gets the placeholder URL.
- update with a new image: upload new -> look up old URL -> delete old blob ->
  update the row. The old blob is only touched after the new one is stored.
- delete: look up URL -> delete blob (failure is logged, not raised) ->
  delete the customer's invoices -> delete the row.

The placeholder URL and URLs the storage backend does not own are never deleted.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import case, delete, func, insert, or_, select, update
from werkzeug.utils import secure_filename

from app.dashboard.modules.customers.models import Customer
from app.dashboard.modules.invoices.models import Invoice
from app.dashboard.modules.invoices.service import delete_invoices_for_customer
from app.dashboard.utils import ITEMS_PER_PAGE

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.dashboard.modules.customers.schemas import CustomerForm, ImageUpload
    from app.dashboard.storage import Storage

logger = logging.getLogger(__name__)

AVATAR_KEY_PREFIX = "customers"


class CustomerNotFound(LookupError):
    pass


# ---------- Avatars ----------
def build_avatar_key(filename: str) -> str:
    """Unique key per upload so a replacement never overwrites the file it replaces."""
    safe_filename = secure_filename(filename) or "avatar"
    return f"{AVATAR_KEY_PREFIX}/{uuid.uuid4().hex}-{safe_filename}"


def upload_avatar(storage: "Storage", image: "ImageUpload") -> str:
    url = storage.put_bytes(build_avatar_key(image.filename), image.data, content_type=image.content_type)
    logger.info("customer.avatar_upload url=%s size=%s", url, image.size)
    return url


def remove_avatar(storage: "Storage", image_url: str | None, placeholder_url: str) -> bool:
    if not image_url or image_url == placeholder_url:
        return False
    removed = storage.delete_url(image_url)
    if removed:
        logger.info("customer.avatar_delete url=%s", image_url)
    else:
        logger.warning("customer.avatar_delete skipped, url not owned by storage backend: %s", image_url)
    return removed


# ---------- Mutations ----------
def get_customer_image_url(s: "Session", customer_id: uuid.UUID) -> str | None:
    return s.execute(select(Customer.image_url).where(Customer.id == customer_id)).scalar_one_or_none()


def create_customer(
    s: "Session",
    storage: "Storage",
    form: "CustomerForm",
    *,
    placeholder_url: str,
) -> uuid.UUID:
    image_url = placeholder_url
    if form.image is not None:
        image_url = upload_avatar(storage, form.image)

    customer_id = uuid.uuid4()
    now = datetime.utcnow()
    s.execute(
        insert(Customer).values(
            id=customer_id,
            name=form.name,
            email=form.email,
            image_url=image_url,
            created_at=now,
            updated_at=now,
        )
    )
    logger.info("customer.create id=%s", customer_id)
    return customer_id


def update_customer(
    s: "Session",
    storage: "Storage",
    customer_id: uuid.UUID,
    form: "CustomerForm",
    *,
    placeholder_url: str,
) -> None:
    values: dict[str, Any] = {"name": form.name, "email": form.email, "updated_at": datetime.utcnow()}

    if form.image is not None:
        new_url = upload_avatar(storage, form.image)
        old_url = get_customer_image_url(s, customer_id)
        if old_url is None:
            raise CustomerNotFound(str(customer_id))
        remove_avatar(storage, old_url, placeholder_url)
        values["image_url"] = new_url

    s.execute(update(Customer).where(Customer.id == customer_id).values(**values))
    logger.info("customer.update id=%s image_replaced=%s", customer_id, "image_url" in values)


def delete_customer(
    s: "Session",
    storage: "Storage",
    customer_id: uuid.UUID,
    *,
    placeholder_url: str,
) -> int:
    """Delete the customer, its avatar and its invoices. Returns the number of invoices removed."""
    image_url = get_customer_image_url(s, customer_id)
    if image_url is None:
        raise CustomerNotFound(str(customer_id))

    try:
        remove_avatar(storage, image_url, placeholder_url)
    except Exception:
        # Known limitation: the blob may be left orphaned; the row deletion still proceeds.
        logger.warning("customer.delete id=%s failed to delete avatar %s", customer_id, image_url, exc_info=True)

    removed_invoices = delete_invoices_for_customer(s, customer_id)
    s.execute(delete(Customer).where(Customer.id == customer_id))
    logger.info("customer.delete id=%s invoices_removed=%s", customer_id, removed_invoices)
    return removed_invoices


# ---------- Reads ----------
def get_customer(s: "Session", customer_id: uuid.UUID) -> Customer | None:
    return s.get(Customer, customer_id)


def fetch_customers(s: "Session") -> list[dict[str, str]]:
    rows = s.execute(select(Customer.id, Customer.name).order_by(Customer.name.asc())).all()
    return [{"id": str(r.id), "name": r.name} for r in rows]


def _search(stmt, query: str):
    query = (query or "").strip()
    if not query:
        return stmt
    like = f"%{query}%"
    return stmt.where(or_(Customer.name.ilike(like), Customer.email.ilike(like)))


def fetch_filtered_customers(s: "Session", query: str, page: int) -> list[dict[str, Any]]:
    offset = (max(page, 1) - 1) * ITEMS_PER_PAGE
    stmt = (
        select(
            Customer.id,
            Customer.name,
            Customer.email,
            Customer.image_url,
            func.count(Invoice.id).label("total_invoices"),
            func.coalesce(func.sum(case((Invoice.status == "pending", Invoice.amount), else_=0)), 0).label(
                "total_pending"
            ),
            func.coalesce(func.sum(case((Invoice.status == "paid", Invoice.amount), else_=0)), 0).label("total_paid"),
        )
        .select_from(Customer)
        .outerjoin(Invoice, Invoice.customer_id == Customer.id)
        .group_by(Customer.id, Customer.name, Customer.email, Customer.image_url)
        .order_by(Customer.name.asc())
        .limit(ITEMS_PER_PAGE)
        .offset(offset)
    )
    stmt = _search(stmt, query)
    return [
        {
            "id": str(r.id),
            "name": r.name,
            "email": r.email,
            "image_url": r.image_url,
            "total_invoices": int(r.total_invoices),
            "total_pending": int(r.total_pending),
            "total_paid": int(r.total_paid),
        }
        for r in s.execute(stmt).all()
    ]


def fetch_customer_count(s: "Session", query: str) -> int:
    stmt = _search(select(func.count(Customer.id)), query)
    return int(s.execute(stmt).scalar_one())
