from __future__ import annotations

import uuid
from datetime import date as date_type, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.dashboard.models import Base
from app.dashboard.utils import utc_today


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        Index("idx_invoices_customer_id", "customer_id"),
        Index("idx_invoices_status", "status"),
        Index("idx_invoices_date", "date"),
        CheckConstraint("status IN ('pending', 'paid')", name="ck_invoices_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    customer_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("customers.id"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # cents
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # pending, paid
    date: Mapped[date_type] = mapped_column(Date, nullable=False, default=utc_today)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
