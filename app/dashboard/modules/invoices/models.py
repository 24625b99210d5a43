from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.dashboard.models import Base

INVOICE_STATUSES = ("pending", "paid")


def _new_id() -> str:
    return str(uuid.uuid4())


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        Index("idx_invoices_customer_id", "customer_id"),
        Index("idx_invoices_date", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    customer_id: Mapped[str] = mapped_column(ForeignKey("customers.id"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # minor units (cents)
    status: Mapped[str] = mapped_column(String(16), nullable=False)  # pending, paid
    date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
