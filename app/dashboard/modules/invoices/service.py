from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import Session

from app.dashboard.modules.customers.models import Customer
from app.dashboard.modules.invoices.models import Invoice
from app.dashboard.pipeline import (
    INVOICES_VIEW,
    ActionResult,
    Failure,
    ListingCache,
    execute_mutation,
    invalidate_and_navigate,
    invalidate_only,
)
from app.dashboard.utils import invoice_date_stamp, to_minor_units
from app.dashboard.validation import INVOICE_SCHEMA

logger = logging.getLogger(__name__)


def get_invoice_by_id(s: Session, invoice_id: str) -> Invoice | None:
    return s.get(Invoice, invoice_id)


def fetch_invoice_rows(s: Session) -> list[dict[str, Any]]:
    """Invoices joined with their customer, newest first."""
    rows = s.execute(
        select(
            Invoice.id,
            Invoice.amount,
            Invoice.status,
            Invoice.date,
            Customer.name,
            Customer.email,
            Customer.image_url,
        )
        .join(Customer, Customer.id == Invoice.customer_id)
        .order_by(Invoice.date.desc(), Customer.name.asc())
    ).all()
    return [
        {
            "id": r.id,
            "amount": r.amount,
            "status": r.status,
            "date": r.date,
            "name": r.name,
            "email": r.email,
            "image_url": r.image_url,
        }
        for r in rows
    ]


def filter_invoice_rows(rows: list[dict[str, Any]], query: str) -> list[dict[str, Any]]:
    q = query.strip().lower()
    if not q:
        return rows
    return [
        r
        for r in rows
        if any(q in str(r[k]).lower() for k in ("name", "email", "status", "date"))
    ]


def create_invoice(s: Session, raw: Mapping[str, Any], *, views: ListingCache) -> ActionResult:
    result = INVOICE_SCHEMA.validate(raw)
    if not result.ok:
        return Failure(message="Missing Fields. Failed to Create Invoice.", field_errors=result.errors)

    data = result.data
    stmt = insert(Invoice).values(
        customer_id=data.customer_id,
        amount=to_minor_units(data.amount),
        status=data.status,
        date=invoice_date_stamp(),
    )
    failure = execute_mutation(s, stmt, operation="Create", entity="Invoice")
    if failure:
        return failure
    logger.info("Invoice created for customer %s", data.customer_id)
    return invalidate_and_navigate(views, INVOICES_VIEW)


def update_invoice(s: Session, invoice_id: str, raw: Mapping[str, Any], *, views: ListingCache) -> ActionResult:
    result = INVOICE_SCHEMA.validate(raw)
    if not result.ok:
        return Failure(message="Missing Fields. Failed to Update Invoice.", field_errors=result.errors)

    data = result.data
    stmt = (
        update(Invoice)
        .where(Invoice.id == invoice_id)
        .values(
            customer_id=data.customer_id,
            amount=to_minor_units(data.amount),
            status=data.status,
        )
    )
    failure = execute_mutation(s, stmt, operation="Update", entity="Invoice")
    if failure:
        return failure
    logger.info("Invoice %s updated", invoice_id)
    return invalidate_and_navigate(views, INVOICES_VIEW)


def delete_invoice(s: Session, invoice_id: str, *, views: ListingCache) -> ActionResult:
    stmt = delete(Invoice).where(Invoice.id == invoice_id)
    failure = execute_mutation(s, stmt, operation="Delete", entity="Invoice")
    if failure:
        return failure
    logger.info("Invoice %s deleted", invoice_id)
    return invalidate_only(views, INVOICES_VIEW)
