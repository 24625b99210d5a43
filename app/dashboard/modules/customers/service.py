"""
Customer mutations.

Updating a customer always replaces the profile image: the upload is written
to the public uploads directory first, and only a successful write lets the
UPDATE run. A crash between the two leaves an unreferenced file behind; that
is accepted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import Session

from app.dashboard.modules.customers.models import Customer
from app.dashboard.pipeline import (
    CUSTOMERS_VIEW,
    INVOICES_VIEW,
    ActionResult,
    Failure,
    ListingCache,
    execute_mutation,
    invalidate_and_navigate,
    invalidate_only,
)
from app.dashboard.storage import FileSystemError, UploadStorage
from app.dashboard.utils import sanitize_and_timestamp_filename
from app.dashboard.validation import CUSTOMER_CREATE_SCHEMA, CUSTOMER_UPDATE_SCHEMA

logger = logging.getLogger(__name__)


def get_customer_by_id(s: Session, customer_id: str) -> Customer | None:
    return s.get(Customer, customer_id)


def list_customer_options(s: Session) -> list[Customer]:
    return list(s.execute(select(Customer).order_by(Customer.name.asc())).scalars())


def fetch_customer_rows(s: Session) -> list[dict[str, Any]]:
    rows = s.execute(
        select(Customer.id, Customer.name, Customer.email, Customer.image_url).order_by(Customer.name.asc())
    ).all()
    return [{"id": r.id, "name": r.name, "email": r.email, "image_url": r.image_url} for r in rows]


def filter_customer_rows(rows: list[dict[str, Any]], query: str) -> list[dict[str, Any]]:
    q = query.strip().lower()
    if not q:
        return rows
    return [r for r in rows if q in r["name"].lower() or q in r["email"].lower()]


def create_customer(
    s: Session,
    raw: Mapping[str, Any],
    *,
    views: ListingCache,
    default_image_url: str,
) -> ActionResult:
    result = CUSTOMER_CREATE_SCHEMA.validate(raw)
    if not result.ok:
        return Failure(message="Missing Fields. Failed to Create Customer.", field_errors=result.errors)

    data = result.data
    stmt = insert(Customer).values(
        name=data.name,
        email=data.email,
        image_url=data.image_url.strip() or default_image_url,
    )
    failure = execute_mutation(s, stmt, operation="Create", entity="Customer")
    if failure:
        return failure
    logger.info("Customer created: %s", data.email)
    return invalidate_and_navigate(views, CUSTOMERS_VIEW)


def update_customer(
    s: Session,
    customer_id: str,
    raw: Mapping[str, Any],
    *,
    views: ListingCache,
    storage: UploadStorage,
) -> ActionResult:
    result = CUSTOMER_UPDATE_SCHEMA.validate(raw)
    if not result.ok:
        return Failure(message="Missing Fields. Failed to Update Customer.", field_errors=result.errors)

    data = result.data
    filename = sanitize_and_timestamp_filename(data.image_upload.original_name)
    try:
        image_url = storage.save(filename, data.image_upload.content)
    except FileSystemError:
        logger.exception("Saving image for customer %s failed", customer_id)
        return Failure(message="File Error: Failed to Save Customer Image.")
    logger.info("Stored customer image %s (%d bytes)", filename, data.image_upload.size_bytes)

    # The client's image_url is ignored; the stored file is the new image.
    stmt = (
        update(Customer)
        .where(Customer.id == customer_id)
        .values(name=data.name, email=data.email, image_url=image_url)
    )
    failure = execute_mutation(s, stmt, operation="Update", entity="Customer")
    if failure:
        return failure
    # Invoice rows carry the customer's name, email and image.
    views.invalidate(INVOICES_VIEW)
    return invalidate_and_navigate(views, CUSTOMERS_VIEW)


def delete_customer(s: Session, customer_id: str, *, views: ListingCache) -> ActionResult:
    stmt = delete(Customer).where(Customer.id == customer_id)
    failure = execute_mutation(s, stmt, operation="Delete", entity="Customer")
    if failure:
        return failure
    logger.info("Customer %s deleted", customer_id)
    return invalidate_only(views, CUSTOMERS_VIEW)
