from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request

from app.dashboard.db import db_session
from app.dashboard.forms import extract_customer_fields
from app.dashboard.modules.customers.service import (
    create_customer,
    delete_customer,
    fetch_customer_rows,
    filter_customer_rows,
    get_customer_by_id,
    update_customer,
)
from app.dashboard.pipeline import CUSTOMERS_VIEW, Failure, listing_cache
from app.dashboard.security import require_login, safe_referrer
from app.dashboard.storage import storage_from_config

bp = Blueprint("customers", __name__)


def _form_values(raw: dict) -> dict:
    # Uploaded bytes are not echoed back into the form.
    return {k: v for k, v in raw.items() if k != "image_upload"}


@bp.get("/customers")
@require_login
def customers_list():
    s = db_session()
    q = (request.args.get("q") or "").strip()
    rows = listing_cache().get_or_load(CUSTOMERS_VIEW, lambda: fetch_customer_rows(s))
    return render_template("customers/list.html", customers=filter_customer_rows(rows, q), q=q)


@bp.get("/customers/create")
@require_login
def customers_create_get():
    return render_template("customers/form.html", customer=None, values={}, errors={}, message=None)


@bp.post("/customers/create")
@require_login
def customers_create_post():
    raw = extract_customer_fields(request.form)
    result = create_customer(
        db_session(),
        raw,
        views=listing_cache(),
        default_image_url=current_app.config["DEFAULT_CUSTOMER_IMAGE_URL"],
    )
    if isinstance(result, Failure):
        return (
            render_template(
                "customers/form.html",
                customer=None,
                values=_form_values(raw),
                errors=result.field_errors,
                message=result.message,
            ),
            400,
        )
    return redirect(result.redirect_to)


@bp.get("/customers/<customer_id>/edit")
@require_login
def customers_edit_get(customer_id: str):
    customer = get_customer_by_id(db_session(), customer_id)
    if not customer:
        abort(404)
    values = {"name": customer.name, "email": customer.email, "image_url": customer.image_url}
    return render_template("customers/form.html", customer=customer, values=values, errors={}, message=None)


@bp.post("/customers/<customer_id>/edit")
@require_login
def customers_edit_post(customer_id: str):
    s = db_session()
    raw = extract_customer_fields(request.form, request.files)
    result = update_customer(
        s,
        customer_id,
        raw,
        views=listing_cache(),
        storage=storage_from_config(current_app.config),
    )
    if isinstance(result, Failure):
        return (
            render_template(
                "customers/form.html",
                customer=get_customer_by_id(s, customer_id),
                values=_form_values(raw),
                errors=result.field_errors,
                message=result.message,
            ),
            400,
        )
    return redirect(result.redirect_to)


@bp.post("/customers/<customer_id>/delete")
@require_login
def customers_delete(customer_id: str):
    result = delete_customer(db_session(), customer_id, views=listing_cache())
    if isinstance(result, Failure):
        flash(result.message, "danger")
    return redirect(safe_referrer(CUSTOMERS_VIEW))
