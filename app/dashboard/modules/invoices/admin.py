from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request

from app.dashboard.db import db_session
from app.dashboard.forms import extract_invoice_fields
from app.dashboard.modules.customers.service import list_customer_options
from app.dashboard.modules.invoices.models import INVOICE_STATUSES
from app.dashboard.modules.invoices.service import (
    create_invoice,
    delete_invoice,
    fetch_invoice_rows,
    filter_invoice_rows,
    get_invoice_by_id,
    update_invoice,
)
from app.dashboard.pipeline import INVOICES_VIEW, Failure, listing_cache
from app.dashboard.security import require_login, safe_referrer

bp = Blueprint("invoices", __name__)


def _render_form(*, invoice=None, values=None, errors=None, message=None, status_code=200):
    s = db_session()
    return (
        render_template(
            "invoices/form.html",
            invoice=invoice,
            customers=list_customer_options(s),
            statuses=INVOICE_STATUSES,
            values=values or {},
            errors=errors or {},
            message=message,
        ),
        status_code,
    )


# ---------- List ----------
@bp.get("/invoices")
@require_login
def invoices_list():
    s = db_session()
    q = (request.args.get("q") or "").strip()
    rows = listing_cache().get_or_load(INVOICES_VIEW, lambda: fetch_invoice_rows(s))
    return render_template("invoices/list.html", invoices=filter_invoice_rows(rows, q), q=q)


# ---------- Create ----------
@bp.get("/invoices/create")
@require_login
def invoices_create_get():
    return _render_form()


@bp.post("/invoices/create")
@require_login
def invoices_create_post():
    raw = extract_invoice_fields(request.form)
    result = create_invoice(db_session(), raw, views=listing_cache())
    if isinstance(result, Failure):
        return _render_form(values=raw, errors=result.field_errors, message=result.message, status_code=400)
    return redirect(result.redirect_to)


# ---------- Edit ----------
@bp.get("/invoices/<invoice_id>/edit")
@require_login
def invoices_edit_get(invoice_id: str):
    invoice = get_invoice_by_id(db_session(), invoice_id)
    if not invoice:
        abort(404)
    values = {
        "customerId": invoice.customer_id,
        "amount": f"{invoice.amount / 100:.2f}",
        "status": invoice.status,
    }
    return _render_form(invoice=invoice, values=values)


@bp.post("/invoices/<invoice_id>/edit")
@require_login
def invoices_edit_post(invoice_id: str):
    s = db_session()
    raw = extract_invoice_fields(request.form)
    result = update_invoice(s, invoice_id, raw, views=listing_cache())
    if isinstance(result, Failure):
        invoice = get_invoice_by_id(s, invoice_id)
        return _render_form(invoice=invoice, values=raw, errors=result.field_errors, message=result.message, status_code=400)
    return redirect(result.redirect_to)


# ---------- Delete ----------
@bp.post("/invoices/<invoice_id>/delete")
@require_login
def invoices_delete(invoice_id: str):
    result = delete_invoice(db_session(), invoice_id, views=listing_cache())
    if isinstance(result, Failure):
        flash(result.message, "danger")
    return redirect(safe_referrer(INVOICES_VIEW))
