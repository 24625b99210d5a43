"""HTTP-level tests for the invoice actions."""
import pytest
from sqlalchemy import event, select
from sqlalchemy.exc import OperationalError
from werkzeug.security import generate_password_hash

from app.dashboard import create_app
from app.dashboard.db import session_scope
from app.dashboard.models import Base, Customer, Invoice, User
from app.dashboard.pipeline import INVOICES_VIEW
from app.dashboard.utils import invoice_date_stamp


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    with session_scope(app) as s:
        s.add(User(email="admin@example.com", password_hash=generate_password_hash("pw"), is_active=True))
        s.add(Customer(id="c1", name="Evil Rabbit", email="evil@rabbit.com", image_url="/customers/evil-rabbit.png"))
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client) -> str:
    client.post("/auth/login", data={"email": "admin@example.com", "password": "pw"})
    with client.session_transaction() as sess:
        return sess["csrf_token"]


def _invoices(app) -> list[Invoice]:
    with session_scope(app) as s:
        return list(s.execute(select(Invoice)).scalars())


def test_invoices_list_requires_login(client):
    r = client.get("/dashboard/invoices")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]


def test_create_invoice_stores_cents_and_today(app, client):
    token = _login(client)
    r = client.post(
        "/dashboard/invoices/create",
        data={"customerId": "c1", "amount": "10.50", "status": "pending", "csrf_token": token},
    )
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/dashboard/invoices")

    [inv] = _invoices(app)
    assert inv.customer_id == "c1"
    assert inv.amount == 1050
    assert inv.status == "pending"
    assert inv.date == invoice_date_stamp()


def test_create_invoice_amount_rounds_to_nearest_cent(app, client):
    token = _login(client)
    client.post(
        "/dashboard/invoices/create",
        data={"customerId": "c1", "amount": "10.1", "status": "paid", "csrf_token": token},
    )
    [inv] = _invoices(app)
    assert inv.amount == 1010


def test_create_invoice_zero_amount_rejected(app, client):
    token = _login(client)
    r = client.post("/dashboard/invoices/create", data={"amount": "0", "csrf_token": token})
    assert r.status_code == 400
    assert b"Please enter an amount greater than $0." in r.data
    assert b"Please select a customer." in r.data
    assert b"Please select an invoice status." in r.data
    assert b"Missing Fields. Failed to Create Invoice." in r.data
    assert _invoices(app) == []


@pytest.mark.parametrize("amount", ["0.001", "0.004", "1e30", "21474836.48"])
def test_create_invoice_amount_outside_cents_range_rejected(app, client, amount):
    token = _login(client)
    r = client.post(
        "/dashboard/invoices/create",
        data={"customerId": "c1", "amount": amount, "status": "paid", "csrf_token": token},
    )
    assert r.status_code == 400
    assert b"Please enter an amount greater than $0." in r.data
    assert _invoices(app) == []


def test_create_invoice_amount_bounds_accepted(app, client):
    token = _login(client)
    for amount in ("0.005", "21474836.47"):
        r = client.post(
            "/dashboard/invoices/create",
            data={"customerId": "c1", "amount": amount, "status": "paid", "csrf_token": token},
        )
        assert r.status_code == 302
    assert sorted(i.amount for i in _invoices(app)) == [1, 2**31 - 1]


def test_update_invoice_rejects_sub_cent_amount(app, client):
    with session_scope(app) as s:
        s.add(Invoice(id="i1", customer_id="c1", amount=100, status="pending", date="2026-01-02"))
    token = _login(client)
    r = client.post(
        "/dashboard/invoices/i1/edit",
        data={"customerId": "c1", "amount": "0.001", "status": "paid", "csrf_token": token},
    )
    assert r.status_code == 400
    [inv] = _invoices(app)
    assert inv.amount == 100


@pytest.mark.parametrize("status", ["", "overdue", "PAID"])
def test_create_invoice_bad_status_rejected(app, client, status):
    token = _login(client)
    r = client.post(
        "/dashboard/invoices/create",
        data={"customerId": "c1", "amount": "5", "status": status, "csrf_token": token},
    )
    assert r.status_code == 400
    assert b"Please select an invoice status." in r.data
    assert _invoices(app) == []


def test_create_invoice_store_failure_reports_generic_message(app, client):
    token = _login(client)
    engine = app.extensions["sqlalchemy_engine"]

    def _refuse_insert(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith("INSERT INTO invoices"):
            raise OperationalError(statement, parameters, ConnectionRefusedError("connection refused"))

    event.listen(engine, "before_cursor_execute", _refuse_insert)
    try:
        r = client.post(
            "/dashboard/invoices/create",
            data={"customerId": "c1", "amount": "10.50", "status": "pending", "csrf_token": token},
        )
    finally:
        event.remove(engine, "before_cursor_execute", _refuse_insert)

    assert r.status_code == 400
    assert "Location" not in r.headers
    assert b"Database Error: Failed to Create Invoice." in r.data
    assert _invoices(app) == []


def test_create_invoice_unknown_customer_is_a_store_failure(app, client):
    token = _login(client)
    r = client.post(
        "/dashboard/invoices/create",
        data={"customerId": "nope", "amount": "3", "status": "paid", "csrf_token": token},
    )
    assert r.status_code == 400
    assert b"Database Error: Failed to Create Invoice." in r.data


def test_update_invoice(app, client):
    with session_scope(app) as s:
        s.add(Invoice(id="i1", customer_id="c1", amount=100, status="pending", date="2026-01-02"))
    token = _login(client)

    r = client.get("/dashboard/invoices/i1/edit")
    assert r.status_code == 200
    assert b'value="1.00"' in r.data

    r = client.post(
        "/dashboard/invoices/i1/edit",
        data={"customerId": "c1", "amount": "250.25", "status": "paid", "csrf_token": token},
    )
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/dashboard/invoices")

    [inv] = _invoices(app)
    assert inv.amount == 25025
    assert inv.status == "paid"
    assert inv.date == "2026-01-02"


def test_update_invoice_validation_failure(app, client):
    with session_scope(app) as s:
        s.add(Invoice(id="i1", customer_id="c1", amount=100, status="pending", date="2026-01-02"))
    token = _login(client)
    r = client.post(
        "/dashboard/invoices/i1/edit",
        data={"customerId": "c1", "amount": "-4", "status": "paid", "csrf_token": token},
    )
    assert r.status_code == 400
    assert b"Missing Fields. Failed to Update Invoice." in r.data
    [inv] = _invoices(app)
    assert inv.amount == 100


def test_edit_missing_invoice_404(client):
    _login(client)
    assert client.get("/dashboard/invoices/missing/edit").status_code == 404


def test_delete_invoice_and_missing_id(app, client):
    with session_scope(app) as s:
        s.add(Invoice(id="i1", customer_id="c1", amount=100, status="pending", date="2026-01-02"))
    token = _login(client)

    r = client.post("/dashboard/invoices/i1/delete", data={"csrf_token": token})
    assert r.status_code == 302
    assert _invoices(app) == []

    r = client.post("/dashboard/invoices/i1/delete", data={"csrf_token": token})
    assert r.status_code == 302


def test_listing_cache_invalidated_only_on_success(app, client):
    token = _login(client)
    cache = app.extensions["listing_cache"]

    r = client.get("/dashboard/invoices")
    assert r.status_code == 200
    assert cache.is_cached(INVOICES_VIEW)

    client.post("/dashboard/invoices/create", data={"amount": "abc", "csrf_token": token})
    assert cache.is_cached(INVOICES_VIEW)

    client.post(
        "/dashboard/invoices/create",
        data={"customerId": "c1", "amount": "12", "status": "paid", "csrf_token": token},
    )
    assert not cache.is_cached(INVOICES_VIEW)

    r = client.get("/dashboard/invoices")
    assert b"Evil Rabbit" in r.data
    assert b"$12.00" in r.data


def test_invoices_list_search(app, client):
    with session_scope(app) as s:
        s.add(Customer(id="c2", name="Delba", email="delba@oliveira.com", image_url="/customers/delba.png"))
        s.add(Invoice(id="i1", customer_id="c1", amount=100, status="pending", date="2026-01-02"))
        s.add(Invoice(id="i2", customer_id="c2", amount=200, status="paid", date="2026-01-03"))
    _login(client)
    r = client.get("/dashboard/invoices?q=delba")
    assert b"Delba" in r.data
    assert b"Evil Rabbit" not in r.data
