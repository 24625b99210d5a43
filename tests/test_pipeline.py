from decimal import Decimal

from sqlalchemy.exc import OperationalError

from app.dashboard.modules.invoices.service import create_invoice, delete_invoice
from app.dashboard.pipeline import INVOICES_VIEW, Failure, ListingCache, Success


class _BrokenSession:
    """Stands in for a Session whose connection is gone."""

    def __init__(self):
        self.rolled_back = False
        self.committed = False

    def execute(self, stmt):
        raise OperationalError(str(stmt), {}, ConnectionRefusedError("connection refused"))

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True


class _RecordingSession(_BrokenSession):
    def __init__(self):
        super().__init__()
        self.statements = []

    def execute(self, stmt):
        self.statements.append(stmt)


def test_listing_cache_loads_once_until_invalidated():
    cache = ListingCache()
    calls = []

    def loader():
        calls.append(1)
        return [{"id": len(calls)}]

    assert cache.get_or_load("/v", loader) == [{"id": 1}]
    assert cache.get_or_load("/v", loader) == [{"id": 1}]
    cache.invalidate("/v")
    assert not cache.is_cached("/v")
    assert cache.get_or_load("/v", loader) == [{"id": 2}]
    cache.invalidate("/never-loaded")


def test_listing_cache_drops_rows_loaded_across_an_invalidation():
    cache = ListingCache()

    def loader():
        cache.invalidate("/v")
        return [{"id": "stale"}]

    assert cache.get_or_load("/v", loader) == [{"id": "stale"}]
    assert not cache.is_cached("/v")


def test_store_failure_becomes_generic_message_without_invalidation():
    cache = ListingCache()
    cache.get_or_load(INVOICES_VIEW, lambda: [])
    s = _BrokenSession()

    result = create_invoice(s, {"customerId": "c1", "amount": "10.50", "status": "pending"}, views=cache)

    assert result == Failure(message="Database Error: Failed to Create Invoice.")
    assert s.rolled_back and not s.committed
    assert cache.is_cached(INVOICES_VIEW)


def test_validation_failure_never_reaches_store():
    s = _RecordingSession()
    result = create_invoice(s, {"amount": "0"}, views=ListingCache())
    assert isinstance(result, Failure)
    assert result.field_errors["amount"] == ["Please enter an amount greater than $0."]
    assert s.statements == []


def test_create_runs_exactly_one_bound_insert():
    s = _RecordingSession()
    result = create_invoice(s, {"customerId": "c1", "amount": Decimal("10.50"), "status": "paid"}, views=ListingCache())
    assert result == Success(redirect_to=INVOICES_VIEW)
    [stmt] = s.statements
    compiled = stmt.compile()
    assert "INSERT INTO invoices" in str(compiled)
    assert compiled.params["amount"] == 1050
    assert compiled.params["customer_id"] == "c1"
    assert s.committed


def test_delete_invalidates_without_navigation():
    cache = ListingCache()
    cache.get_or_load(INVOICES_VIEW, lambda: [])
    result = delete_invoice(_RecordingSession(), "i1", views=cache)
    assert result == Success(redirect_to=None)
    assert not cache.is_cached(INVOICES_VIEW)
