"""
Shared tail of every dashboard mutation: run one statement, then either report
a failure to the form or mark the listing stale and send the caller to it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Executable

logger = logging.getLogger(__name__)

INVOICES_VIEW = "/dashboard/invoices"
CUSTOMERS_VIEW = "/dashboard/customers"


@dataclass(frozen=True)
class Success:
    redirect_to: str | None = None


@dataclass(frozen=True)
class Failure:
    message: str
    field_errors: dict[str, list[str]] = field(default_factory=dict)


ActionResult = Union[Success, Failure]


class ListingCache:
    """Listing rows per view key, recomputed from the store after invalidation."""

    def __init__(self) -> None:
        self._entries: dict[str, list[dict[str, Any]]] = {}
        self._generations: dict[str, int] = {}
        self._lock = threading.Lock()

    def get_or_load(self, view_key: str, loader: Callable[[], list[dict[str, Any]]]) -> list[dict[str, Any]]:
        with self._lock:
            rows = self._entries.get(view_key)
            generation = self._generations.get(view_key, 0)
        if rows is not None:
            return rows
        rows = loader()
        with self._lock:
            # An invalidation during the load means these rows may already be stale.
            if self._generations.get(view_key, 0) == generation:
                self._entries[view_key] = rows
        return rows

    def invalidate(self, view_key: str) -> None:
        with self._lock:
            self._entries.pop(view_key, None)
            self._generations[view_key] = self._generations.get(view_key, 0) + 1
        logger.debug("Listing cache invalidated: %s", view_key)

    def is_cached(self, view_key: str) -> bool:
        with self._lock:
            return view_key in self._entries


def listing_cache(app=None) -> ListingCache:
    if app is None:
        from flask import current_app

        app = current_app
    return app.extensions["listing_cache"]


def execute_mutation(s: Session, stmt: Executable, *, operation: str, entity: str) -> Failure | None:
    """
    Run a single INSERT/UPDATE/DELETE and commit it.
    Store errors are rolled back, logged and reported generically.
    """
    try:
        s.execute(stmt)
        s.commit()
    except SQLAlchemyError:
        s.rollback()
        logger.exception("%s %s failed", operation, entity)
        return Failure(message=f"Database Error: Failed to {operation} {entity}.")
    return None


def invalidate_and_navigate(views: ListingCache, view_key: str) -> Success:
    views.invalidate(view_key)
    return Success(redirect_to=view_key)


def invalidate_only(views: ListingCache, view_key: str) -> Success:
    views.invalidate(view_key)
    return Success()
