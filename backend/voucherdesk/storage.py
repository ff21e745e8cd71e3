# Overview: Entity store contract over the SQLAlchemy session, injected into services.

"""
Storage layer.

Every entity type gets an EntityStore offering the same small contract:
get / list / create / update / delete. Services never touch the ORM
session directly; they receive a Storage and go through its stores, so a
different backend only has to provide objects with the same methods.

Writes are flushed, not committed. Storage.transaction() is the unit of
work: everything done inside it commits together or not at all.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from flask import current_app
from sqlalchemy.exc import IntegrityError

from .errors import ConflictError, NotFoundError
from .models import User, SessionToken, Voucher, Distribution, EmployeeStock, Sale, CustomerVoucher
from .services.concurrency import lock_for_update

STORAGE_EXTENSION_KEY = "voucherdesk.storage"


class EntityStore:
    """Keyed collection of one model type."""

    def __init__(self, session, model, *, label: str | None = None):
        self.session = session
        self.model = model
        self.label = label or model.__name__

    def _query(self, *criteria, **filters):
        query = self.session.query(self.model)
        if criteria:
            query = query.filter(*criteria)
        if filters:
            query = query.filter_by(**filters)
        return query

    def get(self, entity_id: int, *, lock: bool = False):
        """Return the record with this id, or None."""
        query = self._query(id=entity_id)
        if lock:
            query = lock_for_update(query)
        return query.first()

    def find(self, *criteria, lock: bool = False, **filters):
        """Return the first record matching the filters, or None."""
        query = self._query(*criteria, **filters)
        if lock:
            query = lock_for_update(query)
        return query.order_by(self.model.id).first()

    def list(self, *criteria, order_by=None, **filters) -> list:
        """
        List records, optionally narrowed by SQLAlchemy criteria and/or
        column equality filters. Ordered by id unless order_by is given.
        """
        query = self._query(*criteria, **filters)
        query = query.order_by(order_by if order_by is not None else self.model.id)
        return query.all()

    def count(self, *criteria, **filters) -> int:
        return self._query(*criteria, **filters).count()

    def _flush(self, conflict_message: str) -> None:
        # An IntegrityError poisons the session; roll back before reporting it.
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError(conflict_message) from exc

    def create(self, **data):
        """Insert a record; id and created_at are assigned on flush."""
        record = self.model(**data)
        self.session.add(record)
        self._flush(f"{self.label} conflicts with an existing record")
        return record

    def update(self, entity_id: int, patch: dict[str, Any]):
        """Merge patch into the record. Raises NotFoundError if absent."""
        record = self.get(entity_id)
        if record is None:
            raise NotFoundError(f"{self.label} not found")
        for key, value in patch.items():
            setattr(record, key, value)
        self._flush(f"{self.label} conflicts with an existing record")
        return record

    def delete(self, entity_id: int) -> bool:
        """Hard delete. Returns False when nothing had that id."""
        record = self.get(entity_id)
        if record is None:
            return False
        self.session.delete(record)
        self._flush(f"{self.label} is still referenced and cannot be deleted")
        return True


class Storage:
    """The full set of entity stores sharing one session."""

    def __init__(self, session):
        self.session = session
        self.users = EntityStore(session, User)
        self.sessions = EntityStore(session, SessionToken, label="Session")
        self.vouchers = EntityStore(session, Voucher)
        self.distributions = EntityStore(session, Distribution)
        self.employee_stocks = EntityStore(session, EmployeeStock, label="Employee stock")
        self.sales = EntityStore(session, Sale)
        self.customer_vouchers = EntityStore(session, CustomerVoucher, label="Customer voucher")

    @contextmanager
    def transaction(self) -> Iterator["Storage"]:
        """Commit everything done inside the block, or roll all of it back."""
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def rollback(self) -> None:
        self.session.rollback()


def get_storage() -> Storage:
    """Storage registered on the current app by create_app()."""
    return current_app.extensions[STORAGE_EXTENSION_KEY]
