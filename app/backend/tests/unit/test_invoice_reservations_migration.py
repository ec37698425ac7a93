"""Tests for the invoice reservation migration."""

from __future__ import annotations

import importlib
import os
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_invoice.db")

import pytest
from sqlalchemy import inspect, select, text
from sqlalchemy.exc import IntegrityError

from app.backend.src.db import get_engine, session_scope
from app.backend.src.models import Invoice, InvoiceReservation
from app.backend.src.models.base import Base

migration = importlib.import_module(
    "app.backend.src.db.migrations.20241015_add_invoice_reservations"
)


@pytest.fixture(autouse=True)
def legacy_database() -> None:  # type: ignore[no-untyped-def]
    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    Invoice.__table__.create(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def test_upgrade_creates_table_and_backfills_legacy_links() -> None:
    with session_scope() as session:
        session.add_all(
            [
                Invoice(invoice_number="OLD-1", reservation_id=41),
                Invoice(invoice_number="OLD-2", reservation_id=None),
                Invoice(invoice_number="OLD-3", reservation_id=43),
            ]
        )

    migration.upgrade()

    assert "invoice_reservations" in inspect(get_engine()).get_table_names()
    with session_scope() as session:
        links = session.execute(
            select(InvoiceReservation.reservation_id).order_by(InvoiceReservation.reservation_id)
        ).scalars().all()
    assert links == [41, 43]


def test_upgrade_is_idempotent() -> None:
    with session_scope() as session:
        session.add(Invoice(invoice_number="OLD-1", reservation_id=41))

    migration.upgrade()
    migration.upgrade()

    with session_scope() as session:
        links = session.execute(select(InvoiceReservation)).scalars().all()
    assert len(links) == 1


def test_invoice_numbers_stay_unique_after_upgrade() -> None:
    migration.upgrade()

    with session_scope() as session:
        session.add(Invoice(invoice_number="DUP-1"))

    with pytest.raises(IntegrityError):
        with session_scope() as session:
            session.add(Invoice(invoice_number="DUP-1"))


def test_upgrade_clears_blank_legacy_numbers_before_indexing() -> None:
    engine = get_engine()
    with engine.begin() as connection:
        connection.execute(text("DROP INDEX ix_invoices_invoice_number"))

    with session_scope() as session:
        session.add_all(
            [
                Invoice(invoice_number="", reservation_id=51),
                Invoice(invoice_number="   ", reservation_id=52),
                Invoice(invoice_number="OLD-9", reservation_id=53),
            ]
        )

    migration.upgrade()

    with session_scope() as session:
        numbers = session.execute(
            select(Invoice.invoice_number).order_by(Invoice.id)
        ).scalars().all()
        links = session.execute(select(InvoiceReservation)).scalars().all()
    assert numbers == [None, None, "OLD-9"]
    assert len(links) == 3

    index_names = {index["name"] for index in inspect(engine).get_indexes("invoices")}
    assert "ix_invoices_invoice_number" in index_names
