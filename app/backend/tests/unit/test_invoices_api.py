"""API tests for the invoice creation endpoint."""

from __future__ import annotations

import os
import sqlite3
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_invoice.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event, func, select

from app.backend.src.db import get_engine, session_scope
from app.backend.src.main import app
from app.backend.src.models import Invoice, InvoiceLineItem, InvoiceReservation
from app.backend.src.models.base import Base


@pytest.fixture(autouse=True)
def setup_database() -> None:  # type: ignore[no-untyped-def]
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture()
def invoice_payload() -> dict[str, object]:
    return {
        "apartmentBillNo": "APT-2024-001",
        "reservationIds": [5, 7, 7],
        "date": "03/21/2024",
        "invoiceTo": "Jane Guest",
        "stateForBilling": "Karnataka",
        "pan": "ABCDE1234F",
        "status": "Unpaid",
        "paymentMethod": "Card",
        "currency": "INR",
        "conversionRate": "1",
        "displayTaxes": "Yes",
        "displayFoodCharge": "No",
        "extraServices": "Yes",
        "servicesName": "Airport pickup",
        "servicesAmount": "",
        "pdfPassword": "guest-pdf",
        "pageBreak": None,
        "guestNameWidth": "30",
        "roundOffValue": "0",
        "lineItems": [
            {
                "location": "Apartment 4B",
                "foodTariff": "Stay charges",
                "gstId": "996311",
                "days": "3",
                "tariff": "9000",
                "tax": "1080",
                "total": "10080",
            },
            {
                "location": "Apartment 4B",
                "foodTariff": "Breakfast",
                "gstId": "996331",
                "days": "3",
                "tariff": "",
                "tax": None,
                "total": "150",
            },
        ],
    }


def _row_counts() -> tuple[int, int, int]:
    with session_scope() as session:
        return (
            session.scalar(select(func.count()).select_from(Invoice)),
            session.scalar(select(func.count()).select_from(InvoiceReservation)),
            session.scalar(select(func.count()).select_from(InvoiceLineItem)),
        )


def test_create_invoice_returns_id_and_totals(client: TestClient, invoice_payload: dict[str, object]) -> None:
    response = client.post("/api/invoices", json=invoice_payload)

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["message"] == "Invoice created successfully"
    assert isinstance(data["invoiceId"], int)
    assert data["totals"] == {"subTotal": 9000.0, "taxTotal": 1080.0, "grandTotal": 10230.0}
    assert _row_counts() == (1, 2, 2)

    with session_scope() as session:
        invoice = session.get(Invoice, data["invoiceId"])
        assert invoice is not None
        assert invoice.reservation_id == 5
        assert invoice.invoice_date.isoformat() == "2024-03-21"
        assert invoice.extra_services is True
        assert invoice.display_food_charge is False
    assert get_engine().pool.checkedout() == 0


def test_duplicate_invoice_number_returns_400(client: TestClient, invoice_payload: dict[str, object]) -> None:
    first = client.post("/api/invoices", json=invoice_payload)
    assert first.status_code == 201, first.text

    second = client.post("/api/invoices", json=invoice_payload)

    assert second.status_code == 400
    assert second.json() == {"detail": "Invoice number APT-2024-001 already exists."}
    assert _row_counts() == (1, 2, 2)
    assert get_engine().pool.checkedout() == 0


def test_non_numeric_amount_returns_422(client: TestClient, invoice_payload: dict[str, object]) -> None:
    invoice_payload["lineItems"][0]["total"] = "ten thousand"  # type: ignore[index]

    response = client.post("/api/invoices", json=invoice_payload)

    assert response.status_code == 422
    assert "lineItems[0].total" in response.json()["detail"]
    assert _row_counts() == (0, 0, 0)


def test_malformed_payload_is_rejected(client: TestClient) -> None:
    response = client.post("/api/invoices", json={"lineItems": "not-a-list"})

    assert response.status_code == 422
    assert _row_counts() == (0, 0, 0)


def test_storage_failure_returns_generic_500(client: TestClient, invoice_payload: dict[str, object]) -> None:
    engine = get_engine()

    def _fail_line_items(conn, cursor, statement, parameters, context, executemany):  # type: ignore[no-untyped-def]
        if statement.lstrip().upper().startswith("INSERT INTO INVOICE_ITEMS"):
            raise sqlite3.OperationalError("database is locked")

    event.listen(engine, "before_cursor_execute", _fail_line_items)
    try:
        response = client.post("/api/invoices", json=invoice_payload)
    finally:
        event.remove(engine, "before_cursor_execute", _fail_line_items)

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to create invoice"}
    assert "locked" not in response.text
    assert _row_counts() == (0, 0, 0)
    assert engine.pool.checkedout() == 0


def test_liveness_and_readiness(client: TestClient) -> None:
    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "live"

    ready = client.get("/api/health/ready")
    assert ready.status_code == 200, ready.text
    assert ready.json() == {"status": "ready"}


def test_readiness_reports_missing_schema(client: TestClient) -> None:
    InvoiceReservation.__table__.drop(bind=get_engine())

    response = client.get("/api/health/ready")

    assert response.status_code == 503
    assert "invoice_reservations" in response.json()["detail"]


def test_metrics_endpoint_exposes_invoice_counters(client: TestClient, invoice_payload: dict[str, object]) -> None:
    client.post("/api/invoices", json=invoice_payload)

    response = client.get("/api/metrics")

    assert response.status_code == 200
    assert "invoice_creations_total" in response.text
