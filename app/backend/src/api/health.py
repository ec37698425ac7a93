"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import inspect, text
from sqlalchemy.orm import Session

from ..db import get_session_dependency

router = APIRouter(tags=["health"])

REQUIRED_TABLES = ("invoices", "invoice_items", "invoice_reservations")


@router.get("/health/live")
def liveness() -> dict[str, str]:
    """Return a liveness indicator."""

    return {"status": "live"}


@router.get("/health/ready")
def readiness(session: Session = Depends(get_session_dependency)) -> dict[str, str]:
    """Return readiness, requiring a healthy connection and the invoice schema."""

    session.execute(text("SELECT 1"))
    existing = set(inspect(session.connection()).get_table_names())
    missing = [name for name in REQUIRED_TABLES if name not in existing]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Missing tables: {', '.join(missing)}",
        )
    return {"status": "ready"}


@router.get("/metrics")
def metrics() -> Response:
    """Expose Prometheus metrics."""

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
