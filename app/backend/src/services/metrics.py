"""Prometheus metric definitions for invoice creation."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

invoice_creations_total = Counter(
    "invoice_creations_total",
    "Total invoice creation attempts by outcome.",
    labelnames=["outcome"],
)

invoice_creation_seconds = Histogram(
    "invoice_creation_seconds",
    "Time spent creating a single invoice, including the database round trips.",
)

__all__ = [
    "invoice_creation_seconds",
    "invoice_creations_total",
]
