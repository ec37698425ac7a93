"""Association between an invoice and the reservations it bills for."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.backend.src.db.base import Base


class InvoiceReservation(Base):
    """Links one invoice to one reservation identifier."""

    __tablename__ = "invoice_reservations"

    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"), primary_key=True
    )
    reservation_id: Mapped[int] = mapped_column(Integer, primary_key=True)

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="reservation_links")


__all__ = ["InvoiceReservation"]
