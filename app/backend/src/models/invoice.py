"""Invoice model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.backend.src.db.base import Base

MONEY = Numeric(12, 2)


class Invoice(Base):
    """Billing header summarising the totals of its line items."""

    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_number: Mapped[str | None] = mapped_column(
        String(128), unique=True, nullable=True, index=True
    )
    # Legacy single-reservation pointer; ``reservation_links`` is authoritative.
    reservation_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    invoice_to: Mapped[str | None] = mapped_column(Text, nullable=True)
    state_for_billing: Mapped[str | None] = mapped_column(String(128), nullable=True)
    pan_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(64), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(16), nullable=True)
    conversion_rate: Mapped[Decimal] = mapped_column(
        Numeric(14, 6), nullable=False, default=Decimal("0")
    )
    sub_total: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    tax_total: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    grand_total: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    display_taxes: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display_food_charge: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    extra_services: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display_currency_conversion: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    services_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    services_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    pdf_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    page_break: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    guest_name_width: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    round_off_value: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    line_items: Mapped[list["InvoiceLineItem"]] = relationship(
        "InvoiceLineItem", back_populates="invoice", cascade="all, delete-orphan"
    )
    reservation_links: Mapped[list["InvoiceReservation"]] = relationship(
        "InvoiceReservation", back_populates="invoice", cascade="all, delete-orphan"
    )

    @property
    def reservation_ids(self) -> list[int]:
        """Return the linked reservation identifiers in ascending order."""

        return sorted(link.reservation_id for link in self.reservation_links)

    def __repr__(self) -> str:
        # pdf_password stays out of reprs and logs.
        return f"<Invoice id={self.id} invoice_number={self.invoice_number!r}>"


__all__ = ["Invoice"]
