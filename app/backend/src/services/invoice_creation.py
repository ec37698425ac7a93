"""Transactional creation of invoices with their line items and reservation links."""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import structlog
from sqlalchemy import Column, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.backend.src.core.config import InvalidAmountPolicy, get_settings
from app.backend.src.models import Invoice, InvoiceLineItem, InvoiceReservation
from app.backend.src.schemas.invoice import InvoiceCreateRequest
from app.backend.src.services.coercion import (
    ZERO,
    AmountKind,
    blank_to_none,
    normalize_invoice_date,
    parse_amount,
    parse_yes_no,
)
from app.backend.src.services.metrics import (
    invoice_creation_seconds,
    invoice_creations_total,
)

LOGGER = structlog.get_logger(__name__)

_INVOICE_COLUMNS = Invoice.__table__.c
_ITEM_COLUMNS = InvoiceLineItem.__table__.c


class InvoiceCreationError(Exception):
    """Base class for failures raised while creating an invoice."""


class DuplicateInvoiceNumberError(InvoiceCreationError):
    """Raised when the requested invoice number is already in use."""

    def __init__(self, invoice_number: str) -> None:
        self.invoice_number = invoice_number
        super().__init__(f"Invoice number {invoice_number} already exists.")


class InvalidAmountError(InvoiceCreationError):
    """Raised when a numeric field holds a value that cannot be stored."""

    def __init__(self, field_name: str, value: Any) -> None:
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid numeric value for {field_name}: {value!r}")


class InvoiceStorageError(InvoiceCreationError):
    """Raised when the data store fails during the write sequence."""

    def __init__(self) -> None:
        super().__init__("Failed to create invoice")


@dataclass(frozen=True)
class InvoiceTotals:
    sub_total: Decimal = ZERO
    tax_total: Decimal = ZERO
    grand_total: Decimal = ZERO


@dataclass(frozen=True)
class LineItemDraft:
    location: str | None
    description: str | None
    hsn_sac_code: str | None
    days: Decimal
    rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class InvoiceDraft:
    """Fully coerced invoice data, ready to be written."""

    invoice_number: str | None
    reservation_ids: tuple[int, ...]
    line_items: tuple[LineItemDraft, ...]
    header: dict[str, Any] = field(default_factory=dict)

    @property
    def primary_reservation_id(self) -> int | None:
        return self.reservation_ids[0] if self.reservation_ids else None


@dataclass(frozen=True)
class InvoiceCreationResult:
    invoice_id: int
    totals: InvoiceTotals


def _fit_column(amount: Decimal, column: Column[Any]) -> Decimal | None:
    """Round ``amount`` half-up to the scale of ``column``.

    Returns ``None`` when the value has more integer digits than the column's
    ``Numeric(precision, scale)`` can hold.
    """

    precision, scale = column.type.precision, column.type.scale
    limit = Decimal(10) ** (precision - scale)
    if abs(amount) >= limit:
        return None
    rounded = amount.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)
    if abs(rounded) >= limit:
        return None
    return rounded


class _AmountReader:
    """Apply the configured policy to numeric-ish request values.

    Accepted values come back rounded to the scale of their target column, so
    totals summed from them equal what the database stores.
    """

    def __init__(self, policy: InvalidAmountPolicy) -> None:
        self.policy = policy

    def read(
        self,
        value: Any,
        field_name: str,
        column: Column[Any],
        *,
        allow_negative: bool = False,
    ) -> Decimal:
        parsed = parse_amount(value)
        if parsed.kind is not AmountKind.INVALID and (allow_negative or parsed.value >= 0):
            amount = _fit_column(parsed.value, column)
            if amount is not None:
                return amount

        if self.policy == "reject":
            raise InvalidAmountError(field_name, value)

        LOGGER.warning("invalid_amount_coerced", field=field_name, value=repr(value))
        return ZERO


def build_invoice_draft(
    request: InvoiceCreateRequest,
    *,
    policy: InvalidAmountPolicy | None = None,
) -> InvoiceDraft:
    """Coerce every loosely typed field of ``request``.

    Raises :class:`InvalidAmountError` under the ``reject`` policy before any
    database work happens.
    """

    reader = _AmountReader(policy or get_settings().invalid_amount_policy)

    line_items = []
    for index, item in enumerate(request.line_items or []):
        prefix = f"lineItems[{index}]"
        line_items.append(
            LineItemDraft(
                location=item.location,
                description=item.description,
                hsn_sac_code=item.hsn_sac_code,
                days=reader.read(item.days, f"{prefix}.days", _ITEM_COLUMNS.days),
                rate=reader.read(item.tariff, f"{prefix}.tariff", _ITEM_COLUMNS.rate),
                tax_amount=reader.read(item.tax, f"{prefix}.tax", _ITEM_COLUMNS.tax_amount),
                total_amount=reader.read(
                    item.total, f"{prefix}.total", _ITEM_COLUMNS.total_amount
                ),
            )
        )

    invoice_date = normalize_invoice_date(request.date)
    if invoice_date is None and blank_to_none(request.date) is not None:
        LOGGER.info("invoice_date_unparsed", value=str(request.date))

    header = {
        "invoice_date": invoice_date,
        "invoice_to": request.invoice_to,
        "state_for_billing": request.state_for_billing,
        "pan_number": request.pan,
        "status": request.status,
        "payment_method": request.payment_method,
        "currency": request.currency,
        "conversion_rate": reader.read(
            request.conversion_rate, "conversionRate", _INVOICE_COLUMNS.conversion_rate
        ),
        "display_taxes": parse_yes_no(request.display_taxes),
        "display_food_charge": parse_yes_no(request.display_food_charge),
        "extra_services": parse_yes_no(request.extra_services),
        "display_currency_conversion": parse_yes_no(request.display_currency_conversion),
        "services_name": request.services_name,
        "services_amount": reader.read(
            request.services_amount, "servicesAmount", _INVOICE_COLUMNS.services_amount
        ),
        "pdf_password": request.pdf_password,
        "page_break": reader.read(
            request.page_break, "pageBreak", _INVOICE_COLUMNS.page_break
        ),
        "guest_name_width": reader.read(
            request.guest_name_width, "guestNameWidth", _INVOICE_COLUMNS.guest_name_width
        ),
        "round_off_value": reader.read(
            request.round_off_value,
            "roundOffValue",
            _INVOICE_COLUMNS.round_off_value,
            allow_negative=True,
        ),
    }

    return InvoiceDraft(
        invoice_number=blank_to_none(request.invoice_number),
        reservation_ids=tuple(request.reservation_ids or ()),
        line_items=tuple(line_items),
        header=header,
    )


def compute_totals(line_items: Iterable[LineItemDraft]) -> InvoiceTotals:
    """Sum rate, tax and total amounts in submission order."""

    sub_total = tax_total = grand_total = ZERO
    for item in line_items:
        sub_total += item.rate
        tax_total += item.tax_amount
        grand_total += item.total_amount
    return InvoiceTotals(sub_total=sub_total, tax_total=tax_total, grand_total=grand_total)


def _ensure_totals_fit(totals: InvoiceTotals) -> None:
    """Raise :class:`InvalidAmountError` when a header total overflows its column."""

    for field_name, column_name in (
        ("subTotal", "sub_total"),
        ("taxTotal", "tax_total"),
        ("grandTotal", "grand_total"),
    ):
        amount = getattr(totals, column_name)
        if _fit_column(amount, _INVOICE_COLUMNS[column_name]) is None:
            raise InvalidAmountError(field_name, amount)


def _invoice_number_taken(session: Session, invoice_number: str) -> bool:
    existing = session.execute(
        select(Invoice.id).where(Invoice.invoice_number == invoice_number)
    ).first()
    return existing is not None


def _insert_reservation_links(
    session: Session,
    invoice_id: int,
    reservation_ids: Sequence[int],
    *,
    dialect: str | None = None,
) -> None:
    """Link the invoice to each distinct reservation, ignoring existing pairs.

    Dialects without a native conflict clause check for the pair before
    inserting it.
    """

    dialect = dialect or session.get_bind().dialect.name
    for reservation_id in dict.fromkeys(reservation_ids):
        values = {"invoice_id": invoice_id, "reservation_id": reservation_id}
        if dialect == "postgresql":
            statement = postgresql.insert(InvoiceReservation).values(**values)
            session.execute(statement.on_conflict_do_nothing())
        elif dialect == "sqlite":
            statement = sqlite.insert(InvoiceReservation).values(**values)
            session.execute(statement.on_conflict_do_nothing())
        else:
            exists = session.execute(
                select(InvoiceReservation.reservation_id).where(
                    InvoiceReservation.invoice_id == invoice_id,
                    InvoiceReservation.reservation_id == reservation_id,
                )
            ).first()
            if exists is None:
                session.execute(insert(InvoiceReservation).values(**values))


def _write_invoice(session: Session, draft: InvoiceDraft, totals: InvoiceTotals) -> int:
    invoice = Invoice(
        invoice_number=draft.invoice_number,
        reservation_id=draft.primary_reservation_id,
        sub_total=totals.sub_total,
        tax_total=totals.tax_total,
        grand_total=totals.grand_total,
        **draft.header,
    )
    session.add(invoice)
    session.flush()
    invoice_id = invoice.id

    _insert_reservation_links(session, invoice_id, draft.reservation_ids)

    # One INSERT per line item, in submission order.
    for item in draft.line_items:
        session.add(
            InvoiceLineItem(
                invoice_id=invoice_id,
                location=item.location,
                description=item.description,
                hsn_sac_code=item.hsn_sac_code,
                days=item.days,
                rate=item.rate,
                tax_amount=item.tax_amount,
                total_amount=item.total_amount,
            )
        )
        session.flush()

    return invoice_id


def create_invoice(
    session: Session,
    request: InvoiceCreateRequest,
    *,
    policy: InvalidAmountPolicy | None = None,
) -> InvoiceCreationResult:
    """Create an invoice, its reservation links and its line items atomically.

    The header totals are computed from the submitted line items. Totals too
    large for the header columns are rejected with :class:`InvalidAmountError`
    whatever the amount policy. Everything is committed together; on any
    storage failure the transaction is rolled back and
    :class:`InvoiceStorageError` is raised with the original error chained.
    The caller owns ``session`` and is responsible for closing it.
    """

    started = time.perf_counter()
    outcome = "failed"
    try:
        try:
            draft = build_invoice_draft(request, policy=policy)
            totals = compute_totals(draft.line_items)
            _ensure_totals_fit(totals)
        except InvalidAmountError as exc:
            outcome = "invalid"
            LOGGER.info("invoice_rejected_invalid_amount", field=exc.field_name)
            raise

        try:
            if draft.invoice_number is not None and _invoice_number_taken(
                session, draft.invoice_number
            ):
                session.rollback()
                outcome = "duplicate"
                LOGGER.info(
                    "invoice_duplicate_rejected", invoice_number=draft.invoice_number
                )
                raise DuplicateInvoiceNumberError(draft.invoice_number)

            invoice_id = _write_invoice(session, draft, totals)
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            # A concurrent request may have claimed the number after our check.
            try:
                taken = draft.invoice_number is not None and _invoice_number_taken(
                    session, draft.invoice_number
                )
            except SQLAlchemyError:
                taken = False
            session.rollback()
            if taken:
                outcome = "duplicate"
                LOGGER.info(
                    "invoice_duplicate_rejected",
                    invoice_number=draft.invoice_number,
                    detected_by="constraint",
                )
                raise DuplicateInvoiceNumberError(draft.invoice_number) from exc
            LOGGER.exception(
                "invoice_creation_failed", invoice_number=draft.invoice_number
            )
            raise InvoiceStorageError() from exc
        except SQLAlchemyError as exc:
            session.rollback()
            LOGGER.exception(
                "invoice_creation_failed", invoice_number=draft.invoice_number
            )
            raise InvoiceStorageError() from exc

        outcome = "created"
        LOGGER.info(
            "invoice_created",
            invoice_id=invoice_id,
            invoice_number=draft.invoice_number,
            line_items=len(draft.line_items),
            reservations=len(set(draft.reservation_ids)),
            grand_total=str(totals.grand_total),
        )
        return InvoiceCreationResult(invoice_id=invoice_id, totals=totals)
    finally:
        invoice_creations_total.labels(outcome=outcome).inc()
        invoice_creation_seconds.observe(time.perf_counter() - started)


__all__ = [
    "DuplicateInvoiceNumberError",
    "InvalidAmountError",
    "InvoiceCreationError",
    "InvoiceCreationResult",
    "InvoiceDraft",
    "InvoiceStorageError",
    "InvoiceTotals",
    "LineItemDraft",
    "build_invoice_draft",
    "compute_totals",
    "create_invoice",
]
