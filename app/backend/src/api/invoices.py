"""Invoice creation endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.backend.src.schemas.invoice import (
    InvoiceCreateRequest,
    InvoiceCreatedResponse,
    InvoiceTotals,
)
from app.backend.src.services.invoice_creation import (
    DuplicateInvoiceNumberError,
    InvalidAmountError,
    InvoiceStorageError,
    create_invoice,
)
from ..db import get_session_dependency

router = APIRouter(prefix="/invoices", tags=["invoices"])


# --------------------------------------------------------------------------
# POST /invoices
# --------------------------------------------------------------------------
@router.post(
    "",
    response_model=InvoiceCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_invoice_endpoint(
    payload: InvoiceCreateRequest,
    session: Session = Depends(get_session_dependency),
) -> InvoiceCreatedResponse:
    """Create an invoice with its line items and reservation links."""

    try:
        result = create_invoice(session, payload)
    except DuplicateInvoiceNumberError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except InvalidAmountError as exc:
        raise HTTPException(
            status_code=422,
            detail=str(exc),
        ) from exc
    except InvoiceStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc

    return InvoiceCreatedResponse(
        invoice_id=result.invoice_id,
        totals=InvoiceTotals(
            sub_total=result.totals.sub_total,
            tax_total=result.totals.tax_total,
            grand_total=result.totals.grand_total,
        ),
    )
