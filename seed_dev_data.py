"""Seed the development database with a demo invoice."""

from app.backend.src.db import get_session, init_db
from app.backend.src.schemas.invoice import InvoiceCreateRequest
from app.backend.src.services.invoice_creation import (
    DuplicateInvoiceNumberError,
    create_invoice,
)

DEMO_INVOICE = {
    "apartmentBillNo": "DEMO-0001",
    "reservationIds": [101, 102],
    "date": "03/21/2024",
    "invoiceTo": "Demo Guest",
    "stateForBilling": "Karnataka",
    "pan": "ABCDE1234F",
    "status": "Unpaid",
    "paymentMethod": "Bank Transfer",
    "currency": "INR",
    "conversionRate": "1",
    "displayTaxes": "Yes",
    "displayFoodCharge": "No",
    "extraServices": "No",
    "pdfPassword": "demo",
    "pageBreak": "0",
    "guestNameWidth": "40",
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
            "tariff": "1500",
            "tax": "75",
            "total": "1575",
        },
    ],
}


def main() -> None:
    """Create tables (if needed) and ensure the demo invoice exists."""

    init_db()

    request = InvoiceCreateRequest.model_validate(DEMO_INVOICE)
    with get_session() as session:
        try:
            result = create_invoice(session, request)
        except DuplicateInvoiceNumberError:
            print(f"Invoice {request.invoice_number} already present, nothing to do.")
            return

    print("✅ Development data ready!")
    print(f"Invoice {request.invoice_number} [id={result.invoice_id}]")
    print(
        f"Totals: sub={result.totals.sub_total} tax={result.totals.tax_total} "
        f"grand={result.totals.grand_total}"
    )


if __name__ == "__main__":
    main()
