"""Invoice schemas."""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from .line_item import InvoiceLineItemInput

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class InvoiceCreateRequest(BaseModel):
    """Payload accepted by ``POST /invoices``."""

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    invoice_number: str | None = Field(default=None, alias="apartmentBillNo")
    reservation_ids: list[int] | None = Field(default=None, alias="reservationIds")
    line_items: list[InvoiceLineItemInput] | None = Field(default=None, alias="lineItems")
    date: Any = None
    invoice_to: str | None = Field(default=None, alias="invoiceTo")
    state_for_billing: str | None = Field(default=None, alias="stateForBilling")
    pan: str | None = None
    status: str | None = None
    payment_method: str | None = Field(default=None, alias="paymentMethod")
    currency: str | None = None
    conversion_rate: Any = Field(default=None, alias="conversionRate")
    display_taxes: Any = Field(default=None, alias="displayTaxes")
    display_food_charge: Any = Field(default=None, alias="displayFoodCharge")
    extra_services: Any = Field(default=None, alias="extraServices")
    display_currency_conversion: Any = Field(
        default=None, alias="displayCurrencyConversion"
    )
    services_name: str | None = Field(default=None, alias="servicesName")
    services_amount: Any = Field(default=None, alias="servicesAmount")
    pdf_password: str | None = Field(default=None, alias="pdfPassword", repr=False)
    page_break: Any = Field(default=None, alias="pageBreak")
    guest_name_width: Any = Field(default=None, alias="guestNameWidth")
    round_off_value: Any = Field(default=None, alias="roundOffValue")


class InvoiceTotals(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sub_total: Money = Field(alias="subTotal")
    tax_total: Money = Field(alias="taxTotal")
    grand_total: Money = Field(alias="grandTotal")


class InvoiceCreatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Invoice created successfully"
    invoice_id: int = Field(alias="invoiceId")
    totals: InvoiceTotals
