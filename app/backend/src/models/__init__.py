"""ORM models exposed for easy imports."""

from .invoice import Invoice
from .invoice_reservation import InvoiceReservation
from .line_item import InvoiceLineItem

__all__ = [
    "Invoice",
    "InvoiceLineItem",
    "InvoiceReservation",
]
