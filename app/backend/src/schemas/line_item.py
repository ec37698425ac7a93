"""Invoice line item schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class InvoiceLineItemInput(BaseModel):
    """One submitted line item; numeric fields are coerced by the service."""

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    location: str | None = None
    # The form sends the line description under ``foodTariff``.
    description: str | None = Field(default=None, alias="foodTariff")
    hsn_sac_code: str | None = Field(default=None, alias="gstId")
    days: Any = None
    tariff: Any = None
    tax: Any = None
    total: Any = None
