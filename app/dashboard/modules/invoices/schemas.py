from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from app.dashboard.forms import form_errors

# Largest amount whose cents fit a 32-bit INTEGER column.
MAX_AMOUNT = Decimal("21474836.47")

FIELD_MESSAGES = {
    "customerId": "Please select a customer.",
    "amount": "Please enter an amount greater than $0.",
    "amount.less_than_equal": "Please enter an amount no greater than $21,474,836.47.",
    "status": "Please select an invoice status.",
}


class InvoiceForm(BaseModel):
    """Create/update input. id and date are never taken from the form."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, frozen=True)

    customer_id: UUID = Field(alias="customerId")
    # dollars; anything below one cent would be stored as 0
    amount: Decimal = Field(ge=Decimal("0.01"), le=MAX_AMOUNT, allow_inf_nan=False)
    status: Literal["pending", "paid"]


def parse_invoice_form(form: Mapping[str, str | None]) -> InvoiceForm:
    raw = {
        "customerId": form.get("customerId"),
        "amount": form.get("amount"),
        "status": form.get("status"),
    }
    try:
        return InvoiceForm.model_validate(raw)
    except PydanticValidationError as e:
        raise form_errors(e, FIELD_MESSAGES) from e
