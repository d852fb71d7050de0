"""Tests for form parsing and formatting helpers."""
import io
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from werkzeug.datastructures import FileStorage

from app.dashboard.forms import FormValidationError
from app.dashboard.modules.customers.schemas import parse_customer_form
from app.dashboard.modules.invoices.schemas import parse_invoice_form
from app.dashboard.utils import dollars_to_cents, format_currency, generate_pagination, parse_page, total_pages, utc_today


class TestInvoiceForm:
    def test_valid(self):
        cid = uuid.uuid4()
        form = parse_invoice_form({"customerId": str(cid), "amount": "15.5", "status": "paid"})
        assert form.customer_id == cid
        assert form.amount == Decimal("15.5")
        assert form.status == "paid"

    def test_all_errors_reported_once_per_field(self):
        with pytest.raises(FormValidationError) as exc:
            parse_invoice_form({"customerId": None, "amount": "0", "status": None})
        errors = exc.value.by_field()
        assert errors == {
            "customerId": ["Please select a customer."],
            "amount": ["Please enter an amount greater than $0."],
            "status": ["Please select an invoice status."],
        }

    @pytest.mark.parametrize("amount", ["0.001", "0.009", "-0.01"])
    def test_below_one_cent_rejected(self, amount):
        with pytest.raises(FormValidationError) as exc:
            parse_invoice_form({"customerId": str(uuid.uuid4()), "amount": amount, "status": "paid"})
        assert exc.value.by_field() == {"amount": ["Please enter an amount greater than $0."]}

    @pytest.mark.parametrize("amount", ["21474836.48", "1e12", "1e30"])
    def test_amount_that_overflows_cents_rejected(self, amount):
        with pytest.raises(FormValidationError) as exc:
            parse_invoice_form({"customerId": str(uuid.uuid4()), "amount": amount, "status": "paid"})
        assert exc.value.by_field() == {"amount": ["Please enter an amount no greater than $21,474,836.47."]}

    def test_bounds_inclusive(self):
        cid = str(uuid.uuid4())
        assert dollars_to_cents(parse_invoice_form({"customerId": cid, "amount": "0.01", "status": "paid"}).amount) == 1
        top = parse_invoice_form({"customerId": cid, "amount": "21474836.47", "status": "paid"})
        assert dollars_to_cents(top.amount) == 2**31 - 1

    def test_nan_rejected(self):
        with pytest.raises(FormValidationError):
            parse_invoice_form({"customerId": str(uuid.uuid4()), "amount": "NaN", "status": "paid"})


class TestCustomerForm:
    def test_no_file_part(self):
        form = parse_customer_form({"name": " Amy Burns ", "email": "Amy@Burns.com"}, {})
        assert form.name == "Amy Burns"
        assert form.email == "amy@burns.com"
        assert form.image is None

    def test_image_read_from_upload(self):
        f = FileStorage(stream=io.BytesIO(b"img"), filename="a.jpg", content_type="image/jpeg")
        form = parse_customer_form({"name": "A", "email": "a@b.co"}, {"image": f})
        assert form.image.filename == "a.jpg"
        assert form.image.content_type == "image/jpeg"
        assert form.image.size == 3

    def test_non_image_rejected(self):
        f = FileStorage(stream=io.BytesIO(b"%PDF"), filename="a.pdf", content_type="application/pdf")
        with pytest.raises(FormValidationError) as exc:
            parse_customer_form({"name": "A", "email": "a@b.co"}, {"image": f})
        assert exc.value.by_field() == {"image": ["Please upload an image file."]}

    def test_missing_fields(self):
        with pytest.raises(FormValidationError) as exc:
            parse_customer_form({}, {})
        assert set(exc.value.by_field()) == {"name", "email"}


@pytest.mark.parametrize(
    "amount, cents",
    [("12.34", 1234), ("0.01", 1), ("100", 10000), (Decimal("0.005"), 1), (19.99, 1999)],
)
def test_dollars_to_cents(amount, cents):
    assert dollars_to_cents(amount) == cents


def test_format_currency():
    assert format_currency(123456) == "$1,234.56"
    assert format_currency(0) == "$0.00"
    assert format_currency(None) == "$0.00"
    assert format_currency(-250) == "-$2.50"


def test_paging_helpers():
    assert parse_page(None) == 1
    assert parse_page("abc") == 1
    assert parse_page("-3") == 1
    assert parse_page("4") == 4
    assert total_pages(0) == 1
    assert total_pages(6) == 1
    assert total_pages(7) == 2


def test_generate_pagination():
    assert generate_pagination(1, 5) == [1, 2, 3, 4, 5]
    assert generate_pagination(2, 10) == [1, 2, 3, "...", 9, 10]
    assert generate_pagination(9, 10) == [1, 2, "...", 8, 9, 10]
    assert generate_pagination(5, 10) == [1, "...", 4, 5, 6, "...", 10]


def test_utc_today():
    assert utc_today() == datetime.now(timezone.utc).date()
