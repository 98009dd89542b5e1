"""Tests for core/models/invoice.py."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from core.models import (
    CLEARABLE_FIELDS,
    Invoice,
    InvoiceCreate,
    InvoiceCreated,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceUpdate,
    Issuer,
    LineItem,
)


class TestLineItem:

    def test_camel_case_input(self):
        item = LineItem.model_validate({"description": "A", "qty": 2, "unitPrice": 3.5, "taxRate": 20})

        assert item.unit_price == 3.5
        assert item.tax_rate == 20
        assert item.discount is None

    def test_snake_case_input(self):
        item = LineItem(description="A", qty=1, unit_price=0)
        assert item.unit_price == 0

    @pytest.mark.parametrize("field,value", [
        ("qty", 0),
        ("qty", -1),
        ("unitPrice", -0.01),
        ("taxRate", 101),
        ("discount", -5),
        ("description", ""),
        ("qty", 1_000_001),
        ("unitPrice", 1e200),
        ("unitPrice", float("inf")),
        ("qty", float("nan")),
        ("taxRate", float("-inf")),
        ("qty", "2"),
        ("unitPrice", "10.5"),
        ("qty", True),
    ])
    def test_invalid_values(self, field, value):
        data = {"description": "A", "qty": 1, "unitPrice": 1}
        data[field] = value

        with pytest.raises(ValidationError):
            LineItem.model_validate(data)


class TestInvoiceCreate:

    def test_valid_payload(self, payload):
        data = InvoiceCreate.model_validate(payload)

        assert data.issuer.tax_id == "US-123456"
        assert data.issue_date == "2025-01-05"
        assert len(data.items) == 2

    def test_currency_must_be_three_letters(self, payload):
        payload["currency"] = "US"
        with pytest.raises(ValidationError):
            InvoiceCreate.model_validate(payload)

    @pytest.mark.parametrize("currency", ["U$D", "E\u00e9R", "12 ", "\xa4\xa4\xa4"])
    def test_currency_must_be_letters(self, payload, currency):
        payload["currency"] = currency
        with pytest.raises(ValidationError):
            InvoiceCreate.model_validate(payload)

    def test_lowercase_currency_accepted(self, payload):
        payload["currency"] = "eur"
        assert InvoiceCreate.model_validate(payload).currency == "eur"

    def test_bad_email(self, payload):
        payload["customer"]["email"] = "not-an-email"
        with pytest.raises(ValidationError):
            InvoiceCreate.model_validate(payload)

    def test_customer_needs_name(self, payload):
        payload["customer"] = {"email": "ap@globex.com"}
        with pytest.raises(ValidationError):
            InvoiceCreate.model_validate(payload)


class TestInvoiceUpdate:

    def test_absent_fields_not_in_changes(self):
        update = InvoiceUpdate.model_validate({"notes": "x"})
        assert update.changes() == {"notes": "x"}

    def test_empty_payload(self):
        assert InvoiceUpdate.model_validate({}).changes() == {}

    def test_explicit_null_for_clearable_field(self):
        update = InvoiceUpdate.model_validate({"dueDate": None, "terms": None})
        assert update.changes() == {"due_date": None, "terms": None}

    def test_empty_string_is_kept(self):
        assert InvoiceUpdate.model_validate({"notes": ""}).changes() == {"notes": ""}

    @pytest.mark.parametrize("field", ["status", "currency", "locale", "issuer", "customer", "items"])
    def test_null_rejected_for_required_fields(self, field):
        with pytest.raises(ValidationError):
            InvoiceUpdate.model_validate({field: None})

    def test_version_excluded_from_changes(self):
        update = InvoiceUpdate.model_validate({"notes": "x", "version": 3})

        assert update.version == 3
        assert update.changes() == {"notes": "x"}

    def test_version_must_be_positive(self):
        with pytest.raises(ValidationError):
            InvoiceUpdate.model_validate({"version": 0})

    def test_status_parsed(self):
        assert InvoiceUpdate.model_validate({"status": "cancelled"}).status == InvoiceStatus.CANCELLED

    def test_totals_ignored(self):
        update = InvoiceUpdate.model_validate({"totals": {"grandTotal": 1}})
        assert update.changes() == {}

    def test_clearable_fields(self):
        assert CLEARABLE_FIELDS == {"notes", "terms", "issue_date", "due_date"}


class TestInvoice:

    @pytest.fixture
    def invoice(self):
        now = datetime(2025, 1, 5, tzinfo=timezone.utc)
        return Invoice(
            public_id="abc",
            edit_token_hash="f" * 64,
            currency="EUR",
            locale="de-DE",
            issuer=Issuer(name="Acme"),
            customer={"name": "Globex"},
            items=[LineItem(description="A", qty=1, unit_price=5)],
            totals=InvoiceTotals(subtotal=5, tax_total=0, discount_total=0, grand_total=5),
            created_at=now,
            updated_at=now,
        )

    def test_defaults(self, invoice):
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.version == 1

    def test_to_public_is_camel_case_without_hash(self, invoice):
        public = invoice.to_public()

        assert public["publicId"] == "abc"
        assert public["status"] == "draft"
        assert public["totals"]["grandTotal"] == 5.0
        assert public["items"][0]["unitPrice"] == 5.0
        assert public["createdAt"].startswith("2025-01-05")
        assert "editTokenHash" not in public

    def test_hash_excluded_from_json(self, invoice):
        assert "f" * 64 not in invoice.model_dump_json()


def test_created_result_serializes_camel_case():
    created = InvoiceCreated(
        public_id="abc",
        edit_token="tok",
        totals=InvoiceTotals(subtotal=1, tax_total=0, discount_total=0, grand_total=1),
    )

    data = created.model_dump(mode="json", by_alias=True)

    assert data["publicId"] == "abc"
    assert data["editToken"] == "tok"
    assert data["totals"]["taxTotal"] == 0.0
