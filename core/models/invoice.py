"""Invoice domain models.

Amounts are plain floats in major currency units (10.5 = $10.50); every
derived total is rounded to 2 decimals by core.totals. The wire format is
camelCase, attributes are snake_case.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel


_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)

# Per-line ceilings. Keeps every product and sum far inside float range.
MAX_QTY = 1_000_000
MAX_UNIT_PRICE = 1_000_000_000

CURRENCY_PATTERN = r"^[A-Za-z]{3}$"


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status. No transition graph is enforced by default."""

    DRAFT = "draft"
    ISSUED = "issued"
    PAID = "paid"
    CANCELLED = "cancelled"


class Customer(BaseModel):
    """Bill-to party."""

    model_config = _WIRE_CONFIG

    name: str = Field(..., min_length=1)
    address: str | None = None
    email: EmailStr | None = None
    phone: str | None = None


class Issuer(Customer):
    """Party issuing the invoice. Same as a customer plus a tax id."""

    tax_id: str | None = None


class LineItem(BaseModel):
    """One billable line. Rates are percentages (20 = 20%)."""

    model_config = _WIRE_CONFIG

    description: str = Field(..., min_length=1)
    qty: float = Field(..., gt=0, le=MAX_QTY, strict=True)
    unit_price: float = Field(..., ge=0, le=MAX_UNIT_PRICE, strict=True)
    tax_rate: float | None = Field(None, ge=0, le=100, strict=True)
    discount: float | None = Field(None, ge=0, le=100, strict=True)


class InvoiceTotals(BaseModel):
    """Derived monetary summary. Never accepted from clients."""

    model_config = _WIRE_CONFIG

    subtotal: float
    tax_total: float
    discount_total: float
    grand_total: float


class InvoiceCreate(BaseModel):
    """Payload accepted when creating an invoice.

    Unknown keys (including any client-sent "totals") are ignored.
    """

    model_config = _WIRE_CONFIG

    currency: str = Field("USD", pattern=CURRENCY_PATTERN)
    locale: str = "en-US"
    issuer: Issuer
    customer: Customer
    items: list[LineItem] = Field(..., min_length=1)
    notes: str | None = None
    terms: str | None = None
    issue_date: str | None = None
    due_date: str | None = None


# Optional text fields a PATCH may clear with an explicit null.
CLEARABLE_FIELDS = frozenset({"notes", "terms", "issue_date", "due_date"})


class InvoiceUpdate(BaseModel):
    """Sparse update payload.

    Each field is tri-state: absent (leave untouched), explicit null (clear,
    only for CLEARABLE_FIELDS) or a value. Presence is read from
    model_fields_set, never from truthiness, so "" is a real value.
    """

    model_config = _WIRE_CONFIG

    status: InvoiceStatus | None = None
    currency: str | None = Field(None, pattern=CURRENCY_PATTERN)
    locale: str | None = None
    issuer: Issuer | None = None
    customer: Customer | None = None
    items: list[LineItem] | None = Field(None, min_length=1)
    notes: str | None = None
    terms: str | None = None
    issue_date: str | None = None
    due_date: str | None = None
    version: int | None = Field(None, ge=1)

    @model_validator(mode="after")
    def reject_null_for_required_fields(self) -> "InvoiceUpdate":
        """Only optional text fields may be cleared."""
        for name in self.model_fields_set:
            if name in CLEARABLE_FIELDS or name == "version":
                continue
            if getattr(self, name) is None:
                raise ValueError(f"'{to_camel(name)}' cannot be null")
        return self

    def changes(self) -> dict:
        """Fields the caller actually sent, excluding the version guard."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "version"
        }


class Invoice(BaseModel):
    """Full invoice entity as stored.

    edit_token_hash is excluded from every serialization.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    public_id: str
    edit_token_hash: str = Field(..., exclude=True)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    currency: str
    locale: str
    issuer: Issuer
    customer: Customer
    items: list[LineItem]
    totals: InvoiceTotals
    notes: str | None = None
    terms: str | None = None
    issue_date: str | None = None
    due_date: str | None = None
    version: int = 1
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> dict:
        """JSON-ready camelCase dict for API responses."""
        return self.model_dump(mode="json", by_alias=True)


class InvoiceCreated(BaseModel):
    """Result of a successful create. The only place the edit token appears."""

    model_config = _WIRE_CONFIG

    public_id: str
    edit_token: str
    totals: InvoiceTotals


class InvoiceUpdated(BaseModel):
    """Result of a successful update."""

    model_config = _WIRE_CONFIG

    totals: InvoiceTotals
    version: int
