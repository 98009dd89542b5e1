"""Core domain models."""

from core.models.invoice import (
    CLEARABLE_FIELDS,
    Customer,
    Invoice,
    InvoiceCreate,
    InvoiceCreated,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceUpdate,
    InvoiceUpdated,
    Issuer,
    LineItem,
)

__all__ = [
    # Parties
    "Customer", "Issuer",
    # Lines and totals
    "LineItem", "InvoiceTotals",
    # Invoice
    "Invoice", "InvoiceCreate", "InvoiceUpdate", "InvoiceStatus", "CLEARABLE_FIELDS",
    # Results
    "InvoiceCreated", "InvoiceUpdated",
]
