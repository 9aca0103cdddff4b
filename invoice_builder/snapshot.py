"""Flattened invoice record sent to the persistence service."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from .formatting import ZERO, format_currency, format_number
from .models import Draft, LineItem
from .totals import compute_totals

DEFAULT_SNAPSHOT_NUMBER = "INV-0001"
DEFAULT_STATUS = "Draft"


@dataclass(frozen=True)
class InvoiceSnapshot:
    invoice_number: str
    client_id: Optional[str]
    issue_date: str
    due_date: str
    line_items: str
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    currency: str
    status: str = DEFAULT_STATUS
    notes: str = ""
    custom_footer: str = ""

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict; amounts become floats."""
        return {
            "invoiceNumber": self.invoice_number,
            "clientId": self.client_id,
            "issueDate": self.issue_date,
            "dueDate": self.due_date,
            "lineItems": self.line_items,
            "subtotal": float(self.subtotal),
            "taxRate": float(self.tax_rate),
            "taxAmount": float(self.tax_amount),
            "total": float(self.total),
            "currency": self.currency,
            "status": self.status,
            "notes": self.notes,
            "customFooter": self.custom_footer,
        }


def line_items_text(line_items: Iterable[LineItem], currency: str) -> str:
    """``Design (2 x $50.00)`` per described item, one per line."""
    return "\n".join(
        f"{item.description} ({format_number(item.quantity)} x {format_currency(item.price, currency)})"
        for item in line_items
        if item.description
    )


def build_invoice_snapshot(draft: Draft, status: str = DEFAULT_STATUS) -> InvoiceSnapshot:
    inv = draft.invoice
    totals = compute_totals(draft.line_items, draft.discount, draft.tax)
    return InvoiceSnapshot(
        invoice_number=inv.number or DEFAULT_SNAPSHOT_NUMBER,
        client_id=draft.client.id or None,
        issue_date=inv.issue_date,
        due_date=inv.due_date,
        line_items=line_items_text(draft.line_items, inv.currency),
        subtotal=totals.subtotal,
        tax_rate=draft.tax.rate if draft.tax.enabled else ZERO,
        tax_amount=totals.tax,
        total=totals.total,
        currency=inv.currency,
        status=status,
        notes=inv.note,
        custom_footer=inv.custom_footer,
    )
