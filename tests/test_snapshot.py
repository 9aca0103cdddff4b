"""Unit tests for the invoice snapshot sent to Notion."""

from datetime import date
from decimal import Decimal

from invoice_builder.models import Discount, LineItem, Tax, new_draft
from invoice_builder.snapshot import build_invoice_snapshot, line_items_text


def test_line_items_text_skips_undescribed_items():
    items = [LineItem("Design", 2, 50), LineItem("", 1, 10), LineItem("Hosting", 1, "9.5")]
    assert line_items_text(items, "USD") == "Design (2 x $50.00)\nHosting (1 x $9.50)"


def test_build_invoice_snapshot():
    draft = new_draft(today=date(2026, 1, 6), invoice_number="0042")
    draft.client.id = "client-page"
    draft.line_items = [LineItem("A", 1, 200), LineItem("B", 3, 10)]
    draft.discount = Discount("percentage", 10)
    draft.tax = Tax(True, 5)
    draft.invoice.note = "Net 30"

    snap = build_invoice_snapshot(draft)
    assert snap.invoice_number == "0042"
    assert snap.client_id == "client-page"
    assert snap.issue_date == "2026-01-06"
    assert snap.subtotal == Decimal("230")
    assert snap.tax_rate == Decimal("5")
    assert snap.tax_amount == Decimal("10.35")
    assert snap.total == Decimal("217.35")
    assert snap.status == "Draft"
    assert snap.notes == "Net 30"

    payload = snap.to_payload()
    assert payload["invoiceNumber"] == "0042"
    assert payload["total"] == 217.35
    assert payload["lineItems"] == "A (1 x $200.00)\nB (3 x $10.00)"


def test_snapshot_defaults():
    draft = new_draft(today=date(2026, 1, 6))
    draft.tax = Tax(False, 19)
    snap = build_invoice_snapshot(draft)
    assert snap.invoice_number == "INV-0001"
    assert snap.client_id is None
    assert snap.tax_rate == 0
    assert snap.line_items == ""
