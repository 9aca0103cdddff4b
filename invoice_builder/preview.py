"""Preview projector: derive every display value of the invoice from a draft."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .formatting import (
    format_currency,
    format_date_short,
    format_number,
)
from .models import DISCOUNT_NONE, DISCOUNT_PERCENTAGE, Draft, Party
from .totals import Totals, compute_totals

DEFAULT_INVOICE_NUMBER = "0001"
DEFAULT_COMPANY_NAME = "Your Company"
DEFAULT_COMPANY_EMAIL = "contact@example.com"
DEFAULT_CLIENT_NAME = "Client Company"
DEFAULT_CLIENT_EMAIL = "client@example.com"
DEFAULT_LOGO = "C"
FOOTER_BRAND = "Invoice Builder"
DEFAULT_FOOTER = f"Powered by {FOOTER_BRAND}"
ADDRESS_PLACEHOLDER = "Address"
EMPTY_TEXT = "-"

LOGO_TEXT = "text"
LOGO_IMAGE = "image"


@dataclass(frozen=True)
class LogoView:
    kind: str  # LOGO_TEXT or LOGO_IMAGE
    value: str


@dataclass(frozen=True)
class PartyView:
    name: str
    email: str
    logo: LogoView
    address: str  # newline-separated lines


@dataclass(frozen=True)
class LineItemView:
    description: str
    quantity: str
    unit_price: str
    line_total: str


@dataclass(frozen=True)
class SummaryRow:
    visible: bool
    label: str
    amount: str


@dataclass(frozen=True)
class PreviewModel:
    invoice_number: str
    issue_date: str
    due_date: str
    currency: str
    company: PartyView
    client: PartyView
    line_items: Tuple[LineItemView, ...]
    note: str
    subtotal: str
    discount: SummaryRow
    tax: SummaryRow
    total: str
    footer: str
    footer_is_default: bool
    totals: Totals


def _initial(party: Party) -> str:
    return party.logo or party.name[:1] or DEFAULT_LOGO


def format_address(party: Party, include_tax_id: bool = False) -> str:
    parts = []
    if party.address:
        parts.append(party.address)
    city_state_zip = ", ".join(p for p in (party.city, party.state, party.zip) if p)
    if city_state_zip:
        parts.append(city_state_zip)
    if party.country:
        parts.append(party.country)
    if include_tax_id and party.tax_id:
        parts.append(f"Tax ID: {party.tax_id}")
    return "\n".join(parts) or ADDRESS_PLACEHOLDER


def _company_view(company: Party) -> PartyView:
    return PartyView(
        name=company.name or DEFAULT_COMPANY_NAME,
        email=company.email or DEFAULT_COMPANY_EMAIL,
        logo=LogoView(LOGO_TEXT, _initial(company)),
        address=format_address(company),
    )


def _client_view(client: Party) -> PartyView:
    # A resolved logo URL wins over the typed initial
    if client.logo_url:
        logo = LogoView(LOGO_IMAGE, client.logo_url)
    else:
        logo = LogoView(LOGO_TEXT, _initial(client))
    return PartyView(
        name=client.name or DEFAULT_CLIENT_NAME,
        email=client.email or DEFAULT_CLIENT_EMAIL,
        logo=logo,
        address=format_address(client, include_tax_id=True),
    )


def project(draft: Draft) -> PreviewModel:
    inv = draft.invoice
    currency = inv.currency
    totals = compute_totals(draft.line_items, draft.discount, draft.tax)

    items = tuple(
        LineItemView(
            description=item.description or EMPTY_TEXT,
            quantity=format_number(item.quantity),
            unit_price=format_currency(item.price, currency),
            line_total=format_currency(item.line_total, currency),
        )
        for item in draft.line_items
    )

    discount = draft.discount
    discount_visible = discount.type != DISCOUNT_NONE and discount.value > 0
    if discount.type == DISCOUNT_PERCENTAGE:
        discount_label = f"Discount ({format_number(discount.value)}%)"
    else:
        discount_label = "Discount"

    tax = draft.tax
    tax_visible = bool(tax.enabled) and tax.rate > 0

    footer = inv.custom_footer
    return PreviewModel(
        invoice_number=inv.number or DEFAULT_INVOICE_NUMBER,
        issue_date=format_date_short(inv.issue_date),
        due_date=format_date_short(inv.due_date),
        currency=currency,
        company=_company_view(draft.company),
        client=_client_view(draft.client),
        line_items=items,
        note=inv.note or EMPTY_TEXT,
        subtotal=format_currency(totals.subtotal, currency),
        discount=SummaryRow(
            visible=discount_visible,
            label=discount_label,
            amount=f"-{format_currency(totals.discount, currency)}",
        ),
        tax=SummaryRow(
            visible=tax_visible,
            label=f"Tax ({format_number(tax.rate)}%)",
            amount=format_currency(totals.tax, currency),
        ),
        total=format_currency(totals.total, currency),
        footer=footer or DEFAULT_FOOTER,
        footer_is_default=not footer,
        totals=totals,
    )
