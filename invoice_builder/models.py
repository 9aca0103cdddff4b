"""Invoice draft data model."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .formatting import to_decimal

DISCOUNT_NONE = "none"
DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED = "fixed"
DISCOUNT_TYPES = (DISCOUNT_NONE, DISCOUNT_PERCENTAGE, DISCOUNT_FIXED)

DEFAULT_CURRENCY = "USD"
DEFAULT_DUE_DAYS = 30


@dataclass
class LineItem:
    description: str = ""
    quantity: Decimal = Decimal("1")
    price: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        self.quantity = to_decimal(self.quantity)
        self.price = to_decimal(self.price)

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.price


@dataclass
class Discount:
    type: str = DISCOUNT_NONE
    value: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        self.value = to_decimal(self.value)


@dataclass
class Tax:
    enabled: bool = False
    rate: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        self.rate = to_decimal(self.rate)


@dataclass
class Party:
    """Company or client identity and address block.

    ``id`` and ``logo_url`` are only filled for a client picked from the
    persistence service; ``logo`` is the free-text initial typed by the user.
    """

    name: str = ""
    email: str = ""
    logo: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""
    tax_id: str = ""
    id: Optional[str] = None
    logo_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Party":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in (data or {}).items() if k in known}
        for k, v in values.items():
            if v is None and k != "id":
                values[k] = ""
        return cls(**values)


@dataclass
class ClientRecord:
    """A client as stored by the persistence service."""

    id: str
    name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    logo_url: str = ""


@dataclass
class InvoiceMeta:
    number: str = ""
    issue_date: str = ""
    due_date: str = ""
    currency: str = DEFAULT_CURRENCY
    note: str = ""
    custom_footer: str = ""


@dataclass
class Draft:
    company: Party = field(default_factory=Party)
    client: Party = field(default_factory=Party)
    invoice: InvoiceMeta = field(default_factory=InvoiceMeta)
    line_items: List[LineItem] = field(default_factory=lambda: [LineItem()])
    discount: Discount = field(default_factory=Discount)
    tax: Tax = field(default_factory=Tax)


def new_draft(today: Optional[date] = None, company: Optional[Party] = None,
              invoice_number: str = "") -> Draft:
    """Session-start draft: one blank item, USD, due in 30 days."""
    today = today or date.today()
    due = today + timedelta(days=DEFAULT_DUE_DAYS)
    return Draft(
        company=company if company is not None else Party(),
        invoice=InvoiceMeta(
            number=invoice_number,
            issue_date=today.isoformat(),
            due_date=due.isoformat(),
        ),
    )
