"""Invoice draft store.

Owns the one mutable :class:`Draft` of a session. Every change goes through a
named operation here, either called directly or via :meth:`DraftStore.apply_update`
with one of the action records below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Callable, Optional, Union

from .formatting import iso_date, to_decimal
from .models import DISCOUNT_TYPES, ClientRecord, Draft, LineItem, Party, new_draft
from .preview import PreviewModel, project

logger = logging.getLogger(__name__)

SECTIONS = ("company", "client", "invoice")
LINE_ITEM_FIELDS = ("description", "quantity", "price")
DATE_FIELDS = ("issue_date", "due_date")


# ---- Actions ----

@dataclass(frozen=True)
class SetField:
    section: str
    field: str
    value: Any


@dataclass(frozen=True)
class AddLineItem:
    pass


@dataclass(frozen=True)
class RemoveLineItem:
    index: int


@dataclass(frozen=True)
class UpdateLineItem:
    index: int
    field: str
    value: Any


@dataclass(frozen=True)
class SetDiscount:
    type: str
    value: Any


@dataclass(frozen=True)
class SetTax:
    enabled: bool
    rate: Any


@dataclass(frozen=True)
class SelectClient:
    record: Optional[ClientRecord]


Action = Union[SetField, AddLineItem, RemoveLineItem, UpdateLineItem,
               SetDiscount, SetTax, SelectClient]


# ---- Store ----

class DraftStore:
    """Holds a draft and keeps it consistent across mutations."""

    def __init__(self, draft: Optional[Draft] = None,
                 on_company_change: Optional[Callable[[Party], None]] = None) -> None:
        self.draft = draft if draft is not None else new_draft()
        self.on_company_change = on_company_change

    def preview(self) -> PreviewModel:
        return project(self.draft)

    def set_field(self, section: str, field: str, value: Any) -> None:
        if section not in SECTIONS:
            raise ValueError(f"Unknown section: {section}")
        target = getattr(self.draft, section)
        if field not in {f.name for f in fields(target)}:
            raise ValueError(f"Unknown field for {section}: {field}")
        if section == "invoice" and field in DATE_FIELDS and isinstance(value, date):
            value = iso_date(value)
        setattr(target, field, value)
        if section == "company" and self.on_company_change is not None:
            self.on_company_change(self.draft.company)

    def add_line_item(self) -> None:
        self.draft.line_items.append(LineItem(description="", quantity=1, price=0))

    def remove_line_item(self, index: int) -> bool:
        """Remove the item at ``index``; the last remaining item is kept."""
        items = self.draft.line_items
        if len(items) <= 1:
            logger.debug("Ignoring removal of the only line item")
            return False
        if not 0 <= index < len(items):
            return False
        del items[index]
        return True

    def update_line_item(self, index: int, field: str, value: Any) -> None:
        if field not in LINE_ITEM_FIELDS:
            raise ValueError(f"Unknown line item field: {field}")
        items = self.draft.line_items
        if not 0 <= index < len(items):
            raise IndexError(f"Line item index out of range: {index}")
        item = items[index]
        if field == "description":
            item.description = value
        else:
            setattr(item, field, to_decimal(value))

    def set_discount(self, type: str, value: Any) -> None:
        if type not in DISCOUNT_TYPES:
            raise ValueError(f"Unknown discount type: {type}")
        self.draft.discount.type = type
        self.draft.discount.value = to_decimal(value)

    def set_tax(self, enabled: bool, rate: Any) -> None:
        self.draft.tax.enabled = bool(enabled)
        self.draft.tax.rate = to_decimal(rate)

    def select_client_from_record(self, record: Optional[ClientRecord]) -> None:
        """Replace the client with a persisted record, keeping the typed logo.

        ``None`` (nothing picked) only unlinks the current client.
        """
        client = self.draft.client
        if record is None:
            client.id = None
            return
        self.draft.client = Party(
            name=record.name or "",
            email=record.email or "",
            logo=client.logo,
            address=record.address or "",
            city=record.city or "",
            state=record.state or "",
            zip=record.zip_code or "",
            country=record.country or "",
            id=record.id,
            logo_url=record.logo_url or "",
        )

    def apply_update(self, action: Action) -> PreviewModel:
        """Apply one action and return the refreshed preview."""
        if isinstance(action, SetField):
            self.set_field(action.section, action.field, action.value)
        elif isinstance(action, AddLineItem):
            self.add_line_item()
        elif isinstance(action, RemoveLineItem):
            self.remove_line_item(action.index)
        elif isinstance(action, UpdateLineItem):
            self.update_line_item(action.index, action.field, action.value)
        elif isinstance(action, SetDiscount):
            self.set_discount(action.type, action.value)
        elif isinstance(action, SetTax):
            self.set_tax(action.enabled, action.rate)
        elif isinstance(action, SelectClient):
            self.select_client_from_record(action.record)
        else:
            raise TypeError(f"Unsupported action: {action!r}")
        return self.preview()
