"""Per-user key/value persistence in a JSON file.

Holds the company profile, the last exported invoice number and the theme.
One file per user key keeps users of a shared deployment apart.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict

from .models import Party

logger = logging.getLogger(__name__)

COMPANY_KEY = "invoiceGenerator_company"
INVOICE_NUMBER_KEY = "lastInvoiceNumber"
THEME_KEY = "invoiceGenerator_theme"

THEMES = ("light", "dark")
DEFAULT_THEME = "light"
INVOICE_NUMBER_WIDTH = 4

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]+")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

# Persisted company fields; client-only linkage is never stored
COMPANY_FIELDS = ("name", "email", "logo", "address", "city", "state", "zip", "country", "tax_id")


def _leading_int(text: str) -> int:
    m = _LEADING_INT.match(text or "")
    return int(m.group(1)) if m else 0


class LocalStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def for_user(cls, data_dir: Path, userkey: str) -> "LocalStore":
        safe = _SAFE_KEY.sub("_", userkey.strip()) or "default"
        return cls(Path(data_dir) / f"{safe}.json")

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable store %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp.replace(self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    # ---- Company ----

    def load_company(self) -> Party:
        saved = self.get(COMPANY_KEY)
        if not isinstance(saved, dict):
            return Party()
        return Party.from_dict({k: v for k, v in saved.items() if k in COMPANY_FIELDS})

    def save_company(self, company: Party) -> None:
        data = company.to_dict()
        self.set(COMPANY_KEY, {k: data[k] for k in COMPANY_FIELDS})

    # ---- Invoice number ----

    def next_invoice_number(self) -> str:
        """Last exported number + 1, zero padded (``0001`` on first use)."""
        last = self.get(INVOICE_NUMBER_KEY)
        try:
            n = int(last) + 1 if last is not None else 1
        except (TypeError, ValueError):
            n = 1
        return str(n).zfill(INVOICE_NUMBER_WIDTH)

    def record_export(self, number: str) -> int:
        """Remember an exported invoice number; non-numeric numbers count as 1."""
        n = _leading_int(number) or 1
        self.set(INVOICE_NUMBER_KEY, n)
        return n

    # ---- Theme ----

    def load_theme(self) -> str:
        theme = self.get(THEME_KEY)
        return theme if theme in THEMES else DEFAULT_THEME

    def save_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        self.set(THEME_KEY, theme)
