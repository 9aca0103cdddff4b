"""Notion persistence for clients and invoices, plus the image relay.

The app runs server-side, so it talks to the Notion REST API directly with
the integration token instead of going through a browser-facing proxy.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .config import Settings
from .models import ClientRecord, Party
from .snapshot import InvoiceSnapshot

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
IMAGE_TIMEOUT = 15
DEFAULT_IMAGE_TYPE = "image/png"


class NotionError(Exception):
    """Base exception for Notion persistence errors."""
    pass


class NotionConnectionError(NotionError):
    """Raised when Notion cannot be reached or times out."""
    pass


class NotionAPIError(NotionError):
    """Raised when Notion answers with an error object."""
    pass


class ImageRelayError(Exception):
    """Raised when a remote image cannot be fetched."""
    pass


@dataclass(frozen=True)
class InvoiceResult:
    success: bool
    id: Optional[str]


# ---- Property helpers ----

def _plain_text(prop: Optional[Dict[str, Any]], kind: str) -> str:
    items = (prop or {}).get(kind) or []
    if not items:
        return ""
    return items[0].get("plain_text") or ""


def _file_url(prop: Optional[Dict[str, Any]]) -> str:
    files = (prop or {}).get("files") or []
    if not files:
        return ""
    first = files[0]
    return ((first.get("file") or {}).get("url")
            or (first.get("external") or {}).get("url")
            or "")


def _rich_text(content: str) -> Dict[str, Any]:
    return {"rich_text": [{"text": {"content": content or ""}}]}


def client_from_page(page: Dict[str, Any]) -> ClientRecord:
    props = page.get("properties") or {}
    return ClientRecord(
        id=page.get("id", ""),
        name=_plain_text(props.get("Name"), "title"),
        email=(props.get("Email") or {}).get("email") or "",
        address=_plain_text(props.get("Address"), "rich_text"),
        city=_plain_text(props.get("City"), "rich_text"),
        state=_plain_text(props.get("State"), "rich_text"),
        zip_code=_plain_text(props.get("Zip Code"), "rich_text"),
        country=_plain_text(props.get("Country"), "rich_text"),
        logo_url=_file_url(props.get("Logo")),
    )


def invoice_properties(snapshot: InvoiceSnapshot) -> Dict[str, Any]:
    """Notion page properties for an invoice; empty text fields are left out."""
    properties: Dict[str, Any] = {
        "Invoice Number": {"title": [{"text": {"content": snapshot.invoice_number or ""}}]},
    }
    if snapshot.issue_date:
        properties["Issue Date"] = {"date": {"start": snapshot.issue_date}}
    if snapshot.due_date:
        properties["Due Date"] = {"date": {"start": snapshot.due_date}}
    if snapshot.line_items:
        properties["Line Items"] = _rich_text(snapshot.line_items)
    if snapshot.notes:
        properties["Notes"] = _rich_text(snapshot.notes)
    if snapshot.custom_footer:
        properties["Custom Footer"] = _rich_text(snapshot.custom_footer)

    properties["Subtotal"] = {"number": float(snapshot.subtotal)}
    properties["Tax Rate"] = {"number": float(snapshot.tax_rate)}
    properties["Tax Amount"] = {"number": float(snapshot.tax_amount)}
    properties["Total"] = {"number": float(snapshot.total)}

    if snapshot.currency:
        properties["Currency"] = {"select": {"name": snapshot.currency}}
    if snapshot.status:
        properties["Status"] = {"select": {"name": snapshot.status}}
    if snapshot.client_id:
        properties["Client"] = {"relation": [{"id": snapshot.client_id}]}
    return properties


# ---- Client ----

class NotionClient:
    """Client for the Notion clients and invoices databases."""

    def __init__(
        self,
        api_key: str,
        clients_db: str,
        invoices_db: str,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.clients_db = clients_db
        self.invoices_db = invoices_db
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        })

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "NotionClient":
        if not settings.notion_enabled:
            raise NotionError(
                "Notion is not configured: set NOTION_API_KEY, NOTION_CLIENTS_DB and NOTION_INVOICES_DB"
            )
        return cls(
            settings.notion_api_key,
            settings.notion_clients_db,
            settings.notion_invoices_db,
            timeout=settings.http_timeout,
            session=session,
        )

    def _request(self, method: str, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{NOTION_API_URL}{endpoint}"
        logger.debug("Notion %s %s", method, endpoint)
        try:
            response = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise NotionConnectionError(f"Request to {url} timed out after {self.timeout}s")
        except requests.exceptions.ConnectionError as e:
            raise NotionConnectionError(f"Failed to connect to {url}: {e}")

        try:
            data = response.json()
        except ValueError:
            raise NotionAPIError(f"API error: {response.status_code} - {response.text[:200]}")

        if response.status_code >= 400 or data.get("object") == "error":
            message = data.get("message") or "Unknown error"
            raise NotionAPIError(f"API error: {response.status_code} - {message}")
        return data

    def list_clients(self) -> List[ClientRecord]:
        """All clients, sorted by name."""
        body: Dict[str, Any] = {"sorts": [{"property": "Name", "direction": "ascending"}]}
        clients: List[ClientRecord] = []
        while True:
            data = self._request("POST", f"/databases/{self.clients_db}/query", body)
            clients.extend(client_from_page(page) for page in data.get("results") or [])
            if not data.get("has_more") or not data.get("next_cursor"):
                break
            body = dict(body, start_cursor=data["next_cursor"])
        logger.info("Loaded %d client(s) from Notion", len(clients))
        return clients

    def create_client(self, party: Party) -> ClientRecord:
        data = self._request("POST", "/pages", {
            "parent": {"database_id": self.clients_db},
            "properties": {
                "Name": {"title": [{"text": {"content": party.name or ""}}]},
                "Email": {"email": party.email or None},
                "Address": _rich_text(party.address),
                "City": _rich_text(party.city),
                "State": _rich_text(party.state),
                "Zip Code": _rich_text(party.zip),
                "Country": _rich_text(party.country),
            },
        })
        logger.info("Created Notion client %s", data.get("id"))
        return ClientRecord(
            id=data.get("id", ""),
            name=party.name,
            email=party.email,
            address=party.address,
            city=party.city,
            state=party.state,
            zip_code=party.zip,
            country=party.country,
        )

    def create_invoice(self, snapshot: InvoiceSnapshot) -> InvoiceResult:
        data = self._request("POST", "/pages", {
            "parent": {"database_id": self.invoices_db},
            "properties": invoice_properties(snapshot),
        })
        logger.info("Saved invoice %s to Notion as %s", snapshot.invoice_number, data.get("id"))
        return InvoiceResult(success=True, id=data.get("id"))


# ---- Image relay ----

def fetch_image_as_data_uri(url: str, timeout: int = IMAGE_TIMEOUT) -> str:
    """Download an image and return it inlined as a ``data:`` URI."""
    if not url:
        raise ValueError("Missing url")
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise ImageRelayError(f"Failed to fetch image {url}: {e}") from e

    content_type = (response.headers.get("Content-Type") or DEFAULT_IMAGE_TYPE).split(";")[0].strip()
    encoded = base64.b64encode(response.content).decode("ascii")
    return f"data:{content_type or DEFAULT_IMAGE_TYPE};base64,{encoded}"
