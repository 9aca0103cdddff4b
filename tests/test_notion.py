"""Tests for the Notion client and the image relay, with HTTP faked out."""

import base64
from datetime import date
from typing import Any, Dict, List

import pytest
import requests

from invoice_builder.config import Settings
from invoice_builder.models import LineItem, Party, new_draft
from invoice_builder.notion import (
    ImageRelayError,
    NotionAPIError,
    NotionClient,
    NotionConnectionError,
    NotionError,
    client_from_page,
    fetch_image_as_data_uri,
)
from invoice_builder.snapshot import build_invoice_snapshot


class DummyResp:
    def __init__(self, status_code: int = 200, data: Any = None, text: str = "", headers=None, content=b""):
        self.status_code = status_code
        self._data = data
        self.text = text
        self.headers = headers or {}
        self.content = content

    def json(self) -> Any:
        if self._data is None:
            raise ValueError("No JSON")
        return self._data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """Records requests and replays queued responses."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.headers: Dict[str, str] = {}

    def request(self, method, url, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


def _client_page(page_id: str, name: str, logo: Dict[str, Any] = None) -> Dict[str, Any]:
    props = {
        "Name": {"title": [{"plain_text": name}]},
        "Email": {"email": f"{name.lower()}@example.test"},
        "Address": {"rich_text": [{"plain_text": "1 Main St"}]},
        "City": {"rich_text": [{"plain_text": "Bogota"}]},
        "State": {"rich_text": []},
        "Zip Code": {"rich_text": [{"plain_text": "110111"}]},
        "Country": {"rich_text": [{"plain_text": "Colombia"}]},
    }
    if logo is not None:
        props["Logo"] = {"files": [logo]}
    return {"id": page_id, "properties": props}


def _client(session) -> NotionClient:
    return NotionClient("secret", "clients-db", "invoices-db", timeout=12, session=session)


def test_headers_are_set():
    session = FakeSession([])
    _client(session)
    assert session.headers["Authorization"] == "Bearer secret"
    assert session.headers["Notion-Version"] == "2022-06-28"


def test_client_from_page_reads_properties():
    record = client_from_page(_client_page("p1", "Acme", {"file": {"url": "https://files.test/a.png"}}))
    assert record.id == "p1"
    assert record.name == "Acme"
    assert record.email == "acme@example.test"
    assert record.city == "Bogota"
    assert record.state == ""
    assert record.zip_code == "110111"
    assert record.logo_url == "https://files.test/a.png"


def test_client_from_page_external_logo_and_missing_props():
    record = client_from_page(_client_page("p2", "Beta", {"external": {"url": "https://ext.test/b.png"}}))
    assert record.logo_url == "https://ext.test/b.png"
    empty = client_from_page({"id": "p3", "properties": {}})
    assert empty.name == ""
    assert empty.logo_url == ""


def test_list_clients_follows_pagination():
    session = FakeSession([
        DummyResp(data={"results": [_client_page("p1", "Acme")], "has_more": True, "next_cursor": "cur-2"}),
        DummyResp(data={"results": [_client_page("p2", "Beta")], "has_more": False, "next_cursor": None}),
    ])
    clients = _client(session).list_clients()
    assert [c.name for c in clients] == ["Acme", "Beta"]
    assert session.calls[0]["url"].endswith("/databases/clients-db/query")
    assert session.calls[0]["json"]["sorts"] == [{"property": "Name", "direction": "ascending"}]
    assert "start_cursor" not in session.calls[0]["json"]
    assert session.calls[1]["json"]["start_cursor"] == "cur-2"
    assert session.calls[0]["timeout"] == 12


def test_create_client_sends_complete_field_set():
    session = FakeSession([DummyResp(data={"object": "page", "id": "new-page"})])
    party = Party(name="Acme", email="", address="1 Main St", city="Austin", state="TX", zip="73301", country="USA")
    record = _client(session).create_client(party)

    assert record.id == "new-page"
    assert record.zip_code == "73301"
    body = session.calls[0]["json"]
    assert body["parent"] == {"database_id": "clients-db"}
    props = body["properties"]
    assert props["Email"] == {"email": None}
    assert props["City"]["rich_text"][0]["text"]["content"] == "Austin"
    assert props["State"]["rich_text"][0]["text"]["content"] == "TX"
    assert props["Zip Code"]["rich_text"][0]["text"]["content"] == "73301"


def test_create_invoice_properties():
    draft = new_draft(today=date(2026, 1, 6), invoice_number="0003")
    draft.client.id = "client-page"
    draft.line_items = [LineItem("Design", 2, 50)]
    snapshot = build_invoice_snapshot(draft)

    session = FakeSession([DummyResp(data={"object": "page", "id": "inv-page"})])
    result = _client(session).create_invoice(snapshot)

    assert result.success is True
    assert result.id == "inv-page"
    body = session.calls[0]["json"]
    assert body["parent"] == {"database_id": "invoices-db"}
    props = body["properties"]
    assert props["Invoice Number"]["title"][0]["text"]["content"] == "0003"
    assert props["Issue Date"] == {"date": {"start": "2026-01-06"}}
    assert props["Total"] == {"number": 100.0}
    assert props["Currency"] == {"select": {"name": "USD"}}
    assert props["Status"] == {"select": {"name": "Draft"}}
    assert props["Client"] == {"relation": [{"id": "client-page"}]}
    assert "Notes" not in props
    assert "Custom Footer" not in props


def test_notion_error_object_raises_api_error():
    session = FakeSession([DummyResp(status_code=400, data={"object": "error", "message": "Invalid property"})])
    with pytest.raises(NotionAPIError) as ei:
        _client(session).list_clients()
    assert "Invalid property" in str(ei.value)


def test_non_json_error_raises_api_error():
    session = FakeSession([DummyResp(status_code=502, text="Bad gateway")])
    with pytest.raises(NotionAPIError) as ei:
        _client(session).list_clients()
    assert "502" in str(ei.value)


@pytest.mark.parametrize("exc", [requests.Timeout("slow"), requests.ConnectionError("down")])
def test_network_failures_raise_connection_error(exc):
    session = FakeSession([exc])
    with pytest.raises(NotionConnectionError):
        _client(session).list_clients()


def test_from_settings_requires_configuration(tmp_path):
    settings = Settings(None, "db", "db", tmp_path, "INFO", 30)
    with pytest.raises(NotionError):
        NotionClient.from_settings(settings)


def test_from_settings_uses_timeout(tmp_path):
    settings = Settings("key", "clients", "invoices", tmp_path, "INFO", 7)
    client = NotionClient.from_settings(settings, session=FakeSession([]))
    assert client.timeout == 7
    assert client.clients_db == "clients"


def test_fetch_image_as_data_uri(monkeypatch):
    def fake_get(url, timeout=None):
        assert url == "https://cdn.test/logo.jpg"
        return DummyResp(headers={"Content-Type": "image/jpeg; charset=binary"}, content=b"\xff\xd8\xff")

    monkeypatch.setattr("requests.get", fake_get)
    uri = fetch_image_as_data_uri("https://cdn.test/logo.jpg")
    assert uri == "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff").decode("ascii")


def test_fetch_image_defaults_content_type(monkeypatch):
    monkeypatch.setattr("requests.get", lambda url, timeout=None: DummyResp(content=b"png"))
    assert fetch_image_as_data_uri("https://cdn.test/x").startswith("data:image/png;base64,")


def test_fetch_image_failure(monkeypatch):
    monkeypatch.setattr("requests.get", lambda url, timeout=None: DummyResp(status_code=404))
    with pytest.raises(ImageRelayError):
        fetch_image_as_data_uri("https://cdn.test/missing.png")


def test_fetch_image_requires_url():
    with pytest.raises(ValueError):
        fetch_image_as_data_uri("")
