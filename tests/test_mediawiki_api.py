from __future__ import annotations

import http.client
import json
import socket
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime, timezone

import pytest

from adapters.mediawiki_api import MediaWikiClient
from core.errors import ResolutionError, WikiApiError

API_URL = "https://wiki.test/w/api.php"

SITEINFO = {
    "query": {
        "general": {
            "server": "//wiki.test",
            "articlepath": "/wiki/$1",
            "script": "/w/index.php",
            "sitename": "Test Wiki",
        }
    }
}


class DummyResponse:
    def __init__(self, body: dict) -> None:
        self._body = json.dumps(body).encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "DummyResponse":
        return self

    def __exit__(self, *exc) -> None:
        return None


class FakeApi:
    """Answers urlopen calls from canned responses keyed by query module."""

    def __init__(self, responses: dict[str, dict]) -> None:
        self._responses = responses
        self.requests: list[dict[str, str]] = []

    def __call__(self, request, timeout=None) -> DummyResponse:
        params = dict(urllib.parse.parse_qsl(urllib.parse.urlsplit(request.full_url).query))
        self.requests.append(params)
        key = params.get("meta") or params.get("list") or params.get("prop")
        return DummyResponse(self._responses[key])


def _client(monkeypatch, responses: dict[str, dict]) -> tuple[MediaWikiClient, FakeApi]:
    api = FakeApi({"siteinfo": SITEINFO, **responses})
    monkeypatch.setattr(urllib.request, "urlopen", api)
    return MediaWikiClient(API_URL, user_agent="wikirelay-test"), api


def test_full_url_without_query_uses_article_path(monkeypatch) -> None:
    client, _ = _client(monkeypatch, {})
    assert client.full_url("Foo (bar)") == "https://wiki.test/wiki/Foo_(bar)"


def test_full_url_with_query_uses_script(monkeypatch) -> None:
    client, _ = _client(monkeypatch, {})
    url = client.full_url("Café & more", "action=history&curid=3")
    assert url == "https://wiki.test/w/index.php?title=Caf%C3%A9_%26_more&action=history&curid=3"


def test_site_info_is_cached(monkeypatch) -> None:
    client, api = _client(monkeypatch, {})
    client.full_url("A")
    client.full_url("B")
    assert len(api.requests) == 1
    assert api.requests[0]["formatversion"] == "2"


def test_profile_links_user_page(monkeypatch) -> None:
    client, _ = _client(monkeypatch, {})
    profile = client.profile("Alice Smith")
    assert profile.name == "Alice Smith"
    assert profile.url == "https://wiki.test/wiki/User:Alice_Smith"


def test_profile_without_user_raises(monkeypatch) -> None:
    client, _ = _client(monkeypatch, {})
    with pytest.raises(ResolutionError):
        client.profile(None)


def test_prefixed_text_rejects_empty_title(monkeypatch) -> None:
    client, _ = _client(monkeypatch, {})
    with pytest.raises(ResolutionError):
        client.prefixed_text("")


def test_get_log_entry_matches_id(monkeypatch) -> None:
    logevents = {
        "query": {
            "logevents": [
                {"logid": 1, "type": "upload", "action": "upload", "title": "File:A.png", "user": "Bob"},
                {"logid": 2, "type": "upload", "action": "overwrite", "title": "File:A.png", "user": "Alice"},
            ]
        }
    }
    client, api = _client(monkeypatch, {"logevents": logevents})

    entry = client.get_log_entry(2, "upload", "File:A.png")

    assert entry is not None
    assert entry.log_action == "overwrite"
    assert entry.performer == "Alice"
    assert api.requests[-1]["letype"] == "upload"
    assert api.requests[-1]["letitle"] == "File:A.png"


def test_get_log_entry_missing_or_suppressed(monkeypatch) -> None:
    logevents = {"query": {"logevents": [{"logid": 3, "type": "delete", "action": "delete", "suppressed": True}]}}
    client, _ = _client(monkeypatch, {"logevents": logevents})

    assert client.get_log_entry(3, "delete", "X") is None
    assert client.get_log_entry(4, "delete", "X") is None


def test_file_url(monkeypatch) -> None:
    imageinfo = {"query": {"pages": [{"title": "File:A.png", "imageinfo": [{"url": "https://example/img.png"}]}]}}
    client, _ = _client(monkeypatch, {"imageinfo": imageinfo})
    assert client.file_url("File:A.png") == "https://example/img.png"


def test_file_url_missing_raises(monkeypatch) -> None:
    imageinfo = {"query": {"pages": [{"title": "File:Gone.png", "missing": True}]}}
    client, _ = _client(monkeypatch, {"imageinfo": imageinfo})
    with pytest.raises(ResolutionError):
        client.file_url("File:Gone.png")


def test_recent_changes_resumes_after_position(monkeypatch) -> None:
    recentchanges = {"query": {"recentchanges": [{"rcid": 10}, {"rcid": 11}, {"rcid": 12}]}}
    client, api = _client(monkeypatch, {"recentchanges": recentchanges})

    rows = client.recent_changes(since=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc), after_rc_id=10, limit=5)

    assert [row["rcid"] for row in rows] == [11, 12]
    assert api.requests[-1]["rccontinue"] == "20240102030405|11"
    assert api.requests[-1]["rcdir"] == "newer"


def test_latest_changes_are_oldest_first(monkeypatch) -> None:
    recentchanges = {"query": {"recentchanges": [{"rcid": 12}, {"rcid": 11}]}}
    client, api = _client(monkeypatch, {"recentchanges": recentchanges})

    assert [row["rcid"] for row in client.latest_changes(2)] == [11, 12]
    assert api.requests[-1]["rcdir"] == "older"


def test_api_error_object_raises(monkeypatch) -> None:
    error = {"error": {"code": "readapidenied", "info": "You need read permission"}}
    client, _ = _client(monkeypatch, {"recentchanges": error})
    with pytest.raises(WikiApiError) as excinfo:
        client.latest_changes(1)
    assert excinfo.value.code == "readapidenied"


def test_connection_failure_raises(monkeypatch) -> None:
    def fake_urlopen(request, timeout=None):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    client = MediaWikiClient(API_URL, user_agent="wikirelay-test")
    with pytest.raises(WikiApiError):
        client.site_info()


class StalledResponse(DummyResponse):
    """Connects fine, then fails while the body is being read."""

    def __init__(self, error: Exception) -> None:
        super().__init__({})
        self._error = error

    def read(self) -> bytes:
        raise self._error


@pytest.mark.parametrize(
    "error",
    [
        socket.timeout("timed out"),
        ConnectionResetError(104, "Connection reset by peer"),
        http.client.IncompleteRead(b"{\"query\":"),
    ],
)
def test_failure_while_reading_body_raises(monkeypatch, error) -> None:
    def fake_urlopen(request, timeout=None):
        return StalledResponse(error)

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    client = MediaWikiClient(API_URL, user_agent="wikirelay-test")
    with pytest.raises(WikiApiError) as excinfo:
        client.site_info()
    assert excinfo.value.__cause__ is error


def test_garbled_status_line_raises(monkeypatch) -> None:
    def fake_urlopen(request, timeout=None):
        raise http.client.BadStatusLine("GARBAGE")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    client = MediaWikiClient(API_URL, user_agent="wikirelay-test")
    with pytest.raises(WikiApiError):
        client.site_info()


def test_undecodable_body_raises(monkeypatch) -> None:
    class BinaryResponse(DummyResponse):
        def read(self) -> bytes:
            return b"\x80\x81 not utf-8"

    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout=None: BinaryResponse({}))
    client = MediaWikiClient(API_URL, user_agent="wikirelay-test")
    with pytest.raises(WikiApiError):
        client.site_info()
