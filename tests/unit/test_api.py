from __future__ import annotations

from typing import Any, Dict, List

import pytest
import requests

from wt_cli.core.api import APIError, DocumentStoreAPI

ROOT = "/projects/demo/databases/(default)/documents"


class _MockResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        text: str = '{"ok":true}',
    ) -> None:
        self.status_code = status_code
        self._payload = payload if payload is not None else {"ok": True}
        self.text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError("request failed", response=self)

    def json(self) -> Any:
        return self._payload


def test_api_retries_then_succeeds(monkeypatch) -> None:
    attempts = {"count": 0}

    def fake_request(*args, **kwargs):  # type: ignore[no-untyped-def]
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise requests.Timeout("timeout")
        return _MockResponse(payload={"name": f"{ROOT}/workoutDays/a"})

    monkeypatch.setattr("wt_cli.core.api.requests.request", fake_request)
    monkeypatch.setattr("wt_cli.core.api.time.sleep", lambda _: None)

    api = DocumentStoreAPI(project_id="demo", rate_limit_delay=0, max_retries=3)
    response = api.get_document("workoutDays", "a")

    assert response["name"].endswith("/a")
    assert attempts["count"] == 2


def test_api_retries_on_server_error_with_backoff(monkeypatch) -> None:
    attempts = {"count": 0}
    sleeps: List[float] = []

    def fake_request(*args, **kwargs):  # type: ignore[no-untyped-def]
        attempts["count"] += 1
        if attempts["count"] < 3:
            return _MockResponse(status_code=503, payload={"error": "busy"}, text="busy")
        return _MockResponse(payload={"ok": True})

    monkeypatch.setattr("wt_cli.core.api.requests.request", fake_request)
    monkeypatch.setattr("wt_cli.core.api.time.sleep", sleeps.append)

    api = DocumentStoreAPI(project_id="demo", rate_limit_delay=0, max_retries=3)
    assert api.get("/status")["ok"] is True
    assert attempts["count"] == 3
    assert sleeps == [2, 4]


def test_api_raises_after_max_retries(monkeypatch) -> None:
    def fake_request(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise requests.ConnectionError("network down")

    monkeypatch.setattr("wt_cli.core.api.requests.request", fake_request)
    monkeypatch.setattr("wt_cli.core.api.time.sleep", lambda _: None)

    api = DocumentStoreAPI(project_id="demo", rate_limit_delay=0, max_retries=2)
    with pytest.raises(APIError, match="Document store request failed for GET"):
        api.list_documents("workoutDays")


def test_api_key_is_sent_as_query_parameter(monkeypatch) -> None:
    seen: Dict[str, Any] = {}

    def fake_request(**kwargs):  # type: ignore[no-untyped-def]
        seen.update(kwargs)
        return _MockResponse(payload={})

    monkeypatch.setattr("wt_cli.core.api.requests.request", fake_request)

    api = DocumentStoreAPI(project_id="demo", api_key="secret", base_url="https://store.test/v1/", timeout_seconds=7)
    api.get("/ping", params={"pageSize": 5})

    assert seen["url"] == "https://store.test/v1/ping"
    assert seen["params"] == {"pageSize": 5, "key": "secret"}
    assert seen["timeout"] == 7
    assert seen["headers"] == {"Content-Type": "application/json"}


def test_api_empty_response_text_returns_empty_object(monkeypatch) -> None:
    monkeypatch.setattr(
        "wt_cli.core.api.requests.request",
        lambda *args, **kwargs: _MockResponse(payload={}, text=""),
    )
    api = DocumentStoreAPI(project_id="demo", rate_limit_delay=0)
    assert api.delete_document("workoutDays", "a") == {}


def test_api_rate_limit_delay_between_requests(monkeypatch) -> None:
    sleeps: List[float] = []
    monkeypatch.setattr("wt_cli.core.api.requests.request", lambda **kwargs: _MockResponse())
    monkeypatch.setattr("wt_cli.core.api.time.sleep", sleeps.append)

    api = DocumentStoreAPI(project_id="demo", rate_limit_delay=0.25)
    api.get("/a")
    api.get("/b")

    assert sleeps == [0.25]


def test_list_documents_follows_page_tokens(monkeypatch) -> None:
    calls = []
    pages = [
        {"documents": [{"name": f"{ROOT}/workoutDays/a"}], "nextPageToken": "t1"},
        {"documents": [{"name": f"{ROOT}/workoutDays/b"}]},
    ]

    def fake_get(self, path, params=None):  # type: ignore[no-untyped-def]
        calls.append((path, params))
        return pages[len(calls) - 1]

    monkeypatch.setattr(DocumentStoreAPI, "get", fake_get)

    api = DocumentStoreAPI(project_id="demo")
    documents = api.list_documents("workoutDays", page_size=1)

    assert [doc["name"].rsplit("/", 1)[-1] for doc in documents] == ["a", "b"]
    assert calls == [
        (f"{ROOT}/workoutDays", {"pageSize": 1}),
        (f"{ROOT}/workoutDays", {"pageSize": 1, "pageToken": "t1"}),
    ]


def test_document_methods_use_expected_paths(monkeypatch) -> None:
    calls = []

    def fake_request(self, method, path, params=None, json_data=None):  # type: ignore[no-untyped-def]
        calls.append((method, path, json_data))
        return {"name": f"{ROOT}/workoutDays/new"}

    monkeypatch.setattr(DocumentStoreAPI, "_request", fake_request)

    api = DocumentStoreAPI(project_id="demo")
    fields = {"name": {"stringValue": "Push"}}
    api.create_document("workoutDays", fields)
    api.update_document("workoutDays", "abc", fields)
    api.delete_document("workoutDays", "abc")

    assert calls == [
        ("POST", f"{ROOT}/workoutDays", {"fields": fields}),
        ("PATCH", f"{ROOT}/workoutDays/abc", {"fields": fields}),
        ("DELETE", f"{ROOT}/workoutDays/abc", None),
    ]


def test_run_query_returns_matched_documents(monkeypatch) -> None:
    calls = []

    def fake_post(self, path, payload):  # type: ignore[no-untyped-def]
        calls.append((path, payload))
        return [
            {"document": {"name": f"{ROOT}/workoutLogs/1"}, "readTime": "x"},
            {"readTime": "y"},
        ]

    monkeypatch.setattr(DocumentStoreAPI, "post", fake_post)

    api = DocumentStoreAPI(project_id="demo")
    documents = api.run_query({"from": [{"collectionId": "workoutLogs"}]})

    assert documents == [{"name": f"{ROOT}/workoutLogs/1"}]
    assert calls[0][0] == f"{ROOT}:runQuery"
    assert calls[0][1] == {"structuredQuery": {"from": [{"collectionId": "workoutLogs"}]}}
