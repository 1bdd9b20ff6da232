import json
from types import SimpleNamespace

import pytest
import requests

from notestream.models.events import Retrieved, Unavailable
from notestream.notes.client import NotesClient

QUERY_BODY = {
    "results": [
        {
            "query": "Alex",
            "results": [
                {
                    "id": "n1",
                    "text": "Alex is Scott's kid.",
                    "metadata": {"source": "chat", "document_id": "d1"},
                    "score": 0.91,
                }
            ],
        }
    ]
}


@pytest.fixture
def client():
    return NotesClient(base_url="https://notes.example/", bearer_token="secret", timeout=None)


def fake_request(calls, status_code=200, body=None):
    def _request(method, url, headers=None, data=None, timeout=None):
        calls.append({"method": method, "url": url, "headers": headers, "body": json.loads(data)})
        return SimpleNamespace(
            ok=200 <= status_code < 300,
            status_code=status_code,
            json=lambda: body,
        )
    return _request


def test_query_returns_first_result(monkeypatch, client):
    calls = []
    monkeypatch.setattr("notestream.notes.client.requests.request", fake_request(calls, body=QUERY_BODY))

    outcome = client.query("Alex")

    assert isinstance(outcome, Retrieved)
    assert outcome.result.query == "Alex"
    assert outcome.result.results[0].score == pytest.approx(0.91)
    assert calls == [{
        "method": "POST",
        "url": "https://notes.example/query",
        "headers": {"Content-Type": "application/json", "Authorization": "Bearer secret"},
        "body": {"queries": [{"query": "Alex"}]},
    }]


def test_query_keeps_unknown_sources_and_extra_fields(monkeypatch, client):
    body = {
        "results": [
            {
                "query": "Alex",
                "results": [
                    {
                        "id": "1",
                        "text": "Alex is your kid.",
                        "metadata": {"source": "slack", "title": "family.md"},
                        "score": 0.91,
                        "highlight": "Alex",
                    }
                ],
            }
        ]
    }
    monkeypatch.setattr("notestream.notes.client.requests.request", fake_request([], body=body))

    outcome = client.query("Alex")

    assert isinstance(outcome, Retrieved)
    emitted = json.loads(outcome.result.model_dump_json(exclude_none=True))
    assert emitted == body["results"][0]


def test_query_http_error_is_unavailable(monkeypatch, client):
    calls = []
    monkeypatch.setattr("notestream.notes.client.requests.request", fake_request(calls, status_code=500))

    outcome = client.query("Alex")

    assert isinstance(outcome, Unavailable)
    assert len(calls) == 1


def test_query_network_error_is_unavailable(monkeypatch, client):
    def boom(*args, **kwargs):
        raise requests.exceptions.ConnectionError("connection refused")
    monkeypatch.setattr("notestream.notes.client.requests.request", boom)

    assert isinstance(client.query("Alex"), Unavailable)


def test_query_unexpected_body_is_unavailable(monkeypatch, client):
    monkeypatch.setattr(
        "notestream.notes.client.requests.request",
        fake_request([], body={"results": [{"no_query": True}]}),
    )
    assert isinstance(client.query("Alex"), Unavailable)

    monkeypatch.setattr("notestream.notes.client.requests.request", fake_request([], body={"results": []}))
    assert isinstance(client.query("Alex"), Unavailable)


def test_invalid_json_is_unavailable(monkeypatch, client):
    def _request(*args, **kwargs):
        def bad_json():
            raise ValueError("Expecting value")
        return SimpleNamespace(ok=True, status_code=200, json=bad_json)
    monkeypatch.setattr("notestream.notes.client.requests.request", _request)

    assert isinstance(client.query("Alex"), Unavailable)


def test_upsert_and_delete_payloads(monkeypatch, client):
    calls = []
    monkeypatch.setattr("notestream.notes.client.requests.request", fake_request(calls, body={"ids": ["n1"]}))

    assert client.upsert("n1", "new text") == {"ids": ["n1"]}
    assert client.delete("n1") == {"ids": ["n1"]}

    assert calls[0]["method"] == "POST"
    assert calls[0]["url"] == "https://notes.example/upsert"
    assert calls[0]["body"] == {"documents": [{"id": "n1", "text": "new text"}]}
    assert calls[1]["method"] == "DELETE"
    assert calls[1]["url"] == "https://notes.example/delete"
    assert calls[1]["body"] == {"ids": ["n1"]}


def test_mutations_swallow_failures(monkeypatch, client):
    monkeypatch.setattr("notestream.notes.client.requests.request", fake_request([], status_code=404))
    assert client.delete("missing") is None

    def boom(*args, **kwargs):
        raise requests.exceptions.Timeout("timed out")
    monkeypatch.setattr("notestream.notes.client.requests.request", boom)
    assert client.upsert("n1", "text") is None


def test_missing_token_still_sends_header():
    client = NotesClient(base_url="https://notes.example", bearer_token=None)
    assert client.headers["Authorization"] == "Bearer "
