import pytest
import requests
from fastapi.testclient import TestClient

from conftest import FakeLLMClient, FakeNotesClient, FakeStreamResponse, preamble, sse_body
from notestream.core.config import Settings, check_startup
from notestream.llm.directives import DirectiveScanner
from notestream.main import app
from notestream.notes.client import NotesClient
from notestream.services.chat_service import ChatService, get_chat_service
from notestream.services.compositor import STRICT
from notestream.services.notes_service import NotesService, get_notes_service


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_chat_service(llm, notes, default_api_key=None):
    service = ChatService(
        llm_client=llm,
        notes_client=notes,
        scanner=DirectiveScanner.for_grammar("bracket"),
        policy=STRICT,
        default_api_key=default_api_key,
    )
    app.dependency_overrides[get_chat_service] = lambda: service
    return service


def test_chat_without_any_key_is_400(client):
    llm = FakeLLMClient()
    notes = FakeNotesClient()
    use_chat_service(llm, notes, default_api_key=None)

    response = client.post("/api/chat", json={
        "model": "gpt-4",
        "messages": [{"role": "user", "content": "hi"}],
    })

    assert response.status_code == 400
    assert response.text.startswith("Error: missing OpenAI API Key")
    assert llm.calls == []
    assert notes.queries == []


def test_chat_ignores_stream_and_n_from_client(client):
    llm = FakeLLMClient(FakeStreamResponse(chunks=[sse_body("ok")]))
    use_chat_service(llm, FakeNotesClient())

    response = client.post("/api/chat", json={
        "apiKey": "client-key",
        "model": "gpt-4",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": False,
        "n": 5,
    })

    assert response.status_code == 200
    api_key, payload = llm.calls[0]
    assert api_key == "client-key"
    assert payload["stream"] is True
    assert payload["n"] == 1


def test_chat_streams_preamble_text_and_notes(client):
    llm = FakeLLMClient(FakeStreamResponse(chunks=[sse_body("Query:", "[Alex]")]))
    notes = FakeNotesClient()
    use_chat_service(llm, notes, default_api_key="server-key")

    response = client.post("/api/chat", json={
        "model": "gpt-4",
        "messages": [{"role": "user", "content": "Who is Alex?"}],
    })

    assert response.status_code == 200
    assert response.content == preamble() + b"Query:" + b"{}"
    assert notes.queries == ["Alex"]


def test_chat_upstream_401_is_text_in_200_stream(client):
    llm = FakeLLMClient(FakeStreamResponse(
        chunks=[sse_body("never")],
        status_code=401,
        reason="Unauthorized",
        json_body={"error": {"code": "invalid_api_key"}},
    ))
    use_chat_service(llm, FakeNotesClient(), default_api_key="server-key")

    response = client.post("/api/chat", json={"model": "gpt-4", "messages": []})

    assert response.status_code == 200
    assert "401" in response.text
    assert "never" not in response.text


def test_chat_passes_sampling_values_through(client):
    llm = FakeLLMClient(FakeStreamResponse(chunks=[sse_body("ok")]))
    use_chat_service(llm, FakeNotesClient(), default_api_key="server-key")

    response = client.post("/api/chat", json={
        "model": "",
        "messages": [],
        "temperature": 3.5,
        "max_tokens": 0,
    })

    assert response.status_code == 200
    _, payload = llm.calls[0]
    assert payload["model"] == ""
    assert payload["temperature"] == 3.5
    assert payload["max_tokens"] == 0


@pytest.mark.parametrize("path", ["/api/delete", "/api/update"])
def test_note_edits_always_succeed(client, monkeypatch, path):
    def unreachable(*args, **kwargs):
        raise requests.exceptions.ConnectionError("notes service down")
    monkeypatch.setattr("notestream.notes.client.requests.request", unreachable)
    notes_client = NotesClient(base_url="https://notes.example", bearer_token="t")
    app.dependency_overrides[get_notes_service] = lambda: NotesService(notes_client)

    response = client.post(path, json={"memoryId": "x", "text": "y"})

    assert response.status_code == 200
    assert response.json() == {"message": "success"}


def test_delete_forwards_memory_id(client):
    notes = FakeNotesClient(mutation_result={"deleted": True})
    app.dependency_overrides[get_notes_service] = lambda: NotesService(notes)

    response = client.post("/api/delete", json={"memoryId": "note-7", "text": "old"})

    assert response.status_code == 200
    assert notes.deletes == ["note-7"]


def test_catalog_endpoints(client):
    models = client.get("/api/models").json()
    assert {m["id"] for m in models["models"]} == {"gpt-4", "gpt-3.5-turbo"}

    purposes = client.get("/api/purposes").json()
    notes_purposes = [p for p in purposes if p["uses_notes"]]
    assert len(notes_purposes) == 1
    assert "Query:[" in notes_purposes[0]["system_message"]


def test_health_reports_capabilities(client):
    response = client.get("/health")
    body = response.json()
    assert response.status_code == 200
    assert set(body) >= {"status", "provider_key_available", "notes_token_available"}


def test_startup_check_flags():
    report = check_startup(Settings(OPENAI_API_KEY=None, BEARER_TOKEN="token"))
    assert report.provider_key_available is False
    assert report.notes_token_available is True

    report = check_startup(Settings(OPENAI_API_KEY="sk-test", BEARER_TOKEN=None))
    assert report.provider_key_available is True
    assert report.notes_token_available is False
