import json

import pytest

from notestream.models.events import Unavailable


class FakeStreamResponse:
    """Stands in for a requests.Response opened with stream=True"""

    def __init__(self, chunks=(), status_code=200, reason="OK", json_body=None):
        self._chunks = [c.encode("utf-8") if isinstance(c, str) else c for c in chunks]
        self.status_code = status_code
        self.reason = reason
        self._json_body = json_body
        self.closed = False
        self.chunks_read = 0

    @property
    def ok(self):
        return self.status_code < 400

    def iter_content(self, chunk_size=None):
        for chunk in self._chunks:
            self.chunks_read += 1
            yield chunk

    def json(self):
        if self._json_body is None:
            raise ValueError("No JSON object could be decoded")
        return self._json_body

    def close(self):
        self.closed = True


class FakeNotesClient:
    """Records calls instead of hitting the notes service"""

    def __init__(self, outcome=None, mutation_result=None):
        self.outcome = outcome or Unavailable(reason="fake")
        self.mutation_result = mutation_result
        self.queries = []
        self.upserts = []
        self.deletes = []

    def query(self, term):
        self.queries.append(term)
        return self.outcome

    def upsert(self, memory_id, text):
        self.upserts.append((memory_id, text))
        return self.mutation_result

    def delete(self, memory_id):
        self.deletes.append(memory_id)
        return self.mutation_result


class FakeLLMClient:
    name = "OpenAI"

    def __init__(self, response=None):
        self.response = response or FakeStreamResponse(chunks=[sse_body(done=True)])
        self.calls = []

    def open_stream(self, api_key, payload):
        self.calls.append((api_key, payload))
        return self.response


def token_chunk(content, model="gpt-4-0613"):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 1680000000,
        "model": model,
        "choices": [{"delta": {"content": content}, "index": 0, "finish_reason": None}],
    }


def role_chunk(model="gpt-4-0613"):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 1680000000,
        "model": model,
        "choices": [{"delta": {"role": "assistant"}, "index": 0, "finish_reason": None}],
    }


def sse_body(*tokens, done=True, model="gpt-4-0613", with_role=True):
    """Render a provider stream emitting the given token texts"""
    frames = []
    if with_role:
        frames.append(role_chunk(model))
    frames.extend(token_chunk(t, model) for t in tokens)
    body = "".join(f"data: {json.dumps(f)}\n\n" for f in frames)
    if done:
        body += "data: [DONE]\n\n"
    return body


def preamble(model="gpt-4-0613"):
    return ('{"model":"%s"}' % model).encode("utf-8")


@pytest.fixture
def fake_notes():
    return FakeNotesClient()


@pytest.fixture
def make_response():
    return FakeStreamResponse
