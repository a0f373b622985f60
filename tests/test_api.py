# tests/test_api.py

from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from api import create_app
from exchange_index.application.chat_service import ChatService
from exchange_index.application.relevance_index import RelevanceIndex
from exchange_index.domain.models import ChatReply
from exchange_index.infrastructure.anthropic_backend import AnthropicChatBackend, ChatBackendError
from exchange_index.infrastructure.memory_tree import InMemoryContentTree, node
from exchange_index.infrastructure.settings import ChatSettings


def _page() -> InMemoryContentTree:
    entry = node(
        "div",
        node("div", class_="bib-citation", data_source_title="Ethics of AI Tutors",
             text="Ethics of AI Tutors. Journal of Learning, 2024."),
        node("div", class_="annotation-text", text="This study examines fairness..."),
        node("div", class_="annotation-author", text="Jane Doe 5/1/2024"),
        class_="bib-entry",
        data_tags="ethics,fairness",
    )
    header = node("div", node("h1", text="AI Ethics"), class_="topic-page-header")
    return InMemoryContentTree(node("body", node("section", header, entry, id="ai-ethics")))


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def backend():
    backend = MagicMock()
    backend.complete.return_value = ChatReply(
        message="Jane Doe wrote about fairness.",
        usage={"input_tokens": 10, "output_tokens": 6},
        model="test-model",
    )
    return backend


@pytest.fixture
def index() -> RelevanceIndex:
    tree = _page()
    return RelevanceIndex(tree_provider=lambda: tree)


@pytest.fixture
def reload_content():
    return MagicMock()


@pytest.fixture
def client(index, backend, reload_content) -> TestClient:
    app = create_app(index, ChatService(index, backend), reload_content=reload_content)
    return TestClient(app)


# ── Tests ─────────────────────────────────────────────────────────────────────

def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert "timestamp" in body


def test_status_before_and_after_build(client, index):
    assert client.get("/status").json() == {"is_ready": False, "entries_indexed": 0}

    index.build()

    assert client.get("/status").json() == {"is_ready": True, "entries_indexed": 1}


def test_entries_lists_all(client):
    entries = client.get("/entries").json()["entries"]
    assert [e["id"] for e in entries] == ["ethics-of-ai-tutors"]
    assert entries[0]["url"] == "/?topic=ai-ethics#ethics-of-ai-tutors"


def test_search_returns_scored_results(client):
    response = client.post("/search", json={"query": "fairness", "top_k": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "fairness"
    assert body["results"][0]["id"] == "ethics-of-ai-tutors"
    assert body["results"][0]["score"] >= 30


def test_search_blank_query_returns_empty(client):
    response = client.post("/search", json={"query": "   "})
    assert response.json()["results"] == []


def test_search_rejects_non_positive_top_k(client):
    response = client.post("/search", json={"query": "fairness", "top_k": 0})
    assert response.status_code == 422


def test_reindex_reloads_and_rebuilds(client, reload_content, index):
    response = client.post("/reindex")

    assert response.status_code == 200
    assert response.json()["entries_indexed"] == 1
    reload_content.assert_called_once()
    assert index.is_ready()


def test_reindex_missing_file_returns_500(client, reload_content):
    reload_content.side_effect = FileNotFoundError("Content file not found: gone.html")

    response = client.post("/reindex")

    assert response.status_code == 500
    assert "gone.html" in response.json()["detail"]


def test_chat_returns_backend_reply(client, backend):
    response = client.post("/chat", json={
        "messages": [{"role": "user", "content": "who wrote about fairness"}],
    })

    assert response.status_code == 200
    assert response.json() == {
        "message": "Jane Doe wrote about fairness.",
        "usage": {"input_tokens": 10, "output_tokens": 6},
        "modelUsed": "test-model",
    }
    _, entries, _ = backend.complete.call_args.args
    assert entries[0]["author"] == "Jane Doe"


def test_chat_invalid_conversation_is_400(client):
    response = client.post("/chat", json={"messages": []})
    assert response.status_code == 400


def test_chat_backend_failure_is_502(client, backend):
    backend.complete.side_effect = ChatBackendError("boom")

    response = client.post("/chat", json={
        "messages": [{"role": "user", "content": "hello there"}],
    })

    assert response.status_code == 502


def test_chat_punctuated_token_grounds_in_no_entries(client, backend):
    response = client.post("/chat", json={
        "messages": [{"role": "user", "content": "fairness?"}],
    })

    assert response.status_code == 200
    _, entries, _ = backend.complete.call_args.args
    assert entries == []


def test_chat_malformed_backend_body_is_502(index):
    http_client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway</html>")),
        base_url="https://llm.test",
    )
    chat_backend = AnthropicChatBackend(
        ChatSettings(api_key="test-key", base_url="https://llm.test"), client=http_client
    )
    client = TestClient(create_app(index, ChatService(index, chat_backend)))

    response = client.post("/chat", json={
        "messages": [{"role": "user", "content": "hello there"}],
    })

    assert response.status_code == 502
