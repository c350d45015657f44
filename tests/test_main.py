import json

import httpx
import pytest
from fastapi.testclient import TestClient

from ollama_client import main
from ollama_client.llm import OllamaClient
from tests.support import chat_line, done_line, ndjson, stream_response


@pytest.fixture
def api(fake_ollama, options, monkeypatch):
    monkeypatch.setattr(main, "llm_client", OllamaClient(options, transport=fake_ollama.transport))
    return TestClient(main.app)


def test_health(fake_ollama, api):
    tags = {"models": [{"name": "qwen2.5:1.5b", "size": 1}]}
    fake_ollama.on("GET", "/api/tags", httpx.Response(200, json=tags), httpx.Response(200, json=tags))

    response = api.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "ollama_connected": True,
        "model_available": True,
        "model": "qwen2.5:1.5b",
    }


def test_chat(fake_ollama, api):
    fake_ollama.on("POST", "/api/chat", stream_response(ndjson(chat_line("Hello!"), done_line())))

    response = api.post("/chat", json={"message": "Hi"})

    assert response.status_code == 200
    assert response.json() == {"response": "Hello!", "history_length": 2}


def test_chat_when_ollama_is_down(fake_ollama, api):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    fake_ollama.on("POST", "/api/chat", refuse)

    response = api.post("/chat", json={"message": "Hi"})

    assert response.status_code == 503
    assert response.json()["error"] == "TransportError"


def test_generate(fake_ollama, api):
    fake_ollama.on("POST", "/api/generate", httpx.Response(200, json={"response": "42"}))

    response = api.post("/generate", json={"prompt": "Answer?"})

    assert response.json() == {"response": "42"}


def test_embeddings(fake_ollama, api):
    fake_ollama.on("POST", "/api/embed", httpx.Response(200, json={"embeddings": [[0.5, 0.25]]}))

    response = api.post("/embeddings", json={"input": ["hello"]})

    assert response.json() == {"embeddings": [[0.5, 0.25]]}


def test_list_models(fake_ollama, api):
    fake_ollama.on("GET", "/api/tags", httpx.Response(200, json={"models": [
        {"name": "llama3.1:8b", "size": 5000},
        {"name": "qwen2.5:1.5b", "size": 1000},
        {"name": "llama3.2:1b", "size": 2000},
    ]}))

    response = api.get("/models", params={"pattern": "llama", "location": "local"})

    assert response.status_code == 200
    assert [m["name"] for m in response.json()] == ["llama3.2:1b", "llama3.1:8b"]


def test_model_not_found_maps_to_404(fake_ollama, api):
    fake_ollama.on("POST", "/api/generate", httpx.Response(404, json={"error": "model 'x' not found"}))

    response = api.post("/generate", json={"prompt": "Hi"})

    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


def test_pull_streams_progress(fake_ollama, api):
    fake_ollama.on("GET", "/api/tags", httpx.Response(200, json={"models": []}))
    fake_ollama.on("POST", "/api/pull", stream_response(ndjson(
        {"status": "pulling manifest"},
        {"status": "pulling abc", "total": 4, "completed": 1},
        {"status": "success"},
    )))

    response = api.post("/pull", json={"model": "phi4"})

    lines = [json.loads(line) for line in response.text.splitlines()]
    assert response.headers["content-type"].startswith("application/x-ndjson")
    assert [(l["status"], l.get("percentage")) for l in lines] == [
        ("pulling manifest", None),
        ("pulling abc", 25.0),
        ("success", 100.0),
    ]


def test_pull_when_ollama_is_down(fake_ollama, api):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    fake_ollama.on("GET", "/api/tags", refuse)

    response = api.post("/pull", json={"model": "phi4"})

    assert response.status_code == 503
    assert response.json()["error"] == "TransportError"
    assert fake_ollama.paths() == ["/api/tags"]


def test_pull_failure_mid_stream_ends_with_error_line(fake_ollama, api):
    fake_ollama.on("GET", "/api/tags", httpx.Response(200, json={"models": []}))
    fake_ollama.on("POST", "/api/pull", stream_response(ndjson(
        {"status": "pulling manifest"},
        {"error": "pull model manifest: file does not exist"},
    )))

    response = api.post("/pull", json={"model": "nope"})

    lines = [json.loads(line) for line in response.text.splitlines()]
    assert response.status_code == 200
    assert lines[0]["status"] == "pulling manifest"
    assert "file does not exist" in lines[-1]["error"]
    assert len(lines) == 2


def test_startup_reads_options_from_environment(monkeypatch):
    monkeypatch.setattr(main, "llm_client", None)
    monkeypatch.setenv("OLLAMA_HOST", "http://gpu-box:11434")
    monkeypatch.setenv("OLLAMA_TIMEOUT", "30.5")

    with TestClient(main.app):
        assert main.llm_client.options.host == "http://gpu-box:11434"
        assert main.llm_client.options.timeout == 30.5
