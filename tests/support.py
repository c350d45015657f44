"""Test doubles for the Ollama HTTP API."""

import json
from typing import Callable, Dict, List, Optional, Tuple, Union

import httpx

MODEL = "qwen2.5:1.5b"


def ndjson(*objects) -> bytes:
    return b"".join(json.dumps(o).encode("utf-8") + b"\n" for o in objects)


def chat_line(content: str = "", tool_calls: Optional[list] = None) -> dict:
    message = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    return {
        "model": MODEL,
        "created_at": "2024-11-05T10:00:00Z",
        "message": message,
        "done": False,
    }


def done_line(reason: str = "stop") -> dict:
    return {
        "model": MODEL,
        "created_at": "2024-11-05T10:00:01Z",
        "message": {"role": "assistant", "content": ""},
        "done": True,
        "done_reason": reason,
        "total_duration": 1200000,
        "eval_count": 7,
    }


def split_every(data: bytes, size: int) -> List[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


class FakeStream(httpx.AsyncByteStream):
    """
    A response body delivered in fixed chunks that remembers being closed.

    If `error` is given it is raised after the last chunk, like a connection
    dropping mid-response.
    """

    def __init__(
        self,
        chunks: List[bytes],
        on_chunk: Optional[Callable[[int], None]] = None,
        error: Optional[Exception] = None,
    ):
        self.chunks = list(chunks)
        self.on_chunk = on_chunk
        self.error = error
        self.sent = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            self.sent += 1
            if self.on_chunk:
                self.on_chunk(self.sent)
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self):
        self.closed = True


def stream_response(body: Union[bytes, FakeStream], status_code: int = 200) -> httpx.Response:
    stream = body if isinstance(body, FakeStream) else FakeStream([body])
    return httpx.Response(status_code, stream=stream)


Responder = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeOllama:
    """
    Records requests and answers each route from a queue of canned responses.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], List[Responder]] = {}

    def on(self, method: str, path: str, *responses: Responder) -> None:
        self._routes.setdefault((method, path), []).extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(500, json={"error": f"nothing queued for {request.url.path}"})
        response = queue.pop(0)
        return response(request) if callable(response) else response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    def json_body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)
