"""
Newline-delimited JSON stream reading.

Ollama streams one JSON object per line. Reads from the socket do not line
up with line boundaries, so bytes are buffered until a full line is
available.
"""

import asyncio
import json
from typing import AsyncIterator, List, Optional

import httpx

from ..errors import Cancelled, ProtocolError


class LineBuffer:
    """Split a byte stream on b"\\n", holding back the unfinished tail."""

    def __init__(self):
        self._pending = b""

    def feed(self, chunk: bytes) -> List[bytes]:
        """Add a chunk and return the complete, non-blank lines it finished."""
        self._pending += chunk
        *lines, self._pending = self._pending.split(b"\n")
        return [line for line in lines if line.strip()]

    def flush(self) -> List[bytes]:
        """Return whatever is left once the stream has ended."""
        tail, self._pending = self._pending, b""
        return [tail] if tail.strip() else []


def decode_line(line: bytes) -> dict:
    """Parse one stream line into a JSON object."""
    try:
        data = json.loads(line)
    except ValueError as e:
        raise ProtocolError(f"Malformed stream line {line[:200]!r}: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError(f"Expected a JSON object per line, got {type(data).__name__}")

    return data


async def read_json_lines(
    response: httpx.Response,
    cancel_event: Optional[asyncio.Event] = None,
) -> AsyncIterator[dict]:
    """
    Yield each JSON object of a streamed response, in order.

    The cancellation signal is checked every time a chunk arrives; when it
    is set, Cancelled is raised and the caller's `async with` closes the
    response.
    """
    buffer = LineBuffer()

    async for chunk in response.aiter_bytes():
        if cancel_event is not None and cancel_event.is_set():
            raise Cancelled("Stream cancelled by caller")

        for line in buffer.feed(chunk):
            yield decode_line(line)

    for line in buffer.flush():
        yield decode_line(line)
