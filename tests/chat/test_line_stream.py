import asyncio

import httpx
import pytest

from ollama_client.chat.stream import LineBuffer, decode_line, read_json_lines
from ollama_client.errors import Cancelled, ProtocolError
from tests.support import FakeStream


def test_line_buffer_holds_partial_line():
    buffer = LineBuffer()

    assert buffer.feed(b'{"a": 1}\n{"b"') == [b'{"a": 1}']
    assert buffer.feed(b': 2}\n') == [b'{"b": 2}']
    assert buffer.flush() == []


def test_line_buffer_discards_blank_lines():
    buffer = LineBuffer()

    assert buffer.feed(b'\n\n{"a": 1}\n  \n') == [b'{"a": 1}']


def test_line_buffer_flush_returns_unterminated_tail():
    buffer = LineBuffer()
    buffer.feed(b'{"a": 1}')

    assert buffer.flush() == [b'{"a": 1}']
    assert buffer.flush() == []


def test_line_buffer_splits_multibyte_characters_safely():
    line = '{"text": "Grüße ☀"}\n'.encode("utf-8")
    buffer = LineBuffer()

    lines = []
    for i in range(len(line)):
        lines.extend(buffer.feed(line[i:i + 1]))

    assert [decode_line(l) for l in lines] == [{"text": "Grüße ☀"}]


def test_decode_line_rejects_malformed_json():
    with pytest.raises(ProtocolError):
        decode_line(b'{"message": ')


def test_decode_line_rejects_non_objects():
    with pytest.raises(ProtocolError):
        decode_line(b'[1, 2]')


@pytest.mark.asyncio
async def test_read_json_lines_across_chunks():
    response = httpx.Response(200, stream=FakeStream([b'{"a"', b': 1}\n{"b": 2', b'}\n']))

    items = [item async for item in read_json_lines(response)]

    assert items == [{"a": 1}, {"b": 2}]


@pytest.mark.asyncio
async def test_read_json_lines_stops_when_cancelled():
    cancel = asyncio.Event()
    stream = FakeStream(
        [b'{"a": 1}\n', b'{"b": 2}\n', b'{"c": 3}\n'],
        on_chunk=lambda n: cancel.set() if n == 2 else None,
    )
    response = httpx.Response(200, stream=stream)

    items = []
    with pytest.raises(Cancelled):
        async for item in read_json_lines(response, cancel):
            items.append(item)

    assert items == [{"a": 1}]
    assert stream.sent == 2
