"""
Streaming chat session - one chat turn against /api/chat.

The flow:

    1. Build the request (system prompt, history, user message, tool schema)
    2. Stream the response, one JSON object per line
    3. Fold each line into the in-progress assistant message
    4. On the final line, run the tool if the model called it and use its
       result as the message content
    5. Record the user message and the final message in history together

A turn that fails at any step leaves the history untouched.
"""

import asyncio
import json
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..config import OllamaOptions
from ..errors import Cancelled, ProtocolError
from ..tools import Tool, ToolRegistry
from ..transport import open_client, raise_for_status, translate_errors
from .base import ChatMessage, MessageRole, StreamEvent, ToolCall, ToolCallFunction
from .history import ConversationHistory
from .stream import read_json_lines

logger = logging.getLogger(__name__)


@dataclass
class ToolCallBuffer:
    """
    One tool call being assembled from stream fragments.

    The name is fixed by the first fragment that carries one. Argument text
    fragments are concatenated in arrival order and only parsed once the
    stream is done; object fragments are merged key by key.
    """
    index: int
    name: Optional[str] = None
    argument_text: str = ""
    argument_object: Dict[str, Any] = field(default_factory=dict)

    def merge(self, name: Optional[str], arguments: Any) -> None:
        if name and self.name is None:
            self.name = name

        if isinstance(arguments, str):
            self.argument_text += arguments
        elif isinstance(arguments, dict):
            self.argument_object.update(arguments)
        elif arguments is not None:
            raise ProtocolError(
                f"Tool call {self.index}: unexpected arguments type {type(arguments).__name__}"
            )

    def arguments(self) -> Dict[str, Any]:
        args = dict(self.argument_object)
        if self.argument_text.strip():
            try:
                parsed = json.loads(self.argument_text)
            except ValueError as e:
                raise ProtocolError(
                    f"Tool call {self.index}: arguments are not valid JSON: {self.argument_text[:200]!r}"
                ) from e
            if not isinstance(parsed, dict):
                raise ProtocolError(f"Tool call {self.index}: arguments must be a JSON object")
            args.update(parsed)
        return args

    def to_tool_call(self) -> ToolCall:
        if not self.name:
            raise ProtocolError(f"Tool call {self.index} finished without a function name")
        return ToolCall(function=ToolCallFunction(
            name=self.name,
            arguments=self.arguments(),
            index=self.index,
        ))


@dataclass
class MessageAccumulator:
    """The assistant message being assembled from one stream."""
    role: MessageRole = MessageRole.ASSISTANT
    content: List[str] = field(default_factory=list)
    tool_calls: Dict[int, ToolCallBuffer] = field(default_factory=dict)

    def fold(self, event: StreamEvent) -> Optional[str]:
        """Merge one stream event. Returns the new content, if any."""
        fragment = event.message
        if fragment is None:
            return None

        if fragment.role is not None:
            self.role = fragment.role

        for position, raw in enumerate(fragment.tool_calls or []):
            self._fold_tool_call(position, raw)

        if fragment.content:
            self.content.append(fragment.content)
            return fragment.content
        return None

    def _fold_tool_call(self, position: int, raw: Any) -> None:
        if not isinstance(raw, dict):
            raise ProtocolError(f"Malformed tool call fragment: {raw!r}")

        function = raw.get("function") or {}
        if not isinstance(function, dict):
            raise ProtocolError(f"Malformed tool call function: {function!r}")

        arguments = function.get("arguments")
        index = raw.get("index", function.get("index"))
        if index is None:
            # Without an explicit index, a complete object is its own call
            # and a text fragment continues the call at the same position
            index = len(self.tool_calls) if isinstance(arguments, dict) else position

        buffer = self.tool_calls.get(index)
        if buffer is None:
            buffer = self.tool_calls[index] = ToolCallBuffer(index=index)
        buffer.merge(function.get("name"), arguments)

    def finalize(self) -> ChatMessage:
        tool_calls = [self.tool_calls[i].to_tool_call() for i in sorted(self.tool_calls)]
        return ChatMessage(
            role=self.role,
            content="".join(self.content),
            tool_calls=tool_calls or None,
        )


def parse_event(data: dict) -> StreamEvent:
    if data.get("error"):
        raise ProtocolError(f"Ollama error: {data['error']}")
    try:
        return StreamEvent.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(f"Unexpected stream event: {e}") from e


class StreamingChatSession:
    """
    Runs one chat turn and records it in the conversation history.

    Usage:
        session = StreamingChatSession(options, history, tool=weather_tool)
        message = await session.run("What's the weather in Paris?")
        print(message.content)

    Or, to see the reply as it arrives:
        async for text in session.stream("Tell me a story"):
            print(text, end="")
    """

    def __init__(
        self,
        options: OllamaOptions,
        history: ConversationHistory,
        tool: Optional[Tool] = None,
        cancel_event: Optional[asyncio.Event] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.options = options
        self.history = history
        self.tools = ToolRegistry([tool]) if tool is not None else None
        self.cancel_event = cancel_event
        self.transport = transport

        self.result: Optional[ChatMessage] = None
        self.final_event: Optional[StreamEvent] = None
        self._started = False

    def build_request(self, user_message: ChatMessage) -> dict:
        messages = []
        if self.options.system_prompt:
            messages.append(ChatMessage(role=MessageRole.SYSTEM, content=self.options.system_prompt))
        if self.options.keep_chat_history:
            messages.extend(self.history.snapshot())
        messages.append(user_message)

        payload = {
            "model": self.options.model,
            "messages": [m.to_dict() for m in messages],
            "stream": True,
            "options": {"temperature": self.options.temperature},
        }
        if self.tools:
            payload["tools"] = self.tools.get_schemas()
        return payload

    async def stream(self, text: str) -> AsyncIterator[str]:
        """
        Send `text` and yield the reply's content as it arrives.

        When the model calls the tool, the tool's result replaces the content
        and is yielded last. A tool that returns None leaves the content None.
        The final message is available as `self.result` afterwards.
        """
        if self._started:
            raise RuntimeError("A StreamingChatSession runs a single turn")
        self._started = True

        if self.cancel_event is not None and self.cancel_event.is_set():
            raise Cancelled("Chat cancelled before the request was sent")

        user_message = ChatMessage(role=MessageRole.USER, content=text)
        payload = self.build_request(user_message)
        accumulator = MessageAccumulator()

        logger.debug("Chat request: model=%s, %d messages, tool=%s",
                     payload["model"], len(payload["messages"]), bool(self.tools))

        with translate_errors("Chat request"):
            async with open_client(self.options, self.transport) as client:
                async with client.stream("POST", "/api/chat", json=payload) as response:
                    await raise_for_status(response)
                    async with aclosing(read_json_lines(response, self.cancel_event)) as lines:
                        async for data in lines:
                            event = parse_event(data)
                            delta = accumulator.fold(event)
                            if delta:
                                yield delta
                            if event.done:
                                self.final_event = event
                                break

        if self.final_event is None:
            raise ProtocolError("Stream ended before the final message")

        message = accumulator.finalize()
        tool_output = None
        if self.tools and message.tool_calls:
            tool_output = await self._run_tool_calls(message)
            message.content = tool_output

        if self.options.keep_chat_history:
            self.history.extend([user_message, message])
        self.result = message

        logger.info("Chat turn finished: done_reason=%s, tokens=%s, tool_calls=%d",
                    self.final_event.done_reason, self.final_event.eval_count,
                    len(message.tool_calls or []))

        if tool_output is not None:
            yield tool_output

    async def run(self, text: str) -> ChatMessage:
        """Send `text` and return the final message."""
        async with aclosing(self.stream(text)) as chunks:
            async for _ in chunks:
                pass
        return self.result

    async def _run_tool_calls(self, message: ChatMessage) -> Optional[str]:
        outputs = []
        for call in message.tool_calls:
            result = await self.tools.invoke(call.function.name, call.function.arguments)
            if result is not None:
                outputs.append(str(result))

        return "\n".join(outputs) if outputs else None
