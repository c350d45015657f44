"""
Chat Package - streamed chat completion

- base.py: ChatMessage, ToolCall, StreamEvent
- history.py: append-only conversation history
- stream.py: newline-delimited JSON reading
- session.py: StreamingChatSession, one chat turn with optional tool call
"""

from .base import ChatMessage, MessageRole, StreamEvent, ToolCall, ToolCallFunction
from .history import ConversationHistory
from .session import StreamingChatSession

__all__ = [
    "ChatMessage",
    "MessageRole",
    "StreamEvent",
    "ToolCall",
    "ToolCallFunction",
    "ConversationHistory",
    "StreamingChatSession",
]
