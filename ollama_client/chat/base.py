"""
Chat data structures.

These mirror the JSON objects the /api/chat endpoint sends and receives.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ToolCallFunction(BaseModel):
    """The function part of a tool call: which tool, with what arguments."""

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    index: Optional[int] = None


class ToolCall(BaseModel):
    function: ToolCallFunction


class ChatMessage(BaseModel):
    """
    One message in a conversation.

    `content` is None for assistant messages that only carry tool calls.
    """

    role: MessageRole
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json", exclude_none=True)
        # The server expects content to be present, even when empty
        data.setdefault("content", "")
        return data


class MessageFragment(BaseModel):
    """
    The partial message carried by one stream line.

    Tool calls are kept as raw dicts here: while streaming, `arguments` may be
    a fragment of JSON text rather than a complete object.
    """

    model_config = ConfigDict(extra="ignore")

    role: Optional[MessageRole] = None
    content: Optional[str] = None
    tool_calls: Optional[List[Dict[str, Any]]] = None


class StreamEvent(BaseModel):
    """One parsed line of a streamed /api/chat response."""

    model_config = ConfigDict(extra="ignore")

    model: Optional[str] = None
    message: Optional[MessageFragment] = None
    done: bool = False
    done_reason: Optional[str] = None
    error: Optional[str] = None

    # Only present on the final line
    total_duration: Optional[int] = None
    prompt_eval_count: Optional[int] = None
    eval_count: Optional[int] = None
