"""
Async client for the Ollama local-LLM HTTP API.

    from ollama_client import OllamaClient, OllamaOptions, Tool

    def get_weather(city: str, days: int = 1) -> str:
        return f"sunny in {city} for {days} days"

    client = OllamaClient(OllamaOptions(model="qwen2.5:1.5b"))
    answer = await client.get_chat_text_completion(
        "What's the weather in Paris?", tool=Tool.from_callable(get_weather)
    )
"""

__version__ = "0.1.0"

from .chat import ChatMessage, ConversationHistory, MessageRole, StreamingChatSession
from .config import OllamaOptions
from .errors import (
    ArgumentBindingError,
    Cancelled,
    OllamaError,
    ProtocolError,
    ServerError,
    ToolInvocationError,
    TransportError,
)
from .llm import OllamaClient, OllamaHttpClient
from .models import Model, ModelLocation, ModelSize, PullModelProgress
from .tools import Tool, ToolParameter, ToolRegistry

__all__ = [
    "OllamaClient",
    "OllamaHttpClient",
    "OllamaOptions",
    "ChatMessage",
    "ConversationHistory",
    "MessageRole",
    "StreamingChatSession",
    "Model",
    "ModelLocation",
    "ModelSize",
    "PullModelProgress",
    "Tool",
    "ToolParameter",
    "ToolRegistry",
    "OllamaError",
    "TransportError",
    "ServerError",
    "ProtocolError",
    "ToolInvocationError",
    "ArgumentBindingError",
    "Cancelled",
]
