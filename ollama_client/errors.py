"""
Exceptions raised by the Ollama client.

All of them derive from OllamaError so callers can catch the whole family.
None of them are retried inside the library.
"""

from typing import Any, Optional


class OllamaError(Exception):
    """Base class for every error raised by this package."""


class TransportError(OllamaError):
    """The connection failed or timed out."""


class ServerError(OllamaError):
    """The server answered with a non-success HTTP status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Ollama returned HTTP {status_code}: {message}")


class ProtocolError(OllamaError):
    """The server sent content that could not be understood."""


class ToolInvocationError(OllamaError):
    """A tool handler failed, or the model asked for a tool we don't have."""

    def __init__(self, tool_name: Optional[str], message: str):
        self.tool_name = tool_name
        super().__init__(message)


class ArgumentBindingError(OllamaError):
    """A declared tool parameter could not be bound from the call arguments."""

    def __init__(self, parameter: str, message: str, value: Any = None):
        self.parameter = parameter
        self.value = value
        super().__init__(message)


class Cancelled(OllamaError):
    """The caller asked for the chat turn to stop."""
