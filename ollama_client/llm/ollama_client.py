"""
Ollama Client - the public entry point.

Wraps OllamaHttpClient with the behaviour callers expect from a client
object: a conversation history that persists across chat calls, optional
auto-install of the configured model, and client-side model filtering.
"""

import asyncio
import inspect
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from ..chat import ChatMessage, ConversationHistory
from ..config import OllamaOptions
from ..models import Model, ModelLocation, ModelSize, PullModelProgress, filter_models
from ..tools import Tool
from .http_client import OllamaHttpClient

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

ProgressCallback = Callable[[PullModelProgress], Any]


class OllamaClient:
    """
    Client for a local Ollama server.

    Usage:
        client = OllamaClient(OllamaOptions(model="llama3.1:8b"))
        answer = await client.get_chat_text_completion("Hi there!")
        async for text in client.get_chat_completion("Tell me a story"):
            print(text, end="")

    One client holds one conversation. Chat calls on the same client are
    run one at a time so turns are recorded in order.
    """

    def __init__(
        self,
        options: Optional[OllamaOptions] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.options = options or OllamaOptions()
        self.http = OllamaHttpClient(self.options, transport)
        self.history = ConversationHistory()
        self._turn_lock = asyncio.Lock()
        self._model_installed = False

    @property
    def chat_history(self) -> List[ChatMessage]:
        """A copy of the messages recorded so far."""
        return self.history.snapshot()

    async def generate_text_completion(self, prompt: Optional[str]) -> str:
        """Generate text from a prompt, without touching the chat history."""
        await self._auto_install_model()
        return await self.http.generate(prompt)

    async def generate_json_completion(self, prompt: Optional[str], response_model: Type[T]) -> T:
        """Generate a completion and parse it into `response_model`."""
        await self._auto_install_model()
        return await self.http.generate_json(prompt, response_model)

    async def get_chat_completion(
        self,
        text: str,
        tool: Optional[Tool] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[str]:
        """
        Send a chat message and yield the reply as it streams in.

        If the model calls `tool`, the tool's result is yielded last.
        """
        await self._auto_install_model()

        async with self._turn_lock:
            session = self.http.chat_session(self.history, tool=tool, cancel_event=cancel_event)
            async with aclosing(session.stream(text)) as chunks:
                async for chunk in chunks:
                    yield chunk

    async def get_chat_text_completion(
        self,
        text: str,
        tool: Optional[Tool] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[str]:
        """Send a chat message and return the complete reply."""
        await self._auto_install_model()

        async with self._turn_lock:
            session = self.http.chat_session(self.history, tool=tool, cancel_event=cancel_event)
            message = await session.run(text)
        return message.content

    async def list_models(
        self,
        pattern: Optional[str] = None,
        size: Optional[ModelSize] = None,
        location: ModelLocation = ModelLocation.REMOTE,
    ) -> List[Model]:
        """
        List models, smallest first.

        Args:
            pattern: Regex matched case-insensitively against model names
            size: Only keep models in this size bucket
            location: Installed models, or the remote catalog
        """
        if location == ModelLocation.LOCAL:
            models = await self.http.list_local_models()
        else:
            models = await self.http.list_remote_models()

        return filter_models(models, pattern=pattern, size=size)

    async def get_embedding(self, inputs: List[str]) -> List[List[float]]:
        """Get one embedding vector per input string."""
        await self._auto_install_model()
        return await self.http.embed(inputs)

    async def pull_model(
        self,
        name: str,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """
        Install a model unless the server already has it.

        `progress` (sync or async) receives every update from the server.
        """
        async for update in self.iter_pull_model(name, cancel_event=cancel_event):
            await _report(progress, update)

    async def iter_pull_model(
        self,
        name: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[PullModelProgress]:
        """Like pull_model(), but yields the progress updates."""
        local_models = await self.http.list_local_models()
        installed = any((m.name or "").lower() == name.lower() for m in local_models)

        if installed:
            logger.debug("Model %s already installed", name)
            yield PullModelProgress(
                status=f"The model {name} is already installed",
                percentage=100,
            )
            return

        async with aclosing(self.http.pull_model(name, cancel_event=cancel_event)) as updates:
            async for update in updates:
                yield update

    async def check_health(self) -> bool:
        return await self.http.check_health()

    async def check_model_available(self, model: Optional[str] = None) -> bool:
        return await self.http.check_model_available(model)

    async def _auto_install_model(self) -> None:
        if not self.options.auto_install_model or self._model_installed:
            return
        await self.pull_model(self.options.model)
        self._model_installed = True


async def _report(progress: Optional[ProgressCallback], update: PullModelProgress) -> None:
    if progress is None:
        return
    result = progress(update)
    if inspect.isawaitable(result):
        await result
