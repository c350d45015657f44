"""
Ollama HTTP Client - one method per Ollama endpoint.

Every call opens its own connection and closes it before returning.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import AsyncIterator, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..chat import ConversationHistory, StreamingChatSession
from ..chat.stream import read_json_lines
from ..config import OllamaOptions
from ..errors import OllamaError, ProtocolError
from ..models import Model, ModelLocation, PullModelProgress, pull_progress
from ..tools import Tool
from ..transport import open_client, raise_for_status, translate_errors

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class OllamaHttpClient:
    """Async client for the Ollama REST API."""

    def __init__(
        self,
        options: Optional[OllamaOptions] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.options = options or OllamaOptions()
        self.transport = transport

    async def _request_json(
        self,
        method: str,
        path: str,
        operation: str,
        payload: Optional[dict] = None,
    ) -> dict:
        with translate_errors(operation):
            async with open_client(self.options, self.transport) as client:
                response = await client.request(method, path, json=payload)
                await raise_for_status(response)

        try:
            data = response.json()
        except ValueError as e:
            raise ProtocolError(f"{operation}: response is not JSON") from e

        if not isinstance(data, dict):
            raise ProtocolError(f"{operation}: expected a JSON object")
        if "error" in data:
            raise ProtocolError(f"Ollama error: {data['error']}")
        return data

    async def generate(
        self,
        prompt: Optional[str],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        format: Optional[object] = None,
    ) -> str:
        """Generate text from a prompt."""
        payload = {
            "model": model or self.options.model,
            "prompt": prompt or "",
            "stream": False,
            "options": {
                "temperature": self.options.temperature if temperature is None else temperature,
            },
        }
        if self.options.system_prompt:
            payload["system"] = self.options.system_prompt
        if format is not None:
            payload["format"] = format

        data = await self._request_json("POST", "/api/generate", "Text completion", payload)
        return data.get("response", "")

    async def generate_json(self, prompt: Optional[str], response_model: Type[T]) -> T:
        """Generate a completion constrained to the model's JSON schema."""
        text = await self.generate(prompt, format=response_model.model_json_schema())
        try:
            return response_model.model_validate_json(text)
        except ValidationError as e:
            raise ProtocolError(
                f"Completion does not match {response_model.__name__}: {e}"
            ) from e

    def chat_session(
        self,
        history: ConversationHistory,
        tool: Optional[Tool] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StreamingChatSession:
        """Create a session for one chat turn."""
        return StreamingChatSession(
            self.options,
            history,
            tool=tool,
            cancel_event=cancel_event,
            transport=self.transport,
        )

    async def embed(self, inputs: List[str]) -> List[List[float]]:
        """Get one embedding vector per input string."""
        payload = {"model": self.options.model, "input": inputs}
        data = await self._request_json("POST", "/api/embed", "Embedding", payload)

        embeddings = data.get("embeddings")
        if not isinstance(embeddings, list):
            raise ProtocolError("Embedding response has no 'embeddings' list")
        return embeddings

    async def list_local_models(self) -> List[Model]:
        """List models installed on the server."""
        data = await self._request_json("GET", "/api/tags", "List local models")
        return self._parse_models(data, ModelLocation.LOCAL)

    async def list_remote_models(self) -> List[Model]:
        """List models from the remote catalog."""
        # An absolute URL bypasses the client's base_url
        data = await self._request_json(
            "GET", self.options.remote_catalog_url, "List remote models"
        )
        return self._parse_models(data, ModelLocation.REMOTE)

    @staticmethod
    def _parse_models(data: dict, location: ModelLocation) -> List[Model]:
        try:
            return [Model.model_validate({**m, "location": location}) for m in data.get("models", [])]
        except (TypeError, ValidationError) as e:
            raise ProtocolError(f"Unexpected model list: {e}") from e

    async def pull_model(
        self,
        name: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[PullModelProgress]:
        """Pull a model, yielding progress updates as the server sends them."""
        payload = {"model": name, "stream": True}
        logger.info("Pulling model %s", name)

        with translate_errors("Pull model"):
            async with open_client(self.options, self.transport) as client:
                async with client.stream("POST", "/api/pull", json=payload) as response:
                    await raise_for_status(response)
                    async with aclosing(read_json_lines(response, cancel_event)) as lines:
                        async for data in lines:
                            if data.get("error"):
                                raise ProtocolError(f"Ollama error: {data['error']}")
                            try:
                                progress = pull_progress(data)
                            except ValidationError as e:
                                raise ProtocolError(f"Unexpected pull progress: {e}") from e
                            yield progress

    async def check_health(self) -> bool:
        """Check if Ollama is running."""
        try:
            await self._request_json("GET", "/api/tags", "Health check")
            return True
        except OllamaError:
            return False

    async def check_model_available(self, model: Optional[str] = None) -> bool:
        """Check if model is available."""
        model = model or self.options.model
        try:
            models = await self.list_local_models()
        except OllamaError:
            return False

        for m in models:
            if (m.name or "").startswith(model.split(":")[0]):
                return True
        return False
