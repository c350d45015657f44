"""
Ollama Gateway - FastAPI app exposing the client over HTTP

API Endpoints:
- GET  /health      - Server and model availability
- POST /chat        - Chat, keeping one conversation for the process
- POST /generate    - Text completion
- POST /embeddings  - Embeddings
- GET  /models      - List and filter models
- POST /pull        - Pull a model, streaming progress as NDJSON
"""

import json
import logging
from contextlib import aclosing, asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from .config import OllamaOptions
from .errors import (
    ArgumentBindingError,
    Cancelled,
    OllamaError,
    ServerError,
    ToolInvocationError,
    TransportError,
)
from .llm import OllamaClient
from .models import Model, ModelLocation, ModelSize

logger = logging.getLogger(__name__)


# Global instance
llm_client: Optional[OllamaClient] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup."""
    global llm_client

    options = OllamaOptions.from_env()
    llm_client = OllamaClient(options)
    logger.info("Ollama gateway ready: host=%s model=%s", options.host, options.model)

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title="Ollama Gateway",
    description="HTTP gateway over the Ollama client",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response Models
class ChatRequest(BaseModel):
    message: str


class ChatResponse(BaseModel):
    response: Optional[str]
    history_length: int


class GenerateRequest(BaseModel):
    prompt: str


class GenerateResponse(BaseModel):
    response: str


class EmbeddingRequest(BaseModel):
    input: List[str]


class EmbeddingResponse(BaseModel):
    embeddings: List[List[float]]


class PullRequest(BaseModel):
    model: str


class HealthResponse(BaseModel):
    status: str
    ollama_connected: bool
    model_available: bool
    model: str


def _status_for(error: OllamaError) -> int:
    if isinstance(error, TransportError):
        return 503
    if isinstance(error, ServerError) and error.status_code == 404:
        return 404
    if isinstance(error, (ArgumentBindingError, ToolInvocationError)):
        return 422
    if isinstance(error, Cancelled):
        return 499
    return 502


@app.exception_handler(OllamaError)
async def ollama_error_handler(request: Request, exc: OllamaError):
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=_status_for(exc),
        content={"detail": str(exc), "error": type(exc).__name__},
    )


# Endpoints
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Check Ollama and model availability."""
    ollama_ok = await llm_client.check_health()
    model_ok = await llm_client.check_model_available() if ollama_ok else False

    return HealthResponse(
        status="healthy" if ollama_ok and model_ok else "degraded",
        ollama_connected=ollama_ok,
        model_available=model_ok,
        model=llm_client.options.model,
    )


@app.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    """Continue the gateway's conversation."""
    answer = await llm_client.get_chat_text_completion(request.message)
    return ChatResponse(response=answer, history_length=len(llm_client.history))


@app.post("/generate", response_model=GenerateResponse)
async def generate(request: GenerateRequest):
    """One-shot text completion."""
    text = await llm_client.generate_text_completion(request.prompt)
    return GenerateResponse(response=text)


@app.post("/embeddings", response_model=EmbeddingResponse)
async def embeddings(request: EmbeddingRequest):
    vectors = await llm_client.get_embedding(request.input)
    return EmbeddingResponse(embeddings=vectors)


@app.get("/models", response_model=List[Model])
async def list_models(
    pattern: Optional[str] = None,
    size: Optional[ModelSize] = None,
    location: ModelLocation = ModelLocation.LOCAL,
):
    """List models, smallest first."""
    return await llm_client.list_models(pattern=pattern, size=size, location=location)


@app.post("/pull")
async def pull_model(request: PullRequest):
    """
    Pull a model. Each line of the response is one progress update.

    The first update is read before responding, so a failure to reach Ollama
    gets an error status like the other endpoints. A failure after that ends
    the stream with an {"error": ...} line, as Ollama itself does.
    """
    updates = llm_client.iter_pull_model(request.model)
    first = await anext(updates, None)

    async def progress_lines():
        async with aclosing(updates):
            if first is not None:
                yield first.model_dump_json(exclude_none=True) + "\n"
            try:
                async for update in updates:
                    yield update.model_dump_json(exclude_none=True) + "\n"
            except OllamaError as e:
                logger.warning("Pull of %s failed mid-stream: %s", request.model, e)
                yield json.dumps({"error": str(e)}) + "\n"

    return StreamingResponse(progress_lines(), media_type="application/x-ndjson")
