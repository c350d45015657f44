"""
HTTP plumbing shared by every endpoint call.

Each call opens its own httpx.AsyncClient inside an `async with` block, so
the connection is released on success, error and cancellation alike.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import httpx

from .config import OllamaOptions
from .errors import ServerError, TransportError

logger = logging.getLogger(__name__)


def open_client(
    options: OllamaOptions,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create an AsyncClient configured from the options."""
    headers = {}
    if options.api_key:
        headers["Authorization"] = f"Bearer {options.api_key}"

    return httpx.AsyncClient(
        base_url=options.host.rstrip("/"),
        timeout=options.timeout,
        headers=headers,
        transport=transport,
    )


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise httpx connection and timeout failures as TransportError."""
    try:
        yield
    except httpx.TimeoutException as e:
        logger.warning("%s timed out: %s", operation, e)
        raise TransportError(f"{operation} timed out: {e}") from e
    except httpx.TransportError as e:
        logger.warning("%s failed: %s", operation, e)
        raise TransportError(f"{operation} failed: {e}") from e


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and "error" in data:
        return str(data["error"])
    return response.text


async def raise_for_status(response: httpx.Response) -> None:
    """Raise ServerError for non-2xx responses, streamed or not."""
    if response.is_success:
        return
    await response.aread()
    message = _error_message(response)
    logger.error("Ollama %s %s -> %s: %s",
                 response.request.method, response.request.url.path,
                 response.status_code, message)
    raise ServerError(response.status_code, message)
