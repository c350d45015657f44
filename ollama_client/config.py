"""
Configuration for the Ollama client.

Every option has a default that works against a stock local Ollama
install. `OllamaOptions.from_env()` lets deployments override them through
OLLAMA_* environment variables.
"""

import os
from typing import Optional

from pydantic import BaseModel


DEFAULT_HOST = "http://localhost:11434"
DEFAULT_MODEL = "qwen2.5:1.5b"


class OllamaOptions(BaseModel):
    """Configuration for talking to an Ollama server."""

    host: str = DEFAULT_HOST
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    timeout: float = 120  # seconds
    api_key: Optional[str] = None

    # Pull the configured model before the first call that needs it
    auto_install_model: bool = False

    # Send previous turns with every chat request and record new ones
    keep_chat_history: bool = True

    system_prompt: Optional[str] = None

    # Serves the same JSON shape as /api/tags
    remote_catalog_url: str = "https://ollama.com/api/tags"

    @classmethod
    def from_env(cls) -> "OllamaOptions":
        """
        Build options from OLLAMA_* environment variables.

        Values are passed through as strings and validated by pydantic, so a
        malformed variable raises a ValidationError naming the field.
        """
        defaults = cls()
        return cls(
            host=os.getenv("OLLAMA_HOST", defaults.host),
            model=os.getenv("OLLAMA_MODEL", defaults.model),
            temperature=os.getenv("OLLAMA_TEMPERATURE", defaults.temperature),
            timeout=os.getenv("OLLAMA_TIMEOUT", defaults.timeout),
            api_key=os.getenv("OLLAMA_API_KEY") or None,
            auto_install_model=os.getenv("OLLAMA_AUTO_INSTALL", defaults.auto_install_model),
            keep_chat_history=os.getenv("OLLAMA_KEEP_HISTORY", defaults.keep_chat_history),
            system_prompt=os.getenv("OLLAMA_SYSTEM_PROMPT") or None,
            remote_catalog_url=os.getenv("OLLAMA_REMOTE_CATALOG_URL", defaults.remote_catalog_url),
        )
