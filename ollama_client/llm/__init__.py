"""
LLM Package - Ollama Integration

- http_client.py: one method per Ollama endpoint
- ollama_client.py: OllamaClient, the object applications use
"""

from .http_client import OllamaHttpClient
from .ollama_client import OllamaClient

__all__ = ["OllamaClient", "OllamaHttpClient"]
