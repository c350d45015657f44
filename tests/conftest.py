import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from ollama_client.chat import ConversationHistory
from ollama_client.config import OllamaOptions
from tests.support import MODEL, FakeOllama


@pytest.fixture
def fake_ollama():
    return FakeOllama()


@pytest.fixture
def options():
    return OllamaOptions(model=MODEL, temperature=0.2, timeout=5)


@pytest.fixture
def history():
    return ConversationHistory()
