import pytest

from src.config.tenants import TenantConfig, TenantRegistry
from src.core.errors import EmbeddingProviderError
from src.core.index_store import AppendLogIndexBackend, LocalFileIndexBackend
from src.core.vector_store import VectorStore
from src.services.openai_service import TextGenerationError
from src.services.session_store import SessionStore


class FakeEmbedder:
    """Returns canned vectors; texts containing a fail marker raise like a provider outage"""

    def __init__(self, vectors=None, default=None, fail_on=()):
        self.vectors = vectors or {}
        self.default = default or [0.0, 0.0, 1.0]
        self.fail_on = set(fail_on)
        self.calls = []

    async def embed(self, text):
        self.calls.append(text)
        if any(marker in text for marker in self.fail_on):
            raise EmbeddingProviderError(f"provider unavailable for {text!r}")
        return list(self.vectors.get(text, self.default))


class FakeGenerator:
    def __init__(self, reply="Happy to help!", fail=False):
        self.reply = reply
        self.fail = fail
        self.calls = []

    async def generate(self, messages, model=None, temperature=0.6, max_tokens=80):
        self.calls.append(messages)
        if self.fail:
            raise TextGenerationError("model unavailable")
        return self.reply


@pytest.fixture
def local_store(tmp_path):
    return VectorStore(LocalFileIndexBackend(str(tmp_path / "index")))


@pytest.fixture
def log_store(tmp_path):
    return VectorStore(AppendLogIndexBackend(str(tmp_path / "log")))


@pytest.fixture(params=["local", "log"])
def any_store(request, tmp_path):
    """Runs a test once per file-based backend"""
    if request.param == "local":
        return VectorStore(LocalFileIndexBackend(str(tmp_path / "index")))
    return VectorStore(AppendLogIndexBackend(str(tmp_path / "log")))


@pytest.fixture
def tenants():
    return TenantRegistry({
        "acme": TenantConfig(
            tenant_id="acme",
            name="Acme Dental",
            bot_name="Acme Assistant",
            greeting="Hello, Acme Dental. How can I help?",
            fallback="Sorry, could you say that again?",
            system_prompt="You are the receptionist for Acme Dental.",
            top_k=2,
        ),
    })


@pytest.fixture
def sessions():
    return SessionStore(ttl_seconds=3600, max_entries=100)
