from functools import lru_cache

from src.config.tenants import TenantRegistry, load_tenant_registry
from src.core.assistant import Assistant
from src.core.index_store import make_index_backend
from src.core.vector_store import VectorStore
from src.services.embedding_service import EmbeddingService
from src.services.ingestion_service import IngestionPipeline
from src.services.openai_service import OpenAIService
from src.services.session_store import SessionStore


@lru_cache
def get_vector_store() -> VectorStore:
    return VectorStore(make_index_backend())


@lru_cache
def get_embedding_service() -> EmbeddingService:
    return EmbeddingService()


@lru_cache
def get_tenant_registry() -> TenantRegistry:
    return load_tenant_registry()


@lru_cache
def get_ingestion_pipeline() -> IngestionPipeline:
    return IngestionPipeline(get_vector_store(), get_embedding_service())


@lru_cache
def get_assistant() -> Assistant:
    return Assistant(
        vector_store=get_vector_store(),
        embedder=get_embedding_service(),
        generator=OpenAIService(),
        sessions=SessionStore(),
        tenants=get_tenant_registry(),
    )
