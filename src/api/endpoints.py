from typing import List
import logging

from fastapi import Depends, HTTPException

from src.api.dependencies import (
    get_assistant,
    get_embedding_service,
    get_ingestion_pipeline,
    get_vector_store,
)
from src.api.models import ChunkIn, DocumentIn, GreetingOut, SearchRequest, TurnIn
from src.core.assistant import Assistant, TurnResult
from src.core.errors import (
    CorruptIndex,
    DimensionMismatch,
    EmbeddingProviderError,
    PersistenceError,
    UnknownTenant,
)
from src.core.models import Chunk, IndexStats, IngestionResult, SearchResult
from src.core.vector_store import VectorStore
from src.services.embedding_service import EmbeddingService
from src.services.ingestion_service import IngestionPipeline

logger = logging.getLogger(__name__)


def to_http_error(e: Exception) -> HTTPException:
    """Map retrieval failures onto HTTP status codes"""
    if isinstance(e, DimensionMismatch):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, UnknownTenant):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, EmbeddingProviderError):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, (CorruptIndex, PersistenceError)):
        logger.error(f"Index failure: {str(e)}")
        return HTTPException(status_code=500, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    logger.error(f"Unexpected error: {str(e)}")
    return HTTPException(status_code=500, detail=str(e))


async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


async def list_tenants(store: VectorStore = Depends(get_vector_store)):
    try:
        return {"tenants": await store.list_tenants()}
    except Exception as e:
        raise to_http_error(e)


async def get_index_stats(tenant_id: str, store: VectorStore = Depends(get_vector_store)) -> IndexStats:
    try:
        return await store.stats(tenant_id)
    except Exception as e:
        raise to_http_error(e)


async def ingest_document(
    tenant_id: str,
    document: DocumentIn,
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
) -> IngestionResult:
    """Chunk, embed and index a document for a tenant"""
    try:
        return await pipeline.ingest_document(tenant_id, document.source, document.text)
    except Exception as e:
        raise to_http_error(e)


async def upsert_chunk(
    tenant_id: str,
    chunk: ChunkIn,
    store: VectorStore = Depends(get_vector_store),
) -> Chunk:
    """Append a single pre-embedded chunk"""
    try:
        return await store.upsert_chunk(tenant_id, chunk.embedding, chunk.metadata.model_dump())
    except Exception as e:
        raise to_http_error(e)


async def search_index(
    tenant_id: str,
    request: SearchRequest,
    store: VectorStore = Depends(get_vector_store),
    embedder: EmbeddingService = Depends(get_embedding_service),
) -> List[SearchResult]:
    try:
        query_embedding = request.embedding
        if query_embedding is None:
            query_embedding = await embedder.embed(request.query)
        return await store.search(tenant_id, query_embedding, request.k)
    except Exception as e:
        raise to_http_error(e)


async def reset_index(tenant_id: str, store: VectorStore = Depends(get_vector_store)):
    try:
        await store.reset(tenant_id)
        return {"status": "reset", "tenant_id": tenant_id}
    except Exception as e:
        raise to_http_error(e)


async def start_call(tenant_id: str, call_sid: str, assistant: Assistant = Depends(get_assistant)) -> GreetingOut:
    try:
        return GreetingOut(call_sid=call_sid, greeting=assistant.start_call(tenant_id, call_sid))
    except Exception as e:
        raise to_http_error(e)


async def handle_turn(
    tenant_id: str,
    call_sid: str,
    turn: TurnIn,
    assistant: Assistant = Depends(get_assistant),
) -> TurnResult:
    """Answer one caller utterance, grounded in the tenant's knowledge base when possible"""
    try:
        return await assistant.handle_turn(tenant_id, call_sid, turn.transcript)
    except Exception as e:
        raise to_http_error(e)


async def end_call(tenant_id: str, call_sid: str, assistant: Assistant = Depends(get_assistant)):
    assistant.end_call(call_sid)
    return {"status": "ended", "call_sid": call_sid}
